from fastapi import APIRouter, HTTPException, Request
from .schemas import HealthResponse, HoldingRequest, HoldingResponse, NotificationsResponse, NotificationOut
from ..errors import GatewayError, InvalidHoldingError, PortfolioAggregationError
from ..pipeline.snapshot_views import dashboard_view, market_view, portfolio_view
from ..session import DashboardSession

router = APIRouter()


def _session(request: Request) -> DashboardSession:
    return request.app.state.session


@router.get(
    '/health',
    response_model=HealthResponse,
    summary="Health check",
    description="Session state and whether market data was loaded at startup.",
    tags=["Health"],
)
def health(request: Request):
    session = _session(request)
    return HealthResponse(
        ok=True,
        market_loaded=session.market_loaded,
        holdings=len(session.portfolio),
        generation=session.generation,
        last_built_at=session.snapshot.built_at,
    )

@router.get(
    '/portfolio',
    summary="Current portfolio",
    description="Holdings with allocation percentages and total invested value.",
    tags=["Portfolio"],
)
def get_portfolio(request: Request):
    return portfolio_view(_session(request).portfolio.view())

@router.post(
    '/portfolio/holdings',
    response_model=HoldingResponse,
    status_code=201,
    summary="Add or update a holding",
    tags=["Portfolio"],
)
def add_holding(req: HoldingRequest, request: Request):
    session = _session(request)
    try:
        ticker = session.add_holding(req.ticker, req.amount)
    except InvalidHoldingError as e:
        raise HTTPException(400, str(e))
    return HoldingResponse(ticker=ticker, amount=session.portfolio.view()[ticker])

@router.delete(
    '/portfolio/holdings/{ticker}',
    summary="Remove a holding",
    description="Removing the last holding clears the portfolio-level analysis.",
    tags=["Portfolio"],
)
async def remove_holding(ticker: str, request: Request):
    session = _session(request)
    if not session.remove_holding(ticker):
        raise HTTPException(404, 'ticker not in portfolio')
    cleared = False
    if not len(session.portfolio):
        # Empty portfolio never reaches the gateway; this only swaps in the cleared snapshot.
        cleared = await session.refresh() is not None
    return {'ok': True, 'removed': ticker.strip().upper(), 'cleared': cleared}

@router.post(
    '/portfolio/analyze',
    summary="Analyze portfolio",
    description=(
        "Fetches portfolio-level metrics and per-ticker bundles, then returns the dashboard view. "
        "Tickers whose data could not be fetched are listed in failed_tickers."
    ),
    tags=["Portfolio"],
)
async def analyze(request: Request):
    session = _session(request)
    if not len(session.portfolio):
        session.notify("error", "Please add at least one security before analyzing")
        raise HTTPException(400, 'portfolio is empty')
    try:
        await session.analyze()
    except PortfolioAggregationError as e:
        raise HTTPException(502, f'portfolio_data_unavailable: {e.cause}')
    return dashboard_view(session.portfolio.view(), session.snapshot)

@router.get(
    '/dashboard',
    summary="Dashboard view",
    description="Overview, performance, holdings and market tabs for the latest snapshot.",
    tags=["Dashboard"],
)
def dashboard(request: Request):
    session = _session(request)
    return dashboard_view(session.portfolio.view(), session.snapshot)

@router.get(
    '/market',
    summary="Market overview",
    tags=["Dashboard"],
)
def market(request: Request):
    return market_view(_session(request).snapshot)

@router.get(
    '/macro/series',
    summary="Macro series catalogue",
    tags=["Macro"],
)
async def macro_series(request: Request):
    try:
        series = await _session(request).gateway.get_all_series()
    except GatewayError as e:
        raise HTTPException(502, str(e))
    return [s.model_dump() for s in series]

@router.get(
    '/macro/{series_id}/history',
    summary="Macro series history",
    tags=["Macro"],
)
async def macro_history(series_id: str, request: Request):
    try:
        points = await _session(request).gateway.get_macro_history(series_id)
    except GatewayError as e:
        raise HTTPException(502, str(e))
    return [p.model_dump() for p in points]

@router.get(
    '/macro/{series_id}/forecast',
    summary="Macro series forecast",
    tags=["Macro"],
)
async def macro_forecast(series_id: str, request: Request):
    try:
        points = await _session(request).gateway.get_forecast(series_id)
    except GatewayError as e:
        raise HTTPException(502, str(e))
    return [p.model_dump() for p in points]

@router.get(
    '/notifications',
    response_model=NotificationsResponse,
    summary="Drain notifications",
    description="Returns and clears pending user notifications.",
    tags=["Dashboard"],
)
def notifications(request: Request):
    items = _session(request).drain_notifications()
    return NotificationsResponse(
        notifications=[NotificationOut(level=n.level, message=n.message, created_at=n.created_at) for n in items]
    )
