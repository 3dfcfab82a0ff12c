from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Literal
import structlog

from .errors import InvalidHoldingError, MarketOverviewError, PortfolioAggregationError
from .gateway.client import PortfolioGateway
from .pipeline.aggregator import AggregationEngine, DEFAULT_TICKER_CONCURRENCY
from .pipeline.holdings import PortfolioState, normalize_ticker
from .pipeline.market import MarketOverviewFetcher
from .pipeline.snapshots import Snapshot
from .utils import now_utc_iso

log = structlog.get_logger()

DEFAULT_NOTIFICATION_BUFFER = 50


@dataclass(frozen=True)
class Notification:
    level: Literal["success", "error"]
    message: str
    created_at: str = field(default_factory=now_utc_iso)


class DashboardSession:
    """
    Owns the portfolio, the current snapshot and the user-facing notifications.
    Snapshot updates are whole-object swaps; a refresh that finishes after a
    newer one was started is discarded.
    """

    def __init__(
        self,
        gateway: PortfolioGateway,
        ticker_concurrency: int = DEFAULT_TICKER_CONCURRENCY,
        notification_buffer: int = DEFAULT_NOTIFICATION_BUFFER,
        include_news: bool = True,
    ):
        self.gateway = gateway
        self.portfolio = PortfolioState()
        self.snapshot = Snapshot.empty()
        self.engine = AggregationEngine(gateway, ticker_concurrency=ticker_concurrency, include_news=include_news)
        self.market = MarketOverviewFetcher(gateway)
        self.notifications: deque[Notification] = deque(maxlen=notification_buffer)
        self.market_loaded = False
        self._started = False
        self._generation = 0

    @classmethod
    def from_settings(cls, settings, gateway: PortfolioGateway) -> "DashboardSession":
        return cls(
            gateway,
            ticker_concurrency=settings.ticker_concurrency,
            notification_buffer=settings.notification_buffer,
        )

    @property
    def generation(self) -> int:
        return self._generation

    def notify(self, level: Literal["success", "error"], message: str):
        self.notifications.append(Notification(level=level, message=message))

    def drain_notifications(self) -> list[Notification]:
        out = list(self.notifications)
        self.notifications.clear()
        return out

    def add_holding(self, ticker: str, amount: float) -> str:
        try:
            sym = self.portfolio.add(ticker, amount)
        except InvalidHoldingError:
            self.notify("error", "Please enter valid ticker and amount")
            raise
        self.notify("success", f"Added {sym} to portfolio")
        return sym

    def remove_holding(self, ticker: str) -> bool:
        sym = normalize_ticker(ticker)
        removed = self.portfolio.remove(sym)
        if removed:
            self.notify("success", f"Removed {sym} from portfolio")
        return removed

    async def start(self) -> bool:
        """Load market data once. Later calls are no-ops."""
        if self._started:
            return self.market_loaded
        self._started = True
        try:
            overview = await self.market.load_market_overview()
        except MarketOverviewError:
            self.notify("error", "Failed to fetch market data")
            return False
        self.snapshot = self.snapshot.with_market(overview)
        self.market_loaded = True
        return True

    async def analyze(self) -> Snapshot | None:
        if not len(self.portfolio):
            self.notify("error", "Please add at least one security before analyzing")
            return None
        return await self.refresh()

    async def refresh(self) -> Snapshot | None:
        """
        Rebuild the snapshot from the current portfolio. Returns the committed
        snapshot, or None when the result was stale.
        Raises PortfolioAggregationError after notifying; the snapshot is left as it was.
        """
        self._generation += 1
        generation = self._generation
        holdings = self.portfolio.view()
        try:
            result = await self.engine.refresh_portfolio_analysis(holdings, base=self.snapshot, generation=generation)
        except PortfolioAggregationError:
            if generation != self._generation:
                log.info("portfolio_refresh_discarded", generation=generation, latest=self._generation, failed=True)
                return None
            self.notify("error", "Failed to fetch portfolio data")
            raise
        if generation != self._generation:
            log.info("portfolio_refresh_discarded", generation=generation, latest=self._generation)
            return None
        # Market data may have arrived while the refresh was in flight.
        committed = result.with_market_from(self.snapshot)
        self.snapshot = committed
        if holdings:
            for ticker in committed.failed_tickers:
                self.notify("error", f"Failed to fetch data for {ticker}")
            self.notify("success", "Portfolio data updated successfully")
        return committed
