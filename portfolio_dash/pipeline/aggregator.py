from __future__ import annotations
import asyncio
import time
from typing import Mapping
import structlog

from ..errors import PortfolioAggregationError
from ..gateway.client import PortfolioGateway
from ..utils import gather_settled
from .snapshots import SecurityBundle, Snapshot

log = structlog.get_logger()

DEFAULT_TICKER_CONCURRENCY = 8


class AggregationEngine:
    """
    Turns a portfolio into one Snapshot.

    The portfolio-level batch (performance, score, assessment) must succeed as
    a whole; per-ticker bundles (details, history, performance) are isolated
    from each other and a failed ticker is only dropped from the result.
    """

    def __init__(self, gateway: PortfolioGateway, ticker_concurrency: int = DEFAULT_TICKER_CONCURRENCY, include_news: bool = True):
        self.gateway = gateway
        self.ticker_concurrency = ticker_concurrency
        self.include_news = include_news

    async def refresh_portfolio_analysis(
        self,
        portfolio: Mapping[str, float],
        base: Snapshot | None = None,
        generation: int = 0,
    ) -> Snapshot:
        base = base or Snapshot.empty()
        holdings = dict(portfolio)
        if not holdings:
            log.info("portfolio_refresh_cleared", generation=generation)
            return base.cleared(generation=generation)

        started = time.monotonic()
        log.info("portfolio_refresh_started", generation=generation, tickers=len(holdings))
        # Requests are not cancellable, so wait for all three before judging the batch.
        results = await asyncio.gather(
            self.gateway.get_portfolio_performance(holdings),
            self.gateway.get_portfolio_score(holdings),
            self.gateway.get_portfolio_assessment(holdings),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, Exception):
                log.error("portfolio_batch_failed", generation=generation, error=str(result), error_type=type(result).__name__)
                raise PortfolioAggregationError("portfolio-level request failed", result) from result
        performance, score, assessment = results

        bundles, failures = await gather_settled(
            {ticker: self._ticker_bundle(ticker) for ticker in holdings},
            limit=self.ticker_concurrency,
        )
        for ticker, exc in failures.items():
            log.warning("ticker_bundle_failed", generation=generation, ticker=ticker, error=str(exc), error_type=type(exc).__name__)

        # Keep portfolio order for the presentation layer.
        securities = {ticker: bundles[ticker] for ticker in holdings if ticker in bundles}
        log.info(
            "portfolio_refresh_done",
            generation=generation,
            tickers_ok=len(securities),
            tickers_failed=len(failures),
            elapsed_sec=round(time.monotonic() - started, 2),
        )
        return base.with_analysis(
            performance=performance,
            score=score,
            assessment=assessment,
            securities=securities,
            failed_tickers=failures.keys(),
            generation=generation,
        )

    async def _ticker_bundle(self, ticker: str) -> SecurityBundle:
        # Settle all three so the bundle holds its concurrency slot until nothing is in flight.
        results = await asyncio.gather(
            self.gateway.get_security_details(ticker, include_news=self.include_news),
            self.gateway.get_security_history(ticker),
            self.gateway.get_security_performance(ticker),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        details, history, performance = results
        ordered = sorted(history, key=lambda point: point.date)
        return SecurityBundle(details=details, history=tuple(ordered), performance=performance)
