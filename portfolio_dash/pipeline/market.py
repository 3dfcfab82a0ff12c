from __future__ import annotations
import asyncio
import structlog

from ..errors import MarketOverviewError
from ..gateway.client import PortfolioGateway
from .snapshots import MarketOverview

log = structlog.get_logger()


class MarketOverviewFetcher:
    """Portfolio-independent reads loaded once per session. All or nothing."""

    def __init__(self, gateway: PortfolioGateway):
        self.gateway = gateway

    async def load_market_overview(self) -> MarketOverview:
        results = await asyncio.gather(
            self.gateway.get_daily_insights(),
            self.gateway.get_security_anomalies(),
            self.gateway.get_all_series(),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, asyncio.CancelledError):
                raise result
            if isinstance(result, Exception):
                log.error("market_overview_failed", error=str(result), error_type=type(result).__name__)
                raise MarketOverviewError("market overview request failed", result) from result
        insights, anomalies, series = results
        log.info("market_overview_loaded", insights=len(insights), anomalies=len(anomalies), series=len(series))
        return MarketOverview(insights=tuple(insights), anomalies=tuple(anomalies), macro_series=tuple(series))
