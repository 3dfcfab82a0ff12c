from __future__ import annotations
import json
from typing import Any, Mapping
import httpx
import structlog
from pydantic import TypeAdapter, ValidationError

from ..errors import ResponseError, TransportError
from .schemas import (
    DailyInsight,
    DailyInsightsEnvelope,
    ForecastPoint,
    HistoryPoint,
    MacroSeries,
    PortfolioAssessment,
    PortfolioPerformance,
    PortfolioScore,
    SecurityAnomaly,
    SecurityDetails,
    SecurityDetailsEnvelope,
    SecurityPerformance,
)

log = structlog.get_logger()

DEFAULT_TIMEOUT_SECONDS = 20.0

_INSIGHTS = TypeAdapter(list[DailyInsight])
_ANOMALIES = TypeAdapter(list[SecurityAnomaly])
_HISTORY = TypeAdapter(list[HistoryPoint])
_FORECAST = TypeAdapter(list[ForecastPoint])
_SERIES = TypeAdapter(list[MacroSeries])


def encode_portfolio(portfolio: Mapping[str, float]) -> str:
    """Compact JSON for the portfolio_dict query parameter, integral amounts without a fraction."""
    payload = {}
    for ticker, amount in portfolio.items():
        amount = float(amount)
        payload[ticker] = int(amount) if amount.is_integer() else amount
    return json.dumps(payload, separators=(",", ":"))


class PortfolioGateway:
    """Typed reads against the remote portfolio data service. No retries."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    @classmethod
    def from_settings(cls, settings, transport: httpx.AsyncBaseTransport | None = None) -> "PortfolioGateway":
        return cls(
            settings.portfolio_base_url,
            settings.portfolio_api_key,
            timeout=settings.http_timeout_seconds,
            transport=transport,
        )

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    async def _get(self, path: str, params: dict[str, Any] | None = None):
        query = dict(params or {})
        query["api_key"] = self.api_key
        try:
            r = await self._client.get(path, params=query)
        except httpx.TimeoutException as exc:
            log.warning("gateway_timeout", endpoint=path, timeout=self.timeout)
            raise TransportError(f"timed out after {self.timeout}s calling {path}", endpoint=path) from exc
        except httpx.TransportError as exc:
            log.warning("gateway_unreachable", endpoint=path, error=str(exc))
            raise TransportError(f"could not reach {path}: {exc}", endpoint=path) from exc
        if not r.is_success:
            log.warning("gateway_bad_status", endpoint=path, status=r.status_code, body=r.text[:500])
            raise ResponseError(f"{path} returned HTTP {r.status_code}", endpoint=path, status_code=r.status_code)
        try:
            return r.json()
        except ValueError as exc:
            log.warning("gateway_malformed_body", endpoint=path, body=r.text[:500])
            raise ResponseError(f"{path} returned a non-JSON body", endpoint=path, status_code=r.status_code) from exc

    def _parse(self, path: str, parser, payload):
        try:
            if isinstance(parser, TypeAdapter):
                return parser.validate_python(payload)
            return parser.model_validate(payload)
        except ValidationError as exc:
            log.warning("gateway_unexpected_shape", endpoint=path, errors=exc.error_count())
            raise ResponseError(f"{path} returned an unexpected body: {exc.error_count()} validation error(s)", endpoint=path) from exc

    async def _fetch(self, path: str, parser, params: dict[str, Any] | None = None):
        payload = await self._get(path, params)
        return self._parse(path, parser, payload)

    # Market-wide reads

    async def get_daily_insights(self) -> list[DailyInsight]:
        envelope = await self._fetch("/get_daily_insights", DailyInsightsEnvelope)
        return list(envelope.insights)

    async def get_security_anomalies(self) -> list[SecurityAnomaly]:
        return await self._fetch("/security_anomalies", _ANOMALIES)

    async def get_all_series(self) -> list[MacroSeries]:
        return await self._fetch("/all_series", _SERIES)

    async def get_macro_history(self, series_id: str | int) -> list[HistoryPoint]:
        return await self._fetch("/history", _HISTORY, {"series_id": series_id})

    async def get_forecast(self, series_id: str | int) -> list[ForecastPoint]:
        return await self._fetch("/forecast", _FORECAST, {"series_id": series_id})

    # Portfolio-level reads

    async def get_portfolio_assessment(self, portfolio: Mapping[str, float]) -> PortfolioAssessment:
        return await self._fetch("/get_portfolio_assessment", PortfolioAssessment, {"portfolio_dict": encode_portfolio(portfolio)})

    async def get_portfolio_performance(self, portfolio: Mapping[str, float]) -> PortfolioPerformance:
        return await self._fetch("/get_portfolio_performance_stats", PortfolioPerformance, {"portfolio_dict": encode_portfolio(portfolio)})

    async def get_portfolio_score(self, portfolio: Mapping[str, float]) -> PortfolioScore:
        return await self._fetch("/get_portfolio_score", PortfolioScore, {"portfolio_dict": encode_portfolio(portfolio)})

    async def get_portfolio_insights(self, portfolio: Mapping[str, float]) -> list[DailyInsight]:
        envelope = await self._fetch("/get_portfolio_insights", DailyInsightsEnvelope, {"portfolio_dict": encode_portfolio(portfolio)})
        return list(envelope.insights)

    # Per-security reads

    async def get_security_history(self, ticker: str) -> list[HistoryPoint]:
        return await self._fetch("/security_history", _HISTORY, {"ticker": ticker})

    async def get_security_performance(self, ticker: str) -> SecurityPerformance:
        return await self._fetch("/security_performance", SecurityPerformance, {"ticker": ticker})

    async def get_security_details(self, ticker: str, include_news: bool = True) -> SecurityDetails:
        envelope = await self._fetch(
            "/get_security_details",
            SecurityDetailsEnvelope,
            {"ticker": ticker, "include_news_and_ai_sentiment": "true" if include_news else "false"},
        )
        return envelope.security_details
