from __future__ import annotations


class PortfolioDashError(Exception):
    """Base class for dashboard errors."""


class ConfigError(PortfolioDashError):
    pass


class InvalidHoldingError(PortfolioDashError, ValueError):
    pass


class GatewayError(PortfolioDashError):
    """Remote data service call failed."""

    def __init__(self, message: str, endpoint: str | None = None):
        super().__init__(message)
        self.endpoint = endpoint


class TransportError(GatewayError):
    """Service unreachable or the request timed out."""


class ResponseError(GatewayError):
    """Non-2xx status or a body that does not match the expected shape."""

    def __init__(self, message: str, endpoint: str | None = None, status_code: int | None = None):
        super().__init__(message, endpoint=endpoint)
        self.status_code = status_code


class _WrappedError(PortfolioDashError):
    def __init__(self, message: str, cause: BaseException):
        super().__init__(f"{message}: {cause}")
        self.cause = cause


class PortfolioAggregationError(_WrappedError):
    """Portfolio-level batch (performance, score, assessment) failed."""


class MarketOverviewError(_WrappedError):
    """Insights, anomalies or series catalogue could not be loaded."""
