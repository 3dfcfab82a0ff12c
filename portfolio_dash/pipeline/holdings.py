from __future__ import annotations
import math
from types import MappingProxyType
from typing import Mapping

from ..errors import InvalidHoldingError


def normalize_ticker(ticker: str) -> str:
    return (ticker or "").strip().upper()


class PortfolioState:
    """Session-scoped ticker -> invested amount. Not persisted."""

    def __init__(self, holdings: Mapping[str, float] | None = None):
        self._holdings: dict[str, float] = {}
        for ticker, amount in (holdings or {}).items():
            self.add(ticker, amount)

    def add(self, ticker: str, amount: float) -> str:
        sym = normalize_ticker(ticker)
        if not sym:
            raise InvalidHoldingError("ticker must not be empty")
        try:
            value = float(amount)
        except (TypeError, ValueError):
            raise InvalidHoldingError(f"amount for {sym} is not a number: {amount!r}")
        if not math.isfinite(value) or value <= 0:
            raise InvalidHoldingError(f"amount for {sym} must be greater than zero")
        self._holdings[sym] = value
        return sym

    def remove(self, ticker: str) -> bool:
        return self._holdings.pop(normalize_ticker(ticker), None) is not None

    def clear(self):
        self._holdings.clear()

    def view(self) -> Mapping[str, float]:
        # Copy so an in-flight refresh never sees later edits.
        return MappingProxyType(dict(self._holdings))

    def tickers(self) -> list[str]:
        return list(self._holdings)

    def total_value(self) -> float:
        return sum(self._holdings.values())

    def __len__(self):
        return len(self._holdings)

    def __contains__(self, ticker):
        return normalize_ticker(ticker) in self._holdings

    def __repr__(self):
        return f"PortfolioState({self._holdings!r})"
