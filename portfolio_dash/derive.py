"""Pure view-model helpers: allocation, number formatting, sentiment and score classes."""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping
import pandas as pd

BILLION = 1_000_000_000
MILLION = 1_000_000
THOUSAND = 1_000


@dataclass(frozen=True)
class Allocation:
    ticker: str
    amount: float
    percentage: float


def portfolio_value(portfolio: Mapping[str, float]) -> float:
    return sum(portfolio.values())


def allocation(portfolio: Mapping[str, float]) -> list[Allocation]:
    """Share of total invested amount per ticker, recomputed on every call."""
    total = portfolio_value(portfolio)
    return [
        Allocation(ticker=ticker, amount=amount, percentage=(amount / total * 100) if total > 0 else 0.0)
        for ticker, amount in portfolio.items()
    ]


def format_number(value: float, decimals: int = 2) -> str:
    # -0.0 would otherwise render as "-0.00"
    return f"{value + 0.0:,.{decimals}f}"


def format_currency(value: float) -> str:
    text = format_number(abs(value), 2)
    return f"-${text}" if value < 0 and text.strip("0.,") else f"${text}"


def format_percentage(value: float) -> str:
    return f"{'+' if value >= 0 else ''}{format_number(value)}%"


def format_large_number(value: float) -> str:
    if value >= BILLION:
        return f"${value / BILLION:.2f}B"
    if value >= MILLION:
        return f"${value / MILLION:.2f}M"
    if value >= THOUSAND:
        return f"${value / THOUSAND:.2f}K"
    return format_currency(value)


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"
    UNKNOWN = "unknown"


_POSITIVE_MARKERS = ("positive", "bullish")
_NEGATIVE_MARKERS = ("negative", "bearish")

_SENTIMENT_COLORS = {
    Sentiment.POSITIVE: "green",
    Sentiment.NEGATIVE: "red",
    Sentiment.NEUTRAL: "yellow",
    Sentiment.UNKNOWN: "gray",
}

_SENTIMENT_ICONS = {
    Sentiment.POSITIVE: "trending-up",
    Sentiment.NEGATIVE: "trending-down",
    Sentiment.NEUTRAL: "activity",
    Sentiment.UNKNOWN: "activity",
}


def classify_sentiment(text: str | None) -> Sentiment:
    """Best-effort substring heuristic over the free-text AI sentiment label."""
    if not text:
        return Sentiment.UNKNOWN
    lowered = text.lower()
    if any(marker in lowered for marker in _POSITIVE_MARKERS):
        return Sentiment.POSITIVE
    if any(marker in lowered for marker in _NEGATIVE_MARKERS):
        return Sentiment.NEGATIVE
    return Sentiment.NEUTRAL


def sentiment_color(text: str | None) -> str:
    return _SENTIMENT_COLORS[classify_sentiment(text)]


def sentiment_icon(text: str | None) -> str:
    return _SENTIMENT_ICONS[classify_sentiment(text)]


def score_band(score: float) -> str:
    if score >= 800:
        return "excellent"
    if score >= 600:
        return "good"
    if score >= 400:
        return "fair"
    return "poor"


def price_series(history: Iterable) -> list[dict]:
    """Date-ordered points with one value per date (last one wins)."""
    rows = [{"date": getattr(p, "date", None), "val": getattr(p, "val", None)} for p in history]
    if not rows:
        return []
    df = pd.DataFrame.from_records(rows)
    df["ts"] = pd.to_datetime(df["date"], errors="coerce")
    df["val"] = pd.to_numeric(df["val"], errors="coerce")
    df = df.dropna(subset=["ts", "val"]).sort_values("ts", kind="stable").drop_duplicates(subset=["ts"], keep="last")
    return [{"date": str(d), "val": float(v)} for d, v in zip(df["date"], df["val"])]
