from __future__ import annotations
from typing import Mapping

from ..derive import (
    allocation,
    classify_sentiment,
    format_currency,
    format_large_number,
    format_number,
    format_percentage,
    portfolio_value,
    price_series,
    score_band,
    sentiment_color,
    sentiment_icon,
)
from .snapshots import SecurityBundle, Snapshot

TOP_NEWS_ITEMS = 3


def _fmt(value, formatter):
    return formatter(value) if value is not None else None


def portfolio_view(portfolio: Mapping[str, float]) -> dict:
    total = portfolio_value(portfolio)
    return {
        "total_value": total,
        "total_value_display": format_currency(total),
        "holdings": [
            {
                "ticker": row.ticker,
                "amount": row.amount,
                "amount_display": format_currency(row.amount),
                "percentage": row.percentage,
                "percentage_display": f"{format_number(row.percentage)}%",
            }
            for row in allocation(portfolio)
        ],
    }


def _overview(portfolio: Mapping[str, float], snapshot: Snapshot) -> dict:
    perf = snapshot.performance
    score = snapshot.score
    out = portfolio_view(portfolio)
    out["performance"] = None if perf is None else {
        "returns": perf.returns,
        "returns_display": format_percentage(perf.returns),
        "risk": perf.risk,
        "risk_display": f"{format_number(perf.risk)}%",
        "sharpe_ratio": perf.sharpe_ratio,
        "sharpe_ratio_display": format_number(perf.sharpe_ratio),
    }
    out["score"] = None if score is None else {
        "portfolio_score": score.portfolio_score,
        "portfolio_score_display": format_number(score.portfolio_score),
        "score_remark": score.score_remark,
        "band": score_band(score.portfolio_score),
    }
    out["assessment"] = snapshot.assessment.assessment if snapshot.assessment else None
    return out


def _performance(snapshot: Snapshot) -> dict:
    score = snapshot.score
    breakdown = None
    if score is not None:
        breakdown = {
            "portfolio_score": format_number(score.portfolio_score),
            "score_remark": score.score_remark,
            "percentile_rank": format_number(score.percentile_rank),
            "risk_match_score": _fmt(score.risk_match_score, format_number),
            "sharpe_ratio_score": format_number(score.sharpe_ratio_score),
            "downside_protection_score": format_number(score.downside_protection_score),
        }
    return {
        "score_breakdown": breakdown,
        "price_history": {ticker: price_series(bundle.history) for ticker, bundle in snapshot.securities.items()},
    }


def security_view(ticker: str, bundle: SecurityBundle) -> dict:
    d = bundle.details
    sentiment = d.ai_sentiment
    return {
        "ticker": ticker,
        "name": d.ticker,
        "sector": d.sector,
        "industry": d.industry,
        "website": d.website,
        "description": d.description,
        "price": _fmt(d.price, format_currency),
        "market_cap": _fmt(d.market_cap, format_large_number),
        "beta": _fmt(d.beta, format_number),
        "volatility": _fmt(d.volatility, lambda v: f"{format_number(v)}%"),
        "sharpe_ratio": _fmt(d.sharpe_ratio, format_number),
        "revenue": _fmt(d.revenue, format_large_number),
        "earnings_per_share": _fmt(d.earnings_per_share, format_currency),
        "profit_margin": _fmt(d.profit_margin, format_percentage),
        "expected_return": format_percentage(bundle.performance.expected_return),
        "expected_volatility": f"{format_number(bundle.performance.volatility)}%",
        "sentiment": {
            "label": sentiment,
            "class": classify_sentiment(sentiment).value,
            "color": sentiment_color(sentiment),
            "icon": sentiment_icon(sentiment),
        },
        "news": [
            {
                "date": item.date,
                "headline": item.headline,
                "source": item.source,
                "url": item.url,
                "sentiment": classify_sentiment(item.sentiment).value,
            }
            for item in d.news[:TOP_NEWS_ITEMS]
        ],
    }


def market_view(snapshot: Snapshot) -> dict:
    return {
        "insights": [i.model_dump() for i in snapshot.insights],
        "anomalies": [a.model_dump() for a in snapshot.anomalies],
        "macro_series": [s.model_dump() for s in snapshot.macro_series],
    }


def dashboard_view(portfolio: Mapping[str, float], snapshot: Snapshot) -> dict:
    return {
        "generation": snapshot.generation,
        "built_at": snapshot.built_at,
        "has_analysis": bool(portfolio) and snapshot.has_analysis,
        "overview": _overview(portfolio, snapshot),
        "performance": _performance(snapshot),
        "holdings": [security_view(ticker, bundle) for ticker, bundle in snapshot.securities.items()],
        "market": market_view(snapshot),
        "failed_tickers": list(snapshot.failed_tickers),
    }
