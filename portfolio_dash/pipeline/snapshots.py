from __future__ import annotations
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping

from ..gateway.schemas import (
    DailyInsight,
    HistoryPoint,
    MacroSeries,
    PortfolioAssessment,
    PortfolioPerformance,
    PortfolioScore,
    SecurityAnomaly,
    SecurityDetails,
    SecurityPerformance,
)
from ..utils import now_utc_iso


@dataclass(frozen=True)
class SecurityBundle:
    details: SecurityDetails
    history: tuple[HistoryPoint, ...]
    performance: SecurityPerformance


@dataclass(frozen=True)
class MarketOverview:
    insights: tuple[DailyInsight, ...] = ()
    anomalies: tuple[SecurityAnomaly, ...] = ()
    macro_series: tuple[MacroSeries, ...] = ()


def _frozen_map(items: Mapping[str, SecurityBundle] | None = None) -> Mapping[str, SecurityBundle]:
    return MappingProxyType(dict(items or {}))


@dataclass(frozen=True)
class Snapshot:
    """
    Result of one aggregation pass plus the market data loaded at startup.
    Replaced wholesale; never mutated.
    """
    performance: PortfolioPerformance | None = None
    score: PortfolioScore | None = None
    assessment: PortfolioAssessment | None = None
    securities: Mapping[str, SecurityBundle] = field(default_factory=_frozen_map)
    failed_tickers: tuple[str, ...] = ()
    insights: tuple[DailyInsight, ...] = ()
    anomalies: tuple[SecurityAnomaly, ...] = ()
    macro_series: tuple[MacroSeries, ...] = ()
    generation: int = 0
    built_at: str | None = None

    @classmethod
    def empty(cls) -> "Snapshot":
        return cls()

    @property
    def has_analysis(self) -> bool:
        return self.performance is not None and self.score is not None

    def cleared(self, generation: int | None = None) -> "Snapshot":
        return replace(
            self,
            performance=None,
            score=None,
            assessment=None,
            securities=_frozen_map(None),
            failed_tickers=(),
            generation=self.generation if generation is None else generation,
            built_at=now_utc_iso(),
        )

    def with_analysis(
        self,
        performance: PortfolioPerformance,
        score: PortfolioScore,
        assessment: PortfolioAssessment,
        securities: Mapping[str, SecurityBundle],
        failed_tickers,
        generation: int,
    ) -> "Snapshot":
        return replace(
            self,
            performance=performance,
            score=score,
            assessment=assessment,
            securities=_frozen_map(securities),
            failed_tickers=tuple(sorted(failed_tickers)),
            generation=generation,
            built_at=now_utc_iso(),
        )

    def with_market_from(self, other: "Snapshot") -> "Snapshot":
        return replace(self, insights=other.insights, anomalies=other.anomalies, macro_series=other.macro_series)

    def with_market(self, overview: MarketOverview) -> "Snapshot":
        return replace(
            self,
            insights=tuple(overview.insights),
            anomalies=tuple(overview.anomalies),
            macro_series=tuple(overview.macro_series),
        )
