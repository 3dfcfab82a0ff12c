from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, List


class _Remote(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class DailyInsight(_Remote):
    insight: str
    timestamp: str
    category: str
    url: Optional[str] = None
    description: Optional[str] = None
    tickers: str = ""
    image_url: Optional[str] = None


class DailyInsightsEnvelope(_Remote):
    insights: List[DailyInsight] = Field(default_factory=list)


class SecurityNews(_Remote):
    date: str
    headline: str
    source: Optional[str] = None
    url: Optional[str] = None
    summary: Optional[str] = None
    image_url: Optional[str] = None
    api_source: Optional[str] = None
    language: Optional[str] = None
    author: Optional[str] = None
    has_paywall: Optional[bool] = None
    category: Optional[str] = None
    relevance: Optional[float] = None
    sentiment: Optional[str] = None
    tickers: Optional[str] = None


class SecurityDetails(_Remote):
    ticker: str
    series_type: Optional[str] = None
    volatility: Optional[float] = None
    sharpe_ratio: Optional[float] = None
    beta: Optional[float] = None
    listed_exchange: Optional[str] = None
    issue_type: Optional[str] = None
    price: Optional[float] = None
    revenue_per_share: Optional[float] = None
    earnings_per_share: Optional[float] = None
    dividend_per_share: Optional[float] = None
    trading_volume_10_day: Optional[float] = None
    trading_volume_30_day: Optional[float] = None
    put_call_ratio: Optional[float] = None
    enterprise_value: Optional[float] = None
    revenue: Optional[float] = None
    revenue_per_employee: Optional[float] = None
    profit_margin: Optional[float] = None
    debt_to_equity: Optional[float] = None
    growth_factor: Optional[float] = None
    inflation_factor: Optional[float] = None
    liquidity_factor: Optional[float] = None
    commodities_factor: Optional[float] = None
    credit_factor: Optional[float] = None
    interest_rates_factor: Optional[float] = None
    next_earnings_date_factor: Optional[float] = None
    next_dividend_date: Optional[str] = None
    ex_dividend_date: Optional[str] = None
    related_securities: List[str] = Field(default_factory=list)
    news: List[SecurityNews] = Field(default_factory=list)
    ai_sentiment: Optional[str] = None
    description: Optional[str] = None
    sector: Optional[str] = None
    industry: Optional[str] = None
    website: Optional[str] = None
    employees: Optional[int] = None
    market_cap: Optional[float] = None
    investing_method: Optional[str] = None
    diversified: Optional[bool] = None
    expense_ratio: Optional[float] = None
    asset_class: Optional[str] = None
    sector_exposures: Optional[Dict[str, float]] = None
    country_exposures: Optional[Dict[str, float]] = None
    holding_exposures: Optional[Dict[str, float]] = None
    more_info: Optional[str] = None


class SecurityDetailsEnvelope(_Remote):
    security_details: SecurityDetails


class PortfolioAssessment(_Remote):
    assessment: str


class PortfolioPerformance(_Remote):
    returns: float
    risk: float
    sharpe_ratio: float


class PortfolioScore(_Remote):
    portfolio_score: float
    score_remark: str
    percentile_rank: float
    risk_match_score: Optional[float] = None
    sharpe_ratio_score: float
    downside_protection_score: float


class SecurityAnomaly(_Remote):
    ticker: Optional[str] = None
    description: str


class HistoryPoint(_Remote):
    date: str
    val: Optional[float] = None


class SecurityPerformance(_Remote):
    expected_return: float
    volatility: float


class ForecastPoint(_Remote):
    date: str
    val: Optional[float] = None
    high: float
    low: float


class MacroSeries(_Remote):
    series_id: int
    series_name: str
    country: Optional[str] = None
