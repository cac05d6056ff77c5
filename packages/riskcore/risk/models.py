"""Pydantic models for risk engine inputs and the assembled risk report.

Inputs are frozen value objects owned by the caller.  Report models carry
display-ready fixed-precision strings; every field has a zero default so a
failed computation still yields a structurally complete report.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ErrorKind


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


class PricePoint(BaseModel):
    """One close observation, optionally timestamped (``YYYY-MM-DD``)."""

    model_config = ConfigDict(frozen=True)

    date: Optional[str] = None
    close: float

    @field_validator("date", mode="before")
    @classmethod
    def _date_to_iso(cls, value: Any) -> Any:
        if value is not None and hasattr(value, "isoformat"):
            return value.isoformat()[:10]
        return value

    @field_validator("close", mode="before")
    @classmethod
    def _missing_close_to_nan(cls, value: Any) -> Any:
        # Gaps from the price provider arrive as null; they are dropped later
        # together with non-positive closes.
        return math.nan if value is None else value


class AssetSeries(BaseModel):
    """Price history and target weight for a single asset.

    ``prices`` accepts ``PricePoint``-like dicts or bare numbers; bare numbers
    become dateless points, which forces length-based alignment.
    """

    model_config = ConfigDict(frozen=True)

    ticker: str
    weight: float = 0.0
    prices: List[PricePoint] = Field(default_factory=list)

    @field_validator("prices", mode="before")
    @classmethod
    def _coerce_bare_closes(cls, value: Any) -> Any:
        if value is None:
            return []
        return [
            {"close": p} if isinstance(p, (int, float)) and not isinstance(p, bool) else p
            for p in value
        ]

    @property
    def has_dates(self) -> bool:
        return bool(self.prices) and all(p.date is not None for p in self.prices)


class PortfolioPosition(AssetSeries):
    """An allocated position as produced by the allocation step.

    ``volatility`` is annualised and expressed in percent (20.0 means 20%).
    When the caller has no estimate the default of 20% is used.
    ``recommended_capital`` is the currency amount allocated to the position.
    """

    name: Optional[str] = None
    volatility: float = 20.0
    recommended_capital: float = 0.0

    @classmethod
    def from_series(cls, asset: AssetSeries) -> "PortfolioPosition":
        """Promote a bare series to a position with the default allocation fields."""
        if isinstance(asset, cls):
            return asset
        return cls(**asset.model_dump())


# ---------------------------------------------------------------------------
# Report sections
# ---------------------------------------------------------------------------

PARAMETRIC_METHOD = "Parametric (covariance matrix)"


class VaRSummary(BaseModel):
    undiversified_var: str = "0.00"
    diversified_var: str = "0.00"
    diversification_benefit: str = "0.00"  # percent
    portfolio_volatility: str = "0.00"  # annualised, percent
    daily_volatility: str = "0.0000"  # percent
    autocorrelation: str = "0.000"
    observations: int = 0
    method: str = PARAMETRIC_METHOD
    cvar: str = "0.00"
    cvar_pct: str = "0.00"
    confidence: str = "95"
    error: Optional[str] = None


class CVaRSummary(BaseModel):
    cvar: str = "0.00"
    cvar_pct: str = "0.00"
    confidence: str = "95"
    error: Optional[str] = None


class CorrelationRow(BaseModel):
    ticker: str
    values: List[float]


class CorrelationStats(BaseModel):
    average: str = "0.00"
    max: str = "0.00"
    min: str = "0.00"
    highly_correlated: int = 0


class SingularPair(BaseModel):
    pair: Tuple[str, str]
    correlation: float


class Cluster(BaseModel):
    cluster_id: int
    members: List[str]
    size: int
    avg_intra_corr: float


class CorrelationData(BaseModel):
    matrix: List[CorrelationRow] = Field(default_factory=list)
    stats: CorrelationStats = Field(default_factory=CorrelationStats)
    singularities: List[SingularPair] = Field(default_factory=list)
    clusters: List[Cluster] = Field(default_factory=list)
    raw_distance_matrix: List[List[float]] = Field(default_factory=list)
    error: Optional[str] = None


class StressImpact(BaseModel):
    ticker: str
    impact: str
    loss: str


class StressScenarioResult(BaseModel):
    scenario: str
    description: str
    market_drop: str
    estimated_loss: str
    loss_pct: str
    remaining_capital: str
    top_impacts: List[StressImpact] = Field(default_factory=list)


class RiskiestAsset(BaseModel):
    ticker: str = "N/A"
    name: Optional[str] = None
    volatility: str = "0"
    weight: str = "0%"


class RiskMetrics(BaseModel):
    riskiest_asset: RiskiestAsset = Field(default_factory=RiskiestAsset)
    concentration_risk: str = "N/A"
    diversification_score: str = "0"


class AssetMetrics(BaseModel):
    ticker: str
    sharpe: str = "0.00"
    sortino: str = "0.00"
    calmar: str = "0.00"


class RawMatrices(BaseModel):
    distance: List[List[float]] = Field(default_factory=list)


class PortfolioMetrics(BaseModel):
    var_metrics: VaRSummary
    cvar_metrics: CVaRSummary
    correlation_data: CorrelationData


class RiskReport(BaseModel):
    portfolio_var: VaRSummary = Field(default_factory=VaRSummary)
    correlation_data: CorrelationData = Field(default_factory=CorrelationData)
    stress_tests: List[StressScenarioResult] = Field(default_factory=list)
    risk_metrics: RiskMetrics = Field(default_factory=RiskMetrics)
    asset_metrics: List[AssetMetrics] = Field(default_factory=list)
    raw_matrices: RawMatrices = Field(default_factory=RawMatrices)
    warnings: List[str] = Field(default_factory=list)
    error: Optional[str] = None

    @classmethod
    def empty(cls, error: str) -> "RiskReport":
        """Zeroed report carrying ``error`` in the top level and VaR section."""
        return cls(portfolio_var=VaRSummary(error=error), error=error)


# ---------------------------------------------------------------------------
# Result type
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Success:
    report: RiskReport

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    kind: ErrorKind
    message: str
    report: RiskReport

    @property
    def ok(self) -> bool:
        return False


RiskResult = Union[Success, Failure]
