"""
Risk Report Assembly

Orchestrates alignment, covariance estimation, VaR/CVaR, correlation
diagnostics and stress tests into one report.  Data problems never escape
to the caller: they degrade to a zeroed report carrying an ``error``
message, and :func:`compute_risk_report` additionally tells the caller which
kind of failure happened.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

import structlog

from riskcore.config import RiskSettings

from .correlation import correlation_stats, detect_singularities, hierarchical_clusters
from .covariance import CovarianceEstimate, calculate_matrices
from .errors import (
    AlignmentError,
    DimensionMismatch,
    InsufficientHistory,
    NumericAnomaly,
    RiskEngineError,
)
from .metrics import CVarBreakdown, VarBreakdown, compute_cvar, compute_var_breakdown
from .models import (
    AssetMetrics,
    AssetSeries,
    Cluster,
    CorrelationData,
    CorrelationRow,
    CorrelationStats,
    CVaRSummary,
    Failure,
    PortfolioMetrics,
    PortfolioPosition,
    RawMatrices,
    RiskiestAsset,
    RiskMetrics,
    RiskReport,
    RiskResult,
    SingularPair,
    Success,
    VaRSummary,
)
from .performance import calmar_ratio, sharpe_ratio, sortino_ratio
from .returns import AlignedReturns, align_series
from .stress import run_stress_test

logger = structlog.get_logger(__name__)

# Errors that degrade to a zeroed report; DimensionMismatch is caller misuse
# and propagates.
RECOVERABLE_ERRORS = (InsufficientHistory, AlignmentError, NumericAnomaly)

HIGH_CONCENTRATION = 0.20
MEDIUM_CONCENTRATION = 0.10


def _log_failure(operation: str, exc: RiskEngineError) -> None:
    if isinstance(exc, InsufficientHistory):
        logger.warning(f"{operation}: insufficient data", error=str(exc))
    else:
        # Internal consistency problems must stay visible
        logger.exception(f"{operation}: computation failed", kind=exc.kind.value, error=str(exc))


def _confidence_label(confidence: float) -> str:
    return f"{confidence * 100:.0f}"


def _prepare(
    assets: Sequence[AssetSeries],
    settings: RiskSettings,
) -> Tuple[AlignedReturns, CovarianceEstimate]:
    aligned = align_series(assets, settings)
    estimate = calculate_matrices(aligned.returns, settings)
    return aligned, estimate


def _require_basket(assets: Sequence[AssetSeries]) -> None:
    if len(assets) < 2:
        raise InsufficientHistory(
            f"At least 2 assets are required, got {len(assets)}"
        )


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------


def format_var(var: VarBreakdown, cvar: Optional[CVarBreakdown] = None) -> VaRSummary:
    """Display strings for a VaR breakdown (percent fields are x100)."""
    summary = VaRSummary(
        undiversified_var=f"{var.undiversified_var:.2f}",
        diversified_var=f"{var.diversified_var:.2f}",
        diversification_benefit=f"{var.diversification_benefit * 100:.2f}",
        portfolio_volatility=f"{var.annual_vol * 100:.2f}",
        daily_volatility=f"{var.daily_vol * 100:.4f}",
        autocorrelation=f"{var.autocorrelation:.3f}",
        observations=var.n_observations,
        confidence=_confidence_label(var.confidence),
    )
    if cvar is not None:
        summary.cvar = f"{cvar.cvar:.2f}"
        summary.cvar_pct = f"{cvar.tail_mean * 100:.2f}"
    return summary


def format_cvar(cvar: CVarBreakdown) -> CVaRSummary:
    return CVaRSummary(
        cvar=f"{cvar.cvar:.2f}",
        cvar_pct=f"{cvar.tail_mean * 100:.2f}",
        confidence=_confidence_label(cvar.confidence),
    )


def build_correlation_data(
    aligned: AlignedReturns,
    estimate: CovarianceEstimate,
    settings: RiskSettings,
) -> CorrelationData:
    """Correlation matrix for display plus singularities, stats and clusters."""
    corr = estimate.corr_matrix
    tickers = aligned.tickers

    singular = detect_singularities(corr, tickers, settings.SINGULARITY_THRESHOLD)
    stats = correlation_stats(corr, settings.HIGH_CORRELATION_THRESHOLD)
    clusters = hierarchical_clusters(
        estimate.dist_matrix, corr, tickers, max_clusters=settings.MAX_CLUSTERS
    )

    return CorrelationData(
        matrix=[
            CorrelationRow(ticker=t, values=[round(float(v), 2) for v in corr[i]])
            for i, t in enumerate(tickers)
        ],
        stats=CorrelationStats(
            average=f"{stats['average']:.2f}",
            max=f"{stats['max']:.2f}",
            min=f"{stats['min']:.2f}",
            highly_correlated=stats["highly_correlated"],
        ),
        singularities=[
            SingularPair(pair=s["pair"], correlation=round(s["correlation"], 4))
            for s in singular
        ],
        clusters=[Cluster(**c) for c in clusters["clusters"]],
        raw_distance_matrix=estimate.dist_matrix.tolist(),
    )


def build_risk_metrics(
    positions: Sequence[PortfolioPosition],
    correlation: CorrelationData,
) -> RiskMetrics:
    """Riskiest asset, concentration level and diversification score."""
    if not positions:
        return RiskMetrics()

    riskiest = max(positions, key=lambda p: p.volatility)
    top_weight = max(p.weight for p in positions)

    if top_weight > HIGH_CONCENTRATION:
        concentration = "High"
    elif top_weight > MEDIUM_CONCENTRATION:
        concentration = "Medium"
    else:
        concentration = "Low"

    avg_corr = float(correlation.stats.average)

    return RiskMetrics(
        riskiest_asset=RiskiestAsset(
            ticker=riskiest.ticker,
            name=riskiest.name,
            volatility=f"{riskiest.volatility:.2f}",
            weight=f"{riskiest.weight * 100:.2f}%",
        ),
        concentration_risk=concentration,
        diversification_score=f"{100 - avg_corr * 100:.0f}",
    )


def build_asset_metrics(
    positions: Sequence[AssetSeries],
    settings: RiskSettings,
) -> List[AssetMetrics]:
    metrics = []
    for p in positions:
        closes = [pt.close for pt in p.prices]
        metrics.append(AssetMetrics(
            ticker=p.ticker,
            sharpe=f"{sharpe_ratio(closes, trading_days=settings.TRADING_DAYS):.2f}",
            sortino=f"{sortino_ratio(closes, trading_days=settings.TRADING_DAYS):.2f}",
            calmar=f"{calmar_ratio(closes, trading_days=settings.TRADING_DAYS):.2f}",
        ))
    return metrics


# ---------------------------------------------------------------------------
# Public operations
# ---------------------------------------------------------------------------


def calculate_portfolio_var(
    assets: Sequence[AssetSeries],
    total_capital: float,
    confidence: float = 0.95,
    settings: Optional[RiskSettings] = None,
) -> VaRSummary:
    """Parametric portfolio VaR with diversification breakdown.

    Returns a zeroed summary with ``error`` set when fewer than 2 assets are
    supplied or the price data cannot be aligned.
    """
    settings = settings or RiskSettings()
    try:
        _require_basket(assets)
        aligned, estimate = _prepare(assets, settings)
        var = compute_var_breakdown(aligned, estimate, total_capital, confidence, settings)
    except RECOVERABLE_ERRORS as exc:
        _log_failure("calculate_portfolio_var", exc)
        return VaRSummary(error=str(exc), confidence=_confidence_label(confidence))
    return format_var(var)


def calculate_portfolio_cvar(
    assets: Sequence[AssetSeries],
    total_capital: float,
    confidence: float = 0.95,
    settings: Optional[RiskSettings] = None,
) -> CVaRSummary:
    """Historical CVaR (expected shortfall) of the weighted basket."""
    settings = settings or RiskSettings()
    try:
        aligned = align_series(assets, settings)
    except RECOVERABLE_ERRORS as exc:
        _log_failure("calculate_portfolio_cvar", exc)
        return CVaRSummary(error=str(exc), confidence=_confidence_label(confidence))
    return format_cvar(compute_cvar(aligned, total_capital, confidence))


def calculate_correlation_matrix(
    assets: Sequence[AssetSeries],
    settings: Optional[RiskSettings] = None,
) -> CorrelationData:
    """Correlation matrix with diagnostics, for visualisation and allocation."""
    settings = settings or RiskSettings()
    try:
        aligned, estimate = _prepare(assets, settings)
    except RECOVERABLE_ERRORS as exc:
        _log_failure("calculate_correlation_matrix", exc)
        return CorrelationData(error=str(exc))
    return build_correlation_data(aligned, estimate, settings)


def calculate_portfolio_metrics(
    assets: Sequence[AssetSeries],
    total_capital: float = 10000,
    confidence: float = 0.95,
    settings: Optional[RiskSettings] = None,
) -> PortfolioMetrics:
    """VaR, CVaR and correlation data from a single alignment pass."""
    settings = settings or RiskSettings()
    label = _confidence_label(confidence)

    try:
        aligned, estimate = _prepare(assets, settings)
    except RECOVERABLE_ERRORS as exc:
        _log_failure("calculate_portfolio_metrics", exc)
        return PortfolioMetrics(
            var_metrics=VaRSummary(error=str(exc), confidence=label),
            cvar_metrics=CVaRSummary(error=str(exc), confidence=label),
            correlation_data=CorrelationData(error=str(exc)),
        )

    try:
        _require_basket(assets)
        var_metrics = format_var(
            compute_var_breakdown(aligned, estimate, total_capital, confidence, settings)
        )
    except RECOVERABLE_ERRORS as exc:
        _log_failure("calculate_portfolio_metrics", exc)
        var_metrics = VaRSummary(error=str(exc), confidence=label)

    return PortfolioMetrics(
        var_metrics=var_metrics,
        cvar_metrics=format_cvar(compute_cvar(aligned, total_capital, confidence)),
        correlation_data=build_correlation_data(aligned, estimate, settings),
    )


def _assemble(
    positions: Sequence[PortfolioPosition],
    total_capital: float,
    confidence: float,
    settings: RiskSettings,
) -> RiskReport:
    _require_basket(positions)
    aligned, estimate = _prepare(positions, settings)

    var = compute_var_breakdown(aligned, estimate, total_capital, confidence, settings)
    cvar = compute_cvar(aligned, total_capital, confidence)
    correlation = build_correlation_data(aligned, estimate, settings)

    warnings = list(aligned.warnings)
    warnings.extend(str(a) for a in estimate.anomalies)
    warnings.extend(
        f"Nearly identical assets: {s.pair[0]}/{s.pair[1]} (corr {s.correlation:.4f})"
        for s in correlation.singularities
    )

    return RiskReport(
        portfolio_var=format_var(var, cvar),
        correlation_data=correlation,
        stress_tests=run_stress_test(positions, total_capital, settings=settings),
        risk_metrics=build_risk_metrics(positions, correlation),
        asset_metrics=build_asset_metrics(positions, settings),
        raw_matrices=RawMatrices(distance=estimate.dist_matrix.tolist()),
        warnings=warnings,
    )


def compute_risk_report(
    positions: Sequence[AssetSeries],
    total_capital: float,
    confidence: Optional[float] = None,
    settings: Optional[RiskSettings] = None,
) -> RiskResult:
    """Full risk report as an explicit Success / Failure result.

    Args:
        positions: Allocated positions with price histories; bare
            AssetSeries get the default volatility and no allocated capital
        total_capital: Portfolio value in currency units
        confidence: 0.90, 0.95 or 0.99 (defaults to DEFAULT_CONFIDENCE)
        settings: Engine configuration (defaults from environment)

    Returns:
        Success with the report, or Failure carrying the error kind, message
        and a zeroed report whose ``error`` field is populated

    Raises:
        DimensionMismatch: Linear algebra misuse, never converted to a report
    """
    settings = settings or RiskSettings()
    if confidence is None:
        confidence = settings.DEFAULT_CONFIDENCE
    positions = [PortfolioPosition.from_series(p) for p in positions]

    try:
        report = _assemble(positions, total_capital, confidence, settings)
    except DimensionMismatch:
        raise
    except RiskEngineError as exc:
        _log_failure("compute_risk_report", exc)
        return Failure(kind=exc.kind, message=str(exc), report=RiskReport.empty(str(exc)))

    logger.info(
        "compute_risk_report: report generated",
        num_positions=len(positions),
        observations=report.portfolio_var.observations,
        diversified_var=report.portfolio_var.diversified_var,
    )
    return Success(report=report)


def generate_risk_report(
    positions: Sequence[AssetSeries],
    total_capital: float,
    confidence: Optional[float] = None,
    settings: Optional[RiskSettings] = None,
) -> RiskReport:
    """Risk report for presentation code: always returns a complete report.

    On failure the report is zeroed and ``error`` explains why.
    """
    return compute_risk_report(positions, total_capital, confidence, settings).report
