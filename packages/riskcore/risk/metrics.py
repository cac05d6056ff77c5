"""
Risk Metrics Module

Parametric portfolio VaR from the covariance estimate, historical CVaR from
realised portfolio returns, and single-asset VaR helpers.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Optional

import numpy as np
import structlog

from riskcore.config import RiskSettings

from .autocorrelation import annualization_factor, lag_autocorrelation
from .covariance import CovarianceEstimate
from .errors import InsufficientHistory, NumericAnomaly
from .linalg import dot, multiply
from .returns import AlignedReturns, compute_log_returns

logger = structlog.get_logger(__name__)

# One-sided normal quantiles used for parametric VaR
Z_SCORES: Dict[float, float] = {0.90: 1.28, 0.95: 1.65, 0.99: 2.33}
DEFAULT_Z = 1.65


def z_score(confidence: float) -> float:
    """Z multiplier for a confidence level; 1.65 for unmapped levels."""
    return Z_SCORES.get(round(confidence, 4), DEFAULT_Z)


def portfolio_returns(returns, weights) -> np.ndarray:
    """Realised portfolio returns R·w (length T)."""
    w = np.asarray(weights, dtype=float).reshape(-1, 1)
    return multiply(returns, w).ravel()


def portfolio_variance(weights, cov) -> float:
    """Portfolio variance wᵀ·Σ·w.

    Raises:
        DimensionMismatch: If weights and covariance shapes disagree
    """
    w = np.asarray(weights, dtype=float).ravel()
    sigma_w = multiply(cov, w.reshape(-1, 1)).ravel()
    return dot(w, sigma_w)


@dataclass
class VarBreakdown:
    """Raw (unformatted) parametric VaR figures."""

    daily_vol: float
    annual_vol: float
    scaling_factor: float
    autocorrelation: float
    z: float
    diversified_var: float
    undiversified_var: float
    diversification_benefit: float  # fraction in [0, 1] for long-only baskets
    n_observations: int
    confidence: float


@dataclass
class CVarBreakdown:
    """Raw historical CVaR figures."""

    tail_mean: float  # mean tail return, negative for losses
    cvar: float  # |tail_mean| * capital
    var_threshold: float  # return at the VaR index
    tail_size: int
    confidence: float


def compute_var_breakdown(
    aligned: AlignedReturns,
    estimate: CovarianceEstimate,
    total_capital: float,
    confidence: float = 0.95,
    settings: Optional[RiskSettings] = None,
) -> VarBreakdown:
    """Parametric (variance-covariance) VaR for the aligned basket.

    Diversified VaR = z · sqrt(wᵀΣw) · capital.
    Undiversified VaR = z · Σ wᵢσᵢ · capital (correlations ignored).
    Annual volatility uses the autocorrelation-adjusted multiplier.

    Raises:
        InsufficientHistory: Fewer than 2 assets
        NumericAnomaly: Portfolio variance is not a finite number
        DimensionMismatch: Weights do not match the covariance shape
    """
    settings = settings or RiskSettings()
    weights = aligned.weights

    if aligned.n_assets < 2:
        raise InsufficientHistory("At least 2 assets are required for portfolio VaR")

    variance = portfolio_variance(weights, estimate.cov_matrix)
    if not math.isfinite(variance):
        raise NumericAnomaly(f"Portfolio variance is not finite: {variance}")
    if variance < 0:
        logger.warning("compute_var_breakdown: negative portfolio variance clamped", variance=variance)
    daily_vol = math.sqrt(max(0.0, variance))

    rho = lag_autocorrelation(
        portfolio_returns(aligned.returns, weights),
        lag=1,
        min_pairs=settings.AUTOCORR_MIN_PAIRS,
    )
    scaling = annualization_factor(rho, settings.TRADING_DAYS, settings.AUTOCORR_THRESHOLD)

    z = z_score(confidence)
    diversified = z * daily_vol * total_capital
    undiversified = z * dot(estimate.std_devs, weights) * total_capital
    benefit = 1 - diversified / undiversified if undiversified > 0 else 0.0

    logger.info(
        "compute_var_breakdown: VaR computed",
        num_assets=aligned.n_assets,
        num_observations=aligned.n_observations,
        confidence=confidence,
        daily_vol=daily_vol,
        diversified_var=diversified,
    )

    return VarBreakdown(
        daily_vol=daily_vol,
        annual_vol=daily_vol * scaling,
        scaling_factor=scaling,
        autocorrelation=rho,
        z=z,
        diversified_var=diversified,
        undiversified_var=undiversified,
        diversification_benefit=benefit,
        n_observations=aligned.n_observations,
        confidence=confidence,
    )


def compute_cvar(
    aligned: AlignedReturns,
    total_capital: float,
    confidence: float = 0.95,
) -> CVarBreakdown:
    """Historical CVaR (expected shortfall) of the weighted basket.

    Realised portfolio returns are sorted ascending and the worst
    floor((1 - c)·T) + 1 observations, up to and including the VaR index,
    are averaged.
    """
    sorted_returns = np.sort(portfolio_returns(aligned.returns, aligned.weights))
    n = len(sorted_returns)

    if n == 0:
        return CVarBreakdown(0.0, 0.0, 0.0, 0, confidence)

    var_index = min(int(math.floor((1 - confidence) * n)), n - 1)
    tail = sorted_returns[: var_index + 1]
    tail_mean = float(tail.mean())

    return CVarBreakdown(
        tail_mean=tail_mean,
        cvar=abs(tail_mean * total_capital),
        var_threshold=float(sorted_returns[var_index]),
        tail_size=len(tail),
        confidence=confidence,
    )


def historical_var(prices, confidence: float = 0.95, capital: float = 10000) -> Dict:
    """Single-asset historical VaR from sorted daily log returns.

    Returns:
        Dict with pct, value and confidence as display strings; zeros when
        fewer than 30 prices are available
    """
    if prices is None or len(prices) < 30:
        return {"pct": "0.00", "value": "0.00", "confidence": f"{confidence * 100:.0f}"}

    log_ret, _ = compute_log_returns(prices)
    if log_ret.empty:
        return {"pct": "0.00", "value": "0.00", "confidence": f"{confidence * 100:.0f}"}

    ordered = np.sort(log_ret.to_numpy())
    index = int(math.floor((1 - confidence) * len(ordered)))
    var_pct = float(ordered[min(index, len(ordered) - 1)])

    return {
        "pct": f"{var_pct * 100:.2f}",
        "value": f"{var_pct * capital:.2f}",
        "confidence": f"{confidence * 100:.0f}",
    }


def parametric_asset_var(
    prices,
    confidence: float = 0.95,
    capital: float = 10000,
    trading_days: int = 252,
) -> Dict:
    """Single-asset parametric VaR, μ - z·σ, assuming normal returns.

    Returns:
        Dict with pct, value, confidence, method and annualised volatility
    """
    if prices is None or len(prices) < 30:
        return {
            "pct": "0.00",
            "value": "0.00",
            "confidence": f"{confidence * 100:.0f}",
            "warning": "Insufficient data (minimum 30 prices)",
        }

    log_ret, _ = compute_log_returns(prices)
    r = log_ret.to_numpy()
    if r.size == 0:
        return {
            "pct": "0.00",
            "value": "0.00",
            "confidence": f"{confidence * 100:.0f}",
            "warning": "No valid returns",
        }
    mu = float(r.mean())
    sigma = float(r.std())
    var_pct = mu - z_score(confidence) * sigma

    return {
        "pct": f"{var_pct * 100:.2f}",
        "value": f"{var_pct * capital:.2f}",
        "confidence": f"{confidence * 100:.0f}",
        "method": "parametric",
        "volatility": f"{sigma * math.sqrt(trading_days) * 100:.2f}",
    }
