"""
Autocorrelation Scaling Module

Naive sqrt(T) annualisation assumes independent daily returns.  Serially
correlated returns inflate (ρ > 0) or deflate (ρ < 0) multi-day variance, so
the annualisation multiplier is adjusted by the lag-1 autocorrelation.
"""

from __future__ import annotations

import math

import numpy as np
import structlog

logger = structlog.get_logger(__name__)

# Spread below which a return series is treated as constant
CONSTANT_TOLERANCE = 1e-12


def lag_autocorrelation(returns, lag: int = 1, min_pairs: int = 10) -> float:
    """Lag-k autocorrelation Σ(r_t - μ)(r_{t+k} - μ) / Σ(r_t - μ)².

    μ and the denominator use the whole series; the numerator runs over the
    ``len - lag`` overlapping pairs.

    Returns:
        Autocorrelation, or 0.0 with fewer than ``min_pairs`` pairs or a
        constant series
    """
    r = np.asarray(returns, dtype=float).ravel()
    r = r[np.isfinite(r)]

    n_pairs = len(r) - lag
    if lag < 1 or n_pairs < min_pairs:
        return 0.0

    # Constant up to rounding noise (e.g. geometric growth); the mean's own
    # rounding error would otherwise look like perfect persistence
    if np.ptp(r) <= CONSTANT_TOLERANCE * max(1.0, float(np.abs(r).max())):
        return 0.0

    dev = r - r.mean()
    den = float(dev @ dev)
    if den == 0:
        return 0.0

    num = float(dev[:-lag] @ dev[lag:])
    return num / den


def annualization_factor(
    rho: float,
    trading_days: int = 252,
    threshold: float = 0.1,
) -> float:
    """Multiplier turning daily volatility into annual volatility.

    sqrt(trading_days) by default; sqrt(trading_days · (1 + 2ρ)) when
    |ρ| > threshold.  If 1 + 2ρ is not positive the naive factor is kept.
    """
    naive = math.sqrt(trading_days)
    if abs(rho) <= threshold:
        return naive

    variance_ratio = 1 + 2 * rho
    if variance_ratio <= 0:
        logger.warning(
            "annualization_factor: autocorrelation too negative, using sqrt(T)",
            rho=round(rho, 3),
        )
        return naive

    logger.info("annualization_factor: autocorrelation detected", rho=round(rho, 3))
    return math.sqrt(trading_days * variance_ratio)
