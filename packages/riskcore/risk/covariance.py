"""
Covariance Estimation Module

Sample covariance from centred returns, validation, constant-correlation
shrinkage for short samples, and the derived standard deviations,
correlation and distance matrices.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np
import structlog

from riskcore.config import RiskSettings

from .errors import InsufficientHistory, NumericAnomaly
from .linalg import center_columns, multiply, transpose

logger = structlog.get_logger(__name__)


@dataclass
class CovarianceEstimate:
    """Covariance structure derived from a T x N returns matrix."""

    cov_matrix: np.ndarray
    corr_matrix: np.ndarray
    dist_matrix: np.ndarray
    std_devs: np.ndarray
    shrinkage: float = 0.0
    anomalies: List[NumericAnomaly] = field(default_factory=list)


def sample_covariance(returns) -> np.ndarray:
    """Sample covariance Σ = XᵀX / (T - 1) of the column-centred returns.

    Raises:
        InsufficientHistory: If fewer than 2 observations
    """
    returns = np.asarray(returns, dtype=float)
    if returns.ndim != 2 or returns.shape[0] < 2:
        n_obs = returns.shape[0] if returns.ndim >= 1 else 0
        raise InsufficientHistory(f"Insufficient history (T < 2), got {n_obs}")

    n_obs = returns.shape[0]
    centered = center_columns(returns)
    return multiply(transpose(centered), centered) / (n_obs - 1)


def validate_covariance(cov: np.ndarray, tolerance: float = 1e-10) -> List[NumericAnomaly]:
    """Check symmetry and non-negative variances.

    Problems are logged and returned, never raised: estimation noise is
    expected and downstream code clamps what it needs.
    """
    anomalies: List[NumericAnomaly] = []

    asym = np.abs(cov - cov.T)
    rows, cols = np.nonzero(np.triu(asym > tolerance, k=1))
    for i, j in zip(rows, cols):
        logger.warning(
            "validate_covariance: non-symmetric entry",
            i=int(i),
            j=int(j),
            diff=float(asym[i, j]),
        )
        anomalies.append(
            NumericAnomaly(f"Non-symmetric covariance at ({i}, {j}): diff {asym[i, j]:.2e}")
        )

    negative = np.nonzero(np.diag(cov) < 0)[0]
    if negative.size:
        logger.error(
            "validate_covariance: negative variances",
            indices=negative.tolist(),
        )
        anomalies.append(
            NumericAnomaly(f"Negative variances at indices {negative.tolist()}")
        )

    return anomalies


def shrinkage_intensity(n_assets: int, n_obs: int) -> float:
    """Simplified shrinkage intensity δ = clamp((N + 1) / (T·N), 0, 1).

    A closed-form stand-in for the optimal Ledoit-Wolf intensity: it grows as
    assets outnumber observations and tends to 0 as history lengthens.
    """
    if n_assets <= 0 or n_obs <= 0:
        return 1.0
    return float(min(1.0, max(0.0, (n_assets + 1) / (n_obs * n_assets))))


def _implied_correlations(cov: np.ndarray) -> np.ndarray:
    std = np.sqrt(np.maximum(np.diag(cov), 0.0))
    den = np.outer(std, std)
    with np.errstate(divide="ignore", invalid="ignore"):
        corr = np.where(den > 0, cov / den, 0.0)
    return corr


def constant_correlation_target(cov: np.ndarray) -> np.ndarray:
    """Constant-correlation shrinkage target F.

    Diagonal is the average variance v̄; off-diagonal is v̄·ρ̄ where ρ̄ is the
    mean off-diagonal correlation implied by ``cov``.
    """
    n = cov.shape[0]
    avg_var = float(np.trace(cov)) / n

    if n > 1:
        corr = _implied_correlations(cov)
        off_diag = ~np.eye(n, dtype=bool)
        avg_corr = float(corr[off_diag].mean())
    else:
        avg_corr = 0.0

    target = np.full((n, n), avg_var * avg_corr)
    np.fill_diagonal(target, avg_var)
    return target


def ledoit_wolf_shrinkage(cov: np.ndarray, n_obs: int) -> Tuple[np.ndarray, float]:
    """Blend ``cov`` with the constant-correlation target.

    Σ_shrunk = δ·F + (1 - δ)·Σ with δ from :func:`shrinkage_intensity`.

    Returns:
        Tuple of (shrunk covariance, δ)
    """
    n = cov.shape[0]
    delta = shrinkage_intensity(n, n_obs)
    target = constant_correlation_target(cov)
    shrunk = delta * target + (1 - delta) * cov

    logger.info(
        "ledoit_wolf_shrinkage: shrinkage applied",
        delta=round(delta, 3),
        num_observations=n_obs,
        num_assets=n,
    )
    return shrunk, delta


def correlation_from_covariance(cov: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Standard deviations and clipped correlation matrix.

    σ_i = sqrt(max(0, Σ_ii)); ρ_ij = Σ_ij / (σ_i σ_j), defined as 0 when
    either σ is 0.  The diagonal is exactly 1 and every entry is clipped to
    [-1, 1] to absorb floating-point drift.

    Returns:
        Tuple of (correlation matrix, standard deviations)
    """
    diag = np.diag(cov)
    if (diag < 0).any():
        logger.warning(
            "correlation_from_covariance: clamping negative variances to 0",
            count=int((diag < 0).sum()),
        )
    std_devs = np.sqrt(np.maximum(diag, 0.0))

    corr = np.clip(_implied_correlations(cov), -1.0, 1.0)
    np.fill_diagonal(corr, 1.0)
    return corr, std_devs


def distance_matrix(corr: np.ndarray) -> np.ndarray:
    """Correlation distance d_ij = sqrt(2·(1 - ρ_ij))."""
    return np.sqrt(np.maximum(0.0, 2 * (1 - corr)))


def calculate_matrices(
    returns,
    settings: Optional[RiskSettings] = None,
) -> CovarianceEstimate:
    """Covariance, correlation, distance and standard deviations.

    Shrinkage toward the constant-correlation target is applied whenever the
    sample is shorter than SHRINKAGE_WINDOW observations.

    Args:
        returns: T x N returns matrix
        settings: Engine configuration (defaults from environment)

    Returns:
        CovarianceEstimate

    Raises:
        InsufficientHistory: If T < 2
    """
    settings = settings or RiskSettings()
    returns = np.asarray(returns, dtype=float)

    cov = sample_covariance(returns)
    n_obs, n_assets = returns.shape

    anomalies = validate_covariance(cov, tolerance=settings.SYMMETRY_TOLERANCE)
    if anomalies:
        logger.error(
            "calculate_matrices: covariance failed validation, continuing",
            num_anomalies=len(anomalies),
        )

    delta = 0.0
    if n_obs < settings.SHRINKAGE_WINDOW:
        cov, delta = ledoit_wolf_shrinkage(cov, n_obs)

    corr, std_devs = correlation_from_covariance(cov)
    dist = distance_matrix(corr)

    logger.info(
        "calculate_matrices: matrices computed",
        num_assets=n_assets,
        num_observations=n_obs,
        shrinkage=round(delta, 4),
    )

    return CovarianceEstimate(
        cov_matrix=cov,
        corr_matrix=corr,
        dist_matrix=dist,
        std_devs=std_devs,
        shrinkage=delta,
        anomalies=anomalies,
    )
