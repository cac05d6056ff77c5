"""
Correlation Analysis and Clustering Module

Diagnostics over an estimated correlation matrix: near-duplicate asset
detection, summary statistics, and hierarchical clustering on the
correlation distance matrix.
"""

from __future__ import annotations

from typing import Dict, List, Sequence

import numpy as np
import structlog
from scipy.cluster.hierarchy import fcluster, linkage
from scipy.spatial.distance import squareform

logger = structlog.get_logger(__name__)


def detect_singularities(
    corr: np.ndarray,
    tickers: Sequence[str],
    threshold: float = 0.999,
) -> List[Dict]:
    """Find asset pairs that are effectively duplicates (|ρ| > threshold).

    Pure diagnostic: collinear pairs make the covariance matrix close to
    singular but never block the computation.

    Returns:
        List of dicts: [{'pair': (ticker_a, ticker_b), 'correlation': float}, ...]
    """
    corr = np.asarray(corr, dtype=float)
    rows, cols = np.triu_indices_from(corr, k=1)

    duplicates = [
        {"pair": (tickers[i], tickers[j]), "correlation": float(corr[i, j])}
        for i, j in zip(rows, cols)
        if abs(corr[i, j]) > threshold
    ]

    if duplicates:
        logger.warning(
            "detect_singularities: nearly identical assets",
            pairs=[d["pair"] for d in duplicates],
        )

    return duplicates


def correlation_stats(corr: np.ndarray, high_threshold: float = 0.7) -> Dict:
    """Average, max and min of the off-diagonal correlations.

    Returns:
        Dict with average, max, min (floats) and highly_correlated, the number
        of distinct pairs above ``high_threshold``
    """
    corr = np.asarray(corr, dtype=float)
    n = corr.shape[0]
    if n < 2:
        return {"average": 0.0, "max": 0.0, "min": 0.0, "highly_correlated": 0}

    off_diag = corr[~np.eye(n, dtype=bool)]
    upper = corr[np.triu_indices(n, k=1)]

    return {
        "average": float(off_diag.mean()),
        "max": float(off_diag.max()),
        "min": float(off_diag.min()),
        "highly_correlated": int((upper > high_threshold).sum()),
    }


def hierarchical_clusters(
    dist: np.ndarray,
    corr: np.ndarray,
    tickers: Sequence[str],
    max_clusters: int = 8,
    method: str = "average",
) -> Dict:
    """Hierarchical clustering on the correlation distance matrix.

    Args:
        dist: Distance matrix d = sqrt(2 * (1 - corr)) (N x N)
        corr: Matching correlation matrix, used for intra-cluster averages
        tickers: Asset labels in matrix order
        max_clusters: Maximum number of clusters to create
        method: Linkage method ('average', 'complete', 'single', 'ward')

    Returns:
        Dict with:
            - labels: dict[str, int] mapping ticker -> cluster_id
            - clusters: list of cluster info dicts, largest first
    """
    dist = np.array(dist, dtype=float)
    corr = np.asarray(corr, dtype=float)
    n = dist.shape[0]

    if n == 0:
        raise ValueError("Cannot cluster empty distance matrix")

    if n < 2:
        logger.warning("hierarchical_clusters: only one asset, returning single cluster")
        return {
            "labels": {tickers[0]: 1},
            "clusters": [{
                "cluster_id": 1,
                "members": [tickers[0]],
                "size": 1,
                "avg_intra_corr": 1.0,
            }],
        }

    np.fill_diagonal(dist, 0)
    # Symmetrise so squareform accepts matrices with rounding noise
    dist = (dist + dist.T) / 2
    condensed = squareform(dist, checks=False)

    if not np.isfinite(condensed).all():
        logger.error("hierarchical_clusters: invalid distances in matrix")
        raise ValueError("Invalid distances (NaN or Inf) in correlation distance matrix")

    Z = linkage(condensed, method=method)
    labels_array = fcluster(Z, min(max_clusters, n), criterion="maxclust")

    clusters = []
    for cluster_id in np.unique(labels_array):
        idx = np.where(labels_array == cluster_id)[0]
        if len(idx) > 1:
            sub = corr[np.ix_(idx, idx)]
            avg_intra = float(sub[np.triu_indices_from(sub, k=1)].mean())
        else:
            avg_intra = 1.0
        clusters.append({
            "cluster_id": int(cluster_id),
            "members": [tickers[i] for i in idx],
            "size": int(len(idx)),
            "avg_intra_corr": avg_intra,
        })

    clusters.sort(key=lambda c: c["size"], reverse=True)

    logger.info(
        "hierarchical_clusters: clustering complete",
        num_clusters=len(clusters),
        method=method,
        cluster_sizes=[c["size"] for c in clusters],
    )

    return {
        "labels": {tickers[i]: int(labels_array[i]) for i in range(n)},
        "clusters": clusters,
    }
