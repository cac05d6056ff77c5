"""
Return Construction Module

Aligns per-asset price histories onto a common time axis and turns them into
a dense T x N log-returns matrix.  Date-stamped histories are inner-joined on
their dates; undated histories fall back to common-length truncation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import structlog

from riskcore.config import RiskSettings

from .errors import AlignmentError, InsufficientHistory
from .models import AssetSeries

logger = structlog.get_logger(__name__)


@dataclass
class AlignedReturns:
    """Time-aligned log returns for a basket of assets.

    ``returns`` has one row per aligned time step and one column per asset,
    in the order of ``tickers`` and ``weights``.
    """

    returns: np.ndarray
    tickers: List[str]
    weights: np.ndarray
    n_observations: int
    dates: Optional[List[str]] = None
    missing_data: Dict[str, float] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    @property
    def n_assets(self) -> int:
        return len(self.tickers)

    def to_frame(self) -> pd.DataFrame:
        index = pd.Index(self.dates, name="date") if self.dates is not None else None
        return pd.DataFrame(self.returns, index=index, columns=self.tickers)


def compute_log_returns(prices) -> Tuple[pd.Series, float]:
    """Compute log returns ln(P_t / P_{t-1}) for one price series.

    Pairs where either price is non-positive or non-finite are skipped rather
    than filled, so the output can be shorter than ``len(prices) - 1``.

    Args:
        prices: Ordered closes (Series, array or list)

    Returns:
        Tuple of (returns indexed like the later price of each pair,
        fraction of pairs skipped)
    """
    prices = pd.Series(prices, dtype=float) if not isinstance(prices, pd.Series) else prices.astype(float)

    if len(prices) < 2:
        return prices.iloc[0:0], 0.0

    prev = prices.shift(1).iloc[1:]
    curr = prices.iloc[1:]
    valid = np.isfinite(prev) & np.isfinite(curr) & (prev > 0) & (curr > 0)

    log_returns = np.log(curr[valid] / prev[valid])
    skipped_ratio = float((~valid).sum()) / len(valid)

    return log_returns, skipped_ratio


def _returns_matrix(
    tickers: Sequence[str],
    price_columns: Sequence[pd.Series],
    settings: RiskSettings,
) -> Tuple[np.ndarray, List[pd.Series], Dict[str, float], List[str]]:
    """Log returns per column, stacked into T x N after a length check."""
    per_asset: List[pd.Series] = []
    missing: Dict[str, float] = {}
    warnings: List[str] = []

    for ticker, prices in zip(tickers, price_columns):
        log_ret, skipped_ratio = compute_log_returns(prices)
        missing[ticker] = skipped_ratio
        skipped_pct = skipped_ratio * 100
        if skipped_pct > settings.MISSING_DATA_WARN_PCT:
            message = f"{ticker}: {skipped_pct:.1f}% of price pairs invalid and skipped"
            warnings.append(message)
            logger.warning(
                "align_series: invalid price data",
                ticker=ticker,
                skipped_pct=round(skipped_pct, 1),
            )
        per_asset.append(log_ret)

    lengths = {len(r) for r in per_asset}
    if len(lengths) > 1:
        logger.error(
            "align_series: returns of different length",
            lengths={t: len(r) for t, r in zip(tickers, per_asset)},
        )
        raise AlignmentError(
            "Alignment error: returns of different length "
            f"({', '.join(f'{t}={len(r)}' for t, r in zip(tickers, per_asset))})"
        )

    matrix = np.column_stack([r.to_numpy(dtype=float) for r in per_asset])
    return matrix, per_asset, missing, warnings


def align_by_date(assets: Sequence[AssetSeries], settings: RiskSettings) -> AlignedReturns:
    """Inner-join asset histories on their dates, then compute returns.

    Raises:
        InsufficientHistory: Fewer than MIN_OBSERVATIONS common dates
        AlignmentError: Return lengths diverge after skipping invalid prices
    """
    series = []
    for asset in assets:
        s = pd.Series(
            [p.close for p in asset.prices],
            index=[p.date for p in asset.prices],
            dtype=float,
        )
        # Later quotes for the same date overwrite earlier ones
        s = s[~s.index.duplicated(keep="last")]
        series.append(s)

    price_matrix = pd.concat(series, axis=1, join="inner", ignore_index=True).sort_index()
    n_common = len(price_matrix)

    if n_common < settings.MIN_OBSERVATIONS:
        logger.warning(
            "align_by_date: insufficient common dates",
            common_dates=n_common,
            min_required=settings.MIN_OBSERVATIONS,
        )
        raise InsufficientHistory(
            f"Insufficient common dates: {n_common} (minimum {settings.MIN_OBSERVATIONS})"
        )

    logger.info(
        "align_by_date: alignment verified",
        common_dates=n_common,
        date_range=f"{price_matrix.index[0]} to {price_matrix.index[-1]}",
    )

    tickers = [a.ticker for a in assets]
    columns = [price_matrix[i] for i in range(len(assets))]
    matrix, per_asset, missing, warnings = _returns_matrix(tickers, columns, settings)

    return AlignedReturns(
        returns=matrix,
        tickers=tickers,
        weights=np.array([a.weight for a in assets], dtype=float),
        n_observations=matrix.shape[0],
        dates=[str(d) for d in per_asset[0].index],
        missing_data=missing,
        warnings=warnings,
    )


def align_by_length(assets: Sequence[AssetSeries], settings: RiskSettings) -> AlignedReturns:
    """Truncate every history to the shortest common length (latest points).

    Raises:
        InsufficientHistory: Shortest history below MIN_OBSERVATIONS
        AlignmentError: Return lengths diverge after skipping invalid prices
    """
    min_length = min(len(a.prices) for a in assets)

    if min_length < settings.MIN_OBSERVATIONS:
        logger.warning(
            "align_by_length: insufficient history",
            min_length=min_length,
            min_required=settings.MIN_OBSERVATIONS,
        )
        raise InsufficientHistory(
            f"Insufficient history: {min_length} days (minimum {settings.MIN_OBSERVATIONS})"
        )

    tickers = [a.ticker for a in assets]
    columns = [
        pd.Series([p.close for p in a.prices[-min_length:]], dtype=float)
        for a in assets
    ]
    matrix, _, missing, warnings = _returns_matrix(tickers, columns, settings)

    logger.info(
        "align_by_length: series truncated",
        length=min_length,
        num_assets=len(assets),
    )

    return AlignedReturns(
        returns=matrix,
        tickers=tickers,
        weights=np.array([a.weight for a in assets], dtype=float),
        n_observations=matrix.shape[0],
        dates=None,
        missing_data=missing,
        warnings=warnings,
    )


def align_series(
    assets: Sequence[AssetSeries],
    settings: Optional[RiskSettings] = None,
) -> AlignedReturns:
    """Build the aligned returns matrix for a basket of assets.

    Uses date intersection when every price point of every asset carries a
    date, otherwise common-length truncation.

    Args:
        assets: Asset histories with weights
        settings: Engine configuration (defaults from environment)

    Returns:
        AlignedReturns with a T x N matrix, T >= MIN_OBSERVATIONS - 1

    Raises:
        InsufficientHistory: No assets, or too little common history
        AlignmentError: Internal length mismatch after return computation
    """
    settings = settings or RiskSettings()

    if not assets:
        raise InsufficientHistory("No assets supplied")

    if all(a.has_dates for a in assets):
        return align_by_date(assets, settings)

    logger.warning(
        "align_series: no timestamps, falling back to length alignment",
        num_assets=len(assets),
    )
    return align_by_length(assets, settings)
