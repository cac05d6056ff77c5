"""Per-asset risk-adjusted performance ratios from daily closes."""

from __future__ import annotations

import math

import numpy as np

from .returns import compute_log_returns

# Returned when a ratio's denominator is zero (no downside / no drawdown)
NO_DOWNSIDE = 999.0

MIN_PRICES = 30
CALMAR_MIN_PRICES = 252


def _annualised_log_returns(prices, trading_days: int):
    r = compute_log_returns(prices)[0].to_numpy()
    return r, float(r.mean()) * trading_days if r.size else 0.0


def sharpe_ratio(prices, risk_free_rate: float = 0.02, trading_days: int = 252) -> float:
    """(annual return - rf) / annual volatility; 0.0 with fewer than 30 prices."""
    if prices is None or len(prices) < MIN_PRICES:
        return 0.0
    r, annual_return = _annualised_log_returns(prices, trading_days)
    volatility = float(r.std()) * math.sqrt(trading_days) if r.size else 0.0
    if volatility == 0:
        return 0.0
    return (annual_return - risk_free_rate) / volatility


def sortino_ratio(prices, risk_free_rate: float = 0.02, trading_days: int = 252) -> float:
    """Like Sharpe, but only downside volatility is penalised."""
    if prices is None or len(prices) < MIN_PRICES:
        return 0.0
    r, annual_return = _annualised_log_returns(prices, trading_days)
    down = r[r < 0]
    if down.size == 0:
        return NO_DOWNSIDE
    downside_std = float(down.std()) * math.sqrt(trading_days)
    if downside_std == 0:
        return 0.0
    return (annual_return - risk_free_rate) / downside_std


def max_drawdown(prices) -> float:
    """Largest peak-to-trough decline as a positive fraction."""
    p = np.asarray(prices, dtype=float)
    p = p[np.isfinite(p) & (p > 0)]
    if p.size == 0:
        return 0.0
    peaks = np.maximum.accumulate(p)
    return float(((peaks - p) / peaks).max())


def calmar_ratio(prices, trading_days: int = 252) -> float:
    """Annual return / max drawdown; needs at least a year of prices."""
    if prices is None or len(prices) < CALMAR_MIN_PRICES:
        return 0.0
    _, annual_return = _annualised_log_returns(prices, trading_days)
    mdd = max_drawdown(prices)
    if mdd == 0:
        return NO_DOWNSIDE
    return annual_return / mdd
