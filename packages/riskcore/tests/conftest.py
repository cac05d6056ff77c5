"""
Shared test fixtures for the risk engine test suite.

Provides consistent test data across all test modules:
- Two-asset undated basket (linear ramp vs. constant-growth series)
- Dated five-asset baskets with correlation structure (long and short)
- Allocated positions for stress testing
- Engine settings with default thresholds
"""

import pytest
import numpy as np
import pandas as pd

from riskcore.config import RiskSettings
from riskcore.risk.models import AssetSeries, PortfolioPosition


SYMBOLS = ['AAPL', 'GOOGL', 'MSFT', 'TSLA', 'AMZN']
WEIGHTS = [0.30, 0.25, 0.20, 0.15, 0.10]
VOLATILITIES = [25.0, 30.0, 22.0, 55.0, 28.0]


def make_dated_positions(n_days, seed=42, total_capital=10000):
    """Random-walk positions with GOOGL and MSFT correlated to AAPL."""
    np.random.seed(seed)
    dates = pd.bdate_range('2023-01-02', periods=n_days)

    returns = np.random.normal(0.0005, 0.02, (n_days, len(SYMBOLS)))
    returns[:, 1] = 0.7 * returns[:, 0] + 0.3 * returns[:, 1]
    returns[:, 2] = 0.5 * returns[:, 0] + 0.5 * returns[:, 2]

    positions = []
    for i, sym in enumerate(SYMBOLS):
        closes = (100 + i * 50) * np.exp(np.cumsum(returns[:, i]))
        positions.append(PortfolioPosition(
            ticker=sym,
            name=f"{sym} Inc.",
            weight=WEIGHTS[i],
            volatility=VOLATILITIES[i],
            recommended_capital=WEIGHTS[i] * total_capital,
            prices=[
                {'date': d.strftime('%Y-%m-%d'), 'close': float(c)}
                for d, c in zip(dates, closes)
            ],
        ))
    return positions


@pytest.fixture
def settings():
    """Engine settings with the default thresholds."""
    return RiskSettings()


@pytest.fixture
def two_asset_basket():
    """AAA: linear ramp 100..139; BBB: 120 · 1.012^t. Weights 0.6 / 0.4.

    Prices are bare closes, so alignment falls back to common length.

    Returns:
        List[PortfolioPosition]: Two positions with 40 prices each
    """
    aaa = [100.0 + t for t in range(40)]
    bbb = [120.0 * 1.012 ** t for t in range(40)]
    return [
        PortfolioPosition(ticker='AAA', weight=0.6, volatility=20.0,
                          recommended_capital=6000, prices=aaa),
        PortfolioPosition(ticker='BBB', weight=0.4, volatility=10.0,
                          recommended_capital=4000, prices=bbb),
    ]


@pytest.fixture
def dated_positions():
    """Five dated positions over 300 business days (no shrinkage regime).

    Returns:
        List[PortfolioPosition]: Positions summing to a 10,000 allocation
    """
    return make_dated_positions(300)


@pytest.fixture
def short_dated_positions():
    """Five dated positions over 60 business days (shrinkage regime)."""
    return make_dated_positions(60, seed=7)


@pytest.fixture
def identical_pair():
    """Two assets with identical random-walk closes and equal weights."""
    np.random.seed(3)
    dates = pd.bdate_range('2024-01-01', periods=80)
    closes = 50 * np.exp(np.cumsum(np.random.normal(0, 0.015, len(dates))))
    prices = [
        {'date': d.strftime('%Y-%m-%d'), 'close': float(c)}
        for d, c in zip(dates, closes)
    ]
    return [
        AssetSeries(ticker='DUP1', weight=0.5, prices=prices),
        AssetSeries(ticker='DUP2', weight=0.5, prices=prices),
    ]
