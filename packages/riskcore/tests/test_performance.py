"""
Unit tests for performance.py - per-asset Sharpe, Sortino, Calmar
"""

import math

import numpy as np
from numpy.testing import assert_allclose

from riskcore.risk.performance import (
    NO_DOWNSIDE,
    calmar_ratio,
    max_drawdown,
    sharpe_ratio,
    sortino_ratio,
)


def _random_walk(n, seed=1, drift=0.0005, vol=0.01):
    np.random.seed(seed)
    return list(100 * np.exp(np.cumsum(np.random.normal(drift, vol, n))))


class TestSharpeRatio:

    def test_short_history_zero(self):
        assert sharpe_ratio([100.0 + i for i in range(29)]) == 0.0

    def test_definition(self):
        prices = _random_walk(120)
        r = np.diff(np.log(prices))
        expected = (r.mean() * 252 - 0.02) / (r.std() * math.sqrt(252))

        assert_allclose(sharpe_ratio(prices), expected)

    def test_constant_prices_zero(self):
        assert sharpe_ratio([100.0] * 40) == 0.0


class TestSortinoRatio:

    def test_no_down_days(self):
        assert sortino_ratio([100.0 + i for i in range(40)]) == NO_DOWNSIDE

    def test_penalises_downside_only(self):
        prices = _random_walk(200, seed=4)
        r = np.diff(np.log(prices))
        down = r[r < 0]
        expected = (r.mean() * 252 - 0.02) / (down.std() * math.sqrt(252))

        assert_allclose(sortino_ratio(prices), expected)


class TestMaxDrawdown:

    def test_known_drawdown(self):
        assert_allclose(max_drawdown([100, 120, 90, 110, 60, 80]), 0.5)

    def test_monotonic_increase(self):
        assert max_drawdown([1, 2, 3, 4]) == 0.0

    def test_empty(self):
        assert max_drawdown([]) == 0.0


class TestCalmarRatio:

    def test_needs_a_year(self):
        assert calmar_ratio(_random_walk(200)) == 0.0

    def test_no_drawdown(self):
        assert calmar_ratio([100.0 + i for i in range(260)]) == NO_DOWNSIDE

    def test_definition(self):
        prices = _random_walk(300, seed=8)
        r = np.diff(np.log(prices))

        assert_allclose(calmar_ratio(prices), r.mean() * 252 / max_drawdown(prices))
