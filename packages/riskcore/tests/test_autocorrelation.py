"""
Unit tests for autocorrelation.py - Autocorrelation Scaling Module
"""

import math

import numpy as np
from numpy.testing import assert_allclose

from riskcore.risk.autocorrelation import annualization_factor, lag_autocorrelation


class TestLagAutocorrelation:
    """Tests for lag_autocorrelation function."""

    def test_alternating_series_negative(self):
        r = np.array([1.0, -1.0] * 20)

        assert lag_autocorrelation(r) < -0.9

    def test_trending_series_positive(self):
        r = np.linspace(-1, 1, 50)

        assert lag_autocorrelation(r) > 0.9

    def test_matches_definition(self):
        np.random.seed(11)
        r = np.random.normal(0, 1, 200)
        dev = r - r.mean()
        expected = (dev[:-1] @ dev[1:]) / (dev @ dev)

        assert_allclose(lag_autocorrelation(r), expected)

    def test_too_few_pairs_zero(self):
        assert lag_autocorrelation([0.01, 0.02, -0.01, 0.03]) == 0.0

    def test_constant_series_zero(self):
        assert lag_autocorrelation(np.full(30, 0.01)) == 0.0

    def test_geometric_growth_zero(self):
        """Constant growth gives returns equal up to rounding noise."""
        prices = 120.0 * 1.012 ** np.arange(40)
        r = np.log(prices[1:] / prices[:-1])

        assert lag_autocorrelation(r) == 0.0

    def test_non_finite_dropped(self):
        r = np.array([1.0, -1.0] * 20 + [np.nan])

        assert np.isfinite(lag_autocorrelation(r))


class TestAnnualizationFactor:
    """Tests for annualization_factor function."""

    def test_small_rho_uses_naive_factor(self):
        assert_allclose(annualization_factor(0.05), math.sqrt(252))
        assert_allclose(annualization_factor(-0.1), math.sqrt(252))

    def test_positive_rho_inflates(self):
        assert_allclose(annualization_factor(0.3), math.sqrt(252 * 1.6))

    def test_negative_rho_deflates(self):
        assert_allclose(annualization_factor(-0.2), math.sqrt(252 * 0.6))

    def test_extreme_negative_rho_falls_back(self):
        assert_allclose(annualization_factor(-0.6), math.sqrt(252))

    def test_custom_trading_days(self):
        assert_allclose(annualization_factor(0.0, trading_days=365), math.sqrt(365))
