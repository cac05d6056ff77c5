"""riskcore: portfolio risk and covariance engine."""

__version__ = "1.0.0"
