"""Configuration for the risk engine loaded from environment variables."""

from pydantic_settings import BaseSettings


class RiskSettings(BaseSettings):
    """Risk engine configuration.

    Every field can be overridden with a ``RISK_``-prefixed environment
    variable (e.g. ``RISK_MIN_OBSERVATIONS=60``).  The defaults reproduce the
    reference behaviour of the engine and are what the test-suite assumes.
    """

    MIN_OBSERVATIONS: int = 30  # common prices required for a reliable report
    SHRINKAGE_WINDOW: int = 252  # shrink covariance when T is below this
    TRADING_DAYS: int = 252
    SYMMETRY_TOLERANCE: float = 1e-10
    SINGULARITY_THRESHOLD: float = 0.999
    HIGH_CORRELATION_THRESHOLD: float = 0.7
    MISSING_DATA_WARN_PCT: float = 5.0
    AUTOCORR_THRESHOLD: float = 0.1
    AUTOCORR_MIN_PAIRS: int = 10
    REFERENCE_MARKET_VOL: float = 15.0  # annualised %, used as beta denominator
    DEFAULT_CONFIDENCE: float = 0.95
    MAX_CLUSTERS: int = 8

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = False
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    model_config = {"env_prefix": "RISK_", "env_file": ".env", "env_file_encoding": "utf-8"}


def get_settings() -> RiskSettings:
    """Return a fresh RiskSettings instance."""
    return RiskSettings()
