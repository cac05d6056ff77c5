"""
Risk & Covariance Engine

Portfolio risk analytics over daily close histories.
Pure computation modules operating on pandas Series and numpy arrays.

Modules:
- returns: Log returns and date/length alignment
- covariance: Sample covariance, shrinkage, correlation and distance
- correlation: Singularity detection, statistics and hierarchical clustering
- autocorrelation: Lag-1 autocorrelation and annualisation scaling
- metrics: Parametric VaR, historical CVaR, single-asset VaR
- performance: Sharpe, Sortino and Calmar ratios
- stress: Market-drop scenario stress tests
- report: Full risk report assembly
"""

# Errors
from .errors import (
    ErrorKind,
    RiskEngineError,
    InsufficientHistory,
    AlignmentError,
    DimensionMismatch,
    NumericAnomaly,
)

# Models
from .models import (
    PricePoint,
    AssetSeries,
    PortfolioPosition,
    RiskReport,
    Success,
    Failure,
    RiskResult,
)

# Returns module
from .returns import (
    AlignedReturns,
    compute_log_returns,
    align_by_date,
    align_by_length,
    align_series,
)

# Covariance module
from .covariance import (
    CovarianceEstimate,
    sample_covariance,
    validate_covariance,
    shrinkage_intensity,
    constant_correlation_target,
    ledoit_wolf_shrinkage,
    correlation_from_covariance,
    distance_matrix,
    calculate_matrices,
)

# Correlation module
from .correlation import (
    detect_singularities,
    correlation_stats,
    hierarchical_clusters,
)

# Autocorrelation module
from .autocorrelation import (
    lag_autocorrelation,
    annualization_factor,
)

# Metrics module
from .metrics import (
    Z_SCORES,
    z_score,
    portfolio_variance,
    compute_var_breakdown,
    compute_cvar,
    historical_var,
    parametric_asset_var,
)

# Performance module
from .performance import (
    sharpe_ratio,
    sortino_ratio,
    max_drawdown,
    calmar_ratio,
)

# Stress testing module
from .stress import (
    STRESS_SCENARIOS,
    stress_position,
    run_stress_test,
)

# Report module
from .report import (
    calculate_portfolio_var,
    calculate_portfolio_cvar,
    calculate_correlation_matrix,
    calculate_portfolio_metrics,
    compute_risk_report,
    generate_risk_report,
)

__all__ = [
    # Errors
    'ErrorKind',
    'RiskEngineError',
    'InsufficientHistory',
    'AlignmentError',
    'DimensionMismatch',
    'NumericAnomaly',
    # Models
    'PricePoint',
    'AssetSeries',
    'PortfolioPosition',
    'RiskReport',
    'Success',
    'Failure',
    'RiskResult',
    # Returns
    'AlignedReturns',
    'compute_log_returns',
    'align_by_date',
    'align_by_length',
    'align_series',
    # Covariance
    'CovarianceEstimate',
    'sample_covariance',
    'validate_covariance',
    'shrinkage_intensity',
    'constant_correlation_target',
    'ledoit_wolf_shrinkage',
    'correlation_from_covariance',
    'distance_matrix',
    'calculate_matrices',
    # Correlation
    'detect_singularities',
    'correlation_stats',
    'hierarchical_clusters',
    # Autocorrelation
    'lag_autocorrelation',
    'annualization_factor',
    # Metrics
    'Z_SCORES',
    'z_score',
    'portfolio_variance',
    'compute_var_breakdown',
    'compute_cvar',
    'historical_var',
    'parametric_asset_var',
    # Performance
    'sharpe_ratio',
    'sortino_ratio',
    'max_drawdown',
    'calmar_ratio',
    # Stress testing
    'STRESS_SCENARIOS',
    'stress_position',
    'run_stress_test',
    # Report
    'calculate_portfolio_var',
    'calculate_portfolio_cvar',
    'calculate_correlation_matrix',
    'calculate_portfolio_metrics',
    'compute_risk_report',
    'generate_risk_report',
]
