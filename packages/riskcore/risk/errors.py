"""Error taxonomy for the risk engine.

Data problems (short or unusable history) are recoverable and end up as a
zeroed report.  Shape violations signal caller misuse and always propagate.
Internal consistency failures are logged loudly by the report assembler.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INSUFFICIENT_HISTORY = "insufficient_history"
    ALIGNMENT_ERROR = "alignment_error"
    DIMENSION_MISMATCH = "dimension_mismatch"
    NUMERIC_ANOMALY = "numeric_anomaly"


class RiskEngineError(Exception):
    """Base class for every error raised by the risk engine."""

    kind: ErrorKind


class InsufficientHistory(RiskEngineError):
    """Fewer than the required aligned observations, or fewer than 2 assets."""

    kind = ErrorKind.INSUFFICIENT_HISTORY


class AlignmentError(RiskEngineError):
    """Return series ended up with different lengths after alignment."""

    kind = ErrorKind.ALIGNMENT_ERROR


class DimensionMismatch(RiskEngineError):
    """Matrix or vector shapes are incompatible for the requested operation."""

    kind = ErrorKind.DIMENSION_MISMATCH


class NumericAnomaly(RiskEngineError):
    """Numerically suspicious value.

    Usually recorded (not raised) as a diagnostic while computation continues
    with clamped values; raised only when no usable number can be produced.
    """

    kind = ErrorKind.NUMERIC_ANOMALY
