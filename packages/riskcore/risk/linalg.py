"""
Dense Linear Algebra Primitives

Shape-checked wrappers over numpy used by every statistical module.
All functions are pure and return newly allocated arrays.
"""

from __future__ import annotations

import numpy as np

from .errors import DimensionMismatch


def _as_matrix(matrix, name: str) -> np.ndarray:
    arr = np.asarray(matrix, dtype=float)
    if arr.ndim != 2:
        raise DimensionMismatch(f"{name} must be 2-dimensional, got shape {arr.shape}")
    return arr


def transpose(matrix) -> np.ndarray:
    """Return Mᵀ as a new array."""
    return _as_matrix(matrix, "matrix").T.copy()


def multiply(a, b) -> np.ndarray:
    """Matrix product A·B.

    Raises:
        DimensionMismatch: If A's column count differs from B's row count
    """
    a = _as_matrix(a, "left operand")
    b = _as_matrix(b, "right operand")
    if a.shape[1] != b.shape[0]:
        raise DimensionMismatch(
            f"Incompatible dimensions: {a.shape[1]} vs {b.shape[0]}"
        )
    return a @ b


def dot(u, v) -> float:
    """Inner product of two vectors of equal length."""
    u = np.asarray(u, dtype=float).ravel()
    v = np.asarray(v, dtype=float).ravel()
    if u.shape[0] != v.shape[0]:
        raise DimensionMismatch(
            f"Vectors of different length: {u.shape[0]} vs {v.shape[0]}"
        )
    return float(u @ v)


def center_columns(matrix) -> np.ndarray:
    """Subtract each column's mean from every entry of that column."""
    arr = _as_matrix(matrix, "matrix")
    if arr.shape[0] == 0:
        return arr.copy()
    return arr - arr.mean(axis=0)
