"""
Unit tests for linalg.py - Dense Linear Algebra Primitives

Tests cover:
- Transpose
- Matrix product and dimension checks
- Vector dot product
- Column centring
"""

import pytest
import numpy as np
from numpy.testing import assert_allclose

from riskcore.risk.errors import DimensionMismatch, ErrorKind
from riskcore.risk.linalg import center_columns, dot, multiply, transpose


class TestTranspose:

    def test_transpose_shape(self):
        m = np.arange(6.0).reshape(2, 3)
        assert transpose(m).shape == (3, 2)

    def test_transpose_returns_copy(self):
        m = np.arange(4.0).reshape(2, 2)
        t = transpose(m)
        t[0, 0] = 99.0

        assert m[0, 0] == 0.0

    def test_transpose_rejects_vector(self):
        with pytest.raises(DimensionMismatch):
            transpose([1.0, 2.0])


class TestMultiply:

    def test_multiply_matches_numpy(self):
        a = np.array([[1.0, 2.0], [3.0, 4.0]])
        b = np.array([[5.0], [6.0]])

        assert_allclose(multiply(a, b), [[17.0], [39.0]])

    def test_multiply_incompatible_raises(self):
        a = np.ones((2, 3))
        b = np.ones((2, 2))

        with pytest.raises(DimensionMismatch, match="Incompatible dimensions: 3 vs 2"):
            multiply(a, b)

    def test_dimension_mismatch_kind(self):
        try:
            multiply(np.ones((1, 2)), np.ones((3, 1)))
        except DimensionMismatch as exc:
            assert exc.kind == ErrorKind.DIMENSION_MISMATCH
        else:
            pytest.fail("DimensionMismatch not raised")


class TestDot:

    def test_dot_value(self):
        assert dot([1, 2, 3], [4, 5, 6]) == 32.0

    def test_dot_returns_float(self):
        assert isinstance(dot(np.array([1.0]), np.array([2.0])), float)

    def test_dot_length_mismatch_raises(self):
        with pytest.raises(DimensionMismatch, match="Vectors of different length"):
            dot([1.0, 2.0], [1.0])


class TestCenterColumns:

    def test_columns_have_zero_mean(self):
        m = np.array([[1.0, 10.0], [3.0, 20.0], [5.0, 60.0]])
        centered = center_columns(m)

        assert_allclose(centered.mean(axis=0), [0.0, 0.0], atol=1e-12)
        assert_allclose(centered[:, 0], [-2.0, 0.0, 2.0])

    def test_input_unchanged(self):
        m = np.array([[1.0], [3.0]])
        center_columns(m)

        assert_allclose(m, [[1.0], [3.0]])
