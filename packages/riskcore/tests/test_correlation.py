"""
Unit tests for correlation.py - Correlation Analysis Module

Tests cover:
- Singularity (near-duplicate) detection
- Correlation summary statistics
- Hierarchical clustering
"""

import pytest
import numpy as np
from numpy.testing import assert_allclose

from riskcore.risk.correlation import (
    correlation_stats,
    detect_singularities,
    hierarchical_clusters,
)
from riskcore.risk.covariance import calculate_matrices, distance_matrix
from riskcore.risk.returns import align_series


@pytest.fixture
def block_corr():
    """Two blocks: {A, B} highly correlated, {C, D} highly correlated."""
    return np.array([
        [1.00, 0.90, 0.10, 0.05],
        [0.90, 1.00, 0.08, 0.12],
        [0.10, 0.08, 1.00, 0.85],
        [0.05, 0.12, 0.85, 1.00],
    ])


class TestDetectSingularities:
    """Tests for detect_singularities function."""

    def test_no_duplicates(self, block_corr):
        assert detect_singularities(block_corr, ['A', 'B', 'C', 'D']) == []

    def test_duplicate_pair_reported_once(self):
        corr = np.array([[1.0, 0.9995], [0.9995, 1.0]])
        result = detect_singularities(corr, ['X', 'Y'])

        assert len(result) == 1
        assert result[0]['pair'] == ('X', 'Y')
        assert_allclose(result[0]['correlation'], 0.9995)

    def test_negative_duplicate_detected(self):
        corr = np.array([[1.0, -0.9999], [-0.9999, 1.0]])

        assert len(detect_singularities(corr, ['X', 'Y'])) == 1

    def test_threshold_is_strict(self):
        corr = np.array([[1.0, 0.999], [0.999, 1.0]])

        assert detect_singularities(corr, ['X', 'Y'], threshold=0.999) == []

    def test_identical_series_flagged(self, identical_pair):
        estimate = calculate_matrices(align_series(identical_pair).returns)
        result = detect_singularities(estimate.corr_matrix, ['DUP1', 'DUP2'])

        assert [r['pair'] for r in result] == [('DUP1', 'DUP2')]


class TestCorrelationStats:
    """Tests for correlation_stats function."""

    def test_block_stats(self, block_corr):
        stats = correlation_stats(block_corr)

        upper = [0.90, 0.10, 0.05, 0.08, 0.12, 0.85]
        assert_allclose(stats['average'], np.mean(upper))
        assert_allclose(stats['max'], 0.90)
        assert_allclose(stats['min'], 0.05)
        assert stats['highly_correlated'] == 2

    def test_custom_threshold(self, block_corr):
        assert correlation_stats(block_corr, high_threshold=0.88)['highly_correlated'] == 1

    def test_single_asset_zero(self):
        stats = correlation_stats(np.array([[1.0]]))

        assert stats == {'average': 0.0, 'max': 0.0, 'min': 0.0, 'highly_correlated': 0}


class TestHierarchicalClusters:
    """Tests for hierarchical_clusters function."""

    def test_blocks_recovered(self, block_corr):
        tickers = ['A', 'B', 'C', 'D']
        result = hierarchical_clusters(distance_matrix(block_corr), block_corr, tickers, max_clusters=2)

        labels = result['labels']
        assert labels['A'] == labels['B']
        assert labels['C'] == labels['D']
        assert labels['A'] != labels['C']

    def test_cluster_structure(self, block_corr):
        result = hierarchical_clusters(
            distance_matrix(block_corr), block_corr, ['A', 'B', 'C', 'D'], max_clusters=2
        )

        for cluster in result['clusters']:
            assert set(cluster) == {'cluster_id', 'members', 'size', 'avg_intra_corr'}
            assert cluster['size'] == len(cluster['members'])

        intra = sorted(c['avg_intra_corr'] for c in result['clusters'])
        assert_allclose(intra, [0.85, 0.90])

    def test_all_tickers_assigned(self, dated_positions):
        aligned = align_series(dated_positions)
        estimate = calculate_matrices(aligned.returns)
        result = hierarchical_clusters(estimate.dist_matrix, estimate.corr_matrix, aligned.tickers)

        members = [m for c in result['clusters'] for m in c['members']]
        assert sorted(members) == sorted(aligned.tickers)
        assert set(result['labels']) == set(aligned.tickers)

    def test_max_clusters_respected(self, dated_positions):
        aligned = align_series(dated_positions)
        estimate = calculate_matrices(aligned.returns)
        result = hierarchical_clusters(
            estimate.dist_matrix, estimate.corr_matrix, aligned.tickers, max_clusters=3
        )

        assert len(result['clusters']) <= 3

    def test_sorted_largest_first(self, block_corr):
        corr = block_corr.copy()
        result = hierarchical_clusters(distance_matrix(corr), corr, ['A', 'B', 'C', 'D'], max_clusters=3)
        sizes = [c['size'] for c in result['clusters']]

        assert sizes == sorted(sizes, reverse=True)

    def test_single_asset(self):
        result = hierarchical_clusters(np.array([[0.0]]), np.array([[1.0]]), ['ONLY'])

        assert result['labels'] == {'ONLY': 1}
        assert result['clusters'][0]['avg_intra_corr'] == 1.0

    def test_empty_raises(self):
        with pytest.raises(ValueError, match="empty"):
            hierarchical_clusters(np.zeros((0, 0)), np.zeros((0, 0)), [])

    def test_invalid_distances_raise(self):
        dist = np.array([[0.0, np.nan], [np.nan, 0.0]])

        with pytest.raises(ValueError, match="Invalid distances"):
            hierarchical_clusters(dist, np.eye(2), ['A', 'B'])
