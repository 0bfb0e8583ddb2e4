"""
Tests for the exclusion-constrained nearest-neighbor search.

Checks, on small fixtures, against a direct brute-force reading of the
rules: |i - e| > mu, d(i, e) > 0, e within the candidate range, minimum
distance, smallest index on ties.
"""

import numpy as np
import pytest

from rosenstein.core.distance import DistanceMetric
from rosenstein.core.embedding import time_delay_embedding
from rosenstein.core.errors import InsufficientData, NoEligibleNeighbor
from rosenstein.core.neighbors import NeighborMap, find_nearest_neighbors


def _logistic(n=400, r=4.0, x0=0.1):
    x = np.empty(n)
    x[0] = x0
    for i in range(1, n):
        x[i] = r * x[i - 1] * (1 - x[i - 1])
    return x


# Values 0, 1, 5, 1, 9, 1: rows 1, 3, 5 coincide.
TIE_FIXTURE = np.array([[0.0], [1.0], [5.0], [1.0], [9.0], [1.0]])


class TestNeighborRules:

    def test_matches_brute_force_reading(self):
        """Chosen neighbor is eligible, in range, and minimal."""
        np.random.seed(0)
        X = np.random.randn(60, 2)
        mu, horizon = 3.5, 5
        nm = find_nearest_neighbors(X, mean_period=mu, horizon=horizon)

        n_cand = 60 - horizon
        assert len(nm) == n_cand
        for i, e in zip(nm.base, nm.neighbor):
            assert e != i
            assert abs(i - e) > mu
            assert 0 <= e < n_cand

            eligible = [
                np.linalg.norm(X[i] - X[j])
                for j in range(n_cand)
                if abs(i - j) > mu and np.linalg.norm(X[i] - X[j]) > 0
            ]
            assert np.linalg.norm(X[i] - X[e]) == pytest.approx(min(eligible))

    def test_tie_goes_to_smallest_index(self):
        nm = find_nearest_neighbors(TIE_FIXTURE, mean_period=0.0, horizon=0)
        assert nm.as_dict()[0] == 1

    def test_zero_distance_excluded(self):
        """Coincident rows 1, 3, 5 never pick each other."""
        nm = find_nearest_neighbors(TIE_FIXTURE, mean_period=0.0, horizon=0)
        mapping = nm.as_dict()
        assert mapping[1] == 0
        assert mapping[3] == 0
        assert mapping[5] == 0
        assert np.all(nm.distance > 0)

    def test_temporal_exclusion(self):
        """With mu = 1.5 row 0 skips row 1 and ties 3 vs 5 go to 3."""
        nm = find_nearest_neighbors(TIE_FIXTURE, mean_period=1.5, horizon=0)
        assert nm.as_dict()[0] == 3

    def test_candidate_range_excludes_tail(self):
        """Rows within the horizon of the end are never neighbors."""
        X = np.arange(30.0)[:, None]
        # Row 24 would be the best match for 23 but is outside the range.
        nm = find_nearest_neighbors(X, mean_period=0.0, horizon=6)
        assert len(nm) == 24
        assert nm.neighbor.max() <= 23
        assert nm.as_dict()[23] == 22

    def test_map_metadata(self):
        np.random.seed(1)
        nm = find_nearest_neighbors(np.random.randn(40, 2), mean_period=2.0, horizon=3)
        assert isinstance(nm, NeighborMap)
        assert nm.mean_period == 2.0
        assert nm.horizon == 3
        np.testing.assert_array_equal(nm.base, np.arange(37))
        assert not nm.neighbor.flags.writeable

        df = nm.to_frame()
        assert df.columns == ['row', 'neighbor', 'distance']
        assert df.height == 37


class TestNeighborFailures:

    def test_horizon_consumes_all_rows(self):
        X = np.random.randn(10, 2)
        with pytest.raises(InsufficientData):
            find_nearest_neighbors(X, mean_period=0.0, horizon=10)
        with pytest.raises(InsufficientData):
            find_nearest_neighbors(X, mean_period=0.0, horizon=12)

    def test_exclusion_window_too_wide(self):
        X = np.random.randn(10, 2)
        with pytest.raises(NoEligibleNeighbor) as exc:
            find_nearest_neighbors(X, mean_period=20.0, horizon=0)
        assert exc.value.row == 0

    def test_single_candidate(self):
        with pytest.raises(NoEligibleNeighbor):
            find_nearest_neighbors(np.random.randn(5, 2), mean_period=0.0, horizon=4)

    def test_all_states_identical(self):
        with pytest.raises(NoEligibleNeighbor):
            find_nearest_neighbors(np.ones((10, 2)), mean_period=0.0, horizon=0)

    def test_invalid_arguments(self):
        X = np.random.randn(10, 2)
        with pytest.raises(ValueError):
            find_nearest_neighbors(X, mean_period=-1.0, horizon=0)
        with pytest.raises(ValueError):
            find_nearest_neighbors(X, mean_period=1.0, horizon=-1)
        with pytest.raises(ValueError):
            find_nearest_neighbors(X, mean_period=1.0, horizon=0, algorithm='ball')
        with pytest.raises(ValueError):
            find_nearest_neighbors(X, mean_period=1.0, horizon=0, metric='cosine')


class TestSearchEquivalence:
    """KD-tree and parallel searches reproduce the exhaustive search exactly."""

    @pytest.mark.parametrize("metric", ["euclidean", "manhattan", "chebyshev"])
    def test_kdtree_matches_brute_random(self, metric):
        np.random.seed(7)
        X = np.random.randn(300, 3)
        brute = find_nearest_neighbors(X, 4.2, 10, metric=metric, algorithm='brute')
        tree = find_nearest_neighbors(X, 4.2, 10, metric=metric, algorithm='kdtree')
        np.testing.assert_array_equal(brute.neighbor, tree.neighbor)
        np.testing.assert_allclose(brute.distance, tree.distance, rtol=1e-12)

    def test_kdtree_matches_brute_with_ties(self):
        """Integer grid: many equal distances and duplicate states."""
        rng = np.random.default_rng(11)
        X = rng.integers(0, 5, size=(200, 2)).astype(float)
        brute = find_nearest_neighbors(X, 3.0, 5, algorithm='brute')
        tree = find_nearest_neighbors(X, 3.0, 5, algorithm='kdtree')
        np.testing.assert_array_equal(brute.neighbor, tree.neighbor)

    def test_kdtree_matches_brute_on_attractor(self):
        X = time_delay_embedding(_logistic(), 1, 2)
        brute = find_nearest_neighbors(X, 4.0, 25, algorithm='brute')
        tree = find_nearest_neighbors(X, 4.0, 25, algorithm='kdtree')
        np.testing.assert_array_equal(brute.neighbor, tree.neighbor)

    def test_kdtree_raises_like_brute(self):
        with pytest.raises(NoEligibleNeighbor):
            find_nearest_neighbors(np.ones((10, 2)), 0.0, 0, algorithm='kdtree')

    @pytest.mark.parametrize("algorithm", ["brute", "kdtree"])
    def test_huge_exclusion_radius(self, algorithm):
        """A finite but enormous mu excludes everything on both searches."""
        np.random.seed(3)
        X = np.random.randn(20, 2)
        with pytest.raises(NoEligibleNeighbor):
            find_nearest_neighbors(X, 1e308, 0, algorithm=algorithm)

    def test_kdtree_matches_brute_custom_minkowski(self):
        np.random.seed(9)
        X = np.random.randn(200, 3)
        p3 = DistanceMetric("minkowski3", "minkowski", 3.0)
        brute = find_nearest_neighbors(X, 2.0, 5, metric=p3, algorithm='brute')
        tree = find_nearest_neighbors(X, 2.0, 5, metric=p3, algorithm='kdtree')
        np.testing.assert_array_equal(brute.neighbor, tree.neighbor)

        i, e = 0, brute.neighbor[0]
        expected = np.sum(np.abs(X[i] - X[e]) ** 3) ** (1 / 3)
        assert brute.distance[0] == pytest.approx(expected, rel=1e-12)

    @pytest.mark.parametrize("algorithm", ["brute", "kdtree"])
    def test_parallel_matches_serial(self, algorithm):
        np.random.seed(5)
        X = np.random.randn(700, 2)
        serial = find_nearest_neighbors(X, 3.0, 20, algorithm=algorithm, n_jobs=1)
        parallel = find_nearest_neighbors(X, 3.0, 20, algorithm=algorithm, n_jobs=3)
        np.testing.assert_array_equal(serial.neighbor, parallel.neighbor)
        np.testing.assert_array_equal(serial.distance, parallel.distance)

    def test_repeated_runs_identical(self):
        X = time_delay_embedding(_logistic(), 1, 3)
        a = find_nearest_neighbors(X, 4.0, 25)
        b = find_nearest_neighbors(X, 4.0, 25)
        np.testing.assert_array_equal(a.neighbor, b.neighbor)
        np.testing.assert_array_equal(a.distance, b.distance)
