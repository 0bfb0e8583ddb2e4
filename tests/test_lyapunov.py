"""
End-to-end tests for the Rosenstein pipeline.

Reference scenario: logistic map, r = 4, x0 = 0.1, 500 samples,
J = 1, m = 2, T_max = 25, W = 10. The theoretical exponent is ln 2.
"""

import numpy as np
import pytest

from rosenstein import (
    DegenerateSpectrum,
    InsufficientData,
    LyapunovConfig,
    NoEligibleNeighbor,
    RegressionWindowTooSmall,
    RosensteinError,
    estimate_lyapunov,
)


def logistic_map(n, r=4.0, x0=0.1):
    x = np.empty(n)
    x[0] = x0
    for i in range(1, n):
        x[i] = r * x[i - 1] * (1 - x[i - 1])
    return x


REFERENCE = dict(delay=1, dimension=2, horizon=25, window=10, dt=1.0)


class TestLogisticMap:

    def test_reference_scenario(self):
        estimate = estimate_lyapunov(logistic_map(500), **REFERENCE)
        assert 0.5 <= estimate.exponent <= 0.8, f"λ = {estimate.exponent}"

    def test_outputs_consistent(self):
        estimate = estimate_lyapunov(logistic_map(500), **REFERENCE)

        assert estimate.exponent == estimate.regression.slope
        assert estimate.n_vectors == 499
        assert len(estimate.neighbors) == 499 - 25
        assert len(estimate.curve) == 26
        assert estimate.mean_period > 0
        assert np.all(np.abs(estimate.neighbors.neighbor - estimate.neighbors.base)
                      > estimate.mean_period)
        assert np.all(np.isfinite(estimate.curve.mean_log_distance))

    def test_curve_grows_then_saturates(self):
        curve = estimate_lyapunov(logistic_map(500), **REFERENCE).curve
        y = curve.mean_log_distance
        assert y[5] > y[0]
        # Saturated tail is much flatter than the early growth
        assert abs(y[-1] - y[-6]) < abs(y[5] - y[0])

    def test_sampling_interval_scales_slope(self):
        a = estimate_lyapunov(logistic_map(500), **REFERENCE)
        b = estimate_lyapunov(logistic_map(500), **{**REFERENCE, 'dt': 0.5})
        assert b.exponent == pytest.approx(2 * a.exponent)

    def test_to_dict(self):
        row = estimate_lyapunov(logistic_map(500), **REFERENCE).to_dict()
        for key in ['lyapunov', 'intercept', 'stderr', 'r_squared', 'mean_period',
                    'n_vectors', 'n_neighbors', 'n_excluded', 'embedding_dim',
                    'embedding_tau', 'horizon', 'window', 'dt']:
            assert key in row
        assert row['embedding_dim'] == 2


class TestDeterminism:

    def test_repeated_runs_bit_identical(self):
        x = logistic_map(500)
        a = estimate_lyapunov(x, **REFERENCE)
        b = estimate_lyapunov(x, **REFERENCE)
        np.testing.assert_array_equal(a.neighbors.neighbor, b.neighbors.neighbor)
        np.testing.assert_array_equal(a.curve.mean_log_distance, b.curve.mean_log_distance)
        assert a.regression == b.regression

    def test_kdtree_and_workers_match(self):
        x = logistic_map(500)
        base = estimate_lyapunov(x, **REFERENCE)
        tree = estimate_lyapunov(x, algorithm='kdtree', **REFERENCE)
        parallel = estimate_lyapunov(x, n_jobs=2, **REFERENCE)

        for other in (tree, parallel):
            np.testing.assert_array_equal(base.neighbors.neighbor, other.neighbors.neighbor)
            assert other.exponent == pytest.approx(base.exponent, rel=1e-12)

    def test_config_object_and_overrides(self):
        x = logistic_map(500)
        config = LyapunovConfig(**REFERENCE)
        a = estimate_lyapunov(x, config)
        b = estimate_lyapunov(x, LyapunovConfig(), **REFERENCE)
        assert a.exponent == b.exponent


class TestPipelineFailures:

    def test_horizon_leaves_no_candidates(self):
        with pytest.raises(InsufficientData):
            estimate_lyapunov(logistic_map(30), delay=1, dimension=2, horizon=29, window=10)

    def test_series_shorter_than_embedding(self):
        with pytest.raises(InsufficientData):
            estimate_lyapunov(logistic_map(3), delay=2, dimension=3, horizon=2, window=2)

    def test_fewer_than_two_candidates(self):
        np.random.seed(0)
        with pytest.raises(NoEligibleNeighbor):
            estimate_lyapunov(np.random.randn(12), delay=1, dimension=2, horizon=10, window=2)

    def test_exclusion_window_too_wide(self):
        with pytest.raises(NoEligibleNeighbor):
            estimate_lyapunov(logistic_map(100), horizon=10, window=5, min_separation=200)

    def test_constant_series(self):
        with pytest.raises(DegenerateSpectrum):
            estimate_lyapunov(np.full(200, 2.0), **REFERENCE)

    def test_window_larger_than_horizon(self):
        with pytest.raises(RegressionWindowTooSmall):
            estimate_lyapunov(logistic_map(500), horizon=5, window=10)

    def test_window_too_small(self):
        with pytest.raises(RegressionWindowTooSmall):
            estimate_lyapunov(logistic_map(500), horizon=25, window=1)

    def test_non_finite_input(self):
        x = logistic_map(500)
        x[10] = np.nan
        with pytest.raises(ValueError):
            estimate_lyapunov(x, **REFERENCE)

    def test_unknown_override(self):
        with pytest.raises(ValueError):
            estimate_lyapunov(logistic_map(500), embedding=3)

    def test_taxonomy_shares_base(self):
        for err in (InsufficientData, DegenerateSpectrum, NoEligibleNeighbor,
                    RegressionWindowTooSmall):
            assert issubclass(err, RosensteinError)
            assert issubclass(err, ValueError)


class TestMinSeparationOverride:

    def test_explicit_exclusion_radius(self):
        estimate = estimate_lyapunov(logistic_map(500), min_separation=10, **REFERENCE)
        assert estimate.mean_period == 10.0
        assert np.all(np.abs(estimate.neighbors.neighbor - estimate.neighbors.base) > 10)

    def test_spectrum_not_consulted(self):
        def broken(x):
            raise AssertionError("periodogram should not be called")

        estimate_lyapunov(logistic_map(500), periodogram_fn=broken,
                          min_separation=4, **REFERENCE)
