"""
Estimator Tests - h_bar arithmetic

Checks the bias-corrected estimator on hand-written trajectories and against
the textbook formula on random trajectories.

Run with: pytest tests/test_estimator.py -v
"""

import math

import numpy as np
import pytest

from debiasedhmc.coupling import h_bar, coupled_chains, continue_coupled_chains

from .conftest import make_run, reference_h_bar, sequence_rinit, constant_kernels


def square(x):
    return x ** 2


def mean_and_square(x):
    return np.concatenate([x, x ** 2])


# ============================================================================
# HAND-COMPUTED CASES
# ============================================================================

class TestPlainAverage:
    """When the chains met by k + 1 the estimator is the MCMC average over [k, K]."""

    def test_reduces_to_average(self):
        states = [2.0, -1.0, 4.0, 7.0]
        run = make_run(states, states[1:], meeting_time=1)
        np.testing.assert_allclose(h_bar(run, k=0, K=3), [np.mean(states)])

    def test_reduces_to_average_after_burn_in(self):
        samples1 = [9.0, 3.0, 1.0, 2.0, 6.0]
        samples2 = [5.0, 1.0, 2.0, 6.0]
        run = make_run(samples1, samples2, meeting_time=2)
        np.testing.assert_allclose(h_bar(run, k=1, K=4), [np.mean(samples1[1:])])
        np.testing.assert_allclose(h_bar(run, k=2, K=3), [1.5])

    def test_test_function_applied(self):
        states = [1.0, -2.0, 3.0]
        run = make_run(states, states[1:], meeting_time=1)
        np.testing.assert_allclose(h_bar(run, h=square, k=0, K=2), [(1 + 4 + 9) / 3])

    def test_vector_test_function(self):
        samples1 = [[1.0, 0.0], [2.0, 1.0], [3.0, 2.0]]
        run = make_run(samples1, samples1[1:], meeting_time=1)
        result = h_bar(run, h=mean_and_square, k=0, K=2)
        assert result.shape == (4,)
        np.testing.assert_allclose(result, [2.0, 1.0, 14.0 / 3.0, 5.0 / 3.0])

    def test_scalar_test_function_gives_vector(self):
        run = make_run([1.0, 2.0], [2.0], meeting_time=1)
        result = h_bar(run, h=lambda x: float(np.sum(x)), k=0, K=1)
        assert result.shape == (1,)


class TestBiasCorrection:

    def test_single_difference(self):
        """
        X = 0, 1, 2, 2 ; Y = 5, 2, 2 ; tau = 2 (X_2 == Y_1).
        k=0, K=1: (X_0 + X_1 + 1*(X_1 - Y_0) + 2*(X_2 - Y_1)) / 2 = (0 + 1 - 4 + 0) / 2
        """
        run = make_run([0.0, 1.0, 2.0, 2.0], [5.0, 2.0, 2.0], meeting_time=2)
        np.testing.assert_allclose(h_bar(run, k=0, K=1), [-1.5])

    def test_weights_saturate_at_horizon(self):
        """
        Chains never meet; differences X_(t+1) - Y_t are all 1.
        k=0, K=1, iteration=4: weights min(t+1, 2) for t=0..3 -> 1 + 2 + 2 + 2 = 7.
        """
        samples1 = np.arange(5, dtype=float)
        samples2 = samples1[1:] - 1.0
        run = make_run(samples1, samples2, meeting_time=math.inf, finished=False)
        np.testing.assert_allclose(h_bar(run, k=0, K=1), [(0 + 1 + 7) / 2])

    def test_weights_ramp_with_burn_in(self):
        """k=1, K=3, tau=4: weights 1, 2 for t=1, 2 and X_4 == Y_3."""
        samples1 = [0.0, 1.0, 3.0, 6.0, 10.0]
        samples2 = [0.0, 1.0, 4.0, 10.0]
        run = make_run(samples1, samples2, meeting_time=4)
        # t=1: 1*(3-1)=2 ; t=2: 2*(6-4)=4 ; t=3: 3*(10-10)=0
        expected = (1 + 3 + 6 + 2 + 4) / 3
        np.testing.assert_allclose(h_bar(run, k=1, K=3), [expected])

    def test_degenerate_coupling_has_no_correction(self, rng_key):
        """A coupled kernel that always meets leaves only the plain average for k >= 1."""
        run = coupled_chains(constant_kernels(0.0), sequence_rinit([5.0, -3.0]), rng_key, min_horizon=4)
        assert run.meeting_time == 2
        for k in range(1, 5):
            np.testing.assert_array_equal(h_bar(run, k=k, K=4), [0.0])

    def test_continuation_does_not_change_estimate_window(self, rng_key):
        run = coupled_chains(constant_kernels(0.0), sequence_rinit([5.0, -3.0]), rng_key, min_horizon=3)
        extended = continue_coupled_chains(run, constant_kernels(0.0).single_kernel, rng_key, K=10)
        np.testing.assert_allclose(h_bar(run, k=0, K=3), h_bar(extended, k=0, K=3))


class TestPreconditions:

    @pytest.fixture
    def run(self):
        return make_run([0.0, 1.0, 2.0], [1.0, 2.0], meeting_time=1)

    def test_k_beyond_horizon(self, run):
        with pytest.raises(ValueError, match="k"):
            h_bar(run, k=3, K=3)

    def test_K_beyond_horizon(self, run):
        with pytest.raises(ValueError, match="continue_coupled_chains"):
            h_bar(run, k=0, K=3)

    def test_k_greater_than_K(self, run):
        with pytest.raises(ValueError, match="must be <= K"):
            h_bar(run, k=2, K=1)

    def test_negative_k(self, run):
        with pytest.raises(ValueError, match=">= 0"):
            h_bar(run, k=-1, K=1)

    def test_K_equal_to_horizon_allowed(self, run):
        np.testing.assert_allclose(h_bar(run, k=0, K=2), [1.0])


# ============================================================================
# REFERENCE COMPARISON
# ============================================================================

def _random_coupled_run(seed, n_iter, dimension, meeting_time):
    """Random trajectories that respect the meeting invariant."""
    rng = np.random.default_rng(seed)
    samples1 = rng.normal(size=(n_iter + 1, dimension))
    samples2 = rng.normal(size=(n_iter, dimension))
    if not math.isinf(meeting_time):
        for t in range(meeting_time - 1, n_iter):
            samples2[t] = samples1[t + 1]
    return make_run(samples1, samples2, meeting_time, finished=not math.isinf(meeting_time))


class TestAgainstReference:

    @pytest.mark.parametrize("seed", range(5))
    @pytest.mark.parametrize("meeting_time", [2, 5, 12, math.inf])
    @pytest.mark.parametrize("k,K", [(0, 1), (0, 12), (3, 7), (5, 5), (10, 15)])
    def test_matches_reference(self, seed, meeting_time, k, K):
        run = _random_coupled_run(seed, 15, 2, meeting_time)
        expected = reference_h_bar(run.samples1, run.samples2, meeting_time, mean_and_square, k, K)
        np.testing.assert_allclose(h_bar(run, h=mean_and_square, k=k, K=K), expected, rtol=1e-10, atol=1e-12)

