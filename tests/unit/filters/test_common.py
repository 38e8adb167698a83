"""Unit tests for shared covariance utilities."""

import numpy as np
import pytest

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', '..', '..'))

from masked_kalman.filters.common import joseph_update, standard_update, symmetrize, check_covariance
from masked_kalman.filters.errors import InvalidCovarianceError
from tests.unit.conftest import check_psd, random_spd


class TestCovarianceUpdates:
    """Joseph and standard updates."""

    def test_agree_for_optimal_gain(self, rng):
        """Both forms give the same covariance for the optimal gain."""
        P = random_spd(rng, 4)
        H = np.eye(4)[[0, 2, 3]]
        R = 0.3 * np.eye(3)
        K = P @ H.T @ np.linalg.inv(H @ P @ H.T + R)

        np.testing.assert_allclose(joseph_update(P, K, H, R), standard_update(P, K, H), atol=1e-12)

    def test_joseph_psd_for_suboptimal_gain(self, rng):
        """Joseph form stays PSD for any gain."""
        P = random_spd(rng, 3)
        H = np.eye(3)
        R = 0.1 * np.eye(3)
        K = 1.7 * np.eye(3)

        assert check_psd(joseph_update(P, K, H, R))

    def test_standard_is_matrix_product(self):
        """The standard update is (I - KH) @ P, not an element-wise product."""
        P = np.array([[2.0, 1.0], [1.0, 2.0]])
        H = np.eye(2)
        K = np.array([[0.5, 0.1], [0.2, 0.5]])

        expected = (np.eye(2) - K @ H) @ P

        np.testing.assert_allclose(standard_update(P, K, H), expected)
        assert not np.allclose(standard_update(P, K, H), (np.eye(2) - K @ H) * P)


class TestSymmetrize:
    """Tests for symmetrize."""

    def test_exactly_symmetric(self, rng):
        """Output equals its transpose bit for bit."""
        A = rng.standard_normal((5, 5))

        S = symmetrize(A)

        np.testing.assert_array_equal(S, S.T)


class TestCheckCovariance:
    """Tests for covariance validation."""

    def test_accepts_psd(self, rng):
        """Valid covariances (including singular PSD) pass."""
        check_covariance(random_spd(rng, 3), 'P0')
        check_covariance(np.zeros((2, 2)), 'Q')
        check_covariance(np.zeros((0, 0)), 'R')

    def test_relative_tolerance(self):
        """Asymmetry at round-off level relative to the entries is accepted."""
        P = 1e6 * np.array([[2.0, 1.0], [1.0 + 1e-12, 2.0]])

        check_covariance(P, 'P0')

    @pytest.mark.parametrize("P, message", [
        (np.array([[1.0, 0.5], [0.0, 1.0]]), "not symmetric"),
        (np.array([[1.0, 2.0], [2.0, 1.0]]), "not positive semi-definite"),
        (np.array([[np.inf, 0.0], [0.0, 1.0]]), "non-finite"),
    ])
    def test_rejects_invalid(self, P, message):
        """Asymmetric, indefinite or non-finite matrices fail."""
        with pytest.raises(InvalidCovarianceError, match=message):
            check_covariance(P, 'Q')


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
