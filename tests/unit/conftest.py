"""Shared pytest fixtures for unit tests."""

import numpy as np
import pytest


@pytest.fixture
def rng():
    """Seeded random number generator."""
    return np.random.default_rng(42)


@pytest.fixture
def entity_system():
    """Three coupled entities (M, mu0, P0, Q, R)."""
    n = 3
    M = np.array([[0.9, 0.1, 0.0],
                  [0.05, 0.9, 0.05],
                  [0.0, 0.1, 0.9]])
    Q = 0.05 * np.eye(n)
    R = np.diag([0.1, 0.2, 0.3])
    mu0 = np.zeros(n)
    P0 = np.eye(n)
    return M, mu0, P0, Q, R


@pytest.fixture
def two_entity_scenario():
    """The 2-entity, 3-step example: identity dynamics, one hole per entity."""
    M = np.eye(2)
    Q = 0.01 * np.eye(2)
    R = 0.1 * np.eye(2)
    mu0 = np.zeros(2)
    P0 = np.eye(2)
    Y = [[1.0, None, 2.0],
         [1.0, 1.0, None]]
    return M, mu0, P0, Q, R, Y


def check_psd(matrix, tol=1e-10):
    """Check if matrix is positive semi-definite."""
    return np.all(np.linalg.eigvalsh(matrix) >= -tol)


def random_spd(rng, n, scale=1.0, jitter=0.1):
    """Random well-conditioned symmetric positive definite matrix."""
    A = rng.standard_normal((n, n))
    S = A @ A.T / n
    return scale * (0.5 * (S + S.T) + jitter * np.eye(n))
