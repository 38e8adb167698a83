"""Linear Gaussian entity-state model with missing observations."""
import numpy as np


def linear_gaussian_ssm(M, Q, R, mu0, P0, T, rng):
    """
    Simulate entity states and fully observed data.

    Parameters
    ----------
    M : ndarray [n, n]
        Transition matrix
    Q : ndarray [n, n]
        Process error covariance
    R : ndarray [n, n]
        Observation error covariance
    mu0 : ndarray [n]
        Mean of the state at the first time step
    P0 : ndarray [n, n]
        Covariance of the state at the first time step
    T : int
        Number of time steps
    rng : np.random.Generator

    Returns
    -------
    xs : ndarray [n, T]
        Latent states, one column per time step
    ys : ndarray [n, T]
        Observations
    """
    n = len(mu0)
    xs = np.zeros((n, T))
    ys = np.zeros((n, T))

    x = rng.multivariate_normal(mu0, P0)
    for t in range(T):
        if t > 0:
            x = M @ x + rng.multivariate_normal(np.zeros(n), Q)
        xs[:, t] = x
        ys[:, t] = x + rng.multivariate_normal(np.zeros(n), R)

    return xs, ys


def mask_observations(ys, rng, missing_prob=0.0, blackouts=()):
    """
    Hide entries of a fully observed matrix.

    Parameters
    ----------
    ys : ndarray [n, T]
        Observations
    rng : np.random.Generator
    missing_prob : float
        Probability that any single entry is missing
    blackouts : iterable of (start, stop)
        Column ranges in which every entity is missing

    Returns
    -------
    MaskedArray [n, T]
        Observation matrix with missing entries masked
    """
    if not 0.0 <= missing_prob <= 1.0:
        raise ValueError(f"missing_prob must be in [0, 1], got {missing_prob}")

    ys = np.asarray(ys, dtype=float)
    mask = rng.random(ys.shape) < missing_prob
    for start, stop in blackouts:
        mask[:, start:stop] = True

    return np.ma.MaskedArray(np.where(mask, 0.0, ys), mask=mask)
