"""Kalman Filter (KF) for entity-state models with missing observations."""
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from scipy import linalg as sla

from ..observations import as_observation_column, as_observation_matrix, observed_indices
from .common import check_covariance, joseph_update, standard_update, symmetrize
from .errors import DimensionMismatchError, SingularInnovationCovarianceError


def _solve_lu(S, B):
    """Solve S @ X = B using LU factorization (np.linalg.solve)."""
    return np.linalg.solve(S, B)


def _solve_cholesky(S, B):
    """Solve S @ X = B using Cholesky factorization (assumes S is SPD)."""
    L = sla.cholesky(S, lower=True)
    return sla.cho_solve((L, True), B)


def _solve_inv(S, B):
    """Solve S @ X = B using explicit matrix inversion (least stable)."""
    return np.linalg.inv(S) @ B


SOLVERS = {
    'cholesky': _solve_cholesky,
    'lu': _solve_lu,
    'inv': _solve_inv,
}


def _readonly(a, dtype=float):
    a = np.array(a, dtype=dtype)
    a.flags.writeable = False
    return a


@dataclass(frozen=True, eq=False)
class FilterStep:
    """Forecast and analysis of a single time step."""
    t: int
    observed: np.ndarray    # [n_obs] indices of observed entities
    mu_f: np.ndarray        # [n]
    P_f: np.ndarray         # [n, n]
    mu_a: np.ndarray        # [n]
    P_a: np.ndarray         # [n, n]
    innovation: np.ndarray  # [n_obs]
    S: np.ndarray           # [n_obs, n_obs]
    K: np.ndarray           # [n, n_obs]


@dataclass(frozen=True, eq=False)
class KalmanFilterResult:
    """
    Output of a full filter run.

    `steps` holds one record per column of Y; `mu_f_next` / `P_f_next` is the
    forecast for the step after the last observation. The stacked properties
    give T + 1 forecasts and T analyses.
    """
    steps: Tuple[FilterStep, ...]
    mu_f_next: np.ndarray
    P_f_next: np.ndarray
    n_entities: int

    @property
    def n_steps(self) -> int:
        return len(self.steps)

    @property
    def mu_f(self) -> np.ndarray:
        """Forecast means [T + 1, n]."""
        return _readonly([s.mu_f for s in self.steps] + [self.mu_f_next])

    @property
    def P_f(self) -> np.ndarray:
        """Forecast covariances [T + 1, n, n]."""
        return _readonly([s.P_f for s in self.steps] + [self.P_f_next])

    @property
    def mu_a(self) -> np.ndarray:
        """Analysis means [T, n]."""
        n = self.n_entities
        return _readonly(np.reshape([s.mu_a for s in self.steps], (self.n_steps, n)))

    @property
    def P_a(self) -> np.ndarray:
        """Analysis covariances [T, n, n]."""
        n = self.n_entities
        return _readonly(np.reshape([s.P_a for s in self.steps], (self.n_steps, n, n)))

    @property
    def cond_nums(self) -> np.ndarray:
        """Condition numbers of the analysis covariances [T]."""
        return _readonly([np.linalg.cond(s.P_a) for s in self.steps])


def kf_predict(mu_a, P_a, M, Q):
    """
    KF forecast step.

    Returns
    -------
    mu_f : ndarray [n]
        M @ mu_a
    P_f : ndarray [n, n]
        Q + M @ P_a @ M'
    """
    return M @ mu_a, symmetrize(Q + M @ P_a @ M.T)


def kf_update(mu_f, P_f, y, R, joseph=True, solver='cholesky', t=None):
    """
    KF analysis step using only the observed entries of y.

    Parameters
    ----------
    mu_f : ndarray [n]
        Forecast mean
    P_f : ndarray [n, n]
        Forecast covariance
    y : MaskedArray or ndarray [n]
        Observation column; masked, None or NaN entries are missing
    R : ndarray [n, n]
        Full observation error covariance
    joseph : bool
        Use Joseph stabilized covariance update (default: True)
    solver : str
        Solver for Kalman gain: 'lu', 'cholesky', or 'inv' (default: 'cholesky')
    t : int, optional
        Time index reported in errors

    Returns
    -------
    FilterStep
        Record holding forecast, analysis, innovation, S and K.

    Raises
    ------
    DimensionMismatchError
        If y does not have one entry per entity.
    ValueError
        If an observed (unmasked) entry of y is not finite.
    SingularInnovationCovarianceError
        If S = H P_f H' + R_obs cannot be solved.
    """
    try:
        solve_fn = SOLVERS[solver]
    except KeyError:
        raise ValueError(f"solver must be one of {sorted(SOLVERS)}, got '{solver}'") from None

    n = mu_f.shape[0]
    y = as_observation_column(y, n_entities=n)
    obs = observed_indices(y)
    H = np.eye(n)[obs]
    R_obs = R[np.ix_(obs, obs)]

    if obs.size == 0:
        # No information: the posterior is the prior
        mu_a, P_a = mu_f, P_f
        innovation, S, K = np.zeros(0), np.zeros((0, 0)), np.zeros((n, 0))
    else:
        S = H @ P_f @ H.T + R_obs
        if not np.all(np.isfinite(S)) or np.linalg.cond(S) > 1.0 / np.finfo(float).eps:
            raise SingularInnovationCovarianceError(
                f"innovation covariance is singular for entities {obs.tolist()}", step=t)
        try:
            K = solve_fn(S.T, H @ P_f.T).T
        except np.linalg.LinAlgError as e:
            raise SingularInnovationCovarianceError(
                f"cannot solve innovation covariance for entities {obs.tolist()}: {e}", step=t) from e

        innovation = np.ma.getdata(y)[obs].astype(float) - H @ mu_f
        mu_a = mu_f + K @ innovation
        P_a = joseph_update(P_f, K, H, R_obs) if joseph else standard_update(P_f, K, H)
        P_a = symmetrize(P_a)

    return FilterStep(
        t=t, observed=_readonly(obs, dtype=int), mu_f=_readonly(mu_f), P_f=_readonly(P_f),
        mu_a=_readonly(mu_a), P_a=_readonly(P_a),
        innovation=_readonly(innovation), S=_readonly(S), K=_readonly(K),
    )


def _check_dimensions(M, mu0, P0, Q, R, Y):
    if mu0.ndim != 1:
        raise DimensionMismatchError(f"mu0 must be 1-D, got shape {mu0.shape}")
    n = mu0.shape[0]
    for name, A in (('M', M), ('P0', P0), ('Q', Q), ('R', R)):
        if A.shape != (n, n):
            raise DimensionMismatchError(f"{name} has shape {A.shape}, expected ({n}, {n}) from mu0")
    return as_observation_matrix(Y, n_entities=n)


def kalman_filter(M, mu0, P0, Q, R, Y, joseph=True, solver='cholesky', validate=True, tol=1e-8):
    """
    Kalman Filter over a batch of partially missing observations.

    Parameters
    ----------
    M : ndarray [n, n]
        Transition (process) matrix
    mu0 : ndarray [n]
        Initial state mean (forecast before the first observation)
    P0 : ndarray [n, n]
        Initial state covariance
    Q : ndarray [n, n]
        Process error covariance
    R : ndarray [n, n]
        Observation error covariance
    Y : MaskedArray [n, T]
        Observations, rows = entities, columns = time. Masked, None or NaN
        entries are missing.
    joseph : bool
        Use Joseph stabilized covariance update (default: True)
    solver : str
        Solver for Kalman gain: 'lu', 'cholesky', or 'inv' (default: 'cholesky')
    validate : bool
        Check P0, Q, R for symmetry and positive semi-definiteness. P0 is
        symmetrized either way.
    tol : float
        Relative tolerance used by the covariance checks

    Returns
    -------
    KalmanFilterResult
        T + 1 forecasts and T analyses (see `mu_f`, `P_f`, `mu_a`, `P_a`).

    Raises
    ------
    DimensionMismatchError
        If the inputs disagree on the number of entities.
    InvalidCovarianceError
        If validate is set and P0, Q or R is not a valid covariance.
    SingularInnovationCovarianceError
        If the innovation covariance is singular at some step.
    """
    if solver not in SOLVERS:
        raise ValueError(f"solver must be one of {sorted(SOLVERS)}, got '{solver}'")
    M, mu0, P0, Q, R = (np.asarray(a, dtype=float) for a in (M, mu0, P0, Q, R))
    Y = _check_dimensions(M, mu0, P0, Q, R, Y)
    if validate:
        for name, A in (('P0', P0), ('Q', Q), ('R', R)):
            check_covariance(A, name, tol=tol)

    n, T = Y.shape
    mu_f, P_f = mu0, symmetrize(P0)
    steps = []

    for t in range(T):
        step = kf_update(mu_f, P_f, Y[:, t], R, joseph=joseph, solver=solver, t=t)
        steps.append(step)
        mu_f, P_f = kf_predict(step.mu_a, step.P_a, M, Q)

    return KalmanFilterResult(
        steps=tuple(steps), mu_f_next=_readonly(mu_f), P_f_next=_readonly(P_f), n_entities=n,
    )
