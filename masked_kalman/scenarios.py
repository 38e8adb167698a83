"""
Independent filter runs over parameter combinations.

Runs share no mutable state, so they are dispatched to a thread pool;
numpy releases the GIL inside its linear algebra kernels.
"""
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from itertools import product

import numpy as np

from .filters.kf import kalman_filter


@dataclass(frozen=True, eq=False)
class Scenario:
    """One fixed set of filter parameters."""
    name: str
    M: np.ndarray
    Q: np.ndarray
    R: np.ndarray
    mu0: np.ndarray
    P0: np.ndarray

    def run(self, Y, **filter_kwargs):
        """Run the filter with this scenario's parameters."""
        return kalman_filter(self.M, self.mu0, self.P0, self.Q, self.R, Y, **filter_kwargs)


def scenario_grid(M, mu0, P0, process_errors, observation_errors):
    """
    Cartesian product of process and observation error settings.

    Parameters
    ----------
    M : ndarray [n, n]
        Transition matrix shared by all scenarios
    mu0 : ndarray [n]
        Initial mean
    P0 : ndarray [n, n]
        Initial covariance
    process_errors : dict
        Name -> Q
    observation_errors : dict
        Name -> R

    Returns
    -------
    list of Scenario
        Named '<q name>/<r name>', ordered by Q then R.
    """
    return [
        Scenario(name=f"{q_name}/{r_name}", M=M, Q=Q, R=R, mu0=mu0, P0=P0)
        for (q_name, Q), (r_name, R) in product(process_errors.items(), observation_errors.items())
    ]


def run_scenarios(scenarios, Y, max_workers=None, **filter_kwargs):
    """
    Run every scenario on the same observations.

    Parameters
    ----------
    scenarios : list of Scenario
    Y : MaskedArray [n, T]
        Observations shared by all runs
    max_workers : int, optional
        Thread pool size; 1 runs the scenarios one after another.
    **filter_kwargs
        Passed to kalman_filter (joseph, solver, ...)

    Returns
    -------
    dict
        Scenario name -> KalmanFilterResult, in scenario order.

    Raises
    ------
    ValueError
        If two scenarios share a name.
    KalmanFilterError
        The first failure among the runs, re-raised.
    """
    names = [s.name for s in scenarios]
    if len(set(names)) != len(names):
        raise ValueError(f"scenario names must be unique, got {names}")

    if max_workers == 1:
        return {s.name: s.run(Y, **filter_kwargs) for s in scenarios}

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [(s.name, pool.submit(s.run, Y, **filter_kwargs)) for s in scenarios]
        return {name: future.result() for name, future in futures}
