"""
Metrics for evaluating filter performance.
"""
import numpy as np


def compute_mse(estimated, true):
    """
    Compute Mean Squared Error over entries present in both arguments.

    Parameters
    ----------
    estimated : ndarray or MaskedArray
        Estimated values
    true : ndarray or MaskedArray
        True values (masked entries are ignored)

    Returns
    -------
    float
        Mean squared error (NaN if nothing is observed)
    """
    err = np.ma.asarray(estimated, dtype=float) - np.ma.asarray(true, dtype=float)
    if err.count() == 0:
        return np.nan
    return float(np.ma.mean(err**2))


def compute_rmse(estimated, true):
    """Root of `compute_mse`; masked entries of either argument are skipped."""
    return np.sqrt(compute_mse(estimated, true))


def compute_nees(mu, P, xs, regularize=1e-8):
    """
    Normalized Estimation Error Squared per time step.

    NEES_t = e_t' P_t^{-1} e_t with e_t = x_t - mu_t. Against the analyses of
    a consistent filter its mean is close to the number of entities.

    Parameters
    ----------
    mu : ndarray [T, n]
        Means, time-major as `KalmanFilterResult.mu_a`
    P : ndarray [T, n, n]
        Matching covariances
    xs : ndarray [T, n]
        True entity states; simulator output [n, T] must be transposed
    regularize : float
        Added to the diagonal of every P_t before solving

    Returns
    -------
    ndarray [T]
    """
    errors = np.asarray(xs, dtype=float) - np.asarray(mu, dtype=float)
    T, n = errors.shape
    if T == 0:
        return np.zeros(0)
    P_reg = np.asarray(P, dtype=float) + regularize * np.eye(n)

    try:
        weighted = np.linalg.solve(P_reg, errors[..., None])[..., 0]
    except np.linalg.LinAlgError:
        # Some P_t is singular: least squares one step at a time
        weighted = np.array([np.linalg.lstsq(P_t, e, rcond=None)[0] for P_t, e in zip(P_reg, errors)])
    return np.einsum('ti,ti->t', errors, weighted)


def compute_nis(result):
    """
    Compute Normalized Innovation Squared (NIS) from a filter run.

    NIS = v' S^{-1} v, with v and S restricted to the observed entities,
    so it follows chi-squared(n_obs) for a consistent filter.

    Parameters
    ----------
    result : KalmanFilterResult

    Returns
    -------
    ndarray [T]
        NIS values; NaN where nothing was observed
    """
    nis = np.full(result.n_steps, np.nan)
    for i, step in enumerate(result.steps):
        if step.observed.size:
            v = step.innovation
            nis[i] = v @ np.linalg.solve(step.S, v)
    return nis


def stability_summary(cond_nums, P=None):
    """
    Summarize the numerical health of a run.

    Parameters
    ----------
    cond_nums : ndarray [T]
        Condition numbers, as `KalmanFilterResult.cond_nums`
    P : ndarray [T, n, n], optional
        Covariances to check for symmetry and definiteness

    Returns
    -------
    dict
        'mean_cond' and 'max_cond'; with P also 'max_symmetry_error' and
        'min_eigenvalue'. NaN for a run with no steps.
    """
    cond_nums = np.asarray(cond_nums, dtype=float)
    empty = cond_nums.size == 0
    summary = {
        'mean_cond': np.nan if empty else float(np.mean(cond_nums)),
        'max_cond': np.nan if empty else float(np.max(cond_nums)),
    }
    if P is not None:
        P = np.asarray(P, dtype=float)
        empty = P.shape[0] == 0
        summary['max_symmetry_error'] = np.nan if empty else float(np.max(compute_symmetry_error(P)))
        summary['min_eigenvalue'] = np.nan if empty else float(np.min(compute_min_eigenvalues(P)))
    return summary


def compute_symmetry_error(P):
    """
    Compute symmetry error ||P - P'||_F / ||P||_F over all time steps.

    Parameters
    ----------
    P : ndarray [T, n, n]
        Covariance matrices

    Returns
    -------
    ndarray [T]
        Relative symmetry error at each time step
    """
    norm_P = np.linalg.norm(P, 'fro', axis=(1, 2))
    asym = np.linalg.norm(P - np.swapaxes(P, 1, 2), 'fro', axis=(1, 2))
    return np.where(norm_P > 0, asym / np.where(norm_P > 0, norm_P, 1.0), 0.0)


def compute_min_eigenvalues(P):
    """
    Compute minimum eigenvalue of P at each time step.

    Negative values indicate loss of positive semi-definiteness.
    """
    return np.array([np.linalg.eigvalsh(P_t).min() for P_t in P])


def confidence_bands(mu, P, z=1.96):
    """
    Per-entity confidence bands mu -/+ z * sqrt(diag(P)).

    Parameters
    ----------
    mu : ndarray [T, n]
        Means
    P : ndarray [T, n, n]
        Covariances
    z : float
        Width in standard deviations (1.96 gives 95% bands)

    Returns
    -------
    lower, upper : ndarray [T, n]
    """
    std = np.sqrt(np.clip(np.diagonal(P, axis1=1, axis2=2), 0.0, None))
    return mu - z * std, mu + z * std


def band_coverage(xs, lower, upper):
    """Fraction of (unmasked) true values that fall inside [lower, upper]."""
    xs = np.ma.asarray(xs, dtype=float)
    inside = (xs >= lower) & (xs <= upper)
    if inside.count() == 0:
        return np.nan
    return float(inside.mean())
