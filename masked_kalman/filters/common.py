"""Covariance utilities shared by the filter steps."""
import numpy as np

from .errors import InvalidCovarianceError


def joseph_update(P_pred, K, H, R):
    """
    Compute Joseph-stabilized covariance update.

    Parameters
    ----------
    P_pred : ndarray [n, n]
        Forecast covariance
    K : ndarray [n, n_obs]
        Kalman gain
    H : ndarray [n_obs, n]
        Observation operator (rows of the identity for observed entities)
    R : ndarray [n_obs, n_obs]
        Observation error covariance restricted to observed entities

    Returns
    -------
    ndarray [n, n]
        Analysis covariance
    """
    IKH = np.eye(P_pred.shape[0]) - K @ H
    return IKH @ P_pred @ IKH.T + K @ R @ K.T


def standard_update(P_pred, K, H):
    """
    Compute standard covariance update: P = (I - KH) P_pred.

    The product is a true matrix product, never element-wise.

    Parameters
    ----------
    P_pred : ndarray [n, n]
        Forecast covariance
    K : ndarray [n, n_obs]
        Kalman gain
    H : ndarray [n_obs, n]
        Observation operator

    Returns
    -------
    ndarray [n, n]
        Analysis covariance
    """
    return (np.eye(P_pred.shape[0]) - K @ H) @ P_pred


def symmetrize(P):
    """Return (P + P') / 2 to remove floating-point asymmetry."""
    return 0.5 * (P + P.T)


def check_covariance(P, name, tol=1e-8):
    """
    Validate that P is a finite, symmetric, positive semi-definite matrix.

    Tolerances are relative to the largest absolute entry of P.

    Parameters
    ----------
    P : ndarray [n, n]
        Candidate covariance
    name : str
        Name used in the error message (e.g. 'Q')
    tol : float
        Relative tolerance for asymmetry and negative eigenvalues

    Raises
    ------
    InvalidCovarianceError
        If P is non-finite, asymmetric or has a negative eigenvalue.
    """
    if not np.all(np.isfinite(P)):
        raise InvalidCovarianceError(f"{name} contains non-finite entries")

    scale = max(np.max(np.abs(P)), 1.0) if P.size else 1.0
    asym = np.max(np.abs(P - P.T)) if P.size else 0.0
    if asym > tol * scale:
        raise InvalidCovarianceError(f"{name} is not symmetric (max |{name} - {name}'| = {asym:.3e})")

    if P.size:
        min_eig = np.linalg.eigvalsh(symmetrize(P)).min()
        if min_eig < -tol * scale:
            raise InvalidCovarianceError(f"{name} is not positive semi-definite (min eigenvalue {min_eig:.3e})")
