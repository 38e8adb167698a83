"""Exceptions raised by the Kalman filter engine."""
import numpy as np


class KalmanFilterError(Exception):
    """Base class for filter failures. `step` is the failing column of Y, if any."""

    def __init__(self, message, step=None):
        if step is not None:
            message = f"time step {step}: {message}"
        super().__init__(message)
        self.step = step


class DimensionMismatchError(KalmanFilterError, ValueError):
    """Raised when M, mu0, P0, Q, R and Y disagree on the entity count."""
    pass


class InvalidCovarianceError(KalmanFilterError, ValueError):
    """Raised when a covariance input is non-finite, asymmetric or not PSD."""
    pass


class SingularInnovationCovarianceError(KalmanFilterError, np.linalg.LinAlgError):
    """Raised when the innovation covariance S cannot be solved at a step."""
    pass
