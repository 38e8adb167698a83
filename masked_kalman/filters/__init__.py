"""Filtering algorithm implementations."""
from .kf import kalman_filter, kf_predict, kf_update, FilterStep, KalmanFilterResult
from .common import joseph_update, standard_update, symmetrize, check_covariance
from .errors import (
    KalmanFilterError,
    DimensionMismatchError,
    InvalidCovarianceError,
    SingularInnovationCovarianceError,
)

__all__ = [
    # Main filter
    'kalman_filter',
    'KalmanFilterResult',
    'FilterStep',
    # KF components
    'kf_predict',
    'kf_update',
    # Utilities
    'joseph_update',
    'standard_update',
    'symmetrize',
    'check_covariance',
    # Errors
    'KalmanFilterError',
    'DimensionMismatchError',
    'InvalidCovarianceError',
    'SingularInnovationCovarianceError',
]
