"""
masked_kalman: linear Kalman filtering of entity time series with missing data

This package contains implementations of:
- The forecast/analysis Kalman recursion with per-step observation masks
- Observation matrices with explicit missing values
- Linear Gaussian simulation and scenario runs
- Metrics, tables and experiment logging
"""
from .filters import (
    kalman_filter,
    KalmanFilterResult,
    FilterStep,
    KalmanFilterError,
    DimensionMismatchError,
    InvalidCovarianceError,
    SingularInnovationCovarianceError,
)
from .observations import (
    as_observation_matrix, as_observation_column, observed_indices, from_series, missing_fraction,
)
from .scenarios import Scenario, scenario_grid, run_scenarios

__version__ = '0.1.0'

__all__ = [
    'kalman_filter',
    'KalmanFilterResult',
    'FilterStep',
    'KalmanFilterError',
    'DimensionMismatchError',
    'InvalidCovarianceError',
    'SingularInnovationCovarianceError',
    'as_observation_matrix',
    'as_observation_column',
    'observed_indices',
    'from_series',
    'missing_fraction',
    'Scenario',
    'scenario_grid',
    'run_scenarios',
]
