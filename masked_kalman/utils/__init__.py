"""
Utility Functions.

This module contains utility functions for:
- Metrics computation
- Experiment logging
- Text tables
"""
from .metrics import (
    compute_mse,
    compute_rmse,
    compute_nees,
    compute_nis,
    compute_symmetry_error,
    compute_min_eigenvalues,
    stability_summary,
    confidence_bands,
    band_coverage,
)
from .experiment_logger import ExperimentLogger, result_arrays
from .tables import format_metrics_table, save_metrics_table, format_runtime

__all__ = [
    # metrics
    'compute_mse',
    'compute_rmse',
    'compute_nees',
    'compute_nis',
    'compute_symmetry_error',
    'compute_min_eigenvalues',
    'stability_summary',
    'confidence_bands',
    'band_coverage',
    # experiment logger
    'ExperimentLogger',
    'result_arrays',
    # tables
    'format_metrics_table',
    'save_metrics_table',
    'format_runtime',
]
