"""State Space Model implementations."""
from .linear_gaussian import linear_gaussian_ssm, mask_observations

__all__ = [
    'linear_gaussian_ssm',
    'mask_observations',
]
