"""
Data Package

Data frame transformations behind the analyses:

- aggregation: weighted means and quantiles, optionally grouped
- grid: evaluation grids, binning, grid expansion and centering
"""

from .aggregation import (
    weighted_mean,
    weighted_quantile,
    grouped_stats,
    grouped_weighted_mean,
    grouped_counts
)
from .grid import (
    fix_grid,
    make_grid,
    auto_cut,
    expand_grid,
    center_profiles,
    select_rows,
    Cuts
)

__all__ = [
    # Aggregation
    'weighted_mean',
    'weighted_quantile',
    'grouped_stats',
    'grouped_weighted_mean',
    'grouped_counts',

    # Grids
    'fix_grid',
    'make_grid',
    'auto_cut',
    'expand_grid',
    'center_profiles',
    'select_rows',
    'Cuts'
]
