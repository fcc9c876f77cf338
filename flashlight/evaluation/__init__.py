"""
Evaluation Package

This package provides model performance and permutation importance,
together with the built-in metrics.
"""

from .metrics import (
    mse,
    rmse,
    mae,
    mape,
    r_squared,
    logloss,
    accuracy,
    evaluate_metric,
    evaluate_metrics,
    metric_direction,
    resolve_directions
)
from .performance import light_performance
from .importance import light_importance, most_important

__all__ = [
    # Analyses
    'light_performance',
    'light_importance',
    'most_important',

    # Metrics
    'mse',
    'rmse',
    'mae',
    'mape',
    'r_squared',
    'logloss',
    'accuracy',
    'evaluate_metric',
    'evaluate_metrics',
    'metric_direction',
    'resolve_directions'
]
