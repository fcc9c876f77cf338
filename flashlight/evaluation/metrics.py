"""
Metrics Module

Scoring functions with signature ``f(actual, predicted, w=None) -> float``
and the evaluation helpers used by performance and importance analyses.
The built-in metrics wrap scikit-learn with ``sample_weight`` support.
"""

import logging
import numpy as np
from typing import Callable, Dict, Mapping, Optional, Sequence, Union
from sklearn.metrics import (
    accuracy_score, log_loss, mean_absolute_error,
    mean_absolute_percentage_error, mean_squared_error, r2_score
)

from ..exceptions import AmbiguousMetricDirectionError, IncompatibleLengthError

# Set up logging
logger = logging.getLogger(__name__)

Metric = Callable[..., float]


def mse(actual, predicted, w=None) -> float:
    """Mean squared error."""
    return float(mean_squared_error(actual, predicted, sample_weight=w))


def rmse(actual, predicted, w=None) -> float:
    """Root mean squared error."""
    return float(np.sqrt(mse(actual, predicted, w)))


def mae(actual, predicted, w=None) -> float:
    """Mean absolute error."""
    return float(mean_absolute_error(actual, predicted, sample_weight=w))


def mape(actual, predicted, w=None) -> float:
    """Mean absolute percentage error (as a fraction)."""
    return float(mean_absolute_percentage_error(actual, predicted, sample_weight=w))


def r_squared(actual, predicted, w=None) -> float:
    """Coefficient of determination; NaN for a constant response."""
    actual = np.asarray(actual, dtype=float)
    if len(np.unique(actual)) < 2:
        return np.nan
    return float(r2_score(actual, predicted, sample_weight=w))


def logloss(actual, predicted, w=None) -> float:
    """Binary log loss of 0/1 responses and predicted probabilities."""
    return float(log_loss(actual, predicted, sample_weight=w, labels=[0, 1]))


def accuracy(actual, predicted, w=None) -> float:
    """Share of correct predictions; probabilities are cut at 0.5."""
    predicted = np.asarray(predicted, dtype=float)
    return float(accuracy_score(actual, (predicted >= 0.5).astype(int), sample_weight=w))


# Direction of the built-in metrics; caller-supplied metrics have none
_LOWER_IS_BETTER = {
    mse: True,
    rmse: True,
    mae: True,
    mape: True,
    logloss: True,
    r_squared: False,
    accuracy: False,
}

DEFAULT_METRICS = {'rmse': rmse}


def metric_direction(metric: Metric) -> Optional[bool]:
    """Known direction of a built-in metric, None for any other function."""
    return _LOWER_IS_BETTER.get(metric)


def resolve_directions(
    metrics: Mapping[str, Metric],
    lower_is_better: Union[None, bool, Mapping[str, bool]] = None
) -> Dict[str, bool]:
    """
    Direction of improvement per metric name.

    Parameters:
    -----------
    metrics : Mapping[str, Metric]
        Metrics by name
    lower_is_better : None, bool or Mapping[str, bool]
        None infers the direction of built-in metrics; a bool applies to all
        metrics; a mapping gives it per metric name (missing names are
        inferred)

    Returns:
    --------
    Dict[str, bool]
        Direction per metric name

    Raises:
    -------
    AmbiguousMetricDirectionError
        If the direction of a caller-supplied metric is not given
    """
    if isinstance(lower_is_better, bool):
        return {name: lower_is_better for name in metrics}

    explicit = dict(lower_is_better or {})
    directions = {}
    for name, func in metrics.items():
        direction = explicit.get(name, metric_direction(func))
        if direction is None:
            logger.error(f"Direction of metric '{name}' is unknown")
            raise AmbiguousMetricDirectionError(
                f"Cannot infer whether lower values of metric '{name}' are better; "
                f"pass lower_is_better explicitly"
            )
        directions[name] = bool(direction)
    return directions


def evaluate_metric(
    metric: Metric,
    actual: Sequence[float],
    predicted: Sequence[float],
    w: Optional[Sequence[float]] = None
) -> float:
    """
    Apply a metric, returning NaN for empty input or zero total weight.
    """
    actual = np.asarray(actual)
    predicted = np.asarray(predicted, dtype=float)
    if len(actual) != len(predicted):
        raise IncompatibleLengthError(
            f"{len(actual)} actual values but {len(predicted)} predictions"
        )
    if w is not None:
        w = np.asarray(w, dtype=float)
        if w.sum() == 0:
            return np.nan
    if len(actual) == 0:
        return np.nan
    return float(metric(actual, predicted, w))


def evaluate_metrics(
    metrics: Mapping[str, Metric],
    actual: Sequence[float],
    predicted: Sequence[float],
    w: Optional[Sequence[float]] = None
) -> Dict[str, float]:
    """Evaluate every metric on the same (actual, predicted, w) triple."""
    return {name: evaluate_metric(func, actual, predicted, w) for name, func in metrics.items()}
