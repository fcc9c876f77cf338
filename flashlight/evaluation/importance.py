"""
Importance Module

Permutation variable importance: the change in a metric when the values of
one variable are randomly shuffled within each group, holding all other
columns fixed. Larger values always mean more important.
"""

import logging
import numpy as np
import pandas as pd
from typing import Callable, Dict, List, Mapping, Optional, Union

from ..config import get_setting
from ..core.flashlight import Flashlight, as_list, resolve
from ..core.light_result import LABEL_NAME, LightResult
from ..core.multiflashlight import MultiFlashlight
from ..data.aggregation import check_columns, iter_groups
from ..exceptions import UnknownColumnError, UnknownVariableError
from .metrics import DEFAULT_METRICS, evaluate_metrics, resolve_directions

# Set up logging
logger = logging.getLogger(__name__)


def _shuffle(group: pd.DataFrame, variable: str, rng: np.random.Generator) -> pd.DataFrame:
    """Copy of ``group`` with the values of ``variable`` permuted."""
    shuffled = group.copy()
    perm = rng.permutation(len(group))
    shuffled[variable] = pd.Series(group[variable].iloc[perm].array, index=group.index)
    return shuffled


def light_importance(
    x: Union[Flashlight, MultiFlashlight],
    data: Optional[pd.DataFrame] = None,
    by: Union[None, str, List[str]] = None,
    metrics: Optional[Dict[str, Callable]] = None,
    v: Union[None, str, List[str]] = None,
    lower_is_better: Union[None, bool, Mapping[str, bool]] = None,
    m_repetitions: Optional[int] = None,
    n_max: Optional[int] = None,
    seed: Optional[int] = None,
    use_linkinv: bool = True,
    config: Optional[Dict] = None
) -> LightResult:
    """
    Calculate permutation importance of variables.

    Parameters:
    -----------
    x : Flashlight or MultiFlashlight
        Model(s) to analyze
    data : pd.DataFrame, optional
        Data; defaults to the flashlight's data
    by : str or List[str], optional
        Grouping columns; shuffling happens within groups
    metrics : Dict[str, Callable], optional
        Metrics by name; defaults to the flashlight's metrics
    v : str or List[str], optional
        Variables to permute; defaults to all columns except response,
        weight and by columns
    lower_is_better : bool or Mapping[str, bool], optional
        Direction of the metrics; inferred for built-in metrics and
        required for caller-supplied ones
    m_repetitions : int, optional
        Number of shuffles per variable, averaged (default: 1)
    n_max : int, optional
        Maximum number of rows; larger data is subsampled once, so all
        variables are compared on the same rows
    seed : int, optional
        Seed for subsampling and shuffling
    use_linkinv : bool, optional
        Whether to apply the inverse link to the predictions
    config : Dict, optional
        Configuration dictionary (section 'importance')

    Returns:
    --------
    LightResult
        Table with columns label, by..., variable, metric, value, error.
        'error' is the standard error over repetitions (NaN for one).

    Raises:
    -------
    UnknownVariableError
        If a variable in ``v`` is not a column of the data
    AmbiguousMetricDirectionError
        If the direction of a metric is unknown
    """
    if isinstance(x, MultiFlashlight):
        return x.apply(light_importance, data=data, by=by, metrics=metrics, v=v,
                       lower_is_better=lower_is_better, m_repetitions=m_repetitions,
                       n_max=n_max, seed=seed, use_linkinv=use_linkinv, config=config)

    data = resolve(data, x.data)
    by = as_list(resolve(by, x.by))
    metrics = resolve(metrics, x.metrics, DEFAULT_METRICS)
    m_repetitions = resolve(m_repetitions, get_setting(config, 'importance', 'm_repetitions'))
    n_max = resolve(n_max, get_setting(config, 'importance', 'n_max'))
    seed = resolve(seed, get_setting(config, 'importance', 'seed'))

    if data is None:
        raise ValueError(f"Flashlight '{x.label}' has no data")
    if x.y is None:
        logger.error(f"Flashlight '{x.label}' has no response y")
        raise UnknownColumnError(f"Importance of '{x.label}' needs a response column y")
    if m_repetitions < 1:
        raise ValueError("m_repetitions must be at least 1")
    check_columns(data, [x.y] + ([x.w] if x.w else []) + by)
    directions = resolve_directions(metrics, lower_is_better)

    if v is None:
        excluded = {x.y, x.w, *by}
        v = [col for col in data.columns if col not in excluded]
    else:
        v = as_list(v)
    for variable in v:
        if variable not in data.columns:
            logger.error(f"Variable '{variable}' not found in data")
            raise UnknownVariableError(f"Variable '{variable}' not found in data")

    columns = [LABEL_NAME] + by + ['variable', 'metric', 'value', 'error']
    if not v:
        logger.warning("No variables to permute. Returning empty result.")
        return LightResult('importance', pd.DataFrame(columns=columns), by=by,
                           metric_name='metric', variable_name='variable')

    logger.info(f"Calculating permutation importance of {len(v)} variables "
                f"for '{x.label}' ({m_repetitions} repetitions)...")

    rng = np.random.default_rng(seed)
    if n_max is not None and len(data) > n_max:
        logger.info(f"Sampling {n_max} of {len(data)} rows")
        data = data.iloc[np.sort(rng.choice(len(data), size=n_max, replace=False))]

    rows = []
    for key, group in iter_groups(data, by):
        actual = group[x.y].to_numpy()
        w = group[x.w].to_numpy(dtype=float) if x.w else None
        baseline = evaluate_metrics(metrics, actual, x.predict(group, use_linkinv), w)

        for variable in v:
            scores = {name: [] for name in metrics}
            for _ in range(m_repetitions):
                shuffled = _shuffle(group, variable, rng)
                permuted = evaluate_metrics(metrics, actual, x.predict(shuffled, use_linkinv), w)
                for name, value in permuted.items():
                    scores[name].append(value)

            for name, values in scores.items():
                permuted_score = np.mean(values)
                if directions[name]:
                    importance = permuted_score - baseline[name]
                else:
                    importance = baseline[name] - permuted_score
                error = np.std(values, ddof=1) / np.sqrt(m_repetitions) if m_repetitions > 1 else np.nan
                rows.append([x.label, *key, variable, name, importance, error])
            logger.debug(f"Permuted '{variable}' in group {key}")

    result = pd.DataFrame(rows, columns=columns)
    return LightResult('importance', result, by=by, metric_name='metric',
                       variable_name='variable')


def _rank(variables: pd.Series, values: pd.Series) -> List[str]:
    order = np.argsort(-np.asarray(values, dtype=float), kind='mergesort')
    return [variables.iloc[i] for i in order]


def most_important(
    x: LightResult,
    top_m: Optional[int] = None,
    metric: Optional[str] = None,
    per_group: bool = False
) -> Union[List[str], Dict[tuple, List[str]]]:
    """
    Variables ranked by importance, most important first.

    Ties keep the original variable order; NaN importances come last.

    Parameters:
    -----------
    x : LightResult
        Result of light_importance
    top_m : int, optional
        Number of variables to return (default: all)
    metric : str, optional
        Metric to rank by (default: the first one)
    per_group : bool, optional
        If False, rank by the mean importance over labels and groups and
        return a list. If True, return a dict mapping each
        (label, by values...) tuple to its ranking.
    """
    if x.kind != 'importance':
        raise ValueError(f"Expected an importance result, got '{x.kind}'")
    data = x.data
    if data.empty:
        return {} if per_group else []

    metric = resolve(metric, data['metric'].iloc[0])
    data = data[data['metric'] == metric]

    if not per_group:
        means = data.groupby('variable', sort=False)['value'].mean()
        return _rank(means.index.to_series(), means.values)[:top_m]

    groups = [x.meta['label_name']] + list(x.meta.get('by', []))
    return {
        key: _rank(group['variable'], group['value'])[:top_m]
        for key, group in iter_groups(data, groups)
    }
