"""
Profile Module

Profiles describe how a quantity depends on one variable:

- partial_dependence: weighted average of ICE profiles (also jointly over
  several variables)
- response / predicted / residual: weighted statistics of the observed
  response, the predictions or the residuals per bin of the variable
- ale: accumulated local effects (numeric variables)
"""

import logging
import numpy as np
import pandas as pd
from typing import Any, Dict, List, Optional, Sequence, Union

from ..config import get_setting
from ..core.flashlight import Flashlight, as_list, resolve
from ..core.light_result import LABEL_NAME, LightResult
from ..core.multiflashlight import MultiFlashlight
from ..data.aggregation import (
    check_columns, check_variable, grouped_stats, grouped_weighted_mean, iter_groups
)
from ..data.grid import Cuts, auto_cut, expand_grid, make_grid, select_rows
from ..exceptions import UnknownColumnError

# Set up logging
logger = logging.getLogger(__name__)

PROFILE_KINDS = ('partial_dependence', 'response', 'predicted', 'residual', 'ale')
BINNED_KINDS = ('response', 'predicted', 'residual')


def partial_dependence_table(
    x: Flashlight,
    v: Union[str, List[str]],
    data: pd.DataFrame,
    by: List[str],
    grid: Union[Sequence[Any], pd.DataFrame],
    indices: Optional[Sequence[int]] = None,
    n_max: Optional[int] = None,
    seed: Optional[int] = None,
    use_linkinv: bool = True
) -> pd.DataFrame:
    """
    Partial dependence per group at the grid points.

    ``grid`` holds values of the single variable ``v``, or is a data frame
    with one column per variable when ``v`` is a list. Returns columns
    ``by + v + ['value', 'counts']``; counts are the number of observations
    averaged per grid point.
    """
    vs = as_list(v)
    selected = select_rows(data, indices=indices, n_max=n_max, seed=seed)
    expanded = expand_grid(selected, vs, grid, id_name='_id')
    expanded['_value'] = x.predict(expanded[list(data.columns)], use_linkinv=use_linkinv)
    return grouped_weighted_mean(expanded, '_value', w=x.w, by=by + vs)


def _quartiles_wide(long: pd.DataFrame, keys: List[str]) -> pd.DataFrame:
    # grouped_stats emits q1, median, q3 consecutively per group
    values = long['value'].to_numpy(dtype=float).reshape(-1, 3)
    wide = long.iloc[::3][keys].reset_index(drop=True)
    wide['value'] = values[:, 1]
    wide['q1'] = values[:, 0]
    wide['q3'] = values[:, 2]
    wide['counts'] = long['counts'].iloc[::3].to_numpy()
    return wide


def binned_table(
    x: Flashlight,
    v: str,
    data: pd.DataFrame,
    by: List[str],
    cuts: Cuts,
    kind: str,
    stats: str = 'mean',
    use_linkinv: bool = True
) -> pd.DataFrame:
    """
    Weighted statistics of response, predictions or residuals per bin.

    Returns columns ``by + [v, 'value', 'counts']``, plus ``q1`` and ``q3``
    for quartiles (``value`` then is the median).
    """
    if kind in ('response', 'residual'):
        if x.y is None:
            logger.error(f"Flashlight '{x.label}' has no response y")
            raise UnknownColumnError(f"A {kind} profile of '{x.label}' needs a response column y")
        check_columns(data, [x.y])

    frame = data[by].copy()
    frame[v] = cuts.assigned
    if x.w:
        frame['_w'] = data[x.w].to_numpy(dtype=float)

    if kind == 'response':
        frame['_value'] = data[x.y].to_numpy(dtype=float)
    elif kind == 'predicted':
        frame['_value'] = x.predict(data, use_linkinv=use_linkinv)
    else:
        frame['_value'] = data[x.y].to_numpy(dtype=float) - x.predict(data, use_linkinv=use_linkinv)

    frame = frame[frame[v].notna()]
    w = '_w' if x.w else None
    if stats == 'mean':
        return grouped_weighted_mean(frame, '_value', w=w, by=by + [v])
    long = grouped_stats(frame, '_value', w=w, by=by + [v], stats='quartiles')
    return _quartiles_wide(long, by + [v])


def ale_table(
    x: Flashlight,
    v: str,
    data: pd.DataFrame,
    by: List[str],
    n_bins: Optional[int] = None,
    breaks: Optional[Sequence[float]] = None,
    evaluate_at: Optional[Sequence[float]] = None,
    indices: Optional[Sequence[int]] = None,
    n_max: Optional[int] = None,
    seed: Optional[int] = None,
    use_linkinv: bool = True,
    config: Optional[Dict] = None
) -> pd.DataFrame:
    """
    Accumulated local effects per group.

    For each interval between consecutive breaks, the weighted mean change
    of the prediction from the lower to the upper limit is computed over the
    rows in that interval. These local effects are accumulated from the
    lowest break and centered to a weighted mean of zero. Values at
    ``evaluate_at`` (default: interval midpoints) are linearly interpolated.

    Returns columns ``by + [v, 'value', 'counts']``; counts are the rows of
    the interval containing the evaluation point.
    """
    column = data[v]
    if (not pd.api.types.is_numeric_dtype(column) or pd.api.types.is_bool_dtype(column)
            or isinstance(column.dtype, pd.CategoricalDtype)):
        raise ValueError(f"ALE needs a numeric variable, '{v}' is {column.dtype}")

    if breaks is None:
        n_bins = n_bins if n_bins is not None else get_setting(config, 'grid', 'n_bins')
        uniques = np.sort(column.dropna().unique()).astype(float)
        if len(uniques) <= n_bins + 1:
            breaks = uniques
        else:
            breaks = np.linspace(uniques[0], uniques[-1], n_bins + 1)
    breaks = np.asarray(breaks, dtype=float)
    if len(breaks) < 2:
        raise ValueError(f"ALE needs at least two distinct values of '{v}'")
    n_intervals = len(breaks) - 1

    points = (breaks[:-1] + breaks[1:]) / 2 if evaluate_at is None else np.asarray(evaluate_at, dtype=float)
    point_intervals = np.clip(np.searchsorted(breaks, points, side='left') - 1, 0, n_intervals - 1)

    selected = select_rows(data, indices=indices, n_max=n_max, seed=seed)
    xs = selected[v].to_numpy(dtype=float)
    inside = (xs >= breaks[0]) & (xs <= breaks[-1])
    selected, xs = selected[inside], xs[inside]
    intervals = np.clip(np.searchsorted(breaks, xs, side='left') - 1, 0, n_intervals - 1)

    lower = selected.copy()
    lower[v] = breaks[intervals]
    upper = selected.copy()
    upper[v] = breaks[intervals + 1]

    frame = selected[by].copy()
    frame['_interval'] = intervals
    frame['_diff'] = x.predict(upper, use_linkinv) - x.predict(lower, use_linkinv)
    frame['_w'] = selected[x.w].to_numpy(dtype=float) if x.w else 1.0

    rows = []
    for key, group in iter_groups(frame, by):
        k = group['_interval'].to_numpy()
        w = group['_w'].to_numpy(dtype=float)
        weight_sums = np.bincount(k, weights=w, minlength=n_intervals)
        diff_sums = np.bincount(k, weights=group['_diff'].to_numpy() * w, minlength=n_intervals)
        counts = np.bincount(k, minlength=n_intervals)

        local = np.divide(diff_sums, weight_sums, out=np.zeros(n_intervals), where=weight_sums > 0)
        ale = np.concatenate([[0.0], np.cumsum(local)])
        if weight_sums.sum() > 0:
            midpoints = (ale[:-1] + ale[1:]) / 2
            ale = ale - np.dot(weight_sums, midpoints) / weight_sums.sum()

        values = np.interp(points, breaks, ale)
        for point, value, count in zip(points, values, counts[point_intervals]):
            rows.append([*key, point, value, count])

    return pd.DataFrame(rows, columns=by + [v, 'value', 'counts'])


def light_profile(
    x: Union[Flashlight, MultiFlashlight],
    v: Union[str, List[str]],
    data: Optional[pd.DataFrame] = None,
    by: Union[None, str, List[str]] = None,
    kind: Optional[str] = None,
    stats: Optional[str] = None,
    n_bins: Optional[int] = None,
    evaluate_at: Union[None, Sequence[Any], pd.DataFrame] = None,
    breaks: Optional[Sequence[float]] = None,
    pd_indices: Optional[Sequence[int]] = None,
    pd_n_max: Optional[int] = None,
    seed: Optional[int] = None,
    use_linkinv: bool = True,
    config: Optional[Dict] = None
) -> LightResult:
    """
    Calculate a profile of a variable.

    Parameters:
    -----------
    x : Flashlight or MultiFlashlight
        Model(s) to analyze
    v : str or List[str]
        Variable of the profile; partial dependence also accepts several
        variables, evaluated jointly
    data : pd.DataFrame, optional
        Data; defaults to the flashlight's data
    by : str or List[str], optional
        Grouping columns; one profile per group
    kind : str, optional
        'partial_dependence' (default), 'response', 'predicted',
        'residual' or 'ale'
    stats : str, optional
        'mean' (default) or 'quartiles'; quartiles are available for
        response, predicted and residual profiles only
    n_bins : int, optional
        Grid size / number of bins for continuous variables
    evaluate_at : Sequence or pd.DataFrame, optional
        Grid values for partial dependence and ALE profiles; a data frame
        with one column per variable for joint partial dependence
    breaks : Sequence[float], optional
        Bin limits for response, predicted, residual and ALE profiles
    pd_indices : Sequence[int], optional
        Rows used for partial dependence and ALE
    pd_n_max : int, optional
        Maximum number of rows used for partial dependence and ALE
        (default: 1000)
    seed : int, optional
        Seed for choosing the rows
    use_linkinv : bool, optional
        Whether to apply the inverse link to the predictions
    config : Dict, optional
        Configuration dictionary (sections 'grid' and 'profile')

    Returns:
    --------
    LightResult
        Table with columns label, by..., v..., value, [q1, q3], counts, kind
    """
    if isinstance(x, MultiFlashlight):
        return x.apply(light_profile, v, data=data, by=by, kind=kind, stats=stats,
                       n_bins=n_bins, evaluate_at=evaluate_at, breaks=breaks,
                       pd_indices=pd_indices, pd_n_max=pd_n_max, seed=seed,
                       use_linkinv=use_linkinv, config=config)

    kind = resolve(kind, get_setting(config, 'profile', 'kind'))
    stats = resolve(stats, get_setting(config, 'profile', 'stats'))
    pd_n_max = resolve(pd_n_max, get_setting(config, 'profile', 'pd_n_max'))
    if kind not in PROFILE_KINDS:
        raise ValueError(f"Invalid profile kind '{kind}', use one of {PROFILE_KINDS}")
    if stats not in ('mean', 'quartiles'):
        raise ValueError(f"Invalid stats '{stats}', use 'mean' or 'quartiles'")
    if stats == 'quartiles' and kind not in BINNED_KINDS:
        raise ValueError(f"Quartiles are not available for {kind} profiles")

    data = resolve(data, x.data)
    by = as_list(resolve(by, x.by))
    if data is None:
        raise ValueError(f"Flashlight '{x.label}' has no data")
    vs = as_list(v)
    if len(vs) != 1 and kind != 'partial_dependence':
        raise ValueError(f"{kind} profiles need exactly one variable, got {vs}")
    for variable in vs:
        check_variable(data, variable, by)
    check_columns(data, by + ([x.w] if x.w else []))
    v = vs[0] if len(vs) == 1 else vs

    logger.info(f"Calculating {kind} profile of {vs} for '{x.label}'...")
    if kind == 'partial_dependence':
        grid = make_grid(data, vs, n_bins=n_bins, evaluate_at=evaluate_at, config=config)
        table = partial_dependence_table(x, vs, data, by, grid, indices=pd_indices,
                                         n_max=pd_n_max, seed=seed, use_linkinv=use_linkinv)
    elif kind == 'ale':
        table = ale_table(x, v, data, by, n_bins=n_bins, breaks=breaks, evaluate_at=evaluate_at,
                          indices=pd_indices, n_max=pd_n_max, seed=seed,
                          use_linkinv=use_linkinv, config=config)
    else:
        cuts = auto_cut(data[v], n_bins=n_bins, breaks=breaks, config=config)
        table = binned_table(x, v, data, by, cuts, kind, stats=stats, use_linkinv=use_linkinv)

    table.insert(0, LABEL_NAME, x.label)
    table['kind'] = kind
    return LightResult('profile', table, by=by, v=v, profile_kind=kind, stats=stats)
