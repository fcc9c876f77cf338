"""
Aggregation Module

Weighted statistics used by all analyses: weighted means and weighted
quantiles of a numeric column, optionally per group of one or more
"by" columns. Degenerate groups (no rows, zero total weight) give NaN.
"""

import logging
import numpy as np
import pandas as pd
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from ..exceptions import IncompatibleLengthError, UnknownColumnError, UnknownVariableError

# Set up logging
logger = logging.getLogger(__name__)

QUARTILES = (0.25, 0.5, 0.75)
QUARTILE_NAMES = ('q1', 'median', 'q3')


def _as_weights(x: np.ndarray, w: Optional[Sequence[float]]) -> np.ndarray:
    if w is None:
        return np.ones(len(x), dtype=float)
    w = np.asarray(w, dtype=float)
    if len(w) != len(x):
        raise IncompatibleLengthError(
            f"Weights have length {len(w)}, values have length {len(x)}"
        )
    return w


def weighted_mean(x: Sequence[float], w: Optional[Sequence[float]] = None) -> float:
    """
    Weighted arithmetic mean ``sum(x * w) / sum(w)``.

    Missing values of ``x`` are dropped together with their weights.
    Returns NaN if nothing is left or the weights sum to zero.
    """
    x = np.asarray(x, dtype=float)
    w = _as_weights(x, w)
    keep = ~np.isnan(x)
    x, w = x[keep], w[keep]
    total = w.sum()
    if len(x) == 0 or total == 0:
        return np.nan
    return float(np.dot(x, w) / total)


def weighted_quantile(
    x: Sequence[float],
    w: Optional[Sequence[float]] = None,
    probs: Union[float, Sequence[float]] = QUARTILES
) -> Union[float, np.ndarray]:
    """
    Weighted quantiles with linear interpolation.

    Values are sorted ascending (stable, so ties keep their order). The
    k-th sorted value sits at the cumulative weight fraction
    ``(C_k - w_k) / (W - w_k)``, where ``C_k`` is the cumulative weight up to
    and including it, ``w_k`` its own weight and ``W`` the total weight.
    Quantiles interpolate linearly between these positions, so unit weights
    give the usual type 7 quantiles and mirrored data gives mirrored
    quantiles.

    Parameters:
    -----------
    x : Sequence[float]
        Values; NaN values are dropped
    w : Sequence[float], optional
        Non-negative case weights; rows with zero weight are dropped
    probs : float or Sequence[float]
        Probabilities in [0, 1]

    Returns:
    --------
    float or np.ndarray
        A float for scalar ``probs``, an array otherwise. NaN if no row
        with positive weight is left.
    """
    probs_array = np.atleast_1d(np.asarray(probs, dtype=float))
    if np.any((probs_array < 0) | (probs_array > 1)):
        raise ValueError("Probabilities must lie in [0, 1]")

    x = np.asarray(x, dtype=float)
    w = _as_weights(x, w)
    keep = ~np.isnan(x) & (w > 0)
    x, w = x[keep], w[keep]

    if len(x) == 0:
        out = np.full(len(probs_array), np.nan)
    elif len(x) == 1:
        out = np.full(len(probs_array), x[0])
    else:
        order = np.argsort(x, kind='mergesort')
        x, w = x[order], w[order]
        cum_w = np.cumsum(w)
        positions = (cum_w - w) / (cum_w[-1] - w)
        out = np.interp(probs_array, positions, x)

    if np.ndim(probs) == 0:
        return float(out[0])
    return out


def check_columns(data: pd.DataFrame, columns: Sequence[str]) -> None:
    """Raise UnknownColumnError for the first column not in ``data``."""
    for col in columns:
        if col not in data.columns:
            logger.error(f"Column '{col}' not found in data")
            raise UnknownColumnError(f"Column '{col}' not found in data")


def check_variable(data: pd.DataFrame, v: str, by: Optional[List[str]] = None) -> None:
    """Raise UnknownVariableError if the analysis variable ``v`` is not a column."""
    if v not in data.columns:
        logger.error(f"Variable '{v}' not found in data")
        raise UnknownVariableError(f"Variable '{v}' not found in data")
    if v in (by or []):
        raise ValueError(f"Variable '{v}' cannot also be a by variable")


def iter_groups(
    data: pd.DataFrame,
    by: Optional[List[str]] = None
) -> Iterator[Tuple[tuple, pd.DataFrame]]:
    """
    Iterate over (group key tuple, group rows) in sorted key order.

    Without ``by`` the whole data is one group with the empty key.
    """
    by = list(by or [])
    if not by:
        yield (), data
        return
    for key, group in data.groupby(by, sort=True, observed=True, dropna=False):
        if not isinstance(key, tuple):
            key = (key,)
        yield key, group


def grouped_stats(
    data: pd.DataFrame,
    x: str,
    w: Optional[str] = None,
    by: Optional[List[str]] = None,
    stats: str = 'mean',
    value_name: str = 'value',
    counts_name: str = 'counts',
    statistic_name: str = 'statistic'
) -> pd.DataFrame:
    """
    Weighted mean or weighted quartiles of a column per group.

    Parameters:
    -----------
    data : pd.DataFrame
        Input data
    x : str
        Numeric column to summarize
    w : str, optional
        Case weight column; unit weights if None
    by : List[str], optional
        Grouping columns
    stats : str, optional
        'mean' or 'quartiles'
    value_name, counts_name, statistic_name : str, optional
        Names of the output columns

    Returns:
    --------
    pd.DataFrame
        One row per group and statistic with columns
        ``by + [statistic_name, value_name, counts_name]``. The counts are
        unweighted row counts of the group.
    """
    by = list(by or [])
    check_columns(data, [x] + ([w] if w else []) + by)

    if stats == 'mean':
        names = ('mean',)
    elif stats == 'quartiles':
        names = QUARTILE_NAMES
    else:
        raise ValueError(f"Invalid stats '{stats}', use 'mean' or 'quartiles'")

    rows = []
    for key, group in iter_groups(data, by):
        values = group[x].to_numpy(dtype=float)
        weights = group[w].to_numpy(dtype=float) if w else None
        if stats == 'mean':
            results = [weighted_mean(values, weights)]
        else:
            results = weighted_quantile(values, weights, QUARTILES)
        for name, value in zip(names, results):
            rows.append(list(key) + [name, value, len(group)])

    return pd.DataFrame(rows, columns=by + [statistic_name, value_name, counts_name])


def grouped_weighted_mean(
    data: pd.DataFrame,
    x: str,
    w: Optional[str] = None,
    by: Optional[List[str]] = None,
    value_name: str = 'value',
    counts_name: str = 'counts'
) -> pd.DataFrame:
    """
    Vectorized weighted mean per group.

    Returns columns ``by + [value_name, counts_name]``, one row per group
    in sorted key order.
    """
    by = list(by or [])
    check_columns(data, [x] + ([w] if w else []) + by)

    values = data[x].to_numpy(dtype=float)
    weights = data[w].to_numpy(dtype=float) if w else np.ones(len(data))
    missing = np.isnan(values)
    weights = np.where(missing, 0.0, weights)

    tmp = data[by].copy() if by else pd.DataFrame(index=data.index)
    tmp['_xw'] = np.where(missing, 0.0, values * weights)
    tmp['_w'] = weights

    if by:
        sums = tmp.groupby(by, sort=True, observed=True, dropna=False)
        out = sums[['_xw', '_w']].sum()
        out[counts_name] = sums.size()
        out = out.reset_index()
    else:
        out = pd.DataFrame({'_xw': [tmp['_xw'].sum()], '_w': [tmp['_w'].sum()],
                            counts_name: [len(tmp)]})

    with np.errstate(divide='ignore', invalid='ignore'):
        out[value_name] = np.where(out['_w'] > 0, out['_xw'] / out['_w'], np.nan)
    return out[by + [value_name, counts_name]]


def grouped_counts(
    data: pd.DataFrame,
    by: List[str],
    w: Optional[str] = None,
    counts_name: str = 'counts'
) -> pd.DataFrame:
    """
    Row counts per group; with ``w`` also the weighted counts.
    """
    by = list(by)
    check_columns(data, by + ([w] if w else []))
    groups = data.groupby(by, sort=True, observed=True, dropna=False)
    out = groups.size().rename(counts_name).to_frame()
    if w:
        out[f'{counts_name}_weighted'] = groups[w].sum()
    return out.reset_index()
