"""
Grid Module

Evaluation grids and binning for profiles:

- fix_grid: grid of values at which a variable is swept (ICE, partial dependence)
- make_grid: grid of one or more variables as a data frame
- auto_cut: assignment of rows to bins (response/predicted/residual profiles)
- expand_grid: replication of rows across a grid (counterfactual data)
- center_profiles: centering of ICE curves at a reference grid point
- select_rows: observation subsets for ICE and partial dependence
"""

import logging
import numbers
import numpy as np
import pandas as pd
from typing import Any, Dict, List, Optional, Sequence

from ..config import get_setting
from ..exceptions import GridPointNotFoundError, GridTooLargeError

# Set up logging
logger = logging.getLogger(__name__)

CENTER_OPTIONS = ('no', 'first', 'middle', 'last', 'mean')


def is_discrete(x: pd.Series, n_bins: int) -> bool:
    """
    A variable is treated as discrete if it is not numeric (or boolean or
    categorical) or if it has at most ``n_bins`` distinct values.
    """
    if isinstance(x.dtype, pd.CategoricalDtype) or pd.api.types.is_bool_dtype(x):
        return True
    if not pd.api.types.is_numeric_dtype(x):
        return True
    return x.nunique(dropna=True) <= n_bins


def sorted_unique(x: pd.Series) -> np.ndarray:
    """Distinct non-missing values; categories keep their level order."""
    if isinstance(x.dtype, pd.CategoricalDtype):
        present = set(x.dropna().unique())
        return np.array([c for c in x.cat.categories if c in present], dtype=object)
    values = pd.unique(x.dropna())
    try:
        return np.array(sorted(values))
    except TypeError:
        return np.asarray(values)


def fix_grid(
    x: pd.Series,
    n_bins: Optional[int] = None,
    evaluate_at: Optional[Sequence[Any]] = None,
    max_cardinality: Optional[int] = None,
    config: Optional[Dict] = None
) -> np.ndarray:
    """
    Determine the evaluation grid of a variable.

    Parameters:
    -----------
    x : pd.Series
        Observed values of the variable
    n_bins : int, optional
        Number of intervals for continuous variables; the grid then has
        ``n_bins + 1`` equally spaced points between min and max
    evaluate_at : Sequence, optional
        Explicit grid; overrides automatic grid construction
    max_cardinality : int, optional
        Maximum number of distinct values of a discrete variable
    config : Dict, optional
        Configuration dictionary (section 'grid')

    Returns:
    --------
    np.ndarray
        Grid values
    """
    if evaluate_at is not None:
        grid = np.asarray(list(evaluate_at))
        if len(grid) == 0:
            raise ValueError("evaluate_at must contain at least one value")
        return grid

    n_bins = n_bins if n_bins is not None else get_setting(config, 'grid', 'n_bins')
    if max_cardinality is None:
        max_cardinality = get_setting(config, 'grid', 'max_cardinality')
    if n_bins < 1:
        raise ValueError("n_bins must be at least 1")

    if is_discrete(x, n_bins):
        grid = sorted_unique(x)
        if len(grid) > max_cardinality:
            logger.error(f"Variable '{x.name}' has {len(grid)} distinct values")
            raise GridTooLargeError(
                f"Variable '{x.name}' has {len(grid)} distinct values, "
                f"more than max_cardinality={max_cardinality}"
            )
        return grid

    return np.linspace(x.min(), x.max(), n_bins + 1)


class Cuts:
    """
    Result of binning a variable.

    Attributes:
    -----------
    breaks : np.ndarray or None
        Interval limits (None for discrete variables)
    bin_means : np.ndarray
        Representative value per bin: interval midpoints, or the distinct
        values of a discrete variable
    assigned : pd.Series
        Representative value of each row's bin
    discrete : bool
        Whether the variable was treated as discrete
    """

    def __init__(self, breaks, bin_means, assigned, discrete):
        self.breaks = breaks
        self.bin_means = bin_means
        self.assigned = assigned
        self.discrete = discrete

    def __repr__(self):
        kind = 'discrete' if self.discrete else f'{len(self.bin_means)} intervals'
        return f"Cuts({kind})"


def auto_cut(
    x: pd.Series,
    n_bins: Optional[int] = None,
    breaks: Optional[Sequence[float]] = None,
    max_cardinality: Optional[int] = None,
    config: Optional[Dict] = None
) -> Cuts:
    """
    Assign each value of ``x`` to a bin.

    Continuous variables are cut into ``n_bins`` equal-width intervals
    between min and max (or at explicit ``breaks``), right-closed with the
    lowest break included; every row is represented by its interval
    midpoint. Discrete variables represent themselves. Values outside the
    breaks are assigned NaN.
    """
    n_bins = n_bins if n_bins is not None else get_setting(config, 'grid', 'n_bins')

    if breaks is None:
        if is_discrete(x, n_bins):
            grid = fix_grid(x, n_bins, max_cardinality=max_cardinality, config=config)
            return Cuts(None, grid, x.copy(), True)
        breaks = np.linspace(x.min(), x.max(), n_bins + 1)
    else:
        breaks = np.asarray(breaks, dtype=float)
        if len(breaks) < 2 or np.any(np.diff(breaks) <= 0):
            raise ValueError("breaks must be strictly increasing with at least two values")

    bin_means = (breaks[:-1] + breaks[1:]) / 2
    codes = pd.cut(x, breaks, include_lowest=True, labels=False)
    valid = codes.notna().to_numpy()
    assigned = np.full(len(x), np.nan)
    assigned[valid] = bin_means[codes[valid].astype(int).to_numpy()]
    return Cuts(breaks, bin_means, pd.Series(assigned, index=x.index, name=x.name), False)


def select_rows(
    data: pd.DataFrame,
    indices: Optional[Sequence[int]] = None,
    n_max: Optional[int] = None,
    seed: Optional[int] = None
) -> pd.DataFrame:
    """
    Rows at the positions ``indices``, or a random sample of ``n_max`` rows
    (in original order) if the data is larger, or all rows.
    """
    if indices is not None:
        return data.iloc[list(indices)]
    if n_max is not None and len(data) > n_max:
        rng = np.random.default_rng(seed)
        logger.info(f"Sampling {n_max} of {len(data)} rows")
        return data.iloc[np.sort(rng.choice(len(data), size=n_max, replace=False))]
    return data


def _as_columns(v) -> List[str]:
    return [v] if isinstance(v, str) else list(v)


def make_grid(
    data: pd.DataFrame,
    v,
    n_bins: Optional[int] = None,
    evaluate_at: Any = None,
    config: Optional[Dict] = None
) -> pd.DataFrame:
    """
    Evaluation grid of one or more variables as a data frame.

    Parameters:
    -----------
    data : pd.DataFrame
        Data the automatic grids are derived from
    v : str or List[str]
        Variable(s) to sweep
    n_bins : int, optional
        Number of intervals for continuous variables
    evaluate_at : Sequence or pd.DataFrame, optional
        Explicit grid. A data frame with one column per variable is used
        as is (its rows are the grid points); a sequence is only accepted
        for a single variable.
    config : Dict, optional
        Configuration dictionary (section 'grid')

    Returns:
    --------
    pd.DataFrame
        One column per variable, one row per grid point. Without a data
        frame ``evaluate_at``, several variables give the cartesian
        product of their individual grids.
    """
    vs = _as_columns(v)
    if not vs:
        raise ValueError("At least one variable is needed for a grid")

    if isinstance(evaluate_at, pd.DataFrame):
        if sorted(evaluate_at.columns) != sorted(vs):
            raise ValueError(f"evaluate_at must have exactly the columns {vs}")
        if evaluate_at.empty:
            raise ValueError("evaluate_at must contain at least one row")
        return evaluate_at[vs].reset_index(drop=True)

    if len(vs) == 1:
        return pd.DataFrame({vs[0]: fix_grid(data[vs[0]], n_bins, evaluate_at, config=config)})

    if evaluate_at is not None:
        raise ValueError("For several variables, evaluate_at must be a data frame")
    grids = [fix_grid(data[col], n_bins, config=config) for col in vs]
    size = int(np.prod([len(g) for g in grids]))
    logger.debug(f"Grid of {vs}: {size} points")
    return pd.MultiIndex.from_product(grids, names=vs).to_frame(index=False)


def expand_grid(
    data: pd.DataFrame,
    v,
    grid: Any,
    id_name: str = 'id_'
) -> pd.DataFrame:
    """
    Replicate every row of ``data`` once per grid point.

    ``grid`` is either a sequence of values of the single variable ``v`` or
    a data frame with one column per variable in ``v``. Those columns are
    overwritten by the grid values, all other columns stay fixed per
    original row. The column ``id_name`` holds the position of the
    original row (0, 1, ...). Rows of one id are in grid order.
    """
    vs = _as_columns(v)
    if not isinstance(grid, pd.DataFrame):
        if len(vs) != 1:
            raise ValueError("For several variables, the grid must be a data frame")
        grid = pd.DataFrame({vs[0]: np.asarray(list(grid))})

    n, k = len(data), len(grid)
    out = data.iloc[np.repeat(np.arange(n), k)].reset_index(drop=True)
    for col in vs:
        values = np.tile(np.asarray(grid[col]), n)
        if isinstance(data[col].dtype, pd.CategoricalDtype):
            out[col] = pd.Categorical(values, categories=data[col].cat.categories,
                                      ordered=data[col].cat.ordered)
        else:
            out[col] = values
    out[id_name] = np.repeat(np.arange(n), k)
    return out


def center_profiles(
    data: pd.DataFrame,
    v,
    center: Any = 'no',
    value_name: str = 'value',
    id_name: str = 'id_'
) -> pd.DataFrame:
    """
    Center each profile (rows sharing an id, in grid order) at a reference.

    Parameters:
    -----------
    center : Any
        'no' (or None) leaves the data unchanged; 'first', 'middle' and
        'last' subtract the profile's value at that grid position; 'mean'
        subtracts the profile's mean; any other value is taken as a grid
        value of the single variable ``v`` that every profile must contain.

    Returns:
    --------
    pd.DataFrame
        Copy of the data with centered values
    """
    if center is None or (isinstance(center, str) and center == 'no'):
        return data

    values = data.groupby(id_name, sort=False)[value_name]
    if isinstance(center, str) and center in CENTER_OPTIONS:
        if center == 'mean':
            reference = values.transform('mean')
        elif center == 'first':
            reference = values.transform(lambda s: s.iloc[0])
        elif center == 'last':
            reference = values.transform(lambda s: s.iloc[-1])
        else:
            reference = values.transform(lambda s: s.iloc[(len(s) - 1) // 2])
    else:
        vs = _as_columns(v)
        if len(vs) != 1:
            raise ValueError("Centering at a grid value needs a single variable")
        v = vs[0]
        if isinstance(center, numbers.Number) and pd.api.types.is_numeric_dtype(data[v]):
            at_center = np.isclose(data[v].to_numpy(dtype=float), float(center))
        else:
            at_center = (data[v] == center).to_numpy()
        references = data.loc[at_center].groupby(id_name, sort=False)[value_name].first()
        missing = set(data[id_name].unique()) - set(references.index)
        if missing:
            raise GridPointNotFoundError(
                f"Grid point {center!r} not found for {len(missing)} profile(s)"
            )
        reference = data[id_name].map(references)

    out = data.copy()
    out[value_name] = data[value_name] - reference
    return out
