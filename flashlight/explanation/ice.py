"""
ICE Module

Individual conditional expectation (ICE) profiles: for selected
observations, the prediction as one or more variables are swept across a
grid while all other columns are held fixed.
"""

import logging
import pandas as pd
from typing import Any, Dict, List, Optional, Sequence, Union

from ..config import get_setting
from ..core.flashlight import Flashlight, as_list, resolve
from ..core.light_result import LABEL_NAME, LightResult
from ..core.multiflashlight import MultiFlashlight
from ..data.aggregation import check_columns, check_variable
from ..data.grid import center_profiles, expand_grid, make_grid, select_rows

# Set up logging
logger = logging.getLogger(__name__)

ID_NAME = 'id_'


def light_ice(
    x: Union[Flashlight, MultiFlashlight],
    v: Union[str, List[str]],
    data: Optional[pd.DataFrame] = None,
    by: Union[None, str, List[str]] = None,
    evaluate_at: Union[None, Sequence[Any], pd.DataFrame] = None,
    n_bins: Optional[int] = None,
    indices: Optional[Sequence[int]] = None,
    n_max: Optional[int] = None,
    seed: Optional[int] = None,
    use_linkinv: bool = True,
    center: Any = None,
    config: Optional[Dict] = None
) -> LightResult:
    """
    Calculate ICE profiles of one or more variables.

    Parameters:
    -----------
    x : Flashlight or MultiFlashlight
        Model(s) to analyze
    v : str or List[str]
        Variable(s) to sweep jointly
    data : pd.DataFrame, optional
        Data; defaults to the flashlight's data
    by : str or List[str], optional
        Grouping columns carried along with each profile
    evaluate_at : Sequence or pd.DataFrame, optional
        Explicit grid: values of a single variable, or a data frame with
        one column per variable whose rows are the grid points. Several
        variables default to the cartesian product of their grids.
    n_bins : int, optional
        Grid size for continuous variables (``n_bins + 1`` points)
    indices : Sequence[int], optional
        Row positions of the observations to profile
    n_max : int, optional
        Number of randomly chosen observations if ``indices`` is None
        (default: 20)
    seed : int, optional
        Seed for choosing the observations; use it to profile the same rows
        for all members of a MultiFlashlight
    use_linkinv : bool, optional
        Whether to apply the inverse link to the predictions
    center : Any, optional
        'no', 'first', 'middle', 'last', 'mean' or a grid value at which
        each profile is set to zero
    config : Dict, optional
        Configuration dictionary (sections 'grid' and 'ice')

    Returns:
    --------
    LightResult
        Table with columns label, by..., id_, v..., value
    """
    if isinstance(x, MultiFlashlight):
        return x.apply(light_ice, v, data=data, by=by, evaluate_at=evaluate_at,
                       n_bins=n_bins, indices=indices, n_max=n_max, seed=seed,
                       use_linkinv=use_linkinv, center=center, config=config)

    data = resolve(data, x.data)
    by = as_list(resolve(by, x.by))
    n_max = resolve(n_max, get_setting(config, 'ice', 'n_max'))
    center = resolve(center, get_setting(config, 'ice', 'center'))

    if data is None:
        raise ValueError(f"Flashlight '{x.label}' has no data")
    vs = as_list(v)
    for variable in vs:
        check_variable(data, variable, by)
    check_columns(data, by)

    grid = make_grid(data, vs, n_bins=n_bins, evaluate_at=evaluate_at, config=config)
    selected = select_rows(data, indices=indices, n_max=n_max, seed=seed)
    logger.info(f"Calculating ICE profiles of {vs} for '{x.label}': "
                f"{len(selected)} observations, {len(grid)} grid points")

    expanded = expand_grid(selected, vs, grid, id_name=ID_NAME)
    expanded['value'] = x.predict(expanded[list(data.columns)], use_linkinv=use_linkinv)

    result = expanded[by + [ID_NAME] + vs + ['value']].copy()
    result = center_profiles(result, vs, center=center, id_name=ID_NAME)
    result.insert(0, LABEL_NAME, x.label)
    v = vs[0] if len(vs) == 1 else vs
    return LightResult('ice', result.reset_index(drop=True), by=by, v=v,
                       id_name=ID_NAME, center=center)
