"""
Effects Module

Combined view of a variable's effect: response, predicted, partial
dependence and (for continuous variables) ALE profiles on a common set of
bins, together with the bin counts.
"""

import logging
import pandas as pd
from typing import Dict, List, Optional, Sequence, Union

from ..config import get_setting
from ..core.flashlight import Flashlight, as_list, resolve
from ..core.light_result import LABEL_NAME, LightResult
from ..core.multiflashlight import MultiFlashlight
from ..data.aggregation import check_columns, check_variable, grouped_counts, grouped_weighted_mean
from ..data.grid import auto_cut
from .profile import ale_table, binned_table, partial_dependence_table

# Set up logging
logger = logging.getLogger(__name__)


def _shift_to_level(ale: pd.DataFrame, pd_table: pd.DataFrame, by: List[str], v: str) -> pd.DataFrame:
    """
    Shift ALE values per group so that their count-weighted mean matches
    the partial dependence at the same points.
    """
    merged = ale.merge(pd_table[by + [v, 'value']], on=by + [v], how='left', suffixes=('', '_pd'))
    merged['_diff'] = merged['value_pd'] - merged['value']
    shifts = grouped_weighted_mean(merged, '_diff', w='counts', by=by, value_name='_shift')
    if by:
        merged = merged.merge(shifts[by + ['_shift']], on=by, how='left')
    else:
        merged['_shift'] = shifts['_shift'].iloc[0]

    out = ale.copy()
    out['value'] = ale['value'].to_numpy() + merged['_shift'].fillna(0.0).to_numpy()
    return out


def light_effects(
    x: Union[Flashlight, MultiFlashlight],
    v: str,
    data: Optional[pd.DataFrame] = None,
    by: Union[None, str, List[str]] = None,
    stats: Optional[str] = None,
    n_bins: Optional[int] = None,
    breaks: Optional[Sequence[float]] = None,
    pd_indices: Optional[Sequence[int]] = None,
    pd_n_max: Optional[int] = None,
    seed: Optional[int] = None,
    use_linkinv: bool = True,
    config: Optional[Dict] = None
) -> LightResult:
    """
    Calculate the combined effects of a variable.

    Parameters:
    -----------
    x : Flashlight or MultiFlashlight
        Model(s) to analyze
    v : str
        Variable of interest
    data : pd.DataFrame, optional
        Data; defaults to the flashlight's data
    by : str or List[str], optional
        Grouping columns
    stats : str, optional
        'mean' (default) or 'quartiles' for the response and predicted
        profiles
    n_bins, breaks : optional
        Binning of the variable
    pd_indices, pd_n_max, seed : optional
        Rows used for partial dependence and ALE
    use_linkinv : bool, optional
        Whether to apply the inverse link to the predictions
    config : Dict, optional
        Configuration dictionary

    Returns:
    --------
    LightResult
        ``data`` is a long table with columns label, by..., v, value,
        [q1, q3], counts, kind (one of response, predicted,
        partial_dependence, ale); ``counts`` holds the bin counts.
    """
    if isinstance(x, MultiFlashlight):
        return x.apply(light_effects, v, data=data, by=by, stats=stats, n_bins=n_bins,
                       breaks=breaks, pd_indices=pd_indices, pd_n_max=pd_n_max,
                       seed=seed, use_linkinv=use_linkinv, config=config)

    stats = resolve(stats, get_setting(config, 'profile', 'stats'))
    pd_n_max = resolve(pd_n_max, get_setting(config, 'profile', 'pd_n_max'))
    if stats not in ('mean', 'quartiles'):
        raise ValueError(f"Invalid stats '{stats}', use 'mean' or 'quartiles'")

    data = resolve(data, x.data)
    by = as_list(resolve(by, x.by))
    if data is None:
        raise ValueError(f"Flashlight '{x.label}' has no data")
    check_variable(data, v, by)
    check_columns(data, by + ([x.w] if x.w else []))

    cuts = auto_cut(data[v], n_bins=n_bins, breaks=breaks, config=config)
    logger.info(f"Calculating effects of '{v}' for '{x.label}' on {len(cuts.bin_means)} bins")

    parts = {}
    if x.y is not None:
        parts['response'] = binned_table(x, v, data, by, cuts, 'response', stats, use_linkinv)
    parts['predicted'] = binned_table(x, v, data, by, cuts, 'predicted', stats, use_linkinv)
    parts['partial_dependence'] = partial_dependence_table(
        x, v, data, by, cuts.bin_means, indices=pd_indices, n_max=pd_n_max,
        seed=seed, use_linkinv=use_linkinv
    )
    if not cuts.discrete:
        ale = ale_table(x, v, data, by, breaks=cuts.breaks, evaluate_at=cuts.bin_means,
                        indices=pd_indices, n_max=pd_n_max, seed=seed, use_linkinv=use_linkinv)
        parts['ale'] = _shift_to_level(ale, parts['partial_dependence'], by, v)

    tables = []
    for kind, table in parts.items():
        table = table.copy()
        table['kind'] = kind
        tables.append(table)
    result = pd.concat(tables, ignore_index=True)
    result.insert(0, LABEL_NAME, x.label)

    binned = data[by].copy()
    binned[v] = cuts.assigned
    if x.w:
        binned[x.w] = data[x.w]
    binned = binned[binned[v].notna()]
    counts = grouped_counts(binned, by + [v], w=x.w)
    counts.insert(0, LABEL_NAME, x.label)

    return LightResult('effects', result, tables={'counts': counts}, by=by, v=v, stats=stats)
