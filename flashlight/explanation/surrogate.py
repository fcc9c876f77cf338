"""
Surrogate Module

Global surrogate: a shallow decision tree fitted to the predictions of the
model, as an interpretable approximation of it.
"""

import logging
import pandas as pd
from typing import Dict, List, Optional, Union
from sklearn.tree import DecisionTreeRegressor

from ..config import get_setting
from ..core.flashlight import Flashlight, as_list, resolve
from ..core.light_result import LABEL_NAME, LightResult
from ..core.multiflashlight import MultiFlashlight
from ..data.aggregation import check_columns, check_variable, iter_groups
from ..data.grid import select_rows
from ..evaluation.metrics import evaluate_metric, r_squared

# Set up logging
logger = logging.getLogger(__name__)


def surrogate_features(data: pd.DataFrame, v: List[str]) -> pd.DataFrame:
    """Model matrix of the surrogate tree; non-numeric columns are one-hot encoded."""
    return pd.get_dummies(data[v], dtype=float)


def light_global_surrogate(
    x: Union[Flashlight, MultiFlashlight],
    data: Optional[pd.DataFrame] = None,
    by: Union[None, str, List[str]] = None,
    v: Union[None, str, List[str]] = None,
    max_depth: Optional[int] = None,
    n_max: Optional[int] = None,
    seed: Optional[int] = None,
    use_linkinv: bool = True,
    config: Optional[Dict] = None
) -> LightResult:
    """
    Fit a decision tree to the model's predictions.

    Parameters:
    -----------
    x : Flashlight or MultiFlashlight
        Model(s) to approximate
    data : pd.DataFrame, optional
        Data; defaults to the flashlight's data
    by : str or List[str], optional
        Grouping columns; one tree per group
    v : str or List[str], optional
        Explanatory variables of the tree; defaults to all columns except
        response, weight and by columns
    max_depth : int, optional
        Depth of the tree (default: 3)
    n_max : int, optional
        Maximum number of rows used for fitting
    seed : int, optional
        Seed for subsampling and for the tree
    use_linkinv : bool, optional
        Whether to approximate the predictions after the inverse link
    config : Dict, optional
        Configuration dictionary (section 'surrogate')

    Returns:
    --------
    LightResult
        Table with columns label, by..., r_squared, max_depth. The fitted
        trees are in ``models``, keyed by (label, by values...), with the
        feature names of their model matrix in ``tree.feature_names_in_``.
    """
    if isinstance(x, MultiFlashlight):
        return x.apply(light_global_surrogate, data=data, by=by, v=v, max_depth=max_depth,
                       n_max=n_max, seed=seed, use_linkinv=use_linkinv, config=config)

    data = resolve(data, x.data)
    by = as_list(resolve(by, x.by))
    max_depth = resolve(max_depth, get_setting(config, 'surrogate', 'max_depth'))
    n_max = resolve(n_max, get_setting(config, 'surrogate', 'n_max'))

    if data is None:
        raise ValueError(f"Flashlight '{x.label}' has no data")
    check_columns(data, by + ([x.w] if x.w else []))
    if v is None:
        excluded = {x.y, x.w, *by}
        v = [col for col in data.columns if col not in excluded]
    else:
        v = as_list(v)
        for variable in v:
            check_variable(data, variable, by)
    if not v:
        raise ValueError("The surrogate tree needs at least one variable")

    data = select_rows(data, n_max=n_max, seed=seed)
    logger.info(f"Fitting global surrogate trees (max_depth={max_depth}) "
                f"on {len(v)} variables for '{x.label}'...")

    frame = data.copy()
    frame['_prediction'] = x.predict(data, use_linkinv=use_linkinv)

    rows, models = [], {}
    for key, group in iter_groups(frame, by):
        features = surrogate_features(group, v)
        target = group['_prediction'].to_numpy(dtype=float)
        w = group[x.w].to_numpy(dtype=float) if x.w else None

        tree = DecisionTreeRegressor(max_depth=max_depth, random_state=seed)
        tree.fit(features, target, sample_weight=w)
        score = evaluate_metric(r_squared, target, tree.predict(features), w)

        models[(x.label, *key)] = tree
        rows.append([x.label, *key, score, max_depth])
        logger.debug(f"Surrogate tree for group {key}: R^2 = {score:.4f}")

    result = pd.DataFrame(rows, columns=[LABEL_NAME] + by + ['r_squared', 'max_depth'])
    return LightResult('surrogate', result, models=models, by=by, variables=v)
