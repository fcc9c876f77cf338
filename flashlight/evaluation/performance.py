"""
Performance Module

Weighted model performance per flashlight, group and metric.
"""

import logging
import pandas as pd
from typing import Callable, Dict, List, Optional, Union

from ..core.flashlight import Flashlight, as_list, resolve
from ..core.light_result import LABEL_NAME, LightResult
from ..core.multiflashlight import MultiFlashlight
from ..data.aggregation import check_columns, iter_groups
from ..exceptions import UnknownColumnError
from .metrics import DEFAULT_METRICS, evaluate_metrics

# Set up logging
logger = logging.getLogger(__name__)


def light_performance(
    x: Union[Flashlight, MultiFlashlight],
    data: Optional[pd.DataFrame] = None,
    by: Union[None, str, List[str]] = None,
    metrics: Optional[Dict[str, Callable]] = None,
    use_linkinv: bool = True,
    config: Optional[Dict] = None
) -> LightResult:
    """
    Calculate performance metrics of one or more flashlights.

    Parameters:
    -----------
    x : Flashlight or MultiFlashlight
        Model(s) to evaluate
    data : pd.DataFrame, optional
        Evaluation data; defaults to the flashlight's data
    by : str or List[str], optional
        Grouping columns; defaults to the flashlight's by variables
    metrics : Dict[str, Callable], optional
        Metrics by name; defaults to the flashlight's metrics (RMSE if none)
    use_linkinv : bool, optional
        Whether to apply the inverse link to the predictions
    config : Dict, optional
        Configuration dictionary (unused, accepted for a uniform interface)

    Returns:
    --------
    LightResult
        Table with columns label, by..., metric, value
    """
    if isinstance(x, MultiFlashlight):
        return x.apply(light_performance, data=data, by=by, metrics=metrics,
                       use_linkinv=use_linkinv, config=config)

    logger.info(f"Calculating performance of '{x.label}'...")
    data = resolve(data, x.data)
    by = as_list(resolve(by, x.by))
    metrics = resolve(metrics, x.metrics, DEFAULT_METRICS)

    if data is None:
        raise ValueError(f"Flashlight '{x.label}' has no data")
    if x.y is None:
        logger.error(f"Flashlight '{x.label}' has no response y")
        raise UnknownColumnError(f"Performance of '{x.label}' needs a response column y")
    check_columns(data, [x.y] + ([x.w] if x.w else []) + by)

    frame = data[by].copy()
    frame['_actual'] = data[x.y].to_numpy()
    frame['_predicted'] = x.predict(data, use_linkinv=use_linkinv)
    if x.w:
        frame['_w'] = data[x.w].to_numpy(dtype=float)

    rows = []
    for key, group in iter_groups(frame, by):
        w = group['_w'] if x.w else None
        scores = evaluate_metrics(metrics, group['_actual'], group['_predicted'], w)
        for name, value in scores.items():
            rows.append([x.label, *key, name, value])

    result = pd.DataFrame(rows, columns=[LABEL_NAME] + by + ['metric', 'value'])
    return LightResult('performance', result, by=by, metric_name='metric')
