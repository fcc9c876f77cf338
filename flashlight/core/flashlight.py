"""
Flashlight Module

The Flashlight class bundles a fitted model with everything needed to
explain it: the prediction function, reference data, response, case
weights, grouping variables, metrics and an inverse link.
"""

import copy
import logging
import numpy as np
import pandas as pd
from typing import Any, Callable, List, Mapping, Optional, Union

from ..data.aggregation import check_columns
from ..exceptions import IncompatibleLengthError

# Set up logging
logger = logging.getLogger(__name__)

# Fields that can be set per flashlight and shared by a collection
FIELDS = ('model', 'data', 'y', 'w', 'by', 'metrics', 'predict_function', 'linkinv')


def resolve(*candidates: Any) -> Any:
    """
    Return the first candidate that is not None.

    The argument order is the precedence order, e.g.
    ``resolve(explicit_argument, collection_setting, own_value)``.
    """
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def default_predict(model: Any, data: pd.DataFrame) -> np.ndarray:
    """Call ``model.predict(data)``."""
    return model.predict(data)


def identity(x):
    return x


def as_list(by: Union[None, str, List[str]]) -> List[str]:
    """Normalize a grouping specification to a list of column names."""
    if by is None:
        return []
    if isinstance(by, str):
        return [by]
    return list(by)


class Flashlight:
    """
    Model bundle for model-agnostic explanations.

    A Flashlight is not modified after construction; ``update()`` returns a
    new object.

    Example:
    --------
    fl = Flashlight(model=fit, label='lm', data=df, y='price', by='region')
    light_performance(fl)
    """

    def __init__(
        self,
        model: Any = None,
        label: Optional[str] = None,
        data: Optional[pd.DataFrame] = None,
        y: Optional[str] = None,
        w: Optional[str] = None,
        by: Union[None, str, List[str]] = None,
        metrics: Optional[Mapping[str, Callable]] = None,
        predict_function: Optional[Callable] = None,
        linkinv: Optional[Callable] = None
    ):
        """
        Initialize the Flashlight.

        Parameters:
        -----------
        model : Any, optional
            Fitted model, passed unchanged to the prediction function
        label : str
            Name of the flashlight, unique within a collection
        data : pd.DataFrame, optional
            Reference data
        y : str, optional
            Name of the response column
        w : str, optional
            Name of the case weight column
        by : str or List[str], optional
            Grouping columns used to stratify every analysis
        metrics : Mapping[str, Callable], optional
            Metrics ``f(actual, predicted, w)`` by name; defaults to RMSE
        predict_function : Callable, optional
            ``f(model, data)`` returning one prediction per row;
            defaults to ``model.predict(data)``
        linkinv : Callable, optional
            Inverse link applied to the predictions; defaults to identity
        """
        if not isinstance(label, str) or not label:
            raise ValueError("A flashlight needs a non-empty string label")

        self.model = model
        self.label = label
        self.data = data
        self.y = y
        self.w = w
        self.by = as_list(by)
        self.metrics = dict(metrics) if metrics is not None else None
        self.predict_function = predict_function
        self.linkinv = linkinv
        self._validate()

    def _validate(self) -> None:
        for role, col in (('y', self.y), ('w', self.w)):
            if col is not None and col in self.by:
                raise ValueError(f"Column '{col}' cannot be both {role} and a by variable")
        if self.data is not None:
            columns = [c for c in (self.y, self.w) if c is not None] + self.by
            check_columns(self.data, columns)

    def update(self, **fields) -> 'Flashlight':
        """
        Return a new Flashlight with some fields replaced.

        Unknown field names raise a TypeError.
        """
        unknown = set(fields) - set(FIELDS) - {'label'}
        if unknown:
            raise TypeError(f"Unknown flashlight fields: {sorted(unknown)}")
        new = copy.copy(self)
        for name, value in fields.items():
            if name == 'by':
                value = as_list(value)
            elif name == 'metrics' and value is not None:
                value = dict(value)
            setattr(new, name, value)
        if not isinstance(new.label, str) or not new.label:
            raise ValueError("A flashlight needs a non-empty string label")
        new._validate()
        return new

    def predict(
        self,
        data: Optional[pd.DataFrame] = None,
        use_linkinv: bool = True
    ) -> np.ndarray:
        """
        Predictions on ``data`` (default: the reference data).

        Raises:
        -------
        IncompatibleLengthError
            If the prediction function returns a wrong number of values
        """
        data = resolve(data, self.data)
        if data is None:
            raise ValueError(f"Flashlight '{self.label}' has no data to predict on")
        predict_function = resolve(self.predict_function, default_predict)
        pred = np.asarray(predict_function(self.model, data), dtype=float).ravel()
        if len(pred) != len(data):
            logger.error(f"Prediction function of '{self.label}' returned {len(pred)} "
                         f"values for {len(data)} rows")
            raise IncompatibleLengthError(
                f"Prediction function returned {len(pred)} values for {len(data)} rows"
            )
        if use_linkinv:
            pred = np.asarray(resolve(self.linkinv, identity)(pred), dtype=float)
        return pred

    def __repr__(self):
        n = 'no data' if self.data is None else f'{len(self.data)} rows'
        return (f"Flashlight(label={self.label!r}, {n}, y={self.y!r}, w={self.w!r}, "
                f"by={self.by!r}, metrics={None if self.metrics is None else list(self.metrics)})")
