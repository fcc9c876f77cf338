"""
Multiflashlight Module

A MultiFlashlight is an ordered collection of Flashlights, keyed by label.
Every analysis called on a collection is applied to each member in
insertion order and the results are combined with a label column.
"""

import logging
from typing import Any, Callable, Iterable, Iterator, List, Union

from .flashlight import FIELDS, Flashlight, resolve
from .light_result import LightResult, light_combine
from ..exceptions import DuplicateLabelError

# Set up logging
logger = logging.getLogger(__name__)


def _is_missing(name: str, value: Any) -> bool:
    return value is None or (name == 'by' and not value)


class MultiFlashlight:
    """
    Ordered, immutable collection of flashlights.

    Fields passed to the constructor are defaults: they fill the members
    lacking their own value. ``update()`` sets fields on all members,
    overriding their own values. Analysis arguments override both.

    Example:
    --------
    fls = MultiFlashlight([fl_lm, fl_tree], data=df, y='price')
    light_importance(fls, v=['size', 'age'])
    """

    def __init__(
        self,
        flashlights: Iterable[Union[Flashlight, 'MultiFlashlight']],
        **defaults
    ):
        """
        Initialize the MultiFlashlight.

        Parameters:
        -----------
        flashlights : Iterable[Flashlight or MultiFlashlight]
            Members; nested collections are flattened
        **defaults
            Fields shared by all members (data, y, w, by, metrics,
            predict_function, linkinv, model)

        Raises:
        -------
        DuplicateLabelError
            If two members have the same label
        """
        unknown = set(defaults) - set(FIELDS)
        if unknown:
            raise TypeError(f"Unknown flashlight fields: {sorted(unknown)}")

        members = []
        for fl in flashlights:
            if isinstance(fl, MultiFlashlight):
                members.extend(fl)
            elif isinstance(fl, Flashlight):
                members.append(fl)
            else:
                raise TypeError(f"Expected Flashlight objects, got {type(fl).__name__}")

        self._flashlights = {}
        for fl in members:
            if fl.label in self._flashlights:
                raise DuplicateLabelError(f"Label '{fl.label}' is not unique")
            fills = {
                name: value for name, value in defaults.items()
                if _is_missing(name, getattr(fl, name))
            }
            self._flashlights[fl.label] = fl.update(**fills) if fills else fl

    @property
    def labels(self) -> List[str]:
        return list(self._flashlights)

    def __getitem__(self, label: str) -> Flashlight:
        return self._flashlights[label]

    def __contains__(self, label: str) -> bool:
        return label in self._flashlights

    def __iter__(self) -> Iterator[Flashlight]:
        return iter(self._flashlights.values())

    def __len__(self):
        return len(self._flashlights)

    def update(self, **fields) -> 'MultiFlashlight':
        """
        Return a new collection with ``fields`` set on every member.
        """
        return MultiFlashlight([
            fl.update(**{name: resolve(value, getattr(fl, name)) for name, value in fields.items()})
            for fl in self
        ])

    def remove(self, label: str) -> 'MultiFlashlight':
        """
        Return a new collection without the member ``label``.
        """
        if label not in self._flashlights:
            raise KeyError(f"No flashlight with label '{label}'")
        return MultiFlashlight([fl for fl in self if fl.label != label])

    def apply(self, func: Callable[..., LightResult], *args, **kwargs) -> LightResult:
        """
        Apply an analysis to every member and combine the results.

        Members are processed in insertion order; each uses its own data,
        metrics and grouping unless ``kwargs`` override them.
        """
        if not self._flashlights:
            raise ValueError("Cannot apply an analysis to an empty MultiFlashlight")
        logger.info(f"Applying {func.__name__} to {len(self)} flashlights")
        return light_combine([func(fl, *args, **kwargs) for fl in self])

    def __repr__(self):
        return f"MultiFlashlight(labels={self.labels})"
