"""
Light Result Module

Container for the tidy result tables returned by all analyses, and the
combination of results of several flashlights.
"""

import logging
import pandas as pd
from typing import Dict, List, Optional, Sequence

# Set up logging
logger = logging.getLogger(__name__)

LABEL_NAME = 'label'


class LightResult:
    """
    Result of an analysis.

    Attributes:
    -----------
    kind : str
        Analysis that produced the result ('performance', 'importance',
        'ice', 'profile', 'effects', 'surrogate')
    data : pd.DataFrame
        Tidy result table. Columns: label, grouping columns, then the
        analysis-specific columns.
    tables : Dict[str, pd.DataFrame]
        Further tables of the analysis (e.g. 'counts' of effects)
    meta : Dict
        Column naming and settings (by, v, value_name, ...)
    models : Dict
        Fitted helper models (global surrogate trees), keyed by group
    """

    def __init__(
        self,
        kind: str,
        data: pd.DataFrame,
        tables: Optional[Dict[str, pd.DataFrame]] = None,
        models: Optional[Dict] = None,
        **meta
    ):
        self.kind = kind
        self.data = data
        self.tables = tables or {}
        self.models = models or {}
        self.meta = {'label_name': LABEL_NAME, 'value_name': 'value'}
        self.meta.update(meta)

    def __getattr__(self, name):
        # Expose tables and meta entries as attributes (result.counts, result.by, ...)
        if name in ('tables', 'meta'):
            raise AttributeError(name)
        if name in self.tables:
            return self.tables[name]
        if name in self.meta:
            return self.meta[name]
        raise AttributeError(f"'LightResult' object has no attribute '{name}'")

    @property
    def labels(self) -> List[str]:
        return list(pd.unique(self.data[self.meta['label_name']]))

    @property
    def is_multi(self) -> bool:
        """Whether the result covers more than one flashlight."""
        return len(self.labels) > 1

    def __len__(self):
        return len(self.data)

    def __repr__(self):
        return (f"LightResult(kind={self.kind!r}, rows={len(self.data)}, "
                f"labels={self.labels})")


def light_combine(results: Sequence[LightResult]) -> LightResult:
    """
    Row-bind results of the same kind, keeping their order.

    The meta data of the first result is kept; tables and fitted models are
    combined as well.
    """
    results = list(results)
    if not results:
        raise ValueError("Nothing to combine")
    kinds = {r.kind for r in results}
    if len(kinds) > 1:
        raise ValueError(f"Cannot combine results of different kinds: {sorted(kinds)}")

    first = results[0]
    data = pd.concat([r.data for r in results], ignore_index=True)
    tables = {
        name: pd.concat([r.tables[name] for r in results if name in r.tables], ignore_index=True)
        for name in first.tables
    }
    models = {}
    for r in results:
        models.update(r.models)
    logger.debug(f"Combined {len(results)} {first.kind} results into {len(data)} rows")
    return LightResult(first.kind, data, tables=tables, models=models, **first.meta)
