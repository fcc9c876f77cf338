"""
Exceptions Module

Error kinds raised by the flashlight analyses. All of them are raised
synchronously at the offending call; degenerate numeric results (empty
groups, zero weights) are reported as NaN in the result tables instead.
"""


class FlashlightError(Exception):
    """Base class for all flashlight errors."""


class UnknownVariableError(FlashlightError, KeyError):
    """A requested analysis variable is not a column of the data."""

    def __str__(self):
        return str(self.args[0]) if self.args else ''


class UnknownColumnError(FlashlightError, KeyError):
    """A response, weight or grouping column is missing from the data."""

    def __str__(self):
        return str(self.args[0]) if self.args else ''


class GridTooLargeError(FlashlightError, ValueError):
    """A discrete variable has more distinct values than allowed."""


class IncompatibleLengthError(FlashlightError, ValueError):
    """The prediction function returned the wrong number of values."""


class AmbiguousMetricDirectionError(FlashlightError, ValueError):
    """Importance was requested for a metric of unknown direction."""


class DuplicateLabelError(FlashlightError, ValueError):
    """Two flashlights of one collection share a label."""


class GridPointNotFoundError(FlashlightError, ValueError):
    """A profile cannot be centered at a grid point it does not contain."""
