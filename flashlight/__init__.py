"""
Flashlight

Model-agnostic interpretation of fitted predictive models. A Flashlight
bundles a model with its data, response, weights, grouping variables and
metrics; a MultiFlashlight compares several of them. Every analysis
returns a LightResult with a tidy table.
"""

from .config import DEFAULT_CONFIG, load_config, setup_logging
from .core import Flashlight, MultiFlashlight, LightResult, light_combine
from .evaluation import (
    light_performance,
    light_importance,
    most_important,
    mse,
    rmse,
    mae,
    mape,
    r_squared,
    logloss,
    accuracy
)
from .explanation import light_ice, light_profile, light_effects, light_global_surrogate
from .exceptions import (
    FlashlightError,
    UnknownVariableError,
    UnknownColumnError,
    GridTooLargeError,
    IncompatibleLengthError,
    AmbiguousMetricDirectionError,
    DuplicateLabelError,
    GridPointNotFoundError
)

__version__ = '0.1.0'

__all__ = [
    # Containers
    'Flashlight',
    'MultiFlashlight',
    'LightResult',
    'light_combine',

    # Analyses
    'light_performance',
    'light_importance',
    'most_important',
    'light_ice',
    'light_profile',
    'light_effects',
    'light_global_surrogate',

    # Metrics
    'mse',
    'rmse',
    'mae',
    'mape',
    'r_squared',
    'logloss',
    'accuracy',

    # Configuration
    'DEFAULT_CONFIG',
    'load_config',
    'setup_logging',

    # Errors
    'FlashlightError',
    'UnknownVariableError',
    'UnknownColumnError',
    'GridTooLargeError',
    'IncompatibleLengthError',
    'AmbiguousMetricDirectionError',
    'DuplicateLabelError',
    'GridPointNotFoundError'
]
