"""
Model Explanation Package

This package provides model-agnostic explanations of a variable's effect:
ICE curves, profiles (partial dependence, response, predicted, residual,
ALE), combined effects and global surrogate trees.
"""

from .ice import light_ice
from .profile import light_profile, partial_dependence_table, binned_table, ale_table
from .effects import light_effects
from .surrogate import light_global_surrogate

__all__ = [
    # Curves
    'light_ice',
    'light_profile',
    'light_effects',

    # Profile building blocks
    'partial_dependence_table',
    'binned_table',
    'ale_table',

    # Surrogate models
    'light_global_surrogate'
]
