"""
Core Package

Containers shared by all analyses:

- flashlight: the Flashlight model bundle and field resolution
- multiflashlight: the MultiFlashlight collection with its fan-out
- light_result: the LightResult table wrapper and light_combine
"""

from .flashlight import Flashlight, resolve
from .multiflashlight import MultiFlashlight
from .light_result import LightResult, light_combine

__all__ = [
    'Flashlight',
    'MultiFlashlight',
    'LightResult',
    'light_combine',
    'resolve'
]
