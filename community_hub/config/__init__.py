"""Configuration package.

The environment module is imported first so .env values are loaded before
anything else reads them.
"""

from .environment import IS_PRODUCTION_ENVIRONMENT
from .engine import CapacityPolicy, EngineSettings, OwnershipPolicy, get_settings

__all__ = [
    'IS_PRODUCTION_ENVIRONMENT',
    'CapacityPolicy',
    'EngineSettings',
    'OwnershipPolicy',
    'get_settings',
]
