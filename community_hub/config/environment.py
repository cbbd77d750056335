"""Environment configuration module.

Import this module before anything that reads environment variables. It loads
the .env file once, decides whether we run in production, and offers small
helpers for reading typed settings.

Usage:
    from community_hub.config.environment import IS_PRODUCTION_ENVIRONMENT

Note:
    Locally the values come from .env via python-dotenv. In production they
    should be set directly in the hosting platform's environment.
"""

import os
import logging
from dotenv import load_dotenv

# Load environment variables - this must happen before any other imports
load_dotenv()

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off'}

# Environment configuration
env_setting = os.environ.get('ENVIRONMENT', '').lower()
IS_PRODUCTION_ENVIRONMENT = env_setting == 'production'
ENVIRONMENT_NAME = 'production' if IS_PRODUCTION_ENVIRONMENT else 'development'

if env_setting not in ['development', 'production']:
    logging.warning(
        f"Environment setting '{env_setting}' is invalid or not specified. "
        "Expected 'development' or 'production'. Defaulting to development environment."
    )

def env_flag(name: str, default: bool) -> bool:
    """
    Read a boolean environment variable.

    Raises:
        ValueError: If the variable is set to something that is not a boolean
    """
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"Environment variable {name} must be a boolean, got '{raw}'")

def env_int(name: str, default: int) -> int:
    """Read an integer environment variable."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got '{raw}'") from None

__all__ = ['IS_PRODUCTION_ENVIRONMENT', 'ENVIRONMENT_NAME', 'env_flag', 'env_int']
