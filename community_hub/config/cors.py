"""CORS configuration for the FastAPI application."""

import os

from .environment import IS_PRODUCTION_ENVIRONMENT

def _production_origins():
    """Read the comma separated CORS_ALLOWED_ORIGINS list."""
    raw = os.environ.get('CORS_ALLOWED_ORIGINS', '')
    return [origin.strip() for origin in raw.split(',') if origin.strip()]

# CORS Origins configuration
ALLOWED_ORIGINS = {
    False: ["*"],  # Development - allow all
    True: _production_origins(),  # Production - restricted
}

# CORS Methods configuration
ALLOWED_METHODS = [
    "GET",      # Calendar and console reads
    "POST",     # Creates, sign-ups and registrations
    "PUT",      # Updates and publishing
    "DELETE",   # Event and task removal
    "OPTIONS"   # Required for CORS preflight
]

# CORS Headers configuration
ALLOWED_HEADERS = [
    "Authorization",
    "Content-Type",
    "Accept",
    "Idempotency-Key",
    "X-Actor-Id",
    "X-Actor-Role",
]

# Additional CORS settings
CORS_CONFIG = {
    "allow_origins": ALLOWED_ORIGINS[IS_PRODUCTION_ENVIRONMENT],
    "allow_credentials": True,
    "allow_methods": ALLOWED_METHODS,
    "allow_headers": ALLOWED_HEADERS,
    "expose_headers": [],
    "max_age": 3600,
}
