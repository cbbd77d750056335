"""Logging configuration for the application."""

import logging
import sys

_CONFIGURED = False

def setup_logging(level: int = logging.INFO):
    """Configure logging for the application. Safe to call more than once."""
    global _CONFIGURED
    if _CONFIGURED:
        return

    # Create a formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Create a console handler
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    # Configure the root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    # Set higher log levels for noisy components
    logging.getLogger('sqlalchemy.engine').setLevel(logging.WARNING)
    logging.getLogger('uvicorn.access').setLevel(logging.WARNING)
    logging.getLogger('httpx').setLevel(logging.WARNING)

    # Engine components log their decisions at INFO
    for logger_name in (
        'community_hub.services.recurrence',
        'community_hub.services.tasks',
        'community_hub.services.events',
    ):
        logging.getLogger(logger_name).setLevel(level)

    _CONFIGURED = True
