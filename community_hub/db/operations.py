"""Database operations and utilities.

Retry logic for transient store failures.
"""

import logging
import time
from functools import wraps
from typing import Any, Callable, TypeVar, cast

from .db_core import DatabaseError, TransientStoreError

logger = logging.getLogger(__name__)

# Type variable for generic return type
T = TypeVar('T')

def with_retry(
    max_attempts: int = 3,
    delay: float = 0.1,
    backoff: float = 2,
    exceptions: tuple = (TransientStoreError,)
) -> Callable:
    """
    Decorator that implements retry logic for database operations.

    Only transient failures are retried. Every engine call runs in its own
    transaction that is rolled back on failure, so a retry never sees a
    half-applied attempt.

    Args:
        max_attempts: Maximum number of attempts
        delay: Initial delay between retries in seconds
        backoff: Multiplier for delay between retries
        exceptions: Tuple of exceptions to catch and retry

    Example:
        @with_retry(max_attempts=3)
        def get_event(event_id: int) -> Event:
            with db.session() as session:
                return session.get(Event, event_id)
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            current_delay = delay

            for attempt in range(1, max_attempts + 1):
                try:
                    return cast(T, func(*args, **kwargs))
                except exceptions as e:
                    if attempt == max_attempts:
                        logger.error(
                            f"Final attempt failed for {func.__name__}: {str(e)}"
                        )
                        raise

                    logger.warning(
                        f"Attempt {attempt}/{max_attempts} failed for "
                        f"{func.__name__}: {str(e)}. Retrying in {current_delay}s..."
                    )

                    time.sleep(current_delay)
                    current_delay *= backoff

            raise DatabaseError(f"{func.__name__} was called with max_attempts={max_attempts}")

        return wrapper
    return decorator
