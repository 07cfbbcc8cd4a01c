import functools
import math
import os
import time
from typing import Any, Callable, Optional, Tuple

from prosperity.logging_config import create_logger

REMOTE_SCHEMES = ("http://", "https://", "s3://")


def retry(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: Tuple[type, ...] = (Exception,),
) -> Callable:
    """
    Retry decorator with exponential backoff.

    :param max_attempts: Maximum number of retry attempts
    :param delay: Initial delay between retries
    :param backoff: Multiplier for delay between retries
    :param exceptions: Tuple of exceptions to catch and retry
    :return: Decorated function
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            logger = create_logger(func.__module__)
            current_delay = delay
            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    logger.warning(f"Attempt {attempt} failed: {e}")

                    if attempt == max_attempts:
                        logger.error(f"All {max_attempts} attempts failed")
                        raise

                    time.sleep(current_delay)
                    current_delay *= backoff

        return wrapper

    return decorator


def is_remote(location: str) -> bool:
    """Return True for http(s):// and s3:// locations."""
    return location.lower().startswith(REMOTE_SCHEMES)


def resolve_location(location: str, data_dir: Optional[str] = None) -> str:
    """Resolve a relative local path against the data directory.

    Args:
        location: Local path, URL or s3:// URI
        data_dir: Base directory for relative local paths

    Returns:
        The location unchanged if remote or absolute, else joined to data_dir
    """
    if is_remote(location) or os.path.isabs(location) or not data_dir:
        return location
    return os.path.join(data_dir, location)


def is_finite_number(value: Any) -> bool:
    """True for int/float values that are neither NaN nor infinite."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)
