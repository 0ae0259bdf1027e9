"""
pathFinder Utility Decorators
Common decorators for logging and validation
"""

import time
import functools
import logging
from typing import Callable, Any

from pathfinder.utils.error_handler import validate_url, SetupError, ValidationError

logger = logging.getLogger(__name__)


def log_execution(log_args: bool = False, log_time: bool = True):
    """Decorator to log function execution"""
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            start_time = time.time()

            if log_args:
                logger.debug(f"Executing {func.__name__} with args={args}, kwargs={kwargs}")
            else:
                logger.debug(f"Executing {func.__name__}")

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                logger.error(f"{func.__name__} failed: {e}")
                raise

            if log_time:
                logger.debug(f"{func.__name__} completed in {time.time() - start_time:.3f}s")
            return result

        return wrapper
    return decorator


def validate_target_url(func: Callable) -> Callable:
    """Decorator to validate target URL before execution.

    A bad target is a setup failure, so the ValidationError is re-raised
    as SetupError.
    """
    @functools.wraps(func)
    def wrapper(target: str, *args, **kwargs) -> Any:
        try:
            validate_url(target)
        except ValidationError as e:
            raise SetupError(f"Invalid base URL '{target}': {e}") from e
        return func(target, *args, **kwargs)
    return wrapper
