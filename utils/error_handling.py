import functools
import logging
from typing import Type

from utils.exceptions import ModelRegistryException

def handle_engine_errors(operation_name: str, wrap_as: Type[ModelRegistryException] = ModelRegistryException):
    """
    Decorator for consistent error handling in engines.

    Framework exceptions pass through untouched; anything else is logged with
    its traceback and re-raised as ``wrap_as``.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except ModelRegistryException:
                raise
            except Exception as e:
                logger = args[0].logger if args and hasattr(args[0], 'logger') else logging.getLogger()
                logger.error(f"{operation_name} failed: {e}", exc_info=True)
                raise wrap_as(f"{operation_name} failed: {str(e)}") from e
        return wrapper
    return decorator
