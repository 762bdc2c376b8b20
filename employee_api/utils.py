import functools
import inspect

from loguru import logger


def log_operation(func):
    """
    A decorator that logs entry, exit and failures of an async operation.

    Features:
    - Logs the operation name and its arguments (``self`` excluded)
    - Logs the exception type on failure and re-raises it unchanged
    - Preserves function metadata and return values
    """
    sig = inspect.signature(func)

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        func_name = func.__name__

        bound_args = sig.bind(*args, **kwargs)
        bound_args.apply_defaults()
        params = {k: v for k, v in bound_args.arguments.items() if k != "self"}

        logger.info(f"Entering {func_name} with params: {params}")

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            logger.info(f"{func_name} raised {type(e).__name__}: {e}")
            raise

        logger.info(f"{func_name} completed")
        return result

    return wrapper
