"""Best-effort execution for operations that must never break their caller.

Audit side paths (header extraction, actor snapshot lookups, KYC API call
logging) run through ``non_critical``: any exception is logged as a warning
and replaced with a fallback value.

Example:
    >>> @non_critical(fallback=None, message="Failed to log KYC API call")
    ... async def log_call(...):
    ...     ...
"""

import functools
import inspect
import logging
from collections.abc import Callable
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def non_critical(fallback: Any = None, message: str | None = None) -> Callable[[F], F]:
    """Decorate a sync or async function so that failures are logged and swallowed.

    Args:
        fallback: Value returned when the wrapped call raises. Callables are
            invoked to build a fresh value per failure.
        message: Warning text; defaults to the function's qualified name.

    Returns:
        Decorator preserving the wrapped function's signature.
    """

    def _fallback() -> Any:
        return fallback() if callable(fallback) else fallback

    def decorator(func: F) -> F:
        description = message or f"Non-critical operation {func.__qualname__} failed"

        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                try:
                    return await func(*args, **kwargs)
                except Exception as exc:
                    logger.warning(f"{description}: {exc!r}")
                    return _fallback()

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                logger.warning(f"{description}: {exc!r}")
                return _fallback()

        return wrapper  # type: ignore[return-value]

    return decorator
