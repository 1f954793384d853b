"""
Request handler logging.

``log_handler`` wraps a request handler so every call logs a start record and
an end record carrying the elapsed time and the error, if any.
"""

import functools
import inspect
import time
from collections.abc import Callable
from typing import Any, TypeVar

from .logger import Logger

F = TypeVar("F", bound=Callable[..., Any])

START_MESSAGE = "[handler start]"
END_MESSAGE = "[handler end]"


def log_handler(service: str = "", logger: Logger | None = None) -> Callable[[F], F]:
    """
    Decorate a sync or async request handler with start/end records.

    Args:
        service: Service name recorded on both records
        logger: Logger to use (default: the process default logger, looked up per call)

    Returns:
        Decorator

    Example:
        @log_handler(service="orders")
        async def create_order(request):
            ...
    """

    def resolve() -> Logger:
        if logger is not None:
            return logger
        from .system import default_logger

        return default_logger()

    def decorator(fn: F) -> F:
        method = fn.__qualname__

        def start(args: tuple, kwargs: dict) -> float:
            resolve().infow(START_MESSAGE, service=service, method=method, request=args, params=kwargs)
            return time.perf_counter()

        def end(started: float, error: BaseException | None) -> None:
            resolve().infow(
                END_MESSAGE,
                service=service,
                method=method,
                elapsed=round(time.perf_counter() - started, 6),
                error=repr(error) if error is not None else None,
            )

        if inspect.iscoroutinefunction(fn):

            @functools.wraps(fn)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                started = start(args, kwargs)
                error = None
                try:
                    return await fn(*args, **kwargs)
                except BaseException as e:
                    error = e
                    raise
                finally:
                    end(started, error)

            return async_wrapper  # type: ignore[return-value]

        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = start(args, kwargs)
            error = None
            try:
                return fn(*args, **kwargs)
            except BaseException as e:
                error = e
                raise
            finally:
                end(started, error)

        return wrapper  # type: ignore[return-value]

    return decorator
