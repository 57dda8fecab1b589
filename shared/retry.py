"""
Bounded retry for coroutines that wait on an external dependency.
"""

import asyncio
from typing import Any, Awaitable, Callable, Tuple, Type

from shared.logging import get_logger


class RetryConfig:
    """A fixed number of attempts separated by a fixed delay."""

    def __init__(self, max_attempts: int = 5, delay: float = 2.0):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.delay = delay


class RetryError(Exception):
    """Raised when every attempt failed; carries the last failure."""

    def __init__(self, message: str, last_exception: Exception, attempts: int):
        super().__init__(message)
        self.last_exception = last_exception
        self.attempts = attempts


def retry_on_exception(exceptions: Tuple[Type[Exception], ...],
                       config: RetryConfig) -> Callable:
    """Retry an async function while it raises one of ``exceptions``.

    Anything else propagates on the first attempt.
    """

    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        name = getattr(func, "__name__", "operation")
        logger = get_logger(f"retry.{name}")

        async def wrapper(*args, **kwargs) -> Any:
            attempt = 0
            while True:
                attempt += 1
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= config.max_attempts:
                        logger.error("Giving up", function=name, attempts=attempt, error=str(e))
                        raise RetryError(
                            f"{name} failed after {attempt} attempts",
                            last_exception=e,
                            attempts=attempt
                        ) from e
                    logger.warning("Attempt failed, retrying", function=name, attempt=attempt,
                                   delay=config.delay, error=str(e))
                    await asyncio.sleep(config.delay)

        return wrapper

    return decorator
