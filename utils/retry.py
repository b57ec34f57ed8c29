"""Backoff retries for transient store faults, plus redaction of secrets in error text."""

import asyncio
import functools
import re
from collections.abc import Awaitable, Callable
from typing import ParamSpec, TypeVar
import structlog

log = structlog.get_logger(__name__)

P = ParamSpec("P")
R = TypeVar("R")

# Credentials that may leak into driver error text (DSNs, query params)
_SENSITIVE_PARAMS = re.compile(
    r"((?:token|api_?key|secret|password|passwd)=)[^&\s'\")]+",
    re.IGNORECASE,
)
_DSN_PASSWORD = re.compile(r"(postgres(?:ql)?://[^:/@\s]+:)[^@\s]+(@)", re.IGNORECASE)


def sanitize_error(error: str) -> str:
    """Strip passwords and tokens from error messages."""
    error = _DSN_PASSWORD.sub(r"\1[REDACTED]\2", error)
    return _SENSITIVE_PARAMS.sub(r"\1[REDACTED]", error)


def backoff_delays(retries: int, base_delay: float, max_delay: float) -> list[float]:
    """Pause before each retry: doubling from ``base_delay``, never above ``max_delay``."""
    return [min(base_delay * 2**n, max_delay) for n in range(retries)]


def async_retry(
    retries: int = 2,
    base_delay: float = 0.2,
    max_delay: float = 2.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[Callable[P, Awaitable[R]]], Callable[P, Awaitable[R]]]:
    """Retry an async call on ``exceptions`` up to ``retries`` times.

    The last attempt runs unguarded, so its exception reaches the caller as is.
    """

    def decorator(func: Callable[P, Awaitable[R]]) -> Callable[P, Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            for attempt, delay in enumerate(backoff_delays(retries, base_delay, max_delay), start=1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    log.warning(
                        "store_call_retrying",
                        call=func.__qualname__,
                        attempt=attempt,
                        retries=retries,
                        delay=delay,
                        error=sanitize_error(str(e)),
                    )
                await asyncio.sleep(delay)
            return await func(*args, **kwargs)

        return wrapper

    return decorator
