"""Connection retry for executors.

Only connection setup is retried. Statements are never retried here: a
failed statement surfaces as StorageUnavailableError (awaited calls) or is
logged (background calls).
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable

import tenacity

from plotgrid.storage.errors import StorageUnavailableError


def build_connect_retryer(
    attempts: int, backoff: float, retry_on: tuple[type[BaseException], ...]
) -> tenacity.AsyncRetrying:
    """Build a tenacity retryer for connection attempts."""
    wait: tenacity.wait.wait_base
    if backoff > 0:
        wait = tenacity.wait_exponential(multiplier=backoff, min=backoff)
    else:
        wait = tenacity.wait_none()

    return tenacity.AsyncRetrying(
        stop=tenacity.stop_after_attempt(max(1, attempts)),
        wait=wait,
        retry=tenacity.retry_if_exception_type(retry_on),
        reraise=False,
    )


async def connect_with_retry(
    connect: Callable[[], Awaitable[None]],
    *,
    attempts: int,
    backoff: float,
    retry_on: tuple[type[BaseException], ...],
    target: str,
) -> None:
    """Run connect() until it succeeds or attempts are exhausted.

    Raises:
        StorageUnavailableError: If every attempt failed.
    """
    retryer = build_connect_retryer(attempts, backoff, retry_on)
    try:
        async for attempt in retryer:
            with attempt:
                await connect()
    except tenacity.RetryError as e:
        msg = f"Could not connect to {target} after {max(1, attempts)} attempts"
        raise StorageUnavailableError(msg) from e.last_attempt.exception()
