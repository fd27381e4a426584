"""
Condition polling primitive.

Every wait in the interaction flow (challenge debounce, prompt lookup, reply
arrival, completion sampling) is expressed through await_condition(), so
timeout and tick behaviour is the same everywhere and can be tested once.

Example:
    >>> async def has_reply():
    ...     return await count_replies(page, selectors) > before
    >>> await await_condition(has_reply, timeout_ms=30_000, interval_ms=500,
    ...                       pause=page.pause, description="assistant reply")
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from browser_oracle.exceptions import PollTimeoutError

T = TypeVar("T")

DEFAULT_INTERVAL_MS = 250


async def _sleep_ms(ms: float) -> None:
    await asyncio.sleep(ms / 1000.0)


async def await_condition(
    predicate: Callable[[], Awaitable[T]],
    timeout_ms: float,
    interval_ms: float = DEFAULT_INTERVAL_MS,
    *,
    pause: Callable[[float], Awaitable[None]] | None = None,
    description: str = "condition",
) -> T:
    """
    Evaluate predicate until it returns a truthy value or the deadline passes.

    The predicate is always evaluated at least once, even with a zero timeout.
    Between evaluations the caller is suspended for interval_ms (via pause,
    normally PageHandle.pause, or asyncio.sleep).

    Args:
        predicate: Async callable returning the awaited value (falsy = not yet)
        timeout_ms: Deadline in milliseconds, measured from the first call
        interval_ms: Delay between evaluations in milliseconds
        pause: Optional sleep function taking milliseconds
        description: Name of the condition, used in the timeout error

    Returns:
        The first truthy value returned by predicate

    Raises:
        PollTimeoutError: If the deadline passes without a truthy value
        Exception: Anything predicate raises is propagated unchanged; callers
            that want to treat a failed tick as "not yet" catch inside the
            predicate.
    """
    sleep = pause or _sleep_ms
    deadline = time.monotonic() + timeout_ms / 1000.0

    while True:
        value = await predicate()
        if value:
            return value

        remaining_ms = (deadline - time.monotonic()) * 1000.0
        if remaining_ms <= 0:
            raise PollTimeoutError(description, timeout_ms)

        await sleep(min(interval_ms, remaining_ms))
