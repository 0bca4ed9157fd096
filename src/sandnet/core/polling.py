# src/sandnet/core/polling.py
"""Deadline-bounded async polling.

Every wait in the harness (readiness, funding, finality, package
visibility, port release) goes through poll_until so no loop can spin
forever: each has an explicit millisecond budget and raises
PollTimeoutError when it is spent.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from sandnet.contracts.errors import PollTimeoutError

T = TypeVar("T")


async def poll_until(
    probe: Callable[[], Awaitable[T | None]],
    *,
    timeout_ms: int,
    interval_ms: int = 250,
    description: str = "condition",
    swallow: tuple[type[BaseException], ...] = (),
) -> T:
    """Call ``probe`` until it returns a non-None value.

    Args:
        probe: Async callable; None means "not yet"
        timeout_ms: Overall budget; the probe always runs at least once
        interval_ms: Sleep between attempts
        description: Used in the timeout message
        swallow: Exception types treated as "not yet". Anything else propagates.

    Returns:
        The first non-None probe result

    Raises:
        PollTimeoutError: If the budget elapses first. The last swallowed
            exception is attached as ``last_error``.
    """
    deadline = time.monotonic() + timeout_ms / 1000
    last_error: BaseException | None = None

    while True:
        try:
            result = await probe()
        except swallow as error:
            last_error = error
            result = None

        if result is not None:
            return result

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise PollTimeoutError(description, timeout_ms, last_error)
        await asyncio.sleep(min(interval_ms / 1000, remaining))
