"""Bounded calls across the data-access boundary."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from ..domain.exceptions import UpstreamUnavailable

T = TypeVar("T")


async def call_upstream(awaitable: Awaitable[T], operation: str, timeout: float) -> T:
    """Await ``awaitable`` for at most ``timeout`` seconds.

    A call that does not return in time is a failure, never "still pending".
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as e:
        raise UpstreamUnavailable(
            f"{operation} did not complete within {timeout}s", operation=operation
        ) from e
