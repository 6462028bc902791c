"""Fan-out/fan-in helper for population tasks."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Iterable


async def gather_all(aws: Iterable[Awaitable[Any]]) -> list[Any]:
    """Run awaitables concurrently and return their results in order.

    Fails fast: the first exception is re-raised as-is, after the remaining
    tasks have been cancelled and awaited so none is left running.
    """
    tasks = [asyncio.ensure_future(aw) for aw in aws]
    if not tasks:
        return []
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
