"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Detached removal of expired entries.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

from .errors import CacheError


def schedule_removal(
    tasks: set[asyncio.Task[None]],
    key: str,
    remove: Callable[[str], Awaitable[None]],
    *,
    logger: logging.Logger,
) -> asyncio.Task[None]:
    """
    Run ``remove(key)`` in the background.

    ``tasks`` keeps a strong reference until the task finishes. Failures are
    logged and never propagate to whoever scheduled the removal.
    """

    async def _run() -> None:
        try:
            await remove(key)
        except CacheError as exc:
            logger.warning("Failed to remove expired entry '%s': %s", key, exc)
        else:
            logger.debug("Removed expired entry '%s'", key)

    task = asyncio.create_task(_run())
    tasks.add(task)
    task.add_done_callback(tasks.discard)
    return task
