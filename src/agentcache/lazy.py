"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Compute-once asynchronous value with a terminal closed state.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any, Generic, Literal, TypeVar

from .errors import ConnectionClosedError

T = TypeVar("T")

LazyState = Literal["idle", "pending", "ready", "failed", "closed"]


class AsyncLazy(Generic[T]):
    """
    Lazily start ``factory`` once and share its result with every awaiter.

    The first ``get`` schedules the factory as a task; later callers await
    the same task, so concurrent callers never trigger a second
    initialization. A failed initialization stays failed. ``close``
    replaces the cell with a terminal state: every later ``get`` raises
    ``ConnectionClosedError``, and so does every ``get`` still suspended
    on the task when ``close`` ran.

    Check-and-set of the task happens without suspending, which keeps it
    atomic on a single event loop.
    """

    def __init__(
        self, factory: Callable[[], Coroutine[Any, Any, T]], *, name: str
    ) -> None:
        self._factory = factory
        self._name = name
        self._task: asyncio.Task[T] | None = None
        self._closed = False

    @property
    def state(self) -> LazyState:
        if self._closed:
            return "closed"
        task = self._task
        if task is None:
            return "idle"
        if not task.done():
            return "pending"
        if task.cancelled() or task.exception() is not None:
            return "failed"
        return "ready"

    async def get(self) -> T:
        if self._closed:
            raise ConnectionClosedError()
        task = self._task
        if task is None:
            task = asyncio.create_task(self._factory())
            self._task = task
        try:
            value = await asyncio.shield(task)
        except asyncio.CancelledError:
            if self._closed and task.cancelled():
                raise ConnectionClosedError() from None
            raise
        if self._closed:
            raise ConnectionClosedError()
        return value

    def close(self) -> asyncio.Task[T] | None:
        """
        Move the cell to the closed state.

        Returns the task that was live before closing (``None`` when the
        cell was idle or already closed) so the owner can release whatever
        it produced. A still-running task is cancelled.
        """
        if self._closed:
            return None
        self._closed = True
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
        return task

    def __repr__(self) -> str:
        return f"AsyncLazy(name={self._name!r}, state={self.state!r})"
