"""Cancellable debounce timer for asyncio callbacks."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import logging
from typing import Any

LOGGER = logging.getLogger(__name__)


class DebouncedTimer:
    """Run only the most recently scheduled callback after a quiet period."""

    def __init__(self, delay_seconds: float, name: str = "debounce") -> None:
        self.delay_seconds = max(0.0, delay_seconds)
        self.name = name
        self._task: asyncio.Task[Any] | None = None

    @property
    def pending(self) -> bool:
        """Return True while a scheduled callback has not finished."""
        return self._task is not None and not self._task.done()

    def schedule(self, callback: Callable[[], Awaitable[Any]]) -> None:
        """Cancel any pending run and start a new countdown for ``callback``.

        A superseded task is cancelled even if its callback already started,
        so it never gets to apply its result.
        """
        if self.pending:
            assert self._task is not None
            self._task.cancel()
            LOGGER.debug(
                "debounce.superseded",
                extra={"event": "debounce.superseded", "timer": self.name},
            )
        self._task = asyncio.create_task(self._run(callback), name=self.name)

    async def _run(self, callback: Callable[[], Awaitable[Any]]) -> None:
        await asyncio.sleep(self.delay_seconds)
        await callback()

    def cancel(self) -> None:
        """Cancel the pending run, if any, without awaiting it."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def wait(self) -> None:
        """Await the scheduled run, following any run that supersedes it.

        Returns immediately when nothing is scheduled. Cancelling the waiter
        propagates instead of being mistaken for a superseded run.
        """
        while self._task is not None:
            task = self._task
            try:
                await task
            except asyncio.CancelledError:
                current = asyncio.current_task()
                if not task.cancelled() or (current is not None and current.cancelling()):
                    raise
            if task is self._task:
                return
