"""Tests for the asyncio debounce timer."""

from __future__ import annotations

import asyncio
import unittest

from playground_chat.debounce import DebouncedTimer


class DebouncedTimerTests(unittest.IsolatedAsyncioTestCase):
    """Validate superseding, cancellation and waiting."""

    async def test_only_latest_callback_runs(self) -> None:
        calls: list[str] = []
        timer = DebouncedTimer(0.02)

        def make(label: str):
            async def callback() -> None:
                calls.append(label)

            return callback

        timer.schedule(make("first"))
        timer.schedule(make("second"))
        self.assertTrue(timer.pending)
        await timer.wait()

        self.assertEqual(calls, ["second"])
        self.assertFalse(timer.pending)

    async def test_running_callback_is_cancelled_when_superseded(self) -> None:
        started = asyncio.Event()
        finished: list[str] = []
        timer = DebouncedTimer(0.0)

        async def slow() -> None:
            started.set()
            await asyncio.sleep(10)
            finished.append("slow")

        async def fast() -> None:
            finished.append("fast")

        timer.schedule(slow)
        await started.wait()
        timer.schedule(fast)
        await timer.wait()

        self.assertEqual(finished, ["fast"])

    async def test_cancel_prevents_callback(self) -> None:
        calls: list[int] = []
        timer = DebouncedTimer(0.02)

        async def callback() -> None:
            calls.append(1)

        timer.schedule(callback)
        timer.cancel()
        await timer.wait()
        await asyncio.sleep(0.05)

        self.assertEqual(calls, [])
        self.assertFalse(timer.pending)

    async def test_cancelling_waiter_propagates(self) -> None:
        started = asyncio.Event()
        timer = DebouncedTimer(0.0)

        async def slow() -> None:
            started.set()
            await asyncio.sleep(10)

        timer.schedule(slow)
        await started.wait()
        waiter = asyncio.create_task(timer.wait())
        await asyncio.sleep(0)
        waiter.cancel()

        with self.assertRaises(asyncio.CancelledError):
            await waiter
        self.assertFalse(timer.pending)

    async def test_wait_without_schedule_returns(self) -> None:
        await DebouncedTimer(1.0).wait()

    async def test_negative_delay_is_clamped(self) -> None:
        self.assertEqual(DebouncedTimer(-5).delay_seconds, 0.0)


if __name__ == "__main__":
    unittest.main()
