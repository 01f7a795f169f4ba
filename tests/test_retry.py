"""Tests for timeouts and backoff around upstream calls."""

import asyncio
import unittest
from unittest.mock import AsyncMock, patch

from bandsync.errors import UpstreamUnavailable
from bandsync.store.retry import call_with_retry


class Flaky(Exception):
    pass


class CallWithRetryTestCase(unittest.IsolatedAsyncioTestCase):
    """Tests for call_with_retry."""

    async def test_returns_first_success(self):
        operation = AsyncMock(return_value="ok")
        result = await call_with_retry(operation, base_delay=0)
        self.assertEqual(result, "ok")
        operation.assert_awaited_once()

    async def test_retries_transient_errors_with_backoff(self):
        operation = AsyncMock(side_effect=[Flaky(), Flaky(), "ok"])
        with patch("bandsync.store.retry.asyncio.sleep", new=AsyncMock()) as sleep:
            result = await call_with_retry(
                operation, attempts=3, base_delay=0.5, retry_on=(Flaky,)
            )
        self.assertEqual(result, "ok")
        self.assertEqual([c.args[0] for c in sleep.await_args_list], [0.5, 1.0])

    async def test_exhaustion_raises_upstream_unavailable(self):
        operation = AsyncMock(side_effect=Flaky())
        with self.assertRaises(UpstreamUnavailable) as ctx:
            await call_with_retry(
                operation, attempts=3, base_delay=0, retry_on=(Flaky,)
            )
        self.assertIsInstance(ctx.exception.__cause__, Flaky)
        self.assertEqual(operation.await_count, 3)

    async def test_timeouts_count_as_transient(self):
        async def hang():
            await asyncio.sleep(10)

        with self.assertRaises(UpstreamUnavailable):
            await call_with_retry(hang, attempts=2, base_delay=0, timeout=0.01)

    async def test_other_errors_propagate_immediately(self):
        operation = AsyncMock(side_effect=KeyError("boom"))
        with self.assertRaises(KeyError):
            await call_with_retry(operation, base_delay=0, retry_on=(Flaky,))
        operation.assert_awaited_once()

    async def test_cancellation_is_not_swallowed(self):
        started = asyncio.Event()

        async def wait_forever():
            started.set()
            await asyncio.sleep(10)

        task = asyncio.create_task(call_with_retry(wait_forever, timeout=None))
        await started.wait()
        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task


if __name__ == "__main__":
    unittest.main()
