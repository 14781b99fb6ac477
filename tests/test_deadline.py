"""Tests for the with_deadline timeout guard."""

from __future__ import annotations

import asyncio
import time

import pytest

from geocontext.deadline import with_deadline
from geocontext.exceptions import DeadlineExceededError


@pytest.mark.unit
class TestWithinDeadline:
    def test_returns_result(self) -> None:
        async def op() -> str:
            await asyncio.sleep(0.01)
            return "done"

        assert asyncio.run(with_deadline(op(), 1.0)) == "done"

    def test_propagates_operation_error(self) -> None:
        async def op() -> None:
            raise ValueError("boom")

        with pytest.raises(ValueError, match="boom"):
            asyncio.run(with_deadline(op(), 1.0))


@pytest.mark.unit
class TestDeadlineExceeded:
    def test_raises_and_cancels(self) -> None:
        cancelled = asyncio.Event()

        async def op() -> None:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.set()
                raise

        async def main() -> bool:
            with pytest.raises(DeadlineExceededError, match="weather"):
                await with_deadline(op(), 0.05, label="weather")
            await asyncio.wait_for(cancelled.wait(), 1.0)
            return cancelled.is_set()

        assert asyncio.run(main()) is True

    def test_does_not_wait_for_cancellation_resistant_task(self) -> None:
        finished = []

        async def stubborn() -> str:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                # keeps going after cancellation
                await asyncio.sleep(0.3)
            finished.append(True)
            return "late"

        async def main() -> float:
            start = time.monotonic()
            with pytest.raises(DeadlineExceededError):
                await with_deadline(stubborn(), 0.05)
            elapsed = time.monotonic() - start
            await asyncio.sleep(0.5)
            return elapsed

        elapsed = asyncio.run(main())
        assert elapsed < 0.25
        # the stubborn task did finish, but its result went nowhere
        assert finished == [True]

    def test_late_error_is_discarded(self) -> None:
        async def fails_late() -> None:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                await asyncio.sleep(0.05)
                raise RuntimeError("late failure") from None

        async def main() -> None:
            with pytest.raises(DeadlineExceededError):
                await with_deadline(fails_late(), 0.01)
            await asyncio.sleep(0.2)

        asyncio.run(main())

    def test_error_message_includes_deadline(self) -> None:
        async def main() -> None:
            await with_deadline(asyncio.sleep(5), 0.01, label="lookup")

        with pytest.raises(DeadlineExceededError) as exc_info:
            asyncio.run(main())
        assert exc_info.value.what == "lookup did not complete in time"
        assert "0.0s" in exc_info.value.cause


@pytest.mark.unit
class TestCallerCancelled:
    def test_operation_cancelled_with_caller(self) -> None:
        cancelled = asyncio.Event()

        async def op() -> None:
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                cancelled.set()
                raise

        async def main() -> bool:
            outer = asyncio.ensure_future(with_deadline(op(), 10.0))
            await asyncio.sleep(0.01)
            outer.cancel()
            with pytest.raises(asyncio.CancelledError):
                await outer
            await asyncio.wait_for(cancelled.wait(), 1.0)
            return cancelled.is_set()

        assert asyncio.run(main()) is True
