"""Tests for the wall-clock deadline combinator."""

from __future__ import annotations

import asyncio
import time

import pytest

from backend.scraper.deadline import with_deadline
from backend.scraper.errors import DeadlineExceeded


async def _value_after(delay: float, value: object) -> object:
    await asyncio.sleep(delay)
    return value


class TestWithDeadline:
    async def test_fast_operation_returns_its_result(self) -> None:
        assert await with_deadline(_value_after(0.01, "done"), 1.0) == "done"

    async def test_slow_operation_times_out_near_the_deadline(self) -> None:
        started = time.monotonic()
        with pytest.raises(DeadlineExceeded) as excinfo:
            await with_deadline(_value_after(5.0, "late"), 0.1)
        elapsed = time.monotonic() - started

        assert 0.09 <= elapsed < 2.0
        assert str(excinfo.value) == "Operation timed out after 0.1 seconds"

    async def test_deadline_error_is_a_timeout_error(self) -> None:
        with pytest.raises(TimeoutError):
            await with_deadline(_value_after(1.0, None), 0.01)

    def test_message_for_whole_seconds(self) -> None:
        assert str(DeadlineExceeded(200)) == "Operation timed out after 200 seconds"
        assert str(DeadlineExceeded(400.0)) == "Operation timed out after 400 seconds"

    async def test_operation_error_propagates(self) -> None:
        async def broken() -> None:
            raise ValueError("navigation failed")

        with pytest.raises(ValueError, match="navigation failed"):
            await with_deadline(broken(), 1.0)

    async def test_losing_operation_is_cancelled(self) -> None:
        events: list[str] = []

        async def slow() -> None:
            try:
                await asyncio.sleep(5.0)
                events.append("finished")
            except asyncio.CancelledError:
                events.append("cancelled")
                raise

        with pytest.raises(DeadlineExceeded):
            await with_deadline(slow(), 0.05)
        # Let the cancellation reach the operation.
        await asyncio.sleep(0.01)

        assert events == ["cancelled"]
