# tests/core/test_polling.py
"""Tests for the polling primitive."""

import pytest

from sandnet.contracts.errors import PollTimeoutError, RpcError
from sandnet.core.polling import poll_until


class TestPollUntil:
    @pytest.mark.asyncio
    async def test_returns_first_non_none(self) -> None:
        results = iter([None, None, "ready"])

        async def probe() -> str | None:
            return next(results)

        assert await poll_until(probe, timeout_ms=1_000, interval_ms=1) == "ready"

    @pytest.mark.asyncio
    async def test_times_out_with_description(self) -> None:
        async def probe() -> None:
            return None

        with pytest.raises(PollTimeoutError, match="the thing"):
            await poll_until(probe, timeout_ms=30, interval_ms=5, description="the thing")

    @pytest.mark.asyncio
    async def test_swallowed_errors_attached_to_timeout(self) -> None:
        async def probe() -> None:
            raise RpcError("connection refused", method="sui_getLatestCheckpointSequenceNumber")

        with pytest.raises(PollTimeoutError) as exc_info:
            await poll_until(probe, timeout_ms=30, interval_ms=5, swallow=(RpcError,))

        assert isinstance(exc_info.value.last_error, RpcError)

    @pytest.mark.asyncio
    async def test_unlisted_errors_propagate(self) -> None:
        async def probe() -> None:
            raise KeyError("boom")

        with pytest.raises(KeyError):
            await poll_until(probe, timeout_ms=1_000, interval_ms=5, swallow=(RpcError,))

    @pytest.mark.asyncio
    async def test_probe_runs_at_least_once(self) -> None:
        calls = 0

        async def probe() -> str:
            nonlocal calls
            calls += 1
            return "done"

        assert await poll_until(probe, timeout_ms=0, interval_ms=5) == "done"
        assert calls == 1
