# tests/testing/test_process.py
"""Tests for the node subprocess lifecycle.

A short Python script stands in for the node binary so spawn, early exit and
forced-kill escalation run against a real child process.
"""

import sys
from pathlib import Path

import pytest

from sandnet.contracts.enums import NodeState
from sandnet.contracts.errors import (
    InvalidStateTransition,
    NodeExitedError,
    NodeSpawnError,
    ReadinessTimeoutError,
    RpcError,
)
from sandnet.testing.process import NodeProcess, read_log_tail, remove_temp_dir

SLEEPER = "import time\nprint('node up', flush=True)\ntime.sleep(60)\n"
STUBBORN = (
    "import signal, time\n"
    "signal.signal(signal.SIGTERM, signal.SIG_IGN)\n"
    "print('ignoring SIGTERM', flush=True)\n"
    "time.sleep(60)\n"
)
CRASHER = "import sys\nprint('genesis blob missing', flush=True)\nsys.exit(3)\n"


def make_node(tmp_path: Path, script: str, *, grace_ms: int = 2_000, keep_temp: bool = False) -> NodeProcess:
    temp_dir = tmp_path / "localnet"
    temp_dir.mkdir()
    return NodeProcess(
        [sys.executable, "-c", script],
        log_path=temp_dir / "logs" / "localnet.log",
        temp_dir=temp_dir,
        keep_temp=keep_temp,
        shutdown_grace_ms=grace_ms,
    )


class TestReadLogTail:
    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert read_log_tail(tmp_path / "nope.log") == ""

    def test_keeps_last_lines(self, tmp_path: Path) -> None:
        log = tmp_path / "node.log"
        log.write_text("\n".join(f"line {i}" for i in range(10)) + "\n")

        assert read_log_tail(log, max_lines=2) == "line 8\nline 9"


class TestRemoveTempDir:
    def test_keep_leaves_directory(self, tmp_path: Path) -> None:
        remove_temp_dir(tmp_path, keep=True)
        assert tmp_path.exists()

    def test_missing_directory_is_ignored(self, tmp_path: Path) -> None:
        remove_temp_dir(tmp_path / "gone")


class TestNodeLifecycle:
    @pytest.mark.asyncio
    async def test_graceful_stop(self, tmp_path: Path) -> None:
        node = make_node(tmp_path, SLEEPER)

        await node.spawn()
        assert node.state == NodeState.STARTING
        assert node.is_running
        node.mark_ready()
        await node.stop()

        assert node.state == NodeState.STOPPED
        assert not node.forced_kill
        assert not node.temp_dir.exists()

    @pytest.mark.asyncio
    async def test_sigterm_ignored_escalates_to_kill(self, tmp_path: Path) -> None:
        node = make_node(tmp_path, STUBBORN, grace_ms=300)
        await node.spawn()
        await node.wait_until(
            lambda: _log_contains(node.log_path, "ignoring SIGTERM"),
            timeout_ms=5_000,
            interval_ms=20,
            description="stub output",
        )
        node.mark_ready()

        await node.stop()

        assert node.forced_kill
        assert node.returncode is not None
        assert not node.temp_dir.exists()

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self, tmp_path: Path) -> None:
        node = make_node(tmp_path, SLEEPER)
        await node.spawn()

        first = await node.stop()
        second = await node.stop()

        assert first == second

    @pytest.mark.asyncio
    async def test_stop_before_spawn_removes_temp_dir(self, tmp_path: Path) -> None:
        node = make_node(tmp_path, SLEEPER)

        assert await node.stop() is None
        assert not node.temp_dir.exists()

    @pytest.mark.asyncio
    async def test_keep_temp(self, tmp_path: Path) -> None:
        node = make_node(tmp_path, SLEEPER, keep_temp=True)
        await node.spawn()

        await node.stop()

        assert node.temp_dir.exists()
        assert node.log_path.exists()


class TestSpawnFailures:
    @pytest.mark.asyncio
    async def test_missing_binary(self, tmp_path: Path) -> None:
        temp_dir = tmp_path / "localnet"
        temp_dir.mkdir()
        node = NodeProcess(
            [str(tmp_path / "no-such-sui"), "start"],
            log_path=temp_dir / "localnet.log",
            temp_dir=temp_dir,
        )

        with pytest.raises(NodeSpawnError, match="no-such-sui"):
            await node.spawn()

        assert node.state == NodeState.FAILED
        await node.abort()
        assert node.state == NodeState.STOPPED
        assert not temp_dir.exists()

    @pytest.mark.asyncio
    async def test_early_exit_surfaces_log_tail(self, tmp_path: Path) -> None:
        node = make_node(tmp_path, CRASHER)
        await node.spawn()

        async def never_ready() -> None:
            raise RpcError("connection refused", method="sui_getLatestCheckpointSequenceNumber")

        with pytest.raises(NodeExitedError) as exc_info:
            await node.wait_until(never_ready, timeout_ms=10_000, interval_ms=20, description="rpc")

        assert exc_info.value.returncode == 3
        assert "genesis blob missing" in str(exc_info.value)
        await node.abort()
        assert not node.temp_dir.exists()

    @pytest.mark.asyncio
    async def test_readiness_timeout_keeps_last_probe_error(self, tmp_path: Path) -> None:
        node = make_node(tmp_path, SLEEPER)
        await node.spawn()

        async def refused() -> None:
            raise RpcError("connection refused", method="sui_getLatestCheckpointSequenceNumber")

        try:
            with pytest.raises(ReadinessTimeoutError) as exc_info:
                await node.wait_until(refused, timeout_ms=150, interval_ms=20, description="rpc readiness")
        finally:
            await node.abort()

        assert exc_info.value.timeout_ms == 150
        assert isinstance(exc_info.value.last_error, RpcError)
        assert "connection refused" in str(exc_info.value)


class TestStateTransitions:
    def test_ready_before_spawn_is_rejected(self, tmp_path: Path) -> None:
        node = make_node(tmp_path, SLEEPER)

        with pytest.raises(InvalidStateTransition):
            node.mark_ready()

    @pytest.mark.asyncio
    async def test_respawn_is_rejected(self, tmp_path: Path) -> None:
        node = make_node(tmp_path, SLEEPER)
        await node.spawn()
        try:
            with pytest.raises(InvalidStateTransition):
                await node.spawn()
        finally:
            await node.stop()


async def _log_contains(path: Path, needle: str) -> bool | None:
    return True if needle in read_log_tail(path) else None
