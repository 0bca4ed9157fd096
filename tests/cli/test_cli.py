# tests/cli/test_cli.py
"""Tests for the sandnet CLI."""

import json
from pathlib import Path

import httpx
import pytest
import respx
from typer.testing import CliRunner

from sandnet.cli import app
from sandnet.contracts.errors import GenesisError
from sandnet.contracts.network import ReadinessSnapshot
from sandnet.core.config import HarnessSettings
from sandnet.testing import localnet

runner = CliRunner()

RPC_URL = "http://127.0.0.1:9000"

READINESS = ReadinessSnapshot(
    rpc_url=RPC_URL,
    epoch="0",
    protocol_version="70",
    latest_checkpoint="12",
    validator_count=4,
    reference_gas_price="1000",
)


def node_response(request: httpx.Request) -> httpx.Response:
    method = json.loads(request.content)["method"]
    results = {
        "suix_getLatestSuiSystemState": {"epoch": "0", "protocolVersion": "70", "activeValidators": [{}]},
        "sui_getLatestCheckpointSequenceNumber": "12",
        "suix_getReferenceGasPrice": "1000",
    }
    return httpx.Response(200, json={"jsonrpc": "2.0", "id": 1, "result": results[method]})


class RecordingInstance:
    def __init__(self, tmp_path: Path) -> None:
        self.readiness = READINESS
        self.faucet_url = "http://127.0.0.1:9123"
        self.treasury = None
        self.config_dir = tmp_path / "localnet-config"
        self.log_path = tmp_path / "logs" / "localnet.log"
        self.stopped = False

    async def stop(self) -> None:
        self.stopped = True


class TestCLIBasics:
    def test_version_flag(self) -> None:
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "sandnet version" in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        assert "start" in result.output
        assert "probe" in result.output


class TestProbeCommand:
    def test_healthy_node(self) -> None:
        with respx.mock:
            respx.post(RPC_URL).mock(side_effect=node_response)
            result = runner.invoke(app, ["probe", "--rpc-url", RPC_URL, "--format", "json"])

        assert result.exit_code == 0
        [line] = [line for line in result.output.splitlines() if line.startswith("{")]
        assert json.loads(line)["latest_checkpoint"] == "12"

    def test_unreachable_node_exits_nonzero(self) -> None:
        with respx.mock:
            respx.post(RPC_URL).mock(side_effect=httpx.ConnectError("connection refused"))
            result = runner.invoke(app, ["probe", "--rpc-url", RPC_URL])

        assert result.exit_code == 1
        assert "is not ready" in result.output


class TestStartCommand:
    def test_prints_snapshot_and_stops(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        instances: list[RecordingInstance] = []
        seen: list[HarnessSettings] = []

        async def fake_start(label: str, settings: HarnessSettings) -> RecordingInstance:
            seen.append(settings)
            instances.append(RecordingInstance(tmp_path))
            return instances[-1]

        monkeypatch.setattr(localnet, "start_localnet", fake_start)

        result = runner.invoke(app, ["start", "--no-faucet", "--run-for", "0"])

        assert result.exit_code == 0
        assert "Latest checkpoint: 12" in result.output
        assert "Faucet url:" in result.output
        assert instances[0].stopped
        assert seen[0].with_faucet is False

    def test_provisioning_failure_exits_nonzero(self, monkeypatch: pytest.MonkeyPatch) -> None:
        async def failing_start(label: str, settings: HarnessSettings) -> RecordingInstance:
            raise GenesisError(["sui", "genesis"], 1, "error: address already in use")

        monkeypatch.setattr(localnet, "start_localnet", failing_start)

        result = runner.invoke(app, ["start", "--run-for", "0"])

        assert result.exit_code == 1
        assert "Error starting localnet" in result.output
        assert "address already in use" in result.output

    def test_missing_settings_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["start", "--config", str(tmp_path / "nope.yaml")])

        assert result.exit_code == 1
        assert "Settings file not found" in result.output
