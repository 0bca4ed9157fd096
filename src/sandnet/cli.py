# src/sandnet/cli.py
"""sandnet Command Line Interface.

Entry point for the sandnet CLI tool.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Literal

import typer
from pydantic import ValidationError

from sandnet import __version__
from sandnet.contracts.errors import ProvisioningError
from sandnet.contracts.network import ReadinessSnapshot
from sandnet.core.config import HarnessSettings, load_settings

__all__ = ["app"]

app = typer.Typer(
    name="sandnet",
    help="sandnet: ephemeral Sui localnets for integration tests.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"sandnet version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose/debug logging.",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """sandnet: ephemeral Sui localnets for integration tests."""
    from sandnet.core.logging import configure_logging

    configure_logging(json_output=json_logs, level="DEBUG" if verbose else "INFO")


def _load_or_exit(config: Path | None, **overrides: Any) -> HarnessSettings:
    try:
        return load_settings(config, **overrides)
    except FileNotFoundError:
        typer.echo(f"Error: Settings file not found: {config}", err=True)
        raise typer.Exit(1) from None
    except ValidationError as e:
        typer.echo("Configuration errors:", err=True)
        for error in e.errors():
            loc = ".".join(str(x) for x in error["loc"])
            typer.echo(f"  - {loc}: {error['msg']}", err=True)
        raise typer.Exit(1) from None


def _echo_snapshot(snapshot: ReadinessSnapshot, output_format: str, **extra: Any) -> None:
    if output_format == "json":
        typer.echo(json.dumps({**snapshot.to_dict(), **extra}))
        return
    typer.echo(f"RPC:               {snapshot.rpc_url}")
    typer.echo(f"Epoch:             {snapshot.epoch}")
    typer.echo(f"Protocol version:  {snapshot.protocol_version}")
    typer.echo(f"Latest checkpoint: {snapshot.latest_checkpoint}")
    typer.echo(f"Validators:        {snapshot.validator_count}")
    typer.echo(f"Reference gas:     {snapshot.reference_gas_price}")
    for key, value in extra.items():
        if value is not None:
            typer.echo(f"{key.replace('_', ' ').capitalize() + ':':<19}{value}")


@app.command()
def start(
    config: Path | None = typer.Option(
        None,
        "--config",
        "-c",
        help="Optional settings YAML file.",
    ),
    faucet: bool | None = typer.Option(
        None,
        "--faucet/--no-faucet",
        help="Start the local faucet alongside the node.",
    ),
    keep_temp: bool | None = typer.Option(
        None,
        "--keep-temp",
        help="Keep the localnet temp directory after shutdown.",
    ),
    random_ports: bool | None = typer.Option(
        None,
        "--random-ports",
        help="Use ephemeral ports instead of the defaults.",
    ),
    run_for: float | None = typer.Option(
        None,
        "--run-for",
        help="Stop after this many seconds instead of waiting for Ctrl-C.",
    ),
    output_format: Literal["console", "json"] = typer.Option(
        "console",
        "--format",
        "-f",
        help="Output format: 'console' (human-readable) or 'json' (structured JSON).",
    ),
) -> None:
    """Start a localnet and keep it running until interrupted."""
    settings = _load_or_exit(config, with_faucet=faucet, keep_temp=keep_temp, random_ports=random_ports)

    try:
        asyncio.run(_run_localnet(settings, run_for=run_for, output_format=output_format))
    except KeyboardInterrupt:
        typer.echo("Localnet stopped.", err=True)
    except ProvisioningError as e:
        typer.echo(f"Error starting localnet: {e}", err=True)
        raise typer.Exit(1) from None


async def _run_localnet(settings: HarnessSettings, *, run_for: float | None, output_format: str) -> None:
    from sandnet.testing.localnet import start_localnet

    instance = await start_localnet("cli", settings)
    try:
        _echo_snapshot(
            instance.readiness,
            output_format,
            faucet_url=instance.faucet_url,
            treasury=instance.treasury.address if instance.treasury else None,
            config_dir=str(instance.config_dir),
            log_path=str(instance.log_path),
        )
        if run_for is not None:
            await asyncio.sleep(run_for)
        else:
            await asyncio.Event().wait()
    finally:
        await instance.stop()


@app.command()
def probe(
    rpc_url: str = typer.Option(
        "http://127.0.0.1:9000",
        "--rpc-url",
        "-u",
        help="JSON-RPC endpoint to probe.",
    ),
    timeout: float = typer.Option(
        5.0,
        "--timeout",
        help="Request timeout in seconds.",
    ),
    output_format: Literal["console", "json"] = typer.Option(
        "console",
        "--format",
        "-f",
        help="Output format: 'console' (human-readable) or 'json' (structured JSON).",
    ),
) -> None:
    """Check whether a node answers the readiness probe.

    Exits 1 when the node is unreachable or returns an error.
    """
    from sandnet.clients.rpc import probe_rpc_health

    snapshot, error = asyncio.run(probe_rpc_health(rpc_url, timeout=timeout))
    if snapshot is None:
        if output_format == "json":
            typer.echo(json.dumps({"rpcUrl": rpc_url, "error": error}), err=True)
        else:
            typer.echo(f"Node at {rpc_url} is not ready: {error}", err=True)
        raise typer.Exit(1)
    _echo_snapshot(snapshot, output_format)


if __name__ == "__main__":
    app()
