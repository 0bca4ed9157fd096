# src/sandnet/testing/packages.py
"""Build and publish Move packages against a localnet."""

from __future__ import annotations

import asyncio
import json
import subprocess
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import structlog

from sandnet.contracts.artifacts import PublishArtifact
from sandnet.contracts.enums import ChangeType
from sandnet.contracts.errors import ExecutionError, PackageBuildError
from sandnet.contracts.execution import ExecutionResult
from sandnet.core.polling import poll_until
from sandnet.engine.executor import Signer, TransactionExecutor
from sandnet.engine.operations import Publish

logger = structlog.get_logger(__name__)

UPGRADE_CAP_SUFFIX = "::package::UpgradeCap"


@dataclass(frozen=True)
class BuildOutput:
    """Compiled modules (base64) and dependency ids from a Move build."""

    modules: tuple[str, ...]
    dependencies: tuple[str, ...]
    digest: tuple[int, ...] = ()


def read_package_name(package_path: Path) -> str | None:
    manifest = package_path / "Move.toml"
    try:
        data = tomllib.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError):
        return None
    name = (data.get("package") or {}).get("name")
    return str(name) if name else None


def parse_build_output(stdout: str) -> BuildOutput:
    """Decode the JSON document printed by ``--dump-bytecode-as-base64``.

    Compiler chatter may precede it, so the last line that parses as a JSON
    object wins.

    Raises:
        ValueError: If no JSON object with a ``modules`` list is present
    """
    for line in reversed(stdout.strip().splitlines()):
        line = line.strip()
        if not line.startswith("{"):
            continue
        try:
            payload = json.loads(line)
        except json.JSONDecodeError:
            continue
        if isinstance(payload, dict) and isinstance(payload.get("modules"), list):
            return BuildOutput(
                modules=tuple(payload["modules"]),
                dependencies=tuple(payload.get("dependencies") or ()),
                digest=tuple(payload.get("digest") or ()),
            )
    raise ValueError("Move build output did not contain compiled modules")


async def build_move_package(
    package_path: Path,
    *,
    node_binary: str = "sui",
    env: Mapping[str, str] | None = None,
    with_unpublished_dependencies: bool = False,
) -> BuildOutput:
    """Compile ``package_path`` to base64 bytecode.

    Raises:
        PackageBuildError: Non-zero exit, missing binary, or unparseable output
    """
    command = [node_binary, "move", "build", "--dump-bytecode-as-base64", "--path", str(package_path)]
    if with_unpublished_dependencies:
        command.append("--with-unpublished-dependencies")

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            env=dict(env) if env is not None else None,
        )
    except OSError as error:
        raise PackageBuildError(str(package_path), -1, str(error)) from error

    stdout, stderr = await process.communicate()
    out = stdout.decode("utf-8", errors="replace")
    err = stderr.decode("utf-8", errors="replace")
    if process.returncode != 0:
        raise PackageBuildError(str(package_path), process.returncode or -1, (err or out).strip())
    try:
        return parse_build_output(out)
    except ValueError as error:
        raise PackageBuildError(str(package_path), 0, f"{error}\n{out.strip()}") from error


def published_package_id(result: ExecutionResult) -> str:
    for change in result.object_changes:
        if change.change_type == ChangeType.PUBLISHED and change.package_id:
            return change.package_id
    raise ExecutionError("Publish succeeded but reported no published package id", digest=result.digest)


def upgrade_cap_id(result: ExecutionResult) -> str | None:
    for change in result.object_changes:
        if change.change_type == ChangeType.CREATED and (change.object_type or "").endswith(UPGRADE_CAP_SUFFIX):
            return change.object_id
    return None


async def publish_package(
    executor: TransactionExecutor,
    publisher: Signer,
    package_path: Path,
    *,
    rpc_url: str,
    network_name: str = "localnet",
    node_binary: str = "sui",
    env: Mapping[str, str] | None = None,
    with_unpublished_dependencies: bool = False,
    gas_budget: int | None = None,
    wait_timeout_ms: int = 20_000,
    wait_interval_ms: int = 250,
) -> PublishArtifact:
    """Build, publish, wait for visibility, and record the deployment.

    The returned artifact is appended to the ledger's deployments file when
    the executor carries a ledger.
    """
    build = await build_move_package(
        package_path,
        node_binary=node_binary,
        env=env,
        with_unpublished_dependencies=with_unpublished_dependencies,
    )
    operation = Publish(modules=list(build.modules), dependencies=list(build.dependencies))
    if gas_budget is not None:
        operation.gas_budget = gas_budget

    result = await executor.execute_with_retry(operation, publisher)
    package_id = published_package_id(result)

    await poll_until(
        lambda: executor.rpc.try_get_object(package_id),
        timeout_ms=wait_timeout_ms,
        interval_ms=wait_interval_ms,
        description=f"package {package_id} to become visible",
    )

    artifact = PublishArtifact(
        network=network_name,
        rpc_url=rpc_url,
        package_path=str(package_path),
        package_id=package_id,
        sender=publisher.address,
        digest=result.digest,
        published_at=datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z"),
        package_name=read_package_name(package_path),
        upgrade_cap=upgrade_cap_id(result),
        modules=build.modules,
        dependencies=build.dependencies,
        with_unpublished_dependencies=with_unpublished_dependencies,
    )
    if executor.ledger is not None:
        await executor.ledger.record_publish(artifact)
    logger.info("package_published", package_id=package_id, package_name=artifact.package_name, digest=result.digest)
    return artifact
