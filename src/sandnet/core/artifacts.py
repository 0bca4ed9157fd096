# src/sandnet/core/artifacts.py
"""Object artifact ledger.

File-backed index of the objects that executed transactions created,
mutated, transferred, deleted or wrapped. Later test steps (and later runs)
use it to rediscover entities without scanning the network.

Files, under one artifacts directory:
    objects.<network>.json     - JSON array of ObjectArtifact rows
    deployment.<network>.json  - JSON array of PublishArtifact rows

Each record_changes() call applies all of its changes to the in-memory rows
and rewrites the file once. Calls for the same file are serialized within
one event loop by an asyncio.Lock; separate processes writing the same file
still race (last writer wins).
"""

from __future__ import annotations

import asyncio
import json
import re
import weakref
from collections.abc import Iterable
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Protocol

import structlog

from sandnet.contracts.artifacts import AffectedArtifacts, ObjectArtifact, OwnerArtifact, PublishArtifact
from sandnet.contracts.enums import ChangeType, OwnerType
from sandnet.contracts.errors import ArtifactStoreError
from sandnet.contracts.execution import ObjectChange
from sandnet.core.identifiers import normalize_address, normalize_object_id, package_id_from_type

logger = structlog.get_logger(__name__)

_DYNAMIC_FIELD_TYPE = re.compile(r"^0x0*2::dynamic_field::")

_file_locks: weakref.WeakKeyDictionary[asyncio.AbstractEventLoop, dict[Path, asyncio.Lock]] = (
    weakref.WeakKeyDictionary()
)


def _lock_for(path: Path) -> asyncio.Lock:
    locks = _file_locks.setdefault(asyncio.get_running_loop(), {})
    return locks.setdefault(path.resolve(), asyncio.Lock())


def _utc_now() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _safe_id(value: str | None) -> str | None:
    if not value:
        return None
    try:
        return normalize_object_id(value)
    except ValueError:
        return None


def _package_id(object_type: str) -> str:
    try:
        return package_id_from_type(object_type)
    except ValueError:
        return object_type.split("::", 1)[0]


def is_dynamic_field_type(object_type: str | None) -> bool:
    return bool(object_type and _DYNAMIC_FIELD_TYPE.match(object_type))


def owner_from_rpc(owner: Any) -> OwnerArtifact | None:
    """Map an RPC owner payload to OwnerArtifact.

    Handles ``"Immutable"``, ``{"AddressOwner": a}``, ``{"ObjectOwner": id}``,
    ``{"Shared": {"initial_shared_version": v}}`` and
    ``{"ConsensusAddressOwner": {"owner": a, ...}}``.
    """
    if owner is None:
        return None
    if owner == "Immutable":
        return OwnerArtifact(owner_type=OwnerType.IMMUTABLE)
    if not isinstance(owner, dict):
        return OwnerArtifact(owner_type=OwnerType.UNKNOWN)
    if "AddressOwner" in owner:
        return OwnerArtifact(owner_type=OwnerType.ADDRESS, address=normalize_address(owner["AddressOwner"]))
    if "ObjectOwner" in owner:
        return OwnerArtifact(owner_type=OwnerType.OBJECT, object_id=normalize_object_id(owner["ObjectOwner"]))
    if "Shared" in owner:
        version = owner["Shared"].get("initial_shared_version")
        return OwnerArtifact(
            owner_type=OwnerType.SHARED,
            initial_shared_version=str(version) if version is not None else None,
        )
    if "Immutable" in owner:
        return OwnerArtifact(owner_type=OwnerType.IMMUTABLE)
    if "ConsensusAddressOwner" in owner:
        return OwnerArtifact(
            owner_type=OwnerType.CONSENSUS_ADDRESS,
            address=normalize_address(owner["ConsensusAddressOwner"]["owner"]),
        )
    return OwnerArtifact(owner_type=OwnerType.UNKNOWN)


def _dynamic_field_value_id(data: dict[str, Any]) -> str | None:
    """Id of the object wrapped in a dynamic field, when the value is an object."""
    content = data.get("content") or {}
    value = (content.get("fields") or {}).get("value")
    if not isinstance(value, dict):
        return None
    value_id = ((value.get("fields") or {}).get("id") or {}).get("id")
    return _safe_id(value_id) if isinstance(value_id, str) else None


def artifact_from_object(
    data: dict[str, Any],
    change: ObjectChange,
    *,
    signer_address: str,
    created_at: str | None = None,
) -> ObjectArtifact:
    """Build a row from fetched object data plus its ``created`` change.

    Dynamic field objects are indexed by the id of the value they hold and
    keep their own id in ``dynamic_field_id``.
    """
    object_type = data.get("type") or change.object_type or ""
    field_object_id = normalize_object_id(data.get("objectId") or change.object_id or "")
    dynamic = is_dynamic_field_type(object_type)
    object_id = (_dynamic_field_value_id(data) if dynamic else None) or field_object_id

    owner = owner_from_rpc(data.get("owner"))
    initial_shared_version = owner.initial_shared_version if owner is not None else None
    if initial_shared_version is None and change.version is not None:
        initial_shared_version = change.version

    version = data.get("version")
    return ObjectArtifact(
        object_id=object_id,
        object_type=object_type,
        package_id=_package_id(object_type),
        signer=signer_address,
        owner=owner,
        version=str(version) if version is not None else change.version,
        digest=change.digest,
        initial_shared_version=initial_shared_version,
        dynamic_field_id=field_object_id if dynamic else None,
        created_at=created_at,
    )


def _match_key(artifact: ObjectArtifact) -> str | None:
    """Id that object changes for this row will carry."""
    if is_dynamic_field_type(artifact.object_type):
        return _safe_id(artifact.dynamic_field_id or artifact.object_id)
    return _safe_id(artifact.object_id)


def _dedupe(rows: Iterable[ObjectArtifact]) -> list[ObjectArtifact]:
    """Keep the last row per object id, preserving the order of survivors."""
    ordered = list(rows)
    seen: set[str] = set()
    kept: list[ObjectArtifact] = []
    for row in reversed(ordered):
        key = _safe_id(row.object_id) or row.object_id
        if key in seen:
            continue
        seen.add(key)
        kept.append(row)
    kept.reverse()
    return kept


class ObjectFetcher(Protocol):
    async def get_object(self, object_id: str) -> dict[str, Any]: ...


class ObjectArtifactLedger:
    """Per-network artifact files under one directory.

    Example:
        ledger = ObjectArtifactLedger(ctx.artifacts_dir, "localnet")
        affected = await ledger.record_changes(changes, rpc=rpc, signer_address=signer.address)
        shop = ledger.latest_by_type_suffix("::shop::Shop")
    """

    def __init__(self, artifacts_dir: Path, network_name: str = "localnet") -> None:
        self._dir = Path(artifacts_dir)
        self._network = network_name

    @property
    def network_name(self) -> str:
        return self._network

    @property
    def objects_path(self) -> Path:
        return self._dir / f"objects.{self._network}.json"

    @property
    def deployments_path(self) -> Path:
        return self._dir / f"deployment.{self._network}.json"

    # -- file access --------------------------------------------------------

    def _read_rows(self, path: Path) -> list[dict[str, Any]]:
        if not path.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text("[]", encoding="utf-8")
            return []
        try:
            rows = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as error:
            raise ArtifactStoreError(f"Failed to read artifact at {path}: {error}") from error
        if not isinstance(rows, list):
            raise ArtifactStoreError(f"Artifact file {path} does not contain a JSON array")
        return rows

    def _write_rows(self, path: Path, rows: list[dict[str, Any]]) -> None:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(json.dumps(rows, indent=2), encoding="utf-8")
        except OSError as error:
            raise ArtifactStoreError(f"Failed to persist artifacts at {path}: {error}") from error

    def load(self) -> list[ObjectArtifact]:
        """All rows, creating an empty file when none exists."""
        return [ObjectArtifact.from_dict(row) for row in self._read_rows(self.objects_path)]

    def find(self, object_id: str) -> ObjectArtifact | None:
        target = normalize_object_id(object_id)
        for row in self.load():
            if _safe_id(row.object_id) == target:
                return row
        return None

    def latest_by_type_suffix(self, suffix: str, *, live_only: bool = False) -> ObjectArtifact | None:
        """Most recently recorded row whose type ends with ``suffix``."""
        for row in reversed(self.load()):
            if not row.object_type.endswith(suffix):
                continue
            if live_only and not row.is_live:
                continue
            return row
        return None

    # -- recording ------------------------------------------------------------

    async def record_changes(
        self,
        changes: Iterable[ObjectChange],
        *,
        rpc: ObjectFetcher,
        signer_address: str,
    ) -> AffectedArtifacts:
        """Merge one transaction's object changes into the ledger.

        - created: object fetched, row appended (same id replaces older row)
        - mutated/transferred: owner, version and digest updated on known live rows
        - deleted: ``deleted_at`` stamped
        - wrapped: ``wrapped_at`` stamped unless already set

        Unknown ids are ignored; the ledger only tracks objects it has seen
        created. Rows are never removed.
        """
        created: list[ObjectChange] = []
        updates: dict[str, ObjectChange] = {}
        deleted: set[str] = set()
        wrapped: set[str] = set()
        for change in changes:
            object_id = _safe_id(change.object_id)
            if change.change_type == ChangeType.CREATED and object_id:
                created.append(change)
            elif change.change_type in (ChangeType.MUTATED, ChangeType.TRANSFERRED) and object_id:
                updates[object_id] = change
            elif change.change_type == ChangeType.DELETED and object_id:
                deleted.add(object_id)
            elif change.change_type == ChangeType.WRAPPED and object_id:
                wrapped.add(object_id)

        if not (created or updates or deleted or wrapped):
            return AffectedArtifacts()

        now = _utc_now()
        fetched = await asyncio.gather(*(rpc.get_object(change.object_id or "") for change in created))
        new_rows = [
            artifact_from_object(data, change, signer_address=signer_address, created_at=now)
            for data, change in zip(fetched, created, strict=True)
        ]

        async with _lock_for(self.objects_path):
            rows = _dedupe([*self.load(), *new_rows]) if new_rows else self.load()
            updated_rows: list[ObjectArtifact] = []
            deleted_rows: list[ObjectArtifact] = []
            wrapped_rows: list[ObjectArtifact] = []

            for index, row in enumerate(rows):
                key = _match_key(row)
                if key is None:
                    continue
                change = updates.get(key)
                if change is not None and row.deleted_at is None:
                    owner_payload = change.recipient if change.recipient is not None else change.owner
                    row = replace(
                        row,
                        owner=owner_from_rpc(owner_payload),
                        version=change.version,
                        digest=change.digest,
                    )
                    updated_rows.append(row)
                if key in deleted and row.deleted_at is None:
                    row = replace(row, deleted_at=now)
                    deleted_rows.append(row)
                if key in wrapped and row.wrapped_at is None:
                    row = replace(row, wrapped_at=now)
                    wrapped_rows.append(row)
                rows[index] = row

            if new_rows or updated_rows or deleted_rows or wrapped_rows:
                self._write_rows(self.objects_path, [row.to_dict() for row in rows])

        affected = AffectedArtifacts(
            created=tuple(new_rows),
            updated=tuple(updated_rows),
            deleted=tuple(deleted_rows),
            wrapped=tuple(wrapped_rows),
        )
        logger.debug(
            "artifacts_recorded",
            network=self._network,
            created=len(new_rows),
            updated=len(updated_rows),
            deleted=len(deleted_rows),
            wrapped=len(wrapped_rows),
        )
        return affected

    # -- deployments --------------------------------------------------------

    def load_deployments(self) -> list[PublishArtifact]:
        return [PublishArtifact.from_dict(row) for row in self._read_rows(self.deployments_path)]

    async def record_publish(self, artifact: PublishArtifact) -> list[PublishArtifact]:
        """Append a publish record; an older record for the same package id is dropped."""
        async with _lock_for(self.deployments_path):
            existing = [
                row for row in self.load_deployments() if _safe_id(row.package_id) != _safe_id(artifact.package_id)
            ]
            deployments = [*existing, artifact]
            self._write_rows(self.deployments_path, [row.to_dict() for row in deployments])
        return deployments

    def latest_deployment(self, package_name: str | None = None) -> PublishArtifact | None:
        for row in reversed(self.load_deployments()):
            if package_name is None or row.package_name == package_name:
                return row
        return None
