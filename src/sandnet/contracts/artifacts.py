"""Artifact rows persisted by the object artifact ledger.

On disk the rows are camelCase JSON so artifact files stay readable by the
other tooling that consumes them (indexers, deployment scripts).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sandnet.contracts.enums import OwnerType

_OWNER_TYPE_WIRE: dict[OwnerType, str] = {
    OwnerType.ADDRESS: "address",
    OwnerType.CONSENSUS_ADDRESS: "consensus-address",
    OwnerType.OBJECT: "object",
    OwnerType.SHARED: "shared",
    OwnerType.IMMUTABLE: "immutable",
    OwnerType.UNKNOWN: "unknown",
}
_OWNER_TYPE_FROM_WIRE = {wire: owner_type for owner_type, wire in _OWNER_TYPE_WIRE.items()}


def _drop_none(data: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in data.items() if value is not None}


@dataclass(frozen=True, slots=True)
class OwnerArtifact:
    """Normalized object ownership."""

    owner_type: OwnerType
    address: str | None = None
    object_id: str | None = None
    initial_shared_version: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "ownerType": _OWNER_TYPE_WIRE[self.owner_type],
                "address": self.address,
                "objectId": self.object_id,
                "initialSharedVersion": self.initial_shared_version,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OwnerArtifact:
        return cls(
            owner_type=_OWNER_TYPE_FROM_WIRE.get(data.get("ownerType", ""), OwnerType.UNKNOWN),
            address=data.get("address"),
            object_id=data.get("objectId"),
            initial_shared_version=data.get("initialSharedVersion"),
        )


@dataclass(frozen=True, slots=True)
class ObjectArtifact:
    """One tracked ledger object, keyed by normalized ``object_id``.

    Rows are never removed. Consumption is recorded by stamping
    ``deleted_at`` or ``wrapped_at`` so diagnostics can tell "never existed"
    apart from "once live, now gone".
    """

    object_id: str
    object_type: str
    package_id: str
    signer: str
    owner: OwnerArtifact | None = None
    version: str | None = None
    digest: str | None = None
    initial_shared_version: str | None = None
    dynamic_field_id: str | None = None
    created_at: str | None = None
    deleted_at: str | None = None
    wrapped_at: str | None = None

    @property
    def is_live(self) -> bool:
        return self.deleted_at is None and self.wrapped_at is None

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "packageId": self.package_id,
                "signer": self.signer,
                "objectId": self.object_id,
                "objectType": self.object_type,
                "owner": self.owner.to_dict() if self.owner is not None else None,
                "dynamicFieldId": self.dynamic_field_id,
                "initialSharedVersion": self.initial_shared_version,
                "version": self.version,
                "digest": self.digest,
                "createdAt": self.created_at,
                "deletedAt": self.deleted_at,
                "wrappedAt": self.wrapped_at,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ObjectArtifact:
        owner = data.get("owner")
        version = data.get("version")
        return cls(
            object_id=data["objectId"],
            object_type=data.get("objectType", ""),
            package_id=data.get("packageId", ""),
            signer=data.get("signer", ""),
            owner=OwnerArtifact.from_dict(owner) if isinstance(owner, dict) else None,
            version=str(version) if version is not None else None,
            digest=data.get("digest"),
            initial_shared_version=data.get("initialSharedVersion"),
            dynamic_field_id=data.get("dynamicFieldId"),
            created_at=data.get("createdAt"),
            deleted_at=data.get("deletedAt"),
            wrapped_at=data.get("wrappedAt"),
        )


@dataclass(frozen=True)
class AffectedArtifacts:
    """Rows touched by one record_changes() call, grouped by change kind."""

    created: tuple[ObjectArtifact, ...] = ()
    updated: tuple[ObjectArtifact, ...] = ()
    deleted: tuple[ObjectArtifact, ...] = ()
    wrapped: tuple[ObjectArtifact, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.created or self.updated or self.deleted or self.wrapped)


@dataclass(frozen=True, slots=True)
class PublishArtifact:
    """Record of one published Move package."""

    network: str
    rpc_url: str
    package_path: str
    package_id: str
    sender: str
    digest: str
    published_at: str
    package_name: str | None = None
    upgrade_cap: str | None = None
    modules: tuple[str, ...] = ()
    dependencies: tuple[str, ...] = field(default_factory=tuple)
    with_unpublished_dependencies: bool = False

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(
            {
                "network": self.network,
                "rpcUrl": self.rpc_url,
                "packagePath": self.package_path,
                "packageName": self.package_name,
                "packageId": self.package_id,
                "upgradeCap": self.upgrade_cap,
                "sender": self.sender,
                "digest": self.digest,
                "publishedAt": self.published_at,
                "modules": list(self.modules),
                "dependencies": list(self.dependencies),
                "withUnpublishedDependencies": self.with_unpublished_dependencies,
            }
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PublishArtifact:
        return cls(
            network=data.get("network", ""),
            rpc_url=data.get("rpcUrl", ""),
            package_path=data.get("packagePath", ""),
            package_id=data["packageId"],
            sender=data.get("sender", ""),
            digest=data.get("digest", ""),
            published_at=data.get("publishedAt", ""),
            package_name=data.get("packageName"),
            upgrade_cap=data.get("upgradeCap"),
            modules=tuple(data.get("modules") or ()),
            dependencies=tuple(data.get("dependencies") or ()),
            with_unpublished_dependencies=bool(data.get("withUnpublishedDependencies", False)),
        )
