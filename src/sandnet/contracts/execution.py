"""Transaction execution types.

Conflict is a closed set of variants produced by the conflict classifier:

    StaleResource(object_id)     - an input object version is out of date
    LockedResources(object_ids)  - inputs are locked by another transaction
    NoConflict()                 - anything else; never retried
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sandnet.contracts.enums import ChangeType, ExecutionStatus

if TYPE_CHECKING:
    from sandnet.contracts.artifacts import AffectedArtifacts


@dataclass(frozen=True, slots=True)
class CoinRef:
    """Reference to a coin object at a specific version."""

    object_id: str
    version: str
    digest: str
    balance: int = 0
    coin_type: str = "0x2::sui::SUI"

    @classmethod
    def from_rpc(cls, data: dict[str, Any]) -> CoinRef:
        return cls(
            object_id=data["coinObjectId"],
            version=str(data["version"]),
            digest=data["digest"],
            balance=int(data["balance"]),
            coin_type=data.get("coinType", "0x2::sui::SUI"),
        )


@dataclass(frozen=True, slots=True)
class ObjectChange:
    """One entry of a transaction's objectChanges."""

    change_type: ChangeType
    object_id: str | None = None
    object_type: str | None = None
    version: str | None = None
    digest: str | None = None
    sender: str | None = None
    owner: Any = None
    recipient: Any = None
    package_id: str | None = None
    modules: tuple[str, ...] = ()

    @classmethod
    def from_rpc(cls, data: dict[str, Any]) -> ObjectChange:
        return cls(
            change_type=ChangeType(data["type"]),
            object_id=data.get("objectId"),
            object_type=data.get("objectType"),
            version=str(data["version"]) if data.get("version") is not None else None,
            digest=data.get("digest"),
            sender=data.get("sender"),
            owner=data.get("owner"),
            recipient=data.get("recipient"),
            package_id=data.get("packageId"),
            modules=tuple(data.get("modules") or ()),
        )


# =============================================================================
# Conflict classification
# =============================================================================


class Conflict:
    """Base of the conflict variants."""

    __slots__ = ()

    @property
    def retryable(self) -> bool:
        return False

    @property
    def object_ids(self) -> tuple[str, ...]:
        return ()


@dataclass(frozen=True, slots=True)
class StaleResource(Conflict):
    """An input object was referenced at an outdated version."""

    object_id: str

    @property
    def retryable(self) -> bool:
        return True

    @property
    def object_ids(self) -> tuple[str, ...]:
        return (self.object_id,)


@dataclass(frozen=True, slots=True)
class LockedResources(Conflict):
    """Inputs are locked or reserved by a different transaction."""

    ids: tuple[str, ...] = ()

    @property
    def retryable(self) -> bool:
        return True

    @property
    def object_ids(self) -> tuple[str, ...]:
        return self.ids


@dataclass(frozen=True, slots=True)
class NoConflict(Conflict):
    """Failure text matched no conflict pattern."""


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of a submitted transaction.

    ``response`` keeps the raw RPC payload for callers that need fields this
    type does not surface.
    """

    digest: str
    status: ExecutionStatus
    artifacts: AffectedArtifacts
    error: str | None = None
    object_changes: tuple[ObjectChange, ...] = ()
    events: tuple[dict[str, Any], ...] = ()
    attempts: int = 1
    response: dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def succeeded(self) -> bool:
        return self.status == ExecutionStatus.SUCCESS
