"""Shared contracts for cross-boundary data types.

This package is a LEAF MODULE with no outbound dependencies to core/engine.
Settings are NOT re-exported here; import them from sandnet.core.config.

Import patterns:
    from sandnet.contracts import FundingRequirement, ObjectArtifact, NodeState
"""

from sandnet.contracts.artifacts import (
    AffectedArtifacts,
    ObjectArtifact,
    OwnerArtifact,
    PublishArtifact,
)
from sandnet.contracts.enums import (
    NODE_TRANSITIONS,
    ChangeType,
    ExecutionStatus,
    FundingSource,
    HarnessMode,
    NodeState,
    OwnerType,
    RequestType,
)
from sandnet.contracts.errors import (
    ArtifactStoreError,
    ExecutionError,
    FaucetError,
    FaucetExhaustedError,
    FundingError,
    FundingUnavailableError,
    GenesisError,
    InvalidStateTransition,
    KeystoreError,
    LocalnetDisabledError,
    NodeExitedError,
    NodeSpawnError,
    NoGasCoinError,
    PackageBuildError,
    PollTimeoutError,
    PortNegotiationError,
    ProvisioningError,
    ReadinessTimeoutError,
    RpcError,
    SandnetError,
    StartLockTimeoutError,
    TransactionFailedError,
    TreasuryNotFoundError,
)
from sandnet.contracts.execution import (
    CoinRef,
    Conflict,
    ExecutionResult,
    LockedResources,
    NoConflict,
    ObjectChange,
    StaleResource,
)
from sandnet.contracts.funding import (
    DEFAULT_MINIMUM_COIN_BALANCE,
    DEFAULT_MINIMUM_COIN_COUNT,
    FundingOutcome,
    FundingRequirement,
    FundingSnapshot,
)
from sandnet.contracts.network import (
    DEFAULT_EVENT_PORT,
    DEFAULT_FAUCET_PORT,
    DEFAULT_RPC_PORT,
    PortAssignment,
    ReadinessSnapshot,
)

__all__ = [
    # artifacts
    "AffectedArtifacts",
    "ObjectArtifact",
    "OwnerArtifact",
    "PublishArtifact",
    # enums
    "NODE_TRANSITIONS",
    "ChangeType",
    "ExecutionStatus",
    "FundingSource",
    "HarnessMode",
    "NodeState",
    "OwnerType",
    "RequestType",
    # errors
    "ArtifactStoreError",
    "ExecutionError",
    "FaucetError",
    "FaucetExhaustedError",
    "FundingError",
    "FundingUnavailableError",
    "GenesisError",
    "InvalidStateTransition",
    "KeystoreError",
    "LocalnetDisabledError",
    "NoGasCoinError",
    "NodeExitedError",
    "NodeSpawnError",
    "PackageBuildError",
    "PollTimeoutError",
    "PortNegotiationError",
    "ProvisioningError",
    "ReadinessTimeoutError",
    "RpcError",
    "SandnetError",
    "StartLockTimeoutError",
    "TransactionFailedError",
    "TreasuryNotFoundError",
    # execution
    "CoinRef",
    "Conflict",
    "ExecutionResult",
    "LockedResources",
    "NoConflict",
    "ObjectChange",
    "StaleResource",
    # funding
    "DEFAULT_MINIMUM_COIN_BALANCE",
    "DEFAULT_MINIMUM_COIN_COUNT",
    "FundingOutcome",
    "FundingRequirement",
    "FundingSnapshot",
    # network
    "DEFAULT_EVENT_PORT",
    "DEFAULT_FAUCET_PORT",
    "DEFAULT_RPC_PORT",
    "PortAssignment",
    "ReadinessSnapshot",
]
