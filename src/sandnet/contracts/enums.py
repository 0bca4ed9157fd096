"""All status codes, modes, and kinds used across subsystem boundaries."""

from enum import StrEnum


class NodeState(StrEnum):
    """Lifecycle state of a spawned localnet node.

    Legal transitions are listed in NODE_TRANSITIONS. Anything else is a
    programming error and raises InvalidStateTransition.
    """

    NOT_STARTED = "not_started"
    STARTING = "starting"
    READY = "ready"
    STOPPING = "stopping"
    STOPPED = "stopped"
    FAILED = "failed"


NODE_TRANSITIONS: dict[NodeState, frozenset[NodeState]] = {
    NodeState.NOT_STARTED: frozenset({NodeState.STARTING}),
    NodeState.STARTING: frozenset({NodeState.READY, NodeState.FAILED, NodeState.STOPPING}),
    NodeState.READY: frozenset({NodeState.STOPPING}),
    NodeState.STOPPING: frozenset({NodeState.STOPPED}),
    NodeState.STOPPED: frozenset(),
    NodeState.FAILED: frozenset({NodeState.STOPPING}),
}


class HarnessMode(StrEnum):
    """Whether one localnet serves a whole suite or each test gets its own."""

    SUITE = "suite"
    TEST = "test"


class ChangeType(StrEnum):
    """Object change kinds reported in transaction responses.

    Values match the ``type`` field of Sui ``objectChanges`` entries.
    """

    CREATED = "created"
    MUTATED = "mutated"
    TRANSFERRED = "transferred"
    DELETED = "deleted"
    WRAPPED = "wrapped"
    PUBLISHED = "published"


class OwnerType(StrEnum):
    """Ownership variants of a ledger object."""

    ADDRESS = "address"
    OBJECT = "object"
    SHARED = "shared"
    IMMUTABLE = "immutable"
    CONSENSUS_ADDRESS = "consensus_address"
    UNKNOWN = "unknown"


class ExecutionStatus(StrEnum):
    """Outcome reported by transaction effects."""

    SUCCESS = "success"
    FAILURE = "failure"


class RequestType(StrEnum):
    """Submission mode for sui_executeTransactionBlock."""

    WAIT_FOR_EFFECTS_CERT = "WaitForEffectsCert"
    WAIT_FOR_LOCAL_EXECUTION = "WaitForLocalExecution"


class FundingSource(StrEnum):
    """Which path satisfied a funding request."""

    ALREADY_FUNDED = "already_funded"
    TREASURY = "treasury"
    FAUCET = "faucet"
