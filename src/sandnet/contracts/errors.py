"""Exception hierarchy for the harness.

Every error raised across a component boundary derives from SandnetError so
test runners can distinguish harness failures from assertion failures.

Provisioning errors are fatal to start(); funding errors are fatal to a single
fund() call; execution errors carry the conflict classification that decided
whether the retry wrapper recovered locally.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from sandnet.contracts.enums import NodeState
    from sandnet.contracts.execution import Conflict


class SandnetError(Exception):
    """Base class for all harness errors."""


# =============================================================================
# Provisioning
# =============================================================================


class ProvisioningError(SandnetError):
    """Localnet could not be brought up.

    Attributes:
        log_tail: Last lines of the node log, when one was captured.
    """

    def __init__(self, message: str, *, log_tail: str | None = None) -> None:
        self.log_tail = log_tail
        if log_tail:
            message = f"{message}\n--- localnet log tail ---\n{log_tail}"
        super().__init__(message)


class PortNegotiationError(ProvisioningError):
    """No usable local port could be reserved."""


class GenesisError(ProvisioningError):
    """The one-shot genesis command exited non-zero."""

    def __init__(self, command: list[str], returncode: int, output: str) -> None:
        self.command = command
        self.returncode = returncode
        super().__init__(
            f"Genesis command {' '.join(command)!r} exited with code {returncode}",
            log_tail=output or None,
        )


class NodeSpawnError(ProvisioningError):
    """The long-running node process could not be spawned."""


class NodeExitedError(ProvisioningError):
    """The node exited before reporting ready."""

    def __init__(
        self,
        returncode: int | None,
        *,
        log_tail: str | None = None,
    ) -> None:
        self.returncode = returncode
        if returncode is not None and returncode < 0:
            reason = f"signal {-returncode}"
        else:
            reason = f"code {returncode}"
        super().__init__(f"Localnet exited early ({reason})", log_tail=log_tail)


class ReadinessTimeoutError(ProvisioningError):
    """Node did not become ready (RPC probe, faucet port) inside the wait budget."""

    def __init__(
        self,
        target: str,
        timeout_ms: int,
        last_error: BaseException | None = None,
        *,
        log_tail: str | None = None,
    ) -> None:
        self.target = target
        self.timeout_ms = timeout_ms
        self.last_error = last_error
        detail = f": {last_error}" if last_error is not None else ""
        super().__init__(
            f"Timed out after {timeout_ms}ms waiting for {target}{detail}",
            log_tail=log_tail,
        )


class LocalnetDisabledError(ProvisioningError):
    """Localnet start was disabled through configuration."""


class StartLockTimeoutError(ProvisioningError):
    """Another process held the start lock past the wait budget."""


class TreasuryNotFoundError(ProvisioningError):
    """No funded keystore account exists and no faucet was requested."""


class InvalidStateTransition(SandnetError):
    """Lifecycle method called from a state that does not allow it."""

    def __init__(self, current: NodeState, target: NodeState) -> None:
        self.current = current
        self.target = target
        super().__init__(f"Cannot transition node from {current} to {target}")


# =============================================================================
# Funding
# =============================================================================


class FundingError(SandnetError):
    """Account could not be brought up to its funding requirement.

    Attributes:
        address: Account that was being funded.
        shortfall: Human-readable description of what is still missing.
    """

    def __init__(self, message: str, *, address: str, shortfall: str | None = None) -> None:
        self.address = address
        self.shortfall = shortfall
        if shortfall:
            message = f"{message} (shortfall: {shortfall})"
        super().__init__(message)


class FundingUnavailableError(FundingError):
    """Neither a treasury account nor a faucet is available."""


class FaucetExhaustedError(FundingError):
    """Faucet attempts ran out before the requirement was met."""

    def __init__(self, faucet_url: str, *, address: str, attempts: int, shortfall: str | None) -> None:
        self.faucet_url = faucet_url
        self.attempts = attempts
        super().__init__(
            f"Failed to fund {address} from local faucet at {faucet_url} after {attempts} attempts",
            address=address,
            shortfall=shortfall,
        )


# =============================================================================
# Execution
# =============================================================================


class ExecutionError(SandnetError):
    """A transaction failed to build, submit, or execute.

    The message is the ledger's failure text, verbatim. The original
    exception (if any) is chained as __cause__.

    Attributes:
        conflict: Classification of the failure text.
        digest: Transaction digest when the ledger assigned one.
        attempts: Number of submissions made before giving up.
    """

    def __init__(
        self,
        message: str,
        *,
        conflict: Conflict | None = None,
        digest: str | None = None,
        attempts: int = 1,
    ) -> None:
        self.conflict = conflict
        self.digest = digest
        self.attempts = attempts
        super().__init__(message)

    @property
    def is_conflict(self) -> bool:
        """True when the failure names a stale or locked object."""
        return self.conflict is not None and self.conflict.retryable


class TransactionFailedError(ExecutionError):
    """Effects reported a non-success status."""


class NoGasCoinError(ExecutionError):
    """Signer owns no spendable SUI coin outside the exclusion set."""

    def __init__(self, owner: str, excluded: frozenset[str] = frozenset()) -> None:
        self.owner = owner
        self.excluded = excluded
        suffix = f" (excluded {len(excluded)} coin(s))" if excluded else ""
        super().__init__(f"No usable SUI coins available for gas for {owner}{suffix}")


# =============================================================================
# Transport / storage
# =============================================================================


class RpcError(SandnetError):
    """JSON-RPC call returned an error object or an unusable response."""

    def __init__(self, message: str, *, method: str, code: int | None = None) -> None:
        self.method = method
        self.code = code
        super().__init__(message)


class FaucetError(SandnetError):
    """Faucet request was rejected or could not be delivered."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ArtifactStoreError(SandnetError):
    """Artifact file exists but is not a JSON array of artifact rows."""


class KeystoreError(SandnetError):
    """Keystore file or entry could not be decoded."""


class PackageBuildError(SandnetError):
    """Move package build command failed."""

    def __init__(self, package_path: str, returncode: int, output: str) -> None:
        self.package_path = package_path
        self.returncode = returncode
        self.output = output
        super().__init__(f"Failed to build Move package at {package_path} (exit {returncode}):\n{output}")


class PollTimeoutError(SandnetError):
    """Polling loop exhausted its time budget."""

    def __init__(self, description: str, timeout_ms: int, last_error: BaseException | None = None) -> None:
        self.description = description
        self.timeout_ms = timeout_ms
        self.last_error = last_error
        detail = f" (last error: {last_error})" if last_error is not None else ""
        super().__init__(f"Timed out after {timeout_ms}ms waiting for {description}{detail}")
