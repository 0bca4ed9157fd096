"""Network-facing value types: negotiated ports and readiness snapshots."""

from __future__ import annotations

from dataclasses import dataclass

DEFAULT_RPC_PORT = 9000
DEFAULT_EVENT_PORT = 9001
DEFAULT_FAUCET_PORT = 9123


@dataclass(frozen=True, slots=True)
class PortAssignment:
    """Ports negotiated for one localnet instance.

    All assigned ports are pairwise distinct.
    """

    rpc_port: int
    event_port: int
    faucet_port: int | None = None

    def __post_init__(self) -> None:
        ports = self.as_tuple()
        if len(set(ports)) != len(ports):
            raise ValueError(f"Port assignment contains duplicates: {ports}")

    def as_tuple(self) -> tuple[int, ...]:
        if self.faucet_port is None:
            return (self.rpc_port, self.event_port)
        return (self.rpc_port, self.event_port, self.faucet_port)

    @property
    def all_defaults(self) -> bool:
        """True when no port had to move off its canonical default."""
        return (
            self.rpc_port == DEFAULT_RPC_PORT
            and self.event_port == DEFAULT_EVENT_PORT
            and self.faucet_port in (None, DEFAULT_FAUCET_PORT)
        )


@dataclass(frozen=True, slots=True)
class ReadinessSnapshot:
    """Point-in-time network health captured when the node became ready."""

    rpc_url: str
    epoch: str
    protocol_version: str
    latest_checkpoint: str
    validator_count: int
    reference_gas_price: str
    epoch_start_timestamp_ms: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "rpc_url": self.rpc_url,
            "epoch": self.epoch,
            "protocol_version": self.protocol_version,
            "latest_checkpoint": self.latest_checkpoint,
            "validator_count": self.validator_count,
            "reference_gas_price": self.reference_gas_price,
            "epoch_start_timestamp_ms": self.epoch_start_timestamp_ms,
        }
