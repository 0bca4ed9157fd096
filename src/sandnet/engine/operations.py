# src/sandnet/engine/operations.py
"""State-mutating operations the executor can submit.

An operation knows how to turn itself into unsigned transaction bytes for a
sender, given the fee-payment coin currently assigned to it. The executor
owns gas selection: it sets ``gas_payment`` before the first build and
replaces it when a conflict forces a retry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from sandnet.clients.rpc import LedgerRpcClient

DEFAULT_GAS_BUDGET = 100_000_000


@dataclass(kw_only=True)
class Operation(ABC):
    """Base for submittable operations.

    Attributes:
        gas_budget: Maximum gas in MIST
        gas_payment: Object id of the coin paying gas; None lets the
            executor pick the signer's freshest coin
    """

    gas_budget: int = DEFAULT_GAS_BUDGET
    gas_payment: str | None = None

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    async def build(self, rpc: LedgerRpcClient, sender: str) -> str:
        """Return base64 BCS transaction bytes for ``sender``."""


@dataclass(kw_only=True)
class MoveCall(Operation):
    """Call ``package::module::function``.

    ``arguments`` are passed as JSON values the node resolves against the
    function signature (object ids as strings, pure values as-is).
    """

    package_id: str
    module: str
    function: str
    type_arguments: list[str] = field(default_factory=list)
    arguments: list[Any] = field(default_factory=list)

    @classmethod
    def target(cls, target: str, **kwargs: Any) -> MoveCall:
        """Construct from a ``package::module::function`` string."""
        package_id, module, function = target.split("::")
        return cls(package_id=package_id, module=module, function=function, **kwargs)

    async def build(self, rpc: LedgerRpcClient, sender: str) -> str:
        return await rpc.unsafe_move_call(
            sender,
            self.package_id,
            self.module,
            self.function,
            self.type_arguments,
            self.arguments,
            self.gas_payment,
            self.gas_budget,
        )


@dataclass(kw_only=True)
class TransferObject(Operation):
    """Transfer one owned object to ``recipient``."""

    object_id: str
    recipient: str

    async def build(self, rpc: LedgerRpcClient, sender: str) -> str:
        return await rpc.unsafe_transfer_object(sender, self.object_id, self.gas_payment, self.gas_budget, self.recipient)


@dataclass(kw_only=True)
class PaySui(Operation):
    """Split the gas coin into ``amounts`` and send each share to its recipient.

    The gas coin is the only input coin, so the whole payment is one atomic
    transaction: either every share lands or none does.
    """

    recipients: list[str]
    amounts: list[int]

    def __post_init__(self) -> None:
        if len(self.recipients) != len(self.amounts):
            raise ValueError("recipients and amounts must have the same length")
        if not self.recipients:
            raise ValueError("PaySui needs at least one recipient")

    @classmethod
    def split_to(cls, recipient: str, *, count: int, amount_each: int, **kwargs: Any) -> PaySui:
        return cls(recipients=[recipient] * count, amounts=[amount_each] * count, **kwargs)

    @property
    def total(self) -> int:
        return sum(self.amounts)

    async def build(self, rpc: LedgerRpcClient, sender: str) -> str:
        if self.gas_payment is None:
            raise ValueError("PaySui requires gas_payment to be assigned before build")
        return await rpc.unsafe_pay_sui(sender, [self.gas_payment], self.recipients, self.amounts, self.gas_budget)


@dataclass(kw_only=True)
class Publish(Operation):
    """Publish compiled Move modules (base64) with their dependency ids."""

    modules: list[str]
    dependencies: list[str]
    gas_budget: int = 500_000_000

    async def build(self, rpc: LedgerRpcClient, sender: str) -> str:
        return await rpc.unsafe_publish(sender, self.modules, self.dependencies, self.gas_payment, self.gas_budget)
