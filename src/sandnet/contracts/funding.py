"""Funding requirement and holdings snapshot."""

from __future__ import annotations

from dataclasses import dataclass

from sandnet.contracts.enums import FundingSource

DEFAULT_MINIMUM_COIN_COUNT = 2
DEFAULT_MINIMUM_COIN_BALANCE = 500_000_000


@dataclass(frozen=True, slots=True)
class FundingRequirement:
    """What an account must hold before a test may use it.

    Satisfied iff the account holds at least ``minimum_resource_count`` coins,
    their sum is at least ``minimum_balance``, and at least one coin alone is
    worth ``minimum_per_resource_balance`` (a pile of dust cannot pay gas).
    """

    minimum_balance: int
    minimum_resource_count: int = DEFAULT_MINIMUM_COIN_COUNT
    minimum_per_resource_balance: int = DEFAULT_MINIMUM_COIN_BALANCE

    def __post_init__(self) -> None:
        if self.minimum_balance < 0:
            raise ValueError("minimum_balance must be >= 0")
        if self.minimum_resource_count < 0:
            raise ValueError("minimum_resource_count must be >= 0")
        if self.minimum_per_resource_balance < 0:
            raise ValueError("minimum_per_resource_balance must be >= 0")

    @classmethod
    def create(
        cls,
        *,
        minimum_balance: int | None = None,
        minimum_resource_count: int | None = None,
        minimum_per_resource_balance: int | None = None,
    ) -> FundingRequirement:
        """Fill unset fields with defaults; aggregate defaults to per-coin x count."""
        count = DEFAULT_MINIMUM_COIN_COUNT if minimum_resource_count is None else minimum_resource_count
        per_coin = DEFAULT_MINIMUM_COIN_BALANCE if minimum_per_resource_balance is None else minimum_per_resource_balance
        balance = per_coin * count if minimum_balance is None else minimum_balance
        return cls(
            minimum_balance=balance,
            minimum_resource_count=count,
            minimum_per_resource_balance=per_coin,
        )


@dataclass(frozen=True, slots=True)
class FundingSnapshot:
    """Observed coin holdings of one account."""

    coin_count: int
    total_balance: int
    largest_coin: int

    def satisfies(self, requirement: FundingRequirement) -> bool:
        return not self.shortfall(requirement)

    def shortfall(self, requirement: FundingRequirement) -> list[str]:
        """Each unmet clause of the requirement, as readable text."""
        missing: list[str] = []
        if self.coin_count < requirement.minimum_resource_count:
            missing.append(f"has {self.coin_count} coin(s), needs {requirement.minimum_resource_count}")
        if self.total_balance < requirement.minimum_balance:
            missing.append(f"balance {self.total_balance} below {requirement.minimum_balance}")
        if self.largest_coin < requirement.minimum_per_resource_balance:
            missing.append(
                f"largest coin {self.largest_coin} below per-coin minimum {requirement.minimum_per_resource_balance}"
            )
        return missing


@dataclass(frozen=True, slots=True)
class FundingOutcome:
    """Result of a fund() call."""

    address: str
    source: FundingSource
    snapshot: FundingSnapshot
    digest: str | None = None
    faucet_attempts: int = 0
