# src/sandnet/engine/funding.py
"""AccountFundingService: bring synthetic accounts up to a FundingRequirement.

Two sources, chosen at construction time:

- Treasury: a pre-funded keystore account found at localnet start. One
  PaySui transaction splits its gas coin into the required number of shares
  and sends them all to the target, so partial funding is never observable.
- Faucet: repeated faucet requests, each round followed by a bounded poll
  of the target's holdings.

fund() is idempotent: an account that already satisfies the requirement
is left untouched.
"""

from __future__ import annotations

import asyncio
import math
from typing import Any

import structlog

from sandnet.clients.faucet import FaucetClient
from sandnet.contracts.enums import FundingSource
from sandnet.contracts.errors import FaucetError, FaucetExhaustedError, FundingUnavailableError, PollTimeoutError
from sandnet.contracts.funding import FundingOutcome, FundingRequirement, FundingSnapshot
from sandnet.core.keys import SyntheticAccount
from sandnet.core.polling import poll_until
from sandnet.engine.executor import TransactionExecutor
from sandnet.engine.operations import PaySui

logger = structlog.get_logger(__name__)

DEFAULT_FAUCET_ATTEMPTS = 5
FAUCET_REQUEST_DELAY_MS = 50


class AccountFundingService:
    """Funds accounts from a treasury account or a faucet.

    Example:
        funding = AccountFundingService(rpc, executor, treasury=instance.treasury)
        await funding.fund(account.address, FundingRequirement.create(minimum_resource_count=3))
    """

    def __init__(
        self,
        rpc: Any,
        executor: TransactionExecutor,
        *,
        treasury: SyntheticAccount | None = None,
        faucet: FaucetClient | None = None,
        faucet_attempts: int = DEFAULT_FAUCET_ATTEMPTS,
        poll_timeout_ms: int = 10_000,
        poll_interval_ms: int = 250,
    ) -> None:
        self._rpc = rpc
        self._executor = executor
        self._treasury = treasury
        self._faucet = faucet
        self._faucet_attempts = faucet_attempts
        self._poll_timeout_ms = poll_timeout_ms
        self._poll_interval_ms = poll_interval_ms

    @property
    def source(self) -> FundingSource | None:
        """The path fund() will take for an underfunded account."""
        if self._treasury is not None:
            return FundingSource.TREASURY
        if self._faucet is not None:
            return FundingSource.FAUCET
        return None

    async def snapshot(self, address: str) -> FundingSnapshot:
        count = 0
        total = 0
        largest = 0
        async for coin in self._rpc.iter_coins(address):
            count += 1
            total += coin.balance
            largest = max(largest, coin.balance)
        return FundingSnapshot(coin_count=count, total_balance=total, largest_coin=largest)

    async def fund(self, address: str, requirement: FundingRequirement | None = None) -> FundingOutcome:
        """Ensure ``address`` satisfies ``requirement``.

        Raises:
            FundingUnavailableError: No treasury and no faucet
            FaucetExhaustedError: Faucet rounds ran out before the requirement was met
            ExecutionError: The treasury transfer failed
        """
        requirement = requirement or FundingRequirement.create()
        current = await self.snapshot(address)
        if current.satisfies(requirement):
            logger.debug("funding_already_satisfied", address=address)
            return FundingOutcome(address=address, source=FundingSource.ALREADY_FUNDED, snapshot=current)

        if self._treasury is not None:
            return await self._fund_from_treasury(address, requirement, self._treasury)
        if self._faucet is not None:
            return await self._fund_from_faucet(address, requirement, current, self._faucet)

        raise FundingUnavailableError(
            "No funded treasury account and no faucet available; start the localnet with a faucet "
            "(SANDNET_WITH_FAUCET=1) or set SANDNET_TREASURY_INDEX",
            address=address,
            shortfall="; ".join(current.shortfall(requirement)),
        )

    async def _fund_from_treasury(
        self,
        address: str,
        requirement: FundingRequirement,
        treasury: SyntheticAccount,
    ) -> FundingOutcome:
        count = max(1, requirement.minimum_resource_count)
        share = max(math.ceil(requirement.minimum_balance / count), requirement.minimum_per_resource_balance)
        operation = PaySui.split_to(address, count=count, amount_each=share)

        result = await self._executor.execute_with_retry(operation, treasury)
        after = await self.snapshot(address)
        logger.info(
            "funding_complete",
            address=address,
            source=str(FundingSource.TREASURY),
            coins=count,
            amount_each=share,
            digest=result.digest,
        )
        return FundingOutcome(address=address, source=FundingSource.TREASURY, snapshot=after, digest=result.digest)

    async def _fund_from_faucet(
        self,
        address: str,
        requirement: FundingRequirement,
        current: FundingSnapshot,
        faucet: FaucetClient,
    ) -> FundingOutcome:
        for attempt in range(1, self._faucet_attempts + 1):
            missing = max(1, requirement.minimum_resource_count - current.coin_count)
            try:
                for _ in range(missing):
                    await faucet.request_gas(address)
                    await asyncio.sleep(FAUCET_REQUEST_DELAY_MS / 1000)
            except FaucetError as error:
                logger.warning("faucet_request_failed", address=address, attempt=attempt, error=str(error))
                await asyncio.sleep(FAUCET_REQUEST_DELAY_MS / 1000)
                current = await self.snapshot(address)
                continue

            try:
                current = await poll_until(
                    lambda: self._satisfied_snapshot(address, requirement),
                    timeout_ms=self._poll_timeout_ms,
                    interval_ms=self._poll_interval_ms,
                    description=f"funding of {address}",
                )
            except PollTimeoutError:
                current = await self.snapshot(address)
                logger.debug("faucet_round_unsatisfied", address=address, attempt=attempt)
                continue

            logger.info("funding_complete", address=address, source=str(FundingSource.FAUCET), attempts=attempt)
            return FundingOutcome(
                address=address,
                source=FundingSource.FAUCET,
                snapshot=current,
                faucet_attempts=attempt,
            )

        raise FaucetExhaustedError(
            faucet.faucet_url,
            address=address,
            attempts=self._faucet_attempts,
            shortfall="; ".join(current.shortfall(requirement)) or None,
        )

    async def _satisfied_snapshot(self, address: str, requirement: FundingRequirement) -> FundingSnapshot | None:
        snapshot = await self.snapshot(address)
        return snapshot if snapshot.satisfies(requirement) else None
