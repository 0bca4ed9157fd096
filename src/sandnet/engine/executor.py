# src/sandnet/engine/executor.py
"""TransactionExecutor: conflict-aware signing and submission.

Uses a tenacity retry loop with a narrow retry predicate: only failures the
ConflictClassifier recognizes as stale or locked objects are retried, and
with the default max_attempts=2 at most ONE retry ever happens. Every other
failure propagates on the first attempt so test assertions see the ledger's
own failure reason.

Before a retry the fee-payment coin is re-selected, excluding every object
id the failure surfaced. Successful executions (first attempt or retry)
record their object changes in the artifact ledger before returning.
"""

from __future__ import annotations

import base64
from collections.abc import Callable
from typing import Any, Protocol

import structlog
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_none

from sandnet.contracts.artifacts import AffectedArtifacts
from sandnet.contracts.enums import ExecutionStatus, RequestType
from sandnet.contracts.errors import ExecutionError, NoGasCoinError, RpcError, TransactionFailedError
from sandnet.contracts.execution import CoinRef, ExecutionResult, NoConflict, ObjectChange
from sandnet.core.artifacts import ObjectArtifactLedger
from sandnet.core.identifiers import normalize_object_id
from sandnet.engine.conflicts import ConflictClassifier
from sandnet.engine.operations import Operation

logger = structlog.get_logger(__name__)

DEFAULT_MAX_ATTEMPTS = 2


class Signer(Protocol):
    @property
    def address(self) -> str: ...

    def sign_transaction(self, tx_bytes: bytes) -> str: ...


def _is_conflict(error: BaseException) -> bool:
    return isinstance(error, ExecutionError) and error.is_conflict


def _safe_id(value: str) -> str:
    try:
        return normalize_object_id(value)
    except ValueError:
        return value.lower()


def _execution_status(response: dict[str, Any]) -> tuple[ExecutionStatus, str | None]:
    status = ((response.get("effects") or {}).get("status")) or {}
    if status.get("status") == "success":
        return ExecutionStatus.SUCCESS, None
    return ExecutionStatus.FAILURE, status.get("error") or "Transaction effects missing or reported failure"


class TransactionExecutor:
    """Signs, submits and (on narrow conflicts) retries operations.

    Example:
        executor = TransactionExecutor(rpc, ledger)
        result = await executor.execute_with_retry(
            MoveCall.target(f"{pkg}::shop::create_shop", arguments=[...]),
            owner,
        )
    """

    def __init__(
        self,
        rpc: Any,
        ledger: ObjectArtifactLedger | None = None,
        *,
        classifier: ConflictClassifier | None = None,
        request_type: RequestType = RequestType.WAIT_FOR_LOCAL_EXECUTION,
        on_retry: Callable[[int, ExecutionError], None] | None = None,
    ) -> None:
        """Initialize executor.

        Args:
            rpc: LedgerRpcClient (or anything with iter_coins,
                execute_transaction_block and get_object)
            ledger: Artifact ledger; None skips artifact recording
            classifier: Conflict classifier, default patterns if None
            request_type: Submission mode for executeTransactionBlock
            on_retry: Optional callback (attempt, error) before each retry
        """
        self._rpc = rpc
        self._ledger = ledger
        self._classifier = classifier or ConflictClassifier()
        self._request_type = request_type
        self._on_retry = on_retry

    @property
    def rpc(self) -> Any:
        return self._rpc

    @property
    def ledger(self) -> ObjectArtifactLedger | None:
        return self._ledger

    async def select_gas_coin(self, owner: str, exclude: frozenset[str] = frozenset()) -> CoinRef:
        """First SUI coin owned by ``owner`` whose id is not in ``exclude``.

        Raises:
            NoGasCoinError: If every coin is excluded or the owner has none
        """
        async for coin in self._rpc.iter_coins(owner):
            if _safe_id(coin.object_id) not in exclude:
                return coin
        raise NoGasCoinError(owner, exclude)

    async def execute_with_retry(
        self,
        operation: Operation,
        signer: Signer,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        *,
        retry_on_conflict: bool = True,
        assert_success: bool = True,
    ) -> ExecutionResult:
        """Execute ``operation`` signed by ``signer``.

        Args:
            operation: Operation to submit; gas_payment is assigned if unset
            signer: Account signing and paying gas
            max_attempts: TOTAL submissions allowed for conflict failures
            retry_on_conflict: False forces a single attempt
            assert_success: Raise TransactionFailedError on failed effects;
                False returns the failed result instead

        Returns:
            ExecutionResult with recorded artifacts

        Raises:
            ExecutionError: Non-conflict failure, or conflict on the final attempt
            NoGasCoinError: No spendable gas coin could be selected
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        attempts_allowed = max_attempts if retry_on_conflict else 1

        if operation.gas_payment is None:
            operation.gas_payment = (await self.select_gas_coin(signer.address)).object_id

        excluded: set[str] = set()
        attempt = 0
        last_error: ExecutionError | None = None

        try:
            async for attempt_state in AsyncRetrying(
                stop=stop_after_attempt(attempts_allowed),
                wait=wait_none(),
                retry=retry_if_exception(_is_conflict),
                reraise=True,
            ):
                with attempt_state:
                    attempt = attempt_state.retry_state.attempt_number
                    if last_error is not None and last_error.conflict is not None:
                        excluded.update(_safe_id(object_id) for object_id in last_error.conflict.object_ids)
                        coin = await self.select_gas_coin(signer.address, frozenset(excluded))
                        operation.gas_payment = coin.object_id
                    try:
                        return await self._execute_once(operation, signer, attempt, assert_success)
                    except ExecutionError as error:
                        last_error = error
                        if _is_conflict(error) and attempt < attempts_allowed:
                            logger.warning(
                                "gas_conflict_retry",
                                operation=operation.name,
                                signer=signer.address,
                                attempt=attempt,
                                conflict=type(error.conflict).__name__,
                                object_ids=list(error.conflict.object_ids) if error.conflict else [],
                            )
                            if self._on_retry is not None:
                                self._on_retry(attempt, error)
                        raise
        except ExecutionError as error:
            error.attempts = attempt
            raise

        # AsyncRetrying always returns or raises
        raise RuntimeError("Unexpected state in retry loop")  # pragma: no cover

    async def _execute_once(
        self,
        operation: Operation,
        signer: Signer,
        attempt: int,
        assert_success: bool,
    ) -> ExecutionResult:
        try:
            tx_bytes = await operation.build(self._rpc, signer.address)
            signature = signer.sign_transaction(base64.b64decode(tx_bytes))
            response = await self._rpc.execute_transaction_block(
                tx_bytes,
                [signature],
                request_type=self._request_type,
            )
        except RpcError as error:
            message = str(error)
            raise ExecutionError(message, conflict=self._classifier.classify(message)) from error

        digest = str(response.get("digest", ""))
        status, failure = _execution_status(response)
        if status != ExecutionStatus.SUCCESS and assert_success:
            message = failure or "Transaction failed"
            raise TransactionFailedError(message, conflict=self._classifier.classify(message), digest=digest)

        changes = tuple(ObjectChange.from_rpc(change) for change in response.get("objectChanges") or [])
        artifacts = AffectedArtifacts()
        if status == ExecutionStatus.SUCCESS and self._ledger is not None:
            try:
                artifacts = await self._ledger.record_changes(changes, rpc=self._rpc, signer_address=signer.address)
            except RpcError as error:
                # Executed on chain; never resubmit
                raise ExecutionError(
                    f"Transaction {digest} succeeded but recording its artifacts failed: {error}",
                    conflict=NoConflict(),
                    digest=digest,
                ) from error

        logger.debug("transaction_executed", operation=operation.name, digest=digest, status=str(status), attempt=attempt)
        return ExecutionResult(
            digest=digest,
            status=status,
            artifacts=artifacts,
            error=failure,
            object_changes=changes,
            events=tuple(response.get("events") or ()),
            attempts=attempt,
            response=response,
        )
