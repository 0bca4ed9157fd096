# src/sandnet/clients/rpc.py
"""Async JSON-RPC client for a Sui full node.

Covers the subset of the node API the harness needs: health and system
state reads, coin and object lookups, event queries, transaction submission,
and the node-side ``unsafe_*`` transaction builders (which return unsigned
BCS transaction bytes, so no client-side transaction serialization is needed).
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import AsyncIterator
from typing import Any

import httpx
import structlog

from sandnet.contracts.enums import RequestType
from sandnet.contracts.errors import RpcError
from sandnet.contracts.execution import CoinRef
from sandnet.contracts.network import ReadinessSnapshot

logger = structlog.get_logger(__name__)

SUI_COIN_TYPE = "0x2::sui::SUI"
COIN_PAGE_LIMIT = 50

DEFAULT_OBJECT_OPTIONS: dict[str, bool] = {
    "showType": True,
    "showOwner": True,
    "showContent": True,
}
DEFAULT_EXECUTION_OPTIONS: dict[str, bool] = {
    "showEffects": True,
    "showEvents": True,
    "showObjectChanges": True,
}


class LedgerRpcClient:
    """JSON-RPC 2.0 over HTTP against one node endpoint.

    Example:
        async with LedgerRpcClient("http://127.0.0.1:9000") as rpc:
            checkpoint = await rpc.get_latest_checkpoint_sequence_number()
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._rpc_url = rpc_url
        self._ids = itertools.count(1)
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def rpc_url(self) -> str:
        return self._rpc_url

    async def __aenter__(self) -> LedgerRpcClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def call(self, method: str, params: list[Any] | None = None) -> Any:
        """Invoke ``method`` and return its ``result``.

        Raises:
            RpcError: On transport failure, non-2xx status, malformed body,
                or a JSON-RPC error object. The node's message is kept verbatim.
        """
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params or []}
        try:
            response = await self._client.post(self._rpc_url, json=payload)
        except httpx.HTTPError as error:
            raise RpcError(f"{method} request to {self._rpc_url} failed: {error}", method=method) from error

        if response.status_code >= 400:
            raise RpcError(
                f"{method} returned HTTP {response.status_code}: {response.text[:500]}",
                method=method,
                code=response.status_code,
            )
        try:
            body = response.json()
        except ValueError as error:
            raise RpcError(f"{method} returned a non-JSON body", method=method) from error

        if not isinstance(body, dict):
            raise RpcError(f"{method} returned an unexpected body", method=method)
        if body.get("error") is not None:
            error_obj = body["error"]
            if not isinstance(error_obj, dict):
                raise RpcError(str(error_obj), method=method)
            raise RpcError(
                str(error_obj.get("message", error_obj)),
                method=method,
                code=error_obj.get("code"),
            )
        if "result" not in body:
            raise RpcError(f"{method} response has no result", method=method)
        return body["result"]

    # -- reads ----------------------------------------------------------------

    async def get_latest_checkpoint_sequence_number(self) -> str:
        return str(await self.call("sui_getLatestCheckpointSequenceNumber"))

    async def get_latest_system_state(self) -> dict[str, Any]:
        result: dict[str, Any] = await self.call("suix_getLatestSuiSystemState")
        return result

    async def get_reference_gas_price(self) -> int:
        return int(await self.call("suix_getReferenceGasPrice"))

    async def get_chain_identifier(self) -> str:
        return str(await self.call("sui_getChainIdentifier"))

    async def get_coins(
        self,
        owner: str,
        *,
        coin_type: str = SUI_COIN_TYPE,
        cursor: str | None = None,
        limit: int = COIN_PAGE_LIMIT,
    ) -> dict[str, Any]:
        page: dict[str, Any] = await self.call("suix_getCoins", [owner, coin_type, cursor, limit])
        return page

    async def iter_coins(self, owner: str, *, coin_type: str = SUI_COIN_TYPE) -> AsyncIterator[CoinRef]:
        """Every coin of ``coin_type`` owned by ``owner``, following pagination."""
        cursor: str | None = None
        while True:
            page = await self.get_coins(owner, coin_type=coin_type, cursor=cursor)
            for coin in page.get("data") or []:
                yield CoinRef.from_rpc(coin)
            if not page.get("hasNextPage") or not page.get("nextCursor"):
                return
            cursor = page["nextCursor"]

    async def get_object(self, object_id: str, options: dict[str, bool] | None = None) -> dict[str, Any]:
        """Object data for ``object_id``.

        Raises:
            RpcError: If the node reports the object missing or deleted
        """
        response = await self.call("sui_getObject", [object_id, options or DEFAULT_OBJECT_OPTIONS])
        data = response.get("data") if isinstance(response, dict) else None
        if not data:
            error = response.get("error") if isinstance(response, dict) else None
            code = error.get("code") if isinstance(error, dict) else None
            raise RpcError(f"Could not find object {object_id}{f' ({code})' if code else ''}", method="sui_getObject")
        result: dict[str, Any] = data
        return result

    async def try_get_object(self, object_id: str) -> dict[str, Any] | None:
        try:
            return await self.get_object(object_id)
        except RpcError:
            return None

    async def get_transaction_block(self, digest: str, options: dict[str, bool] | None = None) -> dict[str, Any]:
        result: dict[str, Any] = await self.call(
            "sui_getTransactionBlock", [digest, options or DEFAULT_EXECUTION_OPTIONS]
        )
        return result

    async def query_events(
        self,
        query: dict[str, Any],
        *,
        cursor: dict[str, Any] | None = None,
        limit: int = 50,
        descending: bool = False,
    ) -> dict[str, Any]:
        result: dict[str, Any] = await self.call("suix_queryEvents", [query, cursor, limit, descending])
        return result

    # -- writes ---------------------------------------------------------------

    async def execute_transaction_block(
        self,
        tx_bytes: str,
        signatures: list[str],
        *,
        options: dict[str, bool] | None = None,
        request_type: RequestType = RequestType.WAIT_FOR_LOCAL_EXECUTION,
    ) -> dict[str, Any]:
        result: dict[str, Any] = await self.call(
            "sui_executeTransactionBlock",
            [tx_bytes, signatures, options or DEFAULT_EXECUTION_OPTIONS, str(request_type)],
        )
        return result

    # -- node-side transaction builders ----------------------------------------

    async def unsafe_move_call(
        self,
        signer: str,
        package_id: str,
        module: str,
        function: str,
        type_arguments: list[str],
        arguments: list[Any],
        gas: str | None,
        gas_budget: int,
    ) -> str:
        result = await self.call(
            "unsafe_moveCall",
            [signer, package_id, module, function, type_arguments, arguments, gas, str(gas_budget)],
        )
        return str(result["txBytes"])

    async def unsafe_pay_sui(
        self,
        signer: str,
        input_coins: list[str],
        recipients: list[str],
        amounts: list[int],
        gas_budget: int,
    ) -> str:
        result = await self.call(
            "unsafe_paySui",
            [signer, input_coins, recipients, [str(a) for a in amounts], str(gas_budget)],
        )
        return str(result["txBytes"])

    async def unsafe_transfer_object(
        self,
        signer: str,
        object_id: str,
        gas: str | None,
        gas_budget: int,
        recipient: str,
    ) -> str:
        result = await self.call(
            "unsafe_transferObject",
            [signer, object_id, gas, str(gas_budget), recipient],
        )
        return str(result["txBytes"])

    async def unsafe_publish(
        self,
        sender: str,
        compiled_modules: list[str],
        dependencies: list[str],
        gas: str | None,
        gas_budget: int,
    ) -> str:
        result = await self.call(
            "unsafe_publish",
            [sender, compiled_modules, dependencies, gas, str(gas_budget)],
        )
        return str(result["txBytes"])

    # -- health -----------------------------------------------------------------

    async def readiness_snapshot(self) -> ReadinessSnapshot:
        """Gather system state, checkpoint and gas price concurrently.

        Raises:
            RpcError: If any of the three calls fails
        """
        system_state, checkpoint, gas_price = await asyncio.gather(
            self.get_latest_system_state(),
            self.get_latest_checkpoint_sequence_number(),
            self.get_reference_gas_price(),
        )
        epoch_start = system_state.get("epochStartTimestampMs")
        return ReadinessSnapshot(
            rpc_url=self._rpc_url,
            epoch=str(system_state.get("epoch", "")),
            protocol_version=str(system_state.get("protocolVersion", "")),
            latest_checkpoint=checkpoint,
            validator_count=len(system_state.get("activeValidators") or []),
            reference_gas_price=str(gas_price),
            epoch_start_timestamp_ms=str(epoch_start) if epoch_start is not None else None,
        )


async def probe_rpc_health(rpc_url: str, *, timeout: float = 5.0) -> tuple[ReadinessSnapshot | None, str | None]:
    """One-shot health probe.

    Returns:
        (snapshot, None) when the node answered, (None, error message) otherwise
    """
    async with LedgerRpcClient(rpc_url, timeout=timeout) as rpc:
        try:
            return await rpc.readiness_snapshot(), None
        except RpcError as error:
            return None, str(error)
