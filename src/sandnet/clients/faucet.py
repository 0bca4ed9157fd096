# src/sandnet/clients/faucet.py
"""Client for the local Sui faucet started with ``sui start --with-faucet``."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from sandnet.contracts.errors import FaucetError

logger = structlog.get_logger(__name__)


class FaucetClient:
    """Requests a fixed gas drop for an address.

    The faucet makes no guarantee about its response body beyond success or
    failure, so callers confirm funding by polling balances.
    """

    def __init__(
        self,
        faucet_url: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._faucet_url = faucet_url.rstrip("/")
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def faucet_url(self) -> str:
        return self._faucet_url

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> FaucetClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def request_gas(self, recipient: str) -> dict[str, Any]:
        """Ask for one gas drop.

        Raises:
            FaucetError: On transport failure, non-2xx status, or a failure
                status in the response body
        """
        url = f"{self._faucet_url}/v2/gas"
        try:
            response = await self._client.post(url, json={"FixedAmountRequest": {"recipient": recipient}})
        except httpx.HTTPError as error:
            raise FaucetError(f"Faucet request to {url} failed: {error}") from error

        if response.status_code >= 400:
            raise FaucetError(
                f"Faucet at {url} returned HTTP {response.status_code}: {response.text[:500]}",
                status_code=response.status_code,
            )

        try:
            body: dict[str, Any] = response.json()
        except ValueError:
            body = {}

        status = body.get("status")
        if isinstance(status, dict) and "Failure" in status:
            raise FaucetError(f"Faucet at {url} refused request: {status['Failure']}", status_code=response.status_code)
        if body.get("error"):
            raise FaucetError(f"Faucet at {url} refused request: {body['error']}", status_code=response.status_code)

        logger.debug("faucet_gas_requested", recipient=recipient, faucet_url=self._faucet_url)
        return body
