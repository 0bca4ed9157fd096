"""Network clients for the ledger node and its faucet."""

from sandnet.clients.faucet import FaucetClient
from sandnet.clients.rpc import SUI_COIN_TYPE, LedgerRpcClient, probe_rpc_health

__all__ = [
    "SUI_COIN_TYPE",
    "FaucetClient",
    "LedgerRpcClient",
    "probe_rpc_health",
]
