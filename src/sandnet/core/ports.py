# src/sandnet/core/ports.py
"""Local port negotiation for localnet endpoints.

Each role (RPC, event stream, faucet) tries its canonical default first and
falls back to an OS-assigned ephemeral port. Probes bind and immediately
release, so a port reported free here can still be taken before the node
binds it; that race is a fatal node start error, not retried here.
"""

from __future__ import annotations

import errno
import socket

import structlog

from sandnet.contracts.errors import PortNegotiationError
from sandnet.contracts.network import (
    DEFAULT_EVENT_PORT,
    DEFAULT_FAUCET_PORT,
    DEFAULT_RPC_PORT,
    PortAssignment,
)

logger = structlog.get_logger(__name__)

_PERMISSION_ERRNOS = frozenset({errno.EPERM, errno.EACCES})


def _permission_error(action: str, host: str, error: OSError) -> PortNegotiationError:
    code = errno.errorcode.get(error.errno or 0, "unknown")
    return PortNegotiationError(
        f"Localnet could not {action} a port on {host} ({code}). This environment may block "
        "localnet networking. Re-run with elevated permissions or set SANDNET_SKIP_LOCALNET=1 "
        "to skip localnet tests."
    )


def is_port_available(port: int, host: str = "127.0.0.1") -> bool:
    """Return True if ``port`` can be bound on ``host`` right now.

    Raises:
        PortNegotiationError: If binding is refused for permission reasons,
            which means networking is blocked rather than the port being busy.
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError as error:
            if error.errno in _PERMISSION_ERRNOS:
                raise _permission_error("bind", host, error) from error
            return False
    return True


def get_ephemeral_port(host: str = "127.0.0.1") -> int:
    """Ask the OS for a free port by binding port 0, then release it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, 0))
        except OSError as error:
            if error.errno in _PERMISSION_ERRNOS:
                raise _permission_error("open", host, error) from error
            raise PortNegotiationError(f"Unable to resolve a local port on {host}: {error}") from error
        port: int = sock.getsockname()[1]
    return port


def allocate_port_excluding(allocated: set[int], host: str = "127.0.0.1") -> int:
    """Draw ephemeral ports until one is not in ``allocated``, then claim it."""
    port = get_ephemeral_port(host)
    while port in allocated:
        port = get_ephemeral_port(host)
    allocated.add(port)
    return port


def _default_or_ephemeral(default: int, taken: set[int], host: str) -> int:
    port = default if default not in taken and is_port_available(default, host) else get_ephemeral_port(host)
    # The OS may hand back a port another role already holds
    while port in taken:
        port = get_ephemeral_port(host)
    taken.add(port)
    return port


def resolve_ports(
    need_faucet: bool,
    *,
    host: str = "127.0.0.1",
    random_ports: bool = False,
) -> PortAssignment:
    """Negotiate pairwise-distinct ports for RPC, event stream and faucet.

    Args:
        need_faucet: Whether a faucet port is required
        host: Interface to probe
        random_ports: Skip the canonical defaults and use OS-assigned ports only

    Returns:
        PortAssignment with faucet_port set iff need_faucet
    """
    taken: set[int] = set()

    if random_ports:
        rpc_port = allocate_port_excluding(taken, host)
        event_port = allocate_port_excluding(taken, host)
        faucet_port = allocate_port_excluding(taken, host) if need_faucet else None
    else:
        rpc_port = _default_or_ephemeral(DEFAULT_RPC_PORT, taken, host)
        event_port = _default_or_ephemeral(DEFAULT_EVENT_PORT, taken, host)
        faucet_port = _default_or_ephemeral(DEFAULT_FAUCET_PORT, taken, host) if need_faucet else None

    assignment = PortAssignment(rpc_port=rpc_port, event_port=event_port, faucet_port=faucet_port)
    logger.debug(
        "ports_negotiated",
        rpc_port=rpc_port,
        event_port=event_port,
        faucet_port=faucet_port,
        all_defaults=assignment.all_defaults,
    )
    return assignment
