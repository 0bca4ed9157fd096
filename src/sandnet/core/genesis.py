# src/sandnet/core/genesis.py
"""Rewriting of ports inside generated genesis configuration.

``sui genesis --write-config`` emits a seed YAML that hardcodes the canonical
ports (9000/9001/9123) plus a handful of validator and consensus ports. When
the negotiated ports differ, every discovered port is remapped so several
localnets can coexist on one host:

- canonical defaults map to the negotiated ports
- every other discovered port maps to a fresh OS-assigned port

When all negotiated ports are the defaults, nothing is rewritten.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from pathlib import Path

import structlog

from sandnet.contracts.network import (
    DEFAULT_EVENT_PORT,
    DEFAULT_FAUCET_PORT,
    DEFAULT_RPC_PORT,
    PortAssignment,
)
from sandnet.core.ports import allocate_port_excluding

logger = structlog.get_logger(__name__)

_HOST_PORT = re.compile(r"((?:localhost|127\.0\.0\.1|0\.0\.0\.0):)(\d{2,5})\b")
_TCP_PORT = re.compile(r"(/tcp/)(\d{2,5})\b")
_UDP_PORT = re.compile(r"(/udp/)(\d{2,5})\b")
_PORT_FIELD = re.compile(r"((?:^|\s)(?:port|[A-Za-z0-9_-]+(?:_|-)port)\s*:\s*)(\d{2,5})\b", re.MULTILINE)

_ALL_PATTERNS = (_HOST_PORT, _TCP_PORT, _UDP_PORT, _PORT_FIELD)


def collect_ports(contents: str) -> set[int]:
    """Every port number referenced by a recognized pattern in ``contents``."""
    ports: set[int] = set()
    for pattern in _ALL_PATTERNS:
        ports.update(int(match.group(2)) for match in pattern.finditer(contents))
    return ports


def build_port_remap(
    contents: Iterable[str],
    ports: PortAssignment,
    *,
    host: str = "127.0.0.1",
) -> dict[int, int]:
    """Map every port found in ``contents`` to a distinct local port.

    Canonical defaults map to the negotiated ports. All targets are
    pairwise distinct, so no two original ports collapse onto one.
    """
    remap: dict[int, int] = {DEFAULT_RPC_PORT: ports.rpc_port, DEFAULT_EVENT_PORT: ports.event_port}
    if ports.faucet_port is not None:
        remap[DEFAULT_FAUCET_PORT] = ports.faucet_port
    allocated = set(remap.values())

    discovered: set[int] = set()
    for text in contents:
        discovered.update(collect_ports(text))

    for port in sorted(discovered):
        if port in remap:
            continue
        remap[port] = allocate_port_excluding(allocated, host)

    return remap


def replace_ports(contents: str, remap: dict[int, int]) -> str:
    """Apply ``remap`` to every recognized port occurrence in ``contents``."""

    def substitute(match: re.Match[str]) -> str:
        port = int(match.group(2))
        return f"{match.group(1)}{remap.get(port, port)}"

    for pattern in _ALL_PATTERNS:
        contents = pattern.sub(substitute, contents)
    return contents


def patch_config_ports(
    paths: list[Path],
    ports: PortAssignment,
    *,
    remap_all: bool = False,
    host: str = "127.0.0.1",
) -> dict[int, int]:
    """Rewrite ports in generated config files in place.

    Args:
        paths: Config files to patch
        ports: Negotiated ports
        remap_all: Force full remapping even when every port is a default
        host: Interface used when drawing replacement ports

    Returns:
        The port remap applied (empty when nothing needed rewriting)
    """
    if not paths:
        return {}
    full_remap = remap_all or not ports.all_defaults
    if not full_remap:
        return {}

    originals = [path.read_text(encoding="utf-8") for path in paths]
    remap = build_port_remap(originals, ports, host=host)

    for path, contents in zip(paths, originals, strict=True):
        updated = replace_ports(contents, remap)
        if updated != contents:
            path.write_text(updated, encoding="utf-8")

    logger.debug("genesis_ports_patched", files=[str(p) for p in paths], remapped=len(remap))
    return remap
