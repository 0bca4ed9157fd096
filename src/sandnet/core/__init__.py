# src/sandnet/core/__init__.py
"""Core infrastructure: Configuration, Logging, Ports, Genesis, Keys, Artifacts, Polling."""

from sandnet.core.artifacts import ObjectArtifactLedger
from sandnet.core.config import HarnessSettings, load_settings
from sandnet.core.genesis import patch_config_ports
from sandnet.core.identifiers import normalize_address, normalize_object_id
from sandnet.core.keys import SyntheticAccount, derive_account
from sandnet.core.logging import configure_logging, get_logger
from sandnet.core.polling import poll_until
from sandnet.core.ports import resolve_ports

__all__ = [
    "HarnessSettings",
    "ObjectArtifactLedger",
    "SyntheticAccount",
    "configure_logging",
    "derive_account",
    "get_logger",
    "load_settings",
    "normalize_address",
    "normalize_object_id",
    "patch_config_ports",
    "poll_until",
    "resolve_ports",
]
