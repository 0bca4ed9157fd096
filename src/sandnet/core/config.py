# src/sandnet/core/config.py
"""Harness configuration.

Settings are validated by Pydantic and loaded through Dynaconf with the
following precedence (highest first):

1. Explicit keyword overrides passed to load_settings()
2. Environment variables (SANDNET_*), e.g. SANDNET_KEEP_TEMP=true
3. Optional YAML settings file
4. Defaults declared on HarnessSettings
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

ENVVAR_PREFIX = "SANDNET"

# Dynaconf's own bookkeeping keys, never settings
_INTERNAL_KEYS = frozenset({"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES", "ENVVAR_PREFIX"})


def _running_in_ci() -> bool:
    return bool(os.environ.get("CI"))


class HarnessSettings(BaseModel):
    """Localnet harness configuration.

    All settings are validated and frozen after construction.
    """

    model_config = {"frozen": True, "extra": "ignore"}

    # Node binary and process lifecycle
    node_binary: str = Field(default="sui", description="Ledger CLI binary used for genesis and start")
    host: str = Field(default="127.0.0.1", description="Interface the node binds and the harness probes")
    with_faucet: bool = Field(default=True, description="Start the local faucet alongside the node")
    keep_temp: bool = Field(default=False, description="Keep temp directories after teardown for debugging")
    skip_localnet: bool = Field(default=False, description="Refuse to start a localnet (tests skip instead)")

    # Ports
    random_ports: bool = Field(default=False, description="Skip canonical defaults and draw OS-assigned ports")

    # Budgets
    rpc_wait_timeout_ms: int = Field(default=30_000, gt=0, description="Readiness wait budget")
    readiness_interval_ms: int = Field(default=250, gt=0, description="Readiness probe interval")
    shutdown_grace_ms: int = Field(default=10_000, gt=0, description="Graceful shutdown budget before SIGKILL")
    rpc_request_timeout_s: float = Field(default=10.0, gt=0, description="Per-request RPC timeout")

    # Start serialization across processes
    serialize_start: bool = Field(
        default_factory=_running_in_ci,
        description="Serialize localnet starts across processes with a lock file",
    )
    start_lock_timeout_ms: int = Field(default=120_000, gt=0, description="Start lock wait budget")
    start_lock_interval_ms: int = Field(default=250, gt=0, description="Start lock retry interval")

    # Funding
    treasury_index: int | None = Field(default=None, ge=0, description="Keystore entry to try first as treasury")
    faucet_attempts: int = Field(default=5, gt=0, description="Faucet rounds before funding fails")
    funding_poll_timeout_ms: int = Field(default=10_000, gt=0, description="Balance poll budget per faucet round")

    # Finality and publishing
    finality_timeout_ms: int = Field(default=30_000, gt=0, description="wait_for_finality budget")
    package_wait_timeout_ms: int = Field(default=20_000, gt=0, description="Published package visibility budget")

    # Logging
    log_level: str = Field(default="INFO", description="Log level for configure_logging()")
    log_json: bool = Field(default=False, description="Emit JSON log lines")

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value!r}")
        return normalized


def load_settings(config_path: Path | None = None, **overrides: Any) -> HarnessSettings:
    """Load harness settings from environment and an optional YAML file.

    Args:
        config_path: Optional YAML settings file
        **overrides: Explicit values that win over every other source

    Returns:
        Validated HarnessSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config_path is given but does not exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if config_path is not None and not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix=ENVVAR_PREFIX,
        settings_files=[str(config_path)] if config_path is not None else [],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; Pydantic fields are lowercase
    known = set(HarnessSettings.model_fields)
    raw_config = {
        key.lower(): value
        for key, value in dynaconf_settings.as_dict().items()
        if key not in _INTERNAL_KEYS and key.lower() in known
    }
    raw_config.update({key: value for key, value in overrides.items() if value is not None})

    return HarnessSettings(**raw_config)
