# tests/conftest.py
"""Shared test fixtures and helpers.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/property/

Integration tests (marker ``integration``) start a real localnet and are
skipped when the ``sui`` binary is not on PATH.
"""

import os
import shutil
import tempfile
from collections.abc import Iterator
from pathlib import Path

import pytest
from hypothesis import Phase, Verbosity, settings

from sandnet.core.config import HarnessSettings
from sandnet.core.keys import SyntheticAccount, derive_account
from tests.fixtures.fake_rpc import FakeLedgerRpc

# =============================================================================
# Environment isolation
# =============================================================================


@pytest.fixture(autouse=True)
def _clean_sandnet_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Strip SANDNET_* and CI variables so settings defaults are predictable."""
    for key in list(os.environ):
        if key.startswith("SANDNET_"):
            monkeypatch.delenv(key, raising=False)
    for key in ("CI", "GITHUB_ACTIONS"):
        monkeypatch.delenv(key, raising=False)
    yield


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if shutil.which("sui") is not None:
        return
    skip = pytest.mark.skip(reason="sui binary not found on PATH")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


# =============================================================================
# Shared fixtures
# =============================================================================


@pytest.fixture
def harness_settings() -> HarnessSettings:
    """Settings with short budgets for unit tests."""
    return HarnessSettings(
        with_faucet=False,
        serialize_start=False,
        rpc_wait_timeout_ms=2_000,
        readiness_interval_ms=10,
        shutdown_grace_ms=500,
        funding_poll_timeout_ms=100,
        finality_timeout_ms=200,
        package_wait_timeout_ms=200,
    )


@pytest.fixture
def private_tmp(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Route tempfile.mkdtemp into the test's tmp_path."""
    root = tmp_path / "tmp"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


@pytest.fixture
def fake_rpc() -> FakeLedgerRpc:
    return FakeLedgerRpc()


@pytest.fixture
def owner() -> SyntheticAccount:
    return derive_account("unit-suite--unit-test", "owner")


# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
