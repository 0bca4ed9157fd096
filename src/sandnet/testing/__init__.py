"""Test harness: localnet provisioning, per-test sandboxes and Move package helpers."""

from sandnet.testing.context import TestContext, create_test_context, test_context
from sandnet.testing.env import LocalnetTestEnv, scoped_test_id
from sandnet.testing.localnet import LocalnetHarness, NetworkInstance, start_localnet
from sandnet.testing.packages import BuildOutput, build_move_package, publish_package
from sandnet.testing.process import NodeProcess
from sandnet.testing.reaper import OrphanReaper

__all__ = [
    "BuildOutput",
    "LocalnetHarness",
    "LocalnetTestEnv",
    "NetworkInstance",
    "NodeProcess",
    "OrphanReaper",
    "TestContext",
    "build_move_package",
    "create_test_context",
    "publish_package",
    "scoped_test_id",
    "start_localnet",
    "test_context",
]
