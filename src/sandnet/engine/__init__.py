# src/sandnet/engine/__init__.py
"""Execution engine: operations, conflict classification, retrying executor, funding."""

from sandnet.engine.conflicts import ConflictClassifier
from sandnet.engine.executor import TransactionExecutor
from sandnet.engine.funding import AccountFundingService
from sandnet.engine.operations import MoveCall, Operation, PaySui, Publish, TransferObject

__all__ = [
    "AccountFundingService",
    "ConflictClassifier",
    "MoveCall",
    "Operation",
    "PaySui",
    "Publish",
    "TransactionExecutor",
    "TransferObject",
]
