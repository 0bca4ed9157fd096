# src/sandnet/core/keys.py
"""Synthetic accounts, keystore access and transaction signing.

Accounts are Ed25519 keys derived deterministically from ``(test_id, label)``:
the 32-byte seed is ``sha256(f"{test_id}:{label}")``. Re-running a test with
the same id and label reproduces the same address, which makes failures easy
to replay. The flip side is an isolation contract: two concurrently running
tests that share a label against one localnet share an account and will race
on its coins. Use unique labels per concurrent test.
"""

from __future__ import annotations

import base64
import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey

from sandnet.contracts.errors import KeystoreError

ED25519_FLAG = 0x00
# IntentScope::TransactionData, IntentVersion::V0, AppId::Sui
TRANSACTION_INTENT = bytes([0, 0, 0])


def _blake2b_256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


@dataclass(frozen=True)
class SyntheticAccount:
    """An Ed25519 keypair plus its Sui address."""

    label: str
    secret: bytes = field(repr=False)

    def __post_init__(self) -> None:
        if len(self.secret) != 32:
            raise ValueError(f"Ed25519 secret must be 32 bytes, got {len(self.secret)}")

    @property
    def _private_key(self) -> Ed25519PrivateKey:
        return Ed25519PrivateKey.from_private_bytes(self.secret)

    @property
    def public_key(self) -> bytes:
        return self._private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    @property
    def address(self) -> str:
        return "0x" + _blake2b_256(bytes([ED25519_FLAG]) + self.public_key).hex()

    def sign_transaction(self, tx_bytes: bytes) -> str:
        """Serialized signature for ``tx_bytes``, ready for executeTransactionBlock.

        The signed message is blake2b-256 of the intent prefix and the
        transaction bytes. The result is base64(flag || signature || pubkey).
        """
        digest = _blake2b_256(TRANSACTION_INTENT + tx_bytes)
        signature = self._private_key.sign(digest)
        return base64.b64encode(bytes([ED25519_FLAG]) + signature + self.public_key).decode("ascii")

    def keystore_entry(self) -> str:
        """Entry in the Sui CLI keystore format: base64(flag || secret)."""
        return base64.b64encode(bytes([ED25519_FLAG]) + self.secret).decode("ascii")


def derive_account(test_id: str, label: str) -> SyntheticAccount:
    """Deterministic account for ``(test_id, label)``."""
    seed = hashlib.sha256(f"{test_id}:{label}".encode()).digest()
    return SyntheticAccount(label=label, secret=seed)


def account_from_keystore_entry(entry: str, *, label: str) -> SyntheticAccount:
    """Decode a base64 keystore entry.

    Raises:
        KeystoreError: For malformed entries, non-Ed25519 keys, or the
            bech32 ``suiprivkey`` form, which the local genesis never writes.
    """
    if entry.startswith("suiprivkey"):
        raise KeystoreError(f"Bech32 keystore entries are not supported ({label})")
    try:
        raw = base64.b64decode(entry, validate=True)
    except ValueError as error:
        raise KeystoreError(f"Keystore entry {label} is not valid base64") from error
    if len(raw) != 33:
        raise KeystoreError(f"Keystore entry {label} has {len(raw)} bytes, expected 33")
    if raw[0] != ED25519_FLAG:
        raise KeystoreError(f"Keystore entry {label} uses signature scheme flag {raw[0]}, only Ed25519 is supported")
    return SyntheticAccount(label=label, secret=raw[1:])


def read_keystore(path: Path) -> list[str]:
    """Entries of a Sui keystore file (a JSON array of strings)."""
    try:
        entries = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as error:
        raise KeystoreError(f"Failed to read keystore at {path}: {error}") from error
    if not isinstance(entries, list) or not all(isinstance(e, str) for e in entries):
        raise KeystoreError(f"Keystore at {path} is not a JSON array of strings")
    return entries


def write_keystore(path: Path, accounts: list[SyntheticAccount]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps([a.keystore_entry() for a in accounts], indent=2), encoding="utf-8")
    return path


def register_in_keystore(path: Path, account: SyntheticAccount) -> None:
    """Append ``account`` to an existing keystore unless already present."""
    entries = read_keystore(path)
    entry = account.keystore_entry()
    if entry in entries:
        return
    path.write_text(json.dumps([*entries, entry], indent=2), encoding="utf-8")


def find_keystore(config_dir: Path) -> Path:
    """Locate the localnet keystore written by genesis.

    Raises:
        KeystoreError: If no keystore exists under config_dir
    """
    for candidate in (config_dir / "sui.keystore", config_dir / "sui_config" / "sui.keystore"):
        if candidate.is_file():
            return candidate
    for candidate in sorted(config_dir.rglob("*.keystore")):
        if candidate.name == "sui.keystore":
            return candidate
    raise KeystoreError(f"Unable to locate a localnet keystore under {config_dir}")
