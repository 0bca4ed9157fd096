"""Identifier normalization utilities.

Object ids and addresses arrive from RPC responses, keystores and error
messages in several spellings (short, mixed case, with or without 0x).
Everything that compares or keys on them goes through these helpers. It's in
core/ so any subsystem can use it without cross-subsystem imports.
"""

from __future__ import annotations

import re

SUI_ADDRESS_LENGTH = 32

_HEX_ID = re.compile(r"0x[0-9a-fA-F]+")
_FULL_ID = re.compile(r"0x[0-9a-fA-F]{64}")
_UNSAFE_LABEL_CHARS = re.compile(r"[^A-Za-z0-9_-]+")


def normalize_object_id(value: str) -> str:
    """Canonical form: ``0x`` + 64 lowercase hex digits, left-padded.

    Raises:
        ValueError: If value is not hex or is longer than 32 bytes
    """
    raw = value.strip().lower()
    if raw.startswith("0x"):
        raw = raw[2:]
    if not raw or len(raw) > SUI_ADDRESS_LENGTH * 2 or any(c not in "0123456789abcdef" for c in raw):
        raise ValueError(f"Invalid object id: {value!r}")
    return "0x" + raw.rjust(SUI_ADDRESS_LENGTH * 2, "0")


normalize_address = normalize_object_id


def extract_hex_ids(text: str) -> list[str]:
    """All 0x-prefixed hex ids in ``text``, normalized, in order of appearance."""
    ids: list[str] = []
    for match in _HEX_ID.findall(text):
        try:
            normalized = normalize_object_id(match)
        except ValueError:
            continue
        if normalized not in ids:
            ids.append(normalized)
    return ids


def package_id_from_type(object_type: str) -> str:
    """Package id of a Move type string.

    Uses the last full-length id in the type, so framework wrappers such as
    ``0x2::dynamic_field::Field<K, 0x..::shop::Item>`` resolve to the
    application package. Short ids fall back to the prefix before ``::``.

    Raises:
        ValueError: If no package id can be resolved
    """
    matches = _FULL_ID.findall(object_type)
    if matches:
        return normalize_object_id(matches[-1])
    return normalize_object_id(object_type.split("::", 1)[0])


def sanitize_label(label: str) -> str:
    """Make a label safe for file and directory names."""
    cleaned = _UNSAFE_LABEL_CHARS.sub("-", label).strip("-")
    return cleaned or "test"
