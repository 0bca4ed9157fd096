# src/sandnet/engine/conflicts.py
"""Classification of transaction failure text into conflict variants.

The ledger reports version races only as prose, so classification is
string matching. The patterns are data: tests and callers can supply their
own when the node's phrasing changes, without touching the retry logic.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from sandnet.contracts.execution import Conflict, LockedResources, NoConflict, StaleResource
from sandnet.core.identifiers import extract_hex_ids, normalize_object_id

# Each stale pattern captures the offending object id in group 1
DEFAULT_STALE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"Object ID (0x[0-9a-fA-F]+)"),
    re.compile(r"[Oo]bject (0x[0-9a-fA-F]+) version \S+ is unavailable for consumption"),
)

# Any match marks the failure as a lock conflict; ids are read from the whole message
DEFAULT_LOCKED_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"reserved for another transaction", re.IGNORECASE),
    re.compile(r"\blocked\b", re.IGNORECASE),
    re.compile(r"equivocat", re.IGNORECASE),
    re.compile(r"conflicting transaction", re.IGNORECASE),
)


class ConflictClassifier:
    """Maps failure text to StaleResource, LockedResources or NoConflict.

    Stale patterns are checked first: a message that names a stale version
    is a stale conflict even when it also mentions locks.
    """

    def __init__(
        self,
        stale_patterns: Sequence[re.Pattern[str]] = DEFAULT_STALE_PATTERNS,
        locked_patterns: Sequence[re.Pattern[str]] = DEFAULT_LOCKED_PATTERNS,
    ) -> None:
        self._stale = tuple(stale_patterns)
        self._locked = tuple(locked_patterns)

    def classify(self, message: str) -> Conflict:
        for pattern in self._stale:
            match = pattern.search(message)
            if match is None:
                continue
            try:
                return StaleResource(object_id=normalize_object_id(match.group(1)))
            except ValueError:
                continue

        if any(pattern.search(message) for pattern in self._locked):
            return LockedResources(ids=tuple(extract_hex_ids(message)))

        return NoConflict()
