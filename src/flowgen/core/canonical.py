# src/flowgen/core/canonical.py
"""
Canonical JSON serialization for deterministic hashing.

Produces deterministic JSON per RFC 8785/JCS (rfc8785 package), so the
same validated document always yields the same bytes and the same hash
regardless of key order in the input.

IMPORTANT: NaN and Infinity are REJECTED by rfc8785, not silently converted.
Python's json module accepts them on input; a document carrying them
cannot be canonicalized.
"""

from __future__ import annotations

import hashlib
from typing import Any

import rfc8785

# Version string stored alongside hashes for verification
CANONICAL_VERSION = "sha256-rfc8785-v1"


def canonical_json(obj: Any) -> str:
    """Serialize obj to canonical JSON text.

    Args:
        obj: JSON-compatible data (dict, list, str, int, float, bool, None)

    Returns:
        Canonical JSON string (sorted keys, no whitespace, JCS number format)

    Raises:
        rfc8785.CanonicalizationError: If obj contains non-finite floats or
            values JSON cannot represent
    """
    return rfc8785.dumps(obj).decode("utf-8")


def stable_hash(obj: Any) -> str:
    """SHA-256 hex digest of obj's canonical JSON."""
    return hashlib.sha256(rfc8785.dumps(obj)).hexdigest()
