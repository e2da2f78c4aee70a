"""
hashing.py - Hashing utilities.

SHA-256 is used for:
- Digest suffixes that keep shortened identifiers unique
- Fingerprints of form versions (quick "did the schema change" checks)

All hashing is deterministic: same input = same output.
"""

import hashlib
import json
from typing import Any, Iterable


def sha256_hex(data: bytes) -> str:
    """
    Compute SHA-256 hash and return as hex string.

    Args:
        data: Bytes to hash

    Returns:
        64-character lowercase hex string
    """
    return hashlib.sha256(data).hexdigest()


def short_digest(parts: Iterable[str], length: int) -> str:
    """
    Digest a sequence of strings into a short hex token.

    Parts are length-prefixed before hashing so that ("ab", "c") and
    ("a", "bc") never produce the same token.

    Args:
        parts: Strings to hash, in order
        length: Number of hex characters to keep

    Returns:
        Lowercase hex string of the requested length
    """
    hasher = hashlib.sha256()
    for part in parts:
        encoded = part.encode("utf-8")
        hasher.update(len(encoded).to_bytes(4, "big"))
        hasher.update(encoded)
    return hasher.hexdigest()[:length]


def fingerprint(value: Any) -> str:
    """
    Fingerprint a JSON-compatible value.

    Keys are sorted so logically equal documents hash the same.
    """
    canonical = json.dumps(value, sort_keys=True, separators=(",", ":"), default=str)
    return sha256_hex(canonical.encode("utf-8"))
