"""Deterministic hashing for commitments and snapshot sections.

Commitment digests encode every numeric field as a 32-byte big-endian
word so that concatenation is unambiguous:

    sha256(u256(category) || u256(value) || utf8(location) || u256(age_range))
"""

from __future__ import annotations

import hashlib
import json
from typing import Any

from .models import HASH_SIZE

WORD_SIZE = 32


def encode_uint(value: int) -> bytes:
    """Encode a non-negative integer as a fixed-width big-endian word."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"expected an unsigned integer, got {type(value).__name__}")
    if value < 0:
        raise ValueError(f"expected an unsigned integer, got {value}")
    try:
        return value.to_bytes(WORD_SIZE, "big")
    except OverflowError as e:
        raise ValueError(f"{value} does not fit in {WORD_SIZE} bytes") from e


def commitment_hash(category: int, value: int, location: str, age_range: int) -> bytes:
    """Digest binding a submitter to the revealed submission fields."""
    payload = b"".join((
        encode_uint(category),
        encode_uint(value),
        location.encode("utf-8"),
        encode_uint(age_range),
    ))
    return hashlib.sha256(payload).digest()


def is_proof_length(proof_hash: Any) -> bool:
    """True if proof_hash is a byte string of exactly HASH_SIZE bytes."""
    return isinstance(proof_hash, (bytes, bytearray)) and len(proof_hash) == HASH_SIZE


def is_well_formed_proof(proof_hash: Any) -> bool:
    """Proof hashes must be HASH_SIZE bytes and not all zero."""
    return is_proof_length(proof_hash) and any(proof_hash)


def compute_hash(data: Any) -> str:
    """SHA256 hex digest of canonical (sorted-key, compact) JSON."""
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _to_json(item: Any) -> Any:
    return item.model_dump(mode="json") if hasattr(item, "model_dump") else item


def compute_section_hash(data: Any) -> str:
    """Content hash of one snapshot section.

    Sections are a single record (epoch state), a list of records sorted
    by key, or a scalar (authority). Lists are wrapped under ``items`` and
    scalars under ``value`` so every section hashes as a JSON object.
    """
    if isinstance(data, list):
        return compute_hash({"items": [_to_json(item) for item in data]})
    if hasattr(data, "model_dump") or isinstance(data, dict):
        return compute_hash(_to_json(data))
    return compute_hash({"value": data})


__all__ = [
    "WORD_SIZE",
    "commitment_hash",
    "compute_hash",
    "compute_section_hash",
    "encode_uint",
    "is_proof_length",
    "is_well_formed_proof",
]
