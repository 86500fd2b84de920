"""
Deterministic hashing utilities.

Every hash in the activity log must be reproducible from the stored row, so
payloads are canonicalized (sorted keys, no whitespace, fixed encodings for
datetimes and enums) before hashing.
"""

import hashlib
import json
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any
from uuid import UUID


def _json_serializer(obj: Any) -> Any:
    """
    Serialize the non-JSON types that appear in activity payloads.

    Raises:
        TypeError: If the object type is not supported.
    """
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, timedelta):
        return obj.total_seconds()
    if isinstance(obj, UUID):
        return str(obj)

    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def canonicalize_json(data: dict | list | Any) -> str:
    """Convert data to a canonical JSON string (sorted keys, no whitespace)."""
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        default=_json_serializer,
    )


def to_json_safe(data: dict) -> dict:
    """Round-trip ``data`` through canonical JSON so it stores as plain JSON."""
    return json.loads(canonicalize_json(data))


def hash_payload(payload: dict) -> str:
    """Hex-encoded SHA-256 of the canonical JSON form of ``payload``."""
    canonical = canonicalize_json(payload)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def hash_activity_event(
    action: str,
    property_index: int | None,
    actor: str,
    payload_hash: str,
    prev_hash: str | None,
) -> str:
    """
    Chain hash of one activity event.

    ``hash = sha256(action | property_index | actor | payload_hash | prev_hash)``
    with empty strings standing in for a missing index or previous hash.
    """
    parts = [
        action,
        "" if property_index is None else str(property_index),
        actor,
        payload_hash,
        prev_hash or "",
    ]
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()
