"""Audit freeze checksum computation and verification.

This module provides functions for computing and verifying the freeze
checksum stored with every audit entry, making entries tamper-evident.

Classes:
    ChecksumGenerator: Computes checksums with an injected secret salt

Functions:
    compute_checksum: Compute the HMAC-SHA256 checksum of identifying fields
    checksum_fields: Extract the checksummed fields from an entry or row
    verify_checksum: Verify stored checksum matches recomputed value
    verify_entries: Verify a batch of stored entries
"""

import hashlib
import hmac
import json
from collections.abc import Mapping
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import UUID

from exchange_audit.audit.config import CHECKSUM_FIELDS


def _serialize_value(value: Any) -> Any:
    """Serialize a value for canonical JSON representation.

    Datetimes are normalized to UTC so that a value read back from a store
    that drops tzinfo hashes the same as the one written.

    Args:
        value: The value to serialize.

    Returns:
        A JSON-serializable representation of the value.
    """
    if value is None:
        return None
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    if isinstance(value, Enum):
        return value.value
    return value


def compute_checksum(fields: Mapping[str, Any], salt: str) -> str:
    """Compute the freeze checksum for a set of identifying fields.

    Builds a canonical dict from CHECKSUM_FIELDS, serializes it with sorted
    keys and computes an HMAC-SHA256 keyed by the salt.

    Args:
        fields: Mapping containing at least CHECKSUM_FIELDS (missing keys hash as null).
        salt: Server-side secret.

    Returns:
        Lowercase hex digest (64 characters).
    """
    content = {field: _serialize_value(fields.get(field)) for field in CHECKSUM_FIELDS}
    canonical_json = json.dumps(content, sort_keys=True)

    return hmac.new(
        salt.encode("utf-8"),
        canonical_json.encode("utf-8"),
        hashlib.sha256,
    ).hexdigest()


def checksum_fields(source: Any) -> dict[str, Any]:
    """Extract CHECKSUM_FIELDS from a mapping or an object with attributes.

    Args:
        source: A dict row, an AuditEntry or an AuditLogRecord.

    Returns:
        Dict of field name to value.
    """
    if isinstance(source, Mapping):
        return {field: source.get(field) for field in CHECKSUM_FIELDS}
    return {field: getattr(source, field, None) for field in CHECKSUM_FIELDS}


def verify_checksum(entry: Any, salt: str) -> bool:
    """Verify stored checksum matches recomputed value.

    Recomputes from the stored fields, including the stored ``created_at``.

    Args:
        entry: Stored entry (dict row or record) including ``freeze_checksum``.
        salt: Server-side secret used when the entry was written.

    Returns:
        True if the stored checksum matches, False otherwise.
    """
    if isinstance(entry, Mapping):
        stored_checksum = entry.get("freeze_checksum")
    else:
        stored_checksum = getattr(entry, "freeze_checksum", None)

    if not stored_checksum:
        return False

    computed_checksum = compute_checksum(checksum_fields(entry), salt)
    return hmac.compare_digest(stored_checksum, computed_checksum)


def verify_entries(entries: list[Any], salt: str) -> tuple[bool, list[str]]:
    """Verify the checksums of a batch of stored entries.

    Args:
        entries: Stored entries (dict rows or records).
        salt: Server-side secret.

    Returns:
        Tuple of (is_valid, list_of_errors).
    """
    errors: list[str] = []

    for entry in entries:
        if not verify_checksum(entry, salt):
            entry_id = entry.get("id") if isinstance(entry, Mapping) else getattr(entry, "id", None)
            errors.append(f"Invalid freeze checksum for audit entry id={entry_id}")

    return len(errors) == 0, errors


class ChecksumGenerator:
    """Freeze checksum generator bound to one salt.

    Args:
        salt: Server-side secret, never sent to clients.
    """

    def __init__(self, salt: str) -> None:
        if not salt:
            raise ValueError("salt is required and cannot be empty")
        self._salt = salt

    def compute(self, fields: Mapping[str, Any]) -> str:
        """Compute the checksum of the identifying fields."""
        return compute_checksum(fields, self._salt)

    def verify(self, entry: Any) -> bool:
        """Check a stored entry against its freeze checksum."""
        return verify_checksum(entry, self._salt)

    def verify_many(self, entries: list[Any]) -> tuple[bool, list[str]]:
        return verify_entries(entries, self._salt)
