"""Sanitization of external payloads before they reach the audit log.

Request and response bodies of third-party calls can carry credentials,
signing headers and large base64 documents. ``sanitize_payload`` walks the
payload and:
- replaces the value of any key matching REDACTION_TRIGGERS with REDACTED
- truncates strings longer than MAX_STRING_LENGTH, noting how much was cut
- leaves everything else untouched

The input is never mutated.
"""

from typing import Any

from exchange_audit.audit.config import MAX_STRING_LENGTH, REDACTED, REDACTION_TRIGGERS
from exchange_audit.audit.models import JSONValue


def _is_sensitive_key(key: Any) -> bool:
    lower_key = str(key).lower()
    return any(trigger in lower_key for trigger in REDACTION_TRIGGERS)


def _truncate(value: str) -> str:
    if len(value) <= MAX_STRING_LENGTH:
        return value
    elided = len(value) - MAX_STRING_LENGTH
    return f"{value[:MAX_STRING_LENGTH]}... [truncated {elided} chars]"


def _sanitize_item(key: Any, value: Any) -> Any:
    if _is_sensitive_key(key):
        return REDACTED
    if isinstance(value, (dict, list)):
        return sanitize_payload(value)
    if isinstance(value, str):
        return _truncate(value)
    return value


def sanitize_payload(payload: JSONValue) -> JSONValue:
    """Return a sanitized copy of a request/response payload.

    List elements are keyed by their index, so a list element is only ever
    redacted if its index string matched a trigger, which none do.

    Args:
        payload: Any JSON-like value. None and scalars pass through as-is.

    Returns:
        A new dict/list with sensitive values redacted and long strings
        truncated, or the payload itself when it is not a container.
    """
    if isinstance(payload, dict):
        return {key: _sanitize_item(key, value) for key, value in payload.items()}
    if isinstance(payload, list):
        return [_sanitize_item(index, value) for index, value in enumerate(payload)]
    return payload
