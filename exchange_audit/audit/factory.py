"""Audit entry factory.

This module composes a fully-formed, immutable AuditEntry from the caller's
inputs:
- validates the actor/diff contract of each stream
- classifies severity and reviewability unless overridden
- computes the JSON Patch of the before/after pair
- stamps ``created_at`` and computes the freeze checksum over fields that
  are all fixed before persistence

Functions:
    create_audit_entry: Build a validated AuditEntry with id, timestamp and checksum
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from exchange_audit.audit.config import UNKNOWN, classify_severity, is_reviewable_action
from exchange_audit.audit.diff import compute_changes
from exchange_audit.audit.integrity import ChecksumGenerator
from exchange_audit.audit.models import (
    ActorType,
    AuditEntry,
    AuditSeverity,
    JSONValue,
    RequestContext,
)


def _validate_actor(
    actor_type: ActorType,
    actor_id: str | None,
    diff_before: JSONValue,
    diff_after: JSONValue,
) -> None:
    if actor_type == ActorType.SYSTEM:
        if actor_id is not None:
            raise ValueError("system entries cannot carry an actor_id")
        return

    if not actor_id:
        raise ValueError(f"actor_id is required for {actor_type.value} entries")

    if actor_type == ActorType.ADMIN and (diff_before is None or diff_after is None):
        raise ValueError("admin entries require both diff_before and diff_after")


def create_audit_entry(
    *,
    checksum: ChecksumGenerator,
    action: str,
    entity_type: str,
    entity_id: str,
    actor_type: ActorType,
    actor_id: str | None = None,
    actor_email: str | None = None,
    actor_role: str | None = None,
    diff_before: JSONValue = None,
    diff_after: JSONValue = None,
    reason: str | None = None,
    context: dict[str, Any] | None = None,
    request_context: RequestContext | None = None,
    severity: AuditSeverity | str | None = None,
    is_reviewable: bool | None = None,
    mfa_required: bool = False,
    mfa_method: str | None = None,
    mfa_verified_at: datetime | None = None,
    mfa_event_id: str | None = None,
) -> AuditEntry:
    """Create a validated AuditEntry with generated id, timestamp and checksum.

    Args:
        checksum: Generator bound to the server-side salt.
        action: Action tag (must not be empty).
        entity_type: Logical resource name (must not be empty).
        entity_id: Identifier of the affected resource (must not be empty).
        actor_type: ADMIN, USER or SYSTEM.
        actor_id: Acting admin/user id; must be None for SYSTEM.
        actor_email: Email snapshot of the actor.
        actor_role: Role snapshot of the actor.
        diff_before: Entity snapshot before the mutation; required for ADMIN.
        diff_after: Entity snapshot after the mutation; required for ADMIN.
        reason: Free-text justification.
        context: Structured metadata bag.
        request_context: Client IP and user agent; "unknown" when absent.
        severity: Explicit severity, overriding classification.
        is_reviewable: Explicit review flag, overriding REVIEWABLE_ACTIONS.
        mfa_required: Whether step-up authentication was required.
        mfa_method: Step-up method used.
        mfa_verified_at: When step-up authentication succeeded.
        mfa_event_id: Identifier of the MFA verification event.

    Returns:
        An immutable AuditEntry.

    Raises:
        ValueError: If required fields are empty or the actor contract is violated.
    """
    if not action:
        raise ValueError("action is required and cannot be empty")
    if not entity_type:
        raise ValueError("entity_type is required and cannot be empty")
    if not entity_id:
        raise ValueError("entity_id is required and cannot be empty")

    actor_type = ActorType(actor_type)
    _validate_actor(actor_type, actor_id, diff_before, diff_after)

    resolved_severity = (
        AuditSeverity(severity) if severity is not None else classify_severity(action)
    )
    reviewable = is_reviewable if is_reviewable is not None else is_reviewable_action(action)
    request_context = request_context or RequestContext(ip_address=UNKNOWN)

    entry_id = uuid4()
    created_at = datetime.now(tz=timezone.utc)

    freeze_checksum = checksum.compute(
        {
            "actor_type": actor_type,
            "actor_id": actor_id,
            "action": action,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "created_at": created_at,
        }
    )

    return AuditEntry(
        id=entry_id,
        created_at=created_at,
        actor_type=actor_type,
        actor_id=actor_id,
        actor_email=actor_email,
        actor_role=actor_role,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        severity=resolved_severity,
        freeze_checksum=freeze_checksum,
        diff_before=diff_before,
        diff_after=diff_after,
        changes=compute_changes(diff_before, diff_after),
        reason=reason,
        context=context,
        ip_address=request_context.ip_address,
        user_agent=request_context.user_agent,
        is_reviewable=reviewable,
        mfa_required=mfa_required,
        mfa_method=mfa_method,
        mfa_verified_at=mfa_verified_at,
        mfa_event_id=mfa_event_id,
    )
