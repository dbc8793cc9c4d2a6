"""Audit data structures and enums.

Classes:
    ActorType: Who performed an action (admin, user, system)
    AuditSeverity: Compliance severity of an action
    AuditEntry: Immutable audit entry as composed before persistence
    RequestContext: Network context of the request being audited
    ActorSnapshot: Denormalized actor identity captured at write time
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Union
from uuid import UUID

JSONValue = Union[dict[str, Any], list[Any], str, int, float, bool, None]
"""Schema-less structured value used for diffs, context bags and API payloads."""


class ActorType(str, Enum):
    """Discriminant for the three logical audit streams."""

    ADMIN = "ADMIN"
    USER = "USER"
    SYSTEM = "SYSTEM"


class AuditSeverity(str, Enum):
    """How critical an audited action is."""

    INFO = "INFO"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


@dataclass(frozen=True)
class RequestContext:
    """Client network context extracted from the inbound request headers."""

    ip_address: str
    user_agent: str | None = None


@dataclass(frozen=True)
class ActorSnapshot:
    """Actor identity as it was when the entry was written."""

    email: str
    role: str


@dataclass(frozen=True)
class AuditEntry:
    """An audit entry ready to be persisted.

    Every field is fixed before the entry reaches storage, including
    ``freeze_checksum`` which covers ``CHECKSUM_FIELDS``.

    Attributes:
        id: Entry identifier, generated before persistence
        created_at: Write time (UTC), part of the checksummed material
        actor_type: ADMIN, USER or SYSTEM
        actor_id: Acting admin/user id, None for system actions
        actor_email: Email snapshot of the actor at write time
        actor_role: Role snapshot of the actor at write time
        action: Action tag such as ``ORDER_STATUS_CHANGED``
        entity_type: Logical resource name such as ``Order``
        entity_id: Identifier of the affected resource
        severity: Classified or caller-provided severity
        freeze_checksum: HMAC-SHA256 over the identifying fields
        diff_before: Snapshot of the entity before the mutation
        diff_after: Snapshot of the entity after the mutation
        changes: JSON Patch from diff_before to diff_after
        reason: Free-text justification
        context: Structured metadata bag
        ip_address: Client IP or "unknown"
        user_agent: Client user agent
        is_reviewable: Whether the entry belongs in the compliance review queue
        mfa_required: Whether step-up authentication was required
        mfa_method: Step-up method used (totp, webauthn, ...)
        mfa_verified_at: When step-up authentication succeeded
        mfa_event_id: Identifier of the MFA verification event
    """

    id: UUID
    created_at: datetime
    actor_type: ActorType
    actor_id: str | None
    actor_email: str | None
    actor_role: str | None
    action: str
    entity_type: str
    entity_id: str
    severity: AuditSeverity
    freeze_checksum: str
    diff_before: JSONValue = None
    diff_after: JSONValue = None
    changes: JSONValue = None
    reason: str | None = None
    context: dict[str, Any] | None = None
    ip_address: str = "unknown"
    user_agent: str | None = None
    is_reviewable: bool = False
    mfa_required: bool = False
    mfa_method: str | None = None
    mfa_verified_at: datetime | None = None
    mfa_event_id: str | None = None
