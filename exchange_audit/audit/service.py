"""Audit service: the write path of the audit trail.

This module provides the AuditService class, the single entry point every
other subsystem uses to record what happened. Each call:
1. Resolves the request context (client IP, user agent)
2. Snapshots the actor's email and role
3. Classifies severity and reviewability (unless the caller overrides)
4. Stamps created_at and computes the freeze checksum
5. Persists exactly one row

Classes:
    AuditService: Writer with log(), log_action(), log_user_action(),
        log_admin_action() and log_system_action() entry points

Persistence failures propagate. Callers that treat audit failures as
non-fatal must catch them (the KYC API logger does).
"""

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from exchange_audit.audit.actions import AuditAction, AuditEntity
from exchange_audit.audit.actors import ActorDirectory
from exchange_audit.audit.context import resolve_context
from exchange_audit.audit.factory import create_audit_entry
from exchange_audit.audit.integrity import ChecksumGenerator
from exchange_audit.audit.models import ActorType, AuditSeverity, JSONValue
from exchange_audit.audit.repository import AuditRepository, AuditSink
from exchange_audit.models import AuditLogRecord

logger = logging.getLogger(__name__)


class AuditService:
    """Service for writing audit entries.

    Args:
        sink: Storage for new entries
        actors: Directory used to snapshot actor identity
        checksum: Checksum generator bound to the server-side salt
        repository: Read access used by review and verification helpers
            (defaults to ``sink`` when it is an AuditRepository)

    Example:
        >>> service = AuditService(
        ...     sink=AuditRepository(session),
        ...     actors=ActorDirectory(session),
        ...     checksum=ChecksumGenerator(settings.effective_audit_salt),
        ... )
        >>> await service.log_admin_action(
        ...     "adm_1", "ORDER_STATUS_CHANGED", "Order", "ord_9",
        ...     {"status": "PENDING"}, {"status": "PROCESSING"},
        ... )
    """

    def __init__(
        self,
        sink: AuditSink,
        actors: ActorDirectory,
        checksum: ChecksumGenerator,
        repository: AuditRepository | None = None,
    ) -> None:
        self._sink = sink
        self._actors = actors
        self._checksum = checksum
        if repository is None and isinstance(sink, AuditRepository):
            repository = sink
        self._repository = repository

    async def log(
        self,
        *,
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
        severity: AuditSeverity | str | None = None,
        is_reviewable: bool | None = None,
        mfa_required: bool = False,
        mfa_method: str | None = None,
        mfa_verified_at: datetime | None = None,
        mfa_event_id: str | None = None,
    ) -> AuditLogRecord:
        """Write one audit entry with the full field set.

        Used directly when the call site knows more than the classifier,
        e.g. step-up MFA metadata or an explicit severity.

        Args:
            action: Action tag
            entity_type: Logical resource name
            entity_id: Identifier of the affected resource
            actor_type: ADMIN, USER or SYSTEM
            actor_id: Acting admin/user id (None for SYSTEM)
            actor_email: Email snapshot; looked up when omitted
            actor_role: Role snapshot; looked up when omitted
            diff_before: Snapshot before the mutation (required for ADMIN)
            diff_after: Snapshot after the mutation (required for ADMIN)
            reason: Free-text justification
            context: Structured metadata bag
            severity: Explicit severity, overriding classification
            is_reviewable: Explicit review flag
            mfa_required: Whether step-up authentication was required
            mfa_method: Step-up method used
            mfa_verified_at: When step-up authentication succeeded
            mfa_event_id: Identifier of the MFA verification event

        Returns:
            The persisted AuditLogRecord

        Raises:
            ValueError: If the actor/diff contract is violated
        """
        actor_type = ActorType(actor_type)
        request_context = resolve_context()

        if actor_email is None or actor_role is None:
            snapshot = await self._actors.get_snapshot(actor_type, actor_id)
            if snapshot is not None:
                actor_email = actor_email or snapshot.email
                actor_role = actor_role or snapshot.role

        entry = create_audit_entry(
            checksum=self._checksum,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_type=actor_type,
            actor_id=actor_id,
            actor_email=actor_email,
            actor_role=actor_role,
            diff_before=diff_before,
            diff_after=diff_after,
            reason=reason,
            context=context,
            request_context=request_context,
            severity=severity,
            is_reviewable=is_reviewable,
            mfa_required=mfa_required,
            mfa_method=mfa_method,
            mfa_verified_at=mfa_verified_at,
            mfa_event_id=mfa_event_id,
        )

        record = await self._sink.persist(entry)

        log_level = logging.WARNING if entry.severity == AuditSeverity.CRITICAL else logging.INFO
        logger.log(
            log_level,
            f"AUDIT action={entry.action} severity={entry.severity.value} "
            f"actor={entry.actor_type.value}:{entry.actor_id} "
            f"entity={entry.entity_type}:{entry.entity_id} ip={entry.ip_address}",
        )
        return record

    async def log_action(
        self,
        action: str,
        entity_type: str,
        entity_id: str,
        diff: dict[str, JSONValue] | None = None,
        actor_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLogRecord:
        """Generic entry point: ADMIN when an actor is given, SYSTEM otherwise.

        Args:
            action: Action tag
            entity_type: Logical resource name
            entity_id: Identifier of the affected resource
            diff: Optional {"old_value": ..., "new_value": ...}
            actor_id: Acting admin id
            metadata: Structured metadata bag

        Returns:
            The persisted AuditLogRecord
        """
        diff = diff or {}
        diff_before = diff.get("old_value")
        diff_after = diff.get("new_value")

        if actor_id:
            # Admin entries always carry both sides
            return await self.log(
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                actor_type=ActorType.ADMIN,
                actor_id=actor_id,
                diff_before=diff_before if diff_before is not None else {},
                diff_after=diff_after if diff_after is not None else {},
                context=metadata,
            )

        return await self.log(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_type=ActorType.SYSTEM,
            diff_before=diff_before,
            diff_after=diff_after,
            context=metadata,
        )

    async def log_user_action(
        self,
        user_id: str,
        action: str,
        entity_type: str,
        entity_id: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLogRecord:
        """Log a client action (order created, KYC submitted). Never carries a diff."""
        return await self.log(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_type=ActorType.USER,
            actor_id=user_id,
            context=metadata,
        )

    async def log_admin_action(
        self,
        admin_id: str,
        action: str,
        entity_type: str,
        entity_id: str,
        old_value: JSONValue,
        new_value: JSONValue,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLogRecord:
        """Log an admin mutation with its before/after snapshots.

        Both snapshots are required; empty dicts are valid.

        Raises:
            ValueError: If old_value or new_value is None
        """
        if old_value is None or new_value is None:
            raise ValueError("log_admin_action requires both old_value and new_value")

        return await self.log(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_type=ActorType.ADMIN,
            actor_id=admin_id,
            diff_before=old_value,
            diff_after=new_value,
            context=metadata,
        )

    async def log_system_action(
        self,
        action: str,
        entity_type: str,
        entity_id: str,
        metadata: dict[str, Any] | None = None,
    ) -> AuditLogRecord:
        """Log an automated action (webhooks, schedulers, provider calls)."""
        return await self.log(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            actor_type=ActorType.SYSTEM,
            context={**(metadata or {}), "system": True},
        )

    async def record_review(
        self,
        entry_id: UUID,
        reviewer_id: str,
        notes: str | None = None,
    ) -> AuditLogRecord:
        """Record a compliance review of an entry as a new entry.

        The reviewed entry itself is never modified.

        Args:
            entry_id: Id of the reviewed entry
            reviewer_id: Admin performing the review
            notes: Review notes

        Returns:
            The AUDIT_LOG_REVIEWED record

        Raises:
            LookupError: If the entry does not exist
        """
        reviewed = await self._require_repository().get_by_id(entry_id)
        if reviewed is None:
            raise LookupError(f"Audit entry not found: {entry_id}")

        return await self.log(
            action=AuditAction.AUDIT_LOG_REVIEWED,
            entity_type=AuditEntity.AUDIT_LOG,
            entity_id=str(entry_id),
            actor_type=ActorType.ADMIN,
            actor_id=reviewer_id,
            diff_before={"reviewed": False},
            diff_after={"reviewed": True},
            reason=notes,
            context={
                "reviewed_action": reviewed.action,
                "reviewed_severity": reviewed.severity,
            },
            is_reviewable=False,
        )

    async def verify_entry(self, entry_id: UUID) -> bool:
        """Recompute the freeze checksum of a stored entry.

        Returns:
            True if the entry exists and its checksum matches, False otherwise
        """
        record = await self._require_repository().get_by_id(entry_id)
        if record is None:
            return False

        is_valid = self._checksum.verify(record)
        if not is_valid:
            logger.warning(f"Audit entry failed integrity check: id={entry_id}")
        return is_valid

    def _require_repository(self) -> AuditRepository:
        if self._repository is None:
            raise RuntimeError("AuditService has no repository for read operations")
        return self._repository
