"""Audit repository for persisting and querying audit entries.

This module provides the AuditRepository class for database operations:
- persist: Insert one immutable audit entry
- get_by_id: Fetch a single entry by id
- query: Filtered, paginated listing with total count
- list_by_entity / list_by_actor / list_by_actor_type / list_by_severity
- count / count_by / top_actors: Aggregates for statistics

Admin, user and system streams share one table; ``actor_type`` is the
discriminant. The repository never updates or deletes rows.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from sqlalchemy import desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_audit.audit.actions import AuditAction, AuditEntity
from exchange_audit.audit.models import ActorType, AuditEntry, AuditSeverity
from exchange_audit.models import AuditLogRecord


@dataclass
class AuditQueryFilters:
    """Filter parameters for querying audit entries.

    Attributes:
        actor_id: Filter by acting admin/user id
        actor_type: Filter by stream (ADMIN, USER, SYSTEM)
        action: Filter by exact action tag
        entity_type: Filter by entity type
        entity_id: Filter by specific entity id
        ip_address: Filter by IP substring
        severity: Filter by severity
        is_reviewable: Filter by review flag
        search: Case-insensitive text match on action, entity or actor email
        from_date: Filter entries created at or after this time
        to_date: Filter entries created at or before this time
        offset: Number of records to skip (for pagination)
        limit: Maximum number of records to return
    """

    actor_id: str | None = None
    actor_type: ActorType | None = None
    action: str | None = None
    entity_type: str | None = None
    entity_id: str | None = None
    ip_address: str | None = None
    severity: AuditSeverity | None = None
    is_reviewable: bool | None = None
    search: str | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None
    offset: int = 0
    limit: int = 50


class AuditSink(Protocol):
    """Write side of audit storage."""

    async def persist(self, entry: AuditEntry) -> AuditLogRecord: ...


def _date_conditions(from_date: datetime | None, to_date: datetime | None) -> list[Any]:
    conditions: list[Any] = []
    if from_date is not None:
        conditions.append(AuditLogRecord.created_at >= from_date)
    if to_date is not None:
        conditions.append(AuditLogRecord.created_at <= to_date)
    return conditions


def _filter_conditions(filters: AuditQueryFilters) -> list[Any]:
    conditions: list[Any] = []

    if filters.actor_id is not None:
        conditions.append(AuditLogRecord.actor_id == filters.actor_id)

    if filters.actor_type is not None:
        conditions.append(AuditLogRecord.actor_type == ActorType(filters.actor_type).value)

    if filters.action is not None:
        conditions.append(AuditLogRecord.action == filters.action)

    if filters.entity_type is not None:
        conditions.append(AuditLogRecord.entity_type == filters.entity_type)

    if filters.entity_id is not None:
        conditions.append(AuditLogRecord.entity_id == filters.entity_id)

    if filters.ip_address:
        conditions.append(AuditLogRecord.ip_address.contains(filters.ip_address, autoescape=True))

    if filters.severity is not None:
        conditions.append(AuditLogRecord.severity == AuditSeverity(filters.severity).value)

    if filters.is_reviewable is not None:
        conditions.append(AuditLogRecord.is_reviewable == filters.is_reviewable)

    if filters.search:
        pattern = f"%{filters.search}%"
        conditions.append(
            or_(
                AuditLogRecord.action.ilike(pattern),
                AuditLogRecord.entity_type.ilike(pattern),
                AuditLogRecord.entity_id.ilike(pattern),
                AuditLogRecord.actor_email.ilike(pattern),
            )
        )

    conditions.extend(_date_conditions(filters.from_date, filters.to_date))
    return conditions


class AuditRepository:
    """Repository for audit log database operations.

    Args:
        session: SQLAlchemy async session for database operations
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def persist(self, entry: AuditEntry) -> AuditLogRecord:
        """Persist an audit entry as a single committed row.

        Args:
            entry: Fully-formed entry, checksum included

        Returns:
            The persisted AuditLogRecord

        Raises:
            Exception: Whatever the flush or commit raised, after the session
                has been rolled back so it stays usable
        """
        record = AuditLogRecord(
            id=entry.id,
            created_at=entry.created_at,
            actor_type=entry.actor_type.value,
            actor_id=entry.actor_id,
            actor_email=entry.actor_email,
            actor_role=entry.actor_role,
            action=entry.action,
            entity_type=entry.entity_type,
            entity_id=entry.entity_id,
            diff_before=entry.diff_before,
            diff_after=entry.diff_after,
            changes=entry.changes,
            reason=entry.reason,
            context=entry.context,
            ip_address=entry.ip_address,
            user_agent=entry.user_agent,
            severity=entry.severity.value,
            is_reviewable=entry.is_reviewable,
            mfa_required=entry.mfa_required,
            mfa_method=entry.mfa_method,
            mfa_verified_at=entry.mfa_verified_at,
            mfa_event_id=entry.mfa_event_id,
            freeze_checksum=entry.freeze_checksum,
        )
        self.session.add(record)
        try:
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return record

    async def get_by_id(self, entry_id: UUID) -> AuditLogRecord | None:
        """Fetch a single audit entry by id.

        Args:
            entry_id: The UUID of the entry

        Returns:
            AuditLogRecord if found, None otherwise
        """
        result = await self.session.execute(
            select(AuditLogRecord).where(AuditLogRecord.id == entry_id)
        )
        return result.scalar_one_or_none()

    async def query(self, filters: AuditQueryFilters) -> tuple[list[AuditLogRecord], int]:
        """Query audit entries with filters and pagination.

        Args:
            filters: Filter parameters for the query

        Returns:
            Tuple of (entries newest first, total matching count)
        """
        conditions = _filter_conditions(filters)

        stmt = (
            select(AuditLogRecord)
            .where(*conditions)
            .order_by(desc(AuditLogRecord.created_at))
            .offset(filters.offset)
            .limit(filters.limit)
        )
        result = await self.session.execute(stmt)
        entries = list(result.scalars().all())

        count_stmt = select(func.count()).select_from(AuditLogRecord).where(*conditions)
        total = (await self.session.execute(count_stmt)).scalar() or 0

        return entries, total

    async def _list(self, *conditions: Any, limit: int | None = None) -> list[AuditLogRecord]:
        stmt = select(AuditLogRecord).where(*conditions).order_by(desc(AuditLogRecord.created_at))
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_by_entity(self, entity_type: str, entity_id: str) -> list[AuditLogRecord]:
        """All entries for one entity, newest first."""
        return await self._list(
            AuditLogRecord.entity_type == entity_type,
            AuditLogRecord.entity_id == entity_id,
        )

    async def list_by_actor(self, actor_id: str, limit: int) -> list[AuditLogRecord]:
        return await self._list(AuditLogRecord.actor_id == actor_id, limit=limit)

    async def list_by_actor_type(self, actor_type: ActorType, limit: int) -> list[AuditLogRecord]:
        return await self._list(
            AuditLogRecord.actor_type == ActorType(actor_type).value,
            limit=limit,
        )

    async def list_by_severity(self, severity: AuditSeverity, limit: int) -> list[AuditLogRecord]:
        return await self._list(
            AuditLogRecord.severity == AuditSeverity(severity).value,
            limit=limit,
        )

    async def list_reviewable(self) -> list[AuditLogRecord]:
        return await self._list(AuditLogRecord.is_reviewable.is_(True))

    async def reviewed_entry_ids(self) -> set[str]:
        """Ids of entries referenced by an AUDIT_LOG_REVIEWED entry."""
        result = await self.session.execute(
            select(AuditLogRecord.entity_id).where(
                AuditLogRecord.action == AuditAction.AUDIT_LOG_REVIEWED,
                AuditLogRecord.entity_type == AuditEntity.AUDIT_LOG,
            )
        )
        return set(result.scalars().all())

    async def count(
        self,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> int:
        stmt = (
            select(func.count())
            .select_from(AuditLogRecord)
            .where(*_date_conditions(from_date, to_date))
        )
        return (await self.session.execute(stmt)).scalar() or 0

    async def count_by(
        self,
        column_name: str,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> dict[str, int]:
        """Count entries grouped by one column (e.g. "action", "entity_type").

        Args:
            column_name: Name of the AuditLogRecord column to group by
            from_date: Window start (inclusive)
            to_date: Window end (inclusive)

        Returns:
            Mapping of column value to count
        """
        column = getattr(AuditLogRecord, column_name)
        stmt = (
            select(column, func.count())
            .where(*_date_conditions(from_date, to_date))
            .group_by(column)
        )
        result = await self.session.execute(stmt)
        return {row[0]: row[1] for row in result.all()}

    async def top_actors(
        self,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
        limit: int = 10,
    ) -> Sequence[tuple[str, str, int]]:
        """Most active actors in a window.

        Returns:
            List of (actor_type, actor_id, action_count), highest count first
        """
        action_count = func.count().label("action_count")
        stmt = (
            select(AuditLogRecord.actor_type, AuditLogRecord.actor_id, action_count)
            .where(
                AuditLogRecord.actor_id.is_not(None),
                *_date_conditions(from_date, to_date),
            )
            .group_by(AuditLogRecord.actor_type, AuditLogRecord.actor_id)
            .order_by(desc(action_count), AuditLogRecord.actor_id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [(row[0], row[1], row[2]) for row in result.all()]
