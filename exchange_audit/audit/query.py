"""Audit query service: the read path of the audit trail.

Read-only operations backing the admin audit and compliance dashboards.
Every call reads live from the store; there is no caching.

Classes:
    AuditLogPage: One page of entries plus the total match count
    TopActor: Activity volume of a single actor
    AuditStatistics: Aggregate counts over a time window
    AuditQueryService: Filtered listing, trails, activity, statistics, export
"""

import csv
import io
import json
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from typing import Any, Literal

from exchange_audit.audit.actors import ActorDirectory
from exchange_audit.audit.models import ActorType, AuditSeverity
from exchange_audit.audit.repository import AuditQueryFilters, AuditRepository
from exchange_audit.models import AuditLogRecord

TOP_ACTORS_LIMIT = 10
EXPORT_MAX_ROWS = 10000

EXPORT_COLUMNS = [
    "id",
    "created_at",
    "actor_type",
    "actor_id",
    "actor_email",
    "actor_role",
    "action",
    "entity_type",
    "entity_id",
    "severity",
    "is_reviewable",
    "mfa_required",
    "mfa_method",
    "ip_address",
    "user_agent",
    "reason",
    "freeze_checksum",
]


@dataclass
class AuditLogPage:
    entries: list[AuditLogRecord]
    total_count: int


@dataclass
class TopActor:
    actor_id: str
    actor_type: str
    email: str
    action_count: int


@dataclass
class AuditStatistics:
    total_actions: int
    actions_by_type: dict[str, int] = field(default_factory=dict)
    actions_by_entity: dict[str, int] = field(default_factory=dict)
    actions_by_severity: dict[str, int] = field(default_factory=dict)
    top_actors: list[TopActor] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def record_to_dict(record: AuditLogRecord) -> dict[str, Any]:
    """Convert a record to a JSON-serializable dict."""
    return {
        "id": str(record.id),
        "created_at": record.created_at.isoformat() if record.created_at else None,
        "actor_type": record.actor_type,
        "actor_id": record.actor_id,
        "actor_email": record.actor_email,
        "actor_role": record.actor_role,
        "action": record.action,
        "entity_type": record.entity_type,
        "entity_id": record.entity_id,
        "diff_before": record.diff_before,
        "diff_after": record.diff_after,
        "changes": record.changes,
        "reason": record.reason,
        "context": record.context,
        "ip_address": record.ip_address,
        "user_agent": record.user_agent,
        "severity": record.severity,
        "is_reviewable": record.is_reviewable,
        "mfa_required": record.mfa_required,
        "mfa_method": record.mfa_method,
        "mfa_verified_at": record.mfa_verified_at.isoformat() if record.mfa_verified_at else None,
        "mfa_event_id": record.mfa_event_id,
        "freeze_checksum": record.freeze_checksum,
    }


class AuditQueryService:
    """Read-only access to the audit trail.

    Args:
        repository: AuditRepository for database reads
        actors: ActorDirectory for display identity resolution
    """

    def __init__(self, repository: AuditRepository, actors: ActorDirectory) -> None:
        self._repository = repository
        self._actors = actors

    async def get_audit_logs(self, filters: AuditQueryFilters) -> AuditLogPage:
        """Filtered, paginated entries, newest first, with total count."""
        entries, total = await self._repository.query(filters)
        return AuditLogPage(entries=entries, total_count=total)

    async def get_entity_audit_trail(
        self, entity_type: str, entity_id: str
    ) -> list[AuditLogRecord]:
        """Full history of one entity, newest first."""
        return await self._repository.list_by_entity(entity_type, entity_id)

    async def get_user_activity(self, user_id: str, limit: int = 100) -> list[AuditLogRecord]:
        """Recent actions performed by one actor."""
        return await self._repository.list_by_actor(user_id, limit)

    async def get_recent_admin_actions(self, limit: int = 50) -> list[AuditLogRecord]:
        """Recent actions performed by administrators."""
        return await self._repository.list_by_actor_type(ActorType.ADMIN, limit)

    async def get_critical_logs(self, limit: int = 100) -> list[AuditLogRecord]:
        return await self._repository.list_by_severity(AuditSeverity.CRITICAL, limit)

    async def get_review_queue(self) -> list[AuditLogRecord]:
        """Reviewable entries that no review entry references yet."""
        reviewable = await self._repository.list_reviewable()
        reviewed_ids = await self._repository.reviewed_entry_ids()
        return [entry for entry in reviewable if str(entry.id) not in reviewed_ids]

    async def get_audit_statistics(
        self,
        from_date: datetime | None = None,
        to_date: datetime | None = None,
    ) -> AuditStatistics:
        """Aggregate counts over a time window.

        Args:
            from_date: Window start (inclusive), unbounded if None
            to_date: Window end (inclusive), unbounded if None

        Returns:
            AuditStatistics with totals, counts by action, entity type and
            severity, and the ten most active actors with their current display email
        """
        total_actions = await self._repository.count(from_date, to_date)
        actions_by_type = await self._repository.count_by("action", from_date, to_date)
        actions_by_entity = await self._repository.count_by("entity_type", from_date, to_date)
        actions_by_severity = await self._repository.count_by("severity", from_date, to_date)
        top_rows = await self._repository.top_actors(from_date, to_date, limit=TOP_ACTORS_LIMIT)

        top_actors = []
        for actor_type, actor_id, action_count in top_rows:
            email = await self._actors.get_display_email(actor_type, actor_id)
            top_actors.append(
                TopActor(
                    actor_id=actor_id,
                    actor_type=actor_type,
                    email=email,
                    action_count=action_count,
                )
            )

        return AuditStatistics(
            total_actions=total_actions,
            actions_by_type=actions_by_type,
            actions_by_entity=actions_by_entity,
            actions_by_severity=actions_by_severity,
            top_actors=top_actors,
        )

    async def export_logs(
        self,
        filters: AuditQueryFilters | None = None,
        export_format: Literal["json", "csv"] = "json",
    ) -> str:
        """Export matching entries as JSON or CSV.

        Args:
            filters: Filters to apply; pagination is replaced by EXPORT_MAX_ROWS
            export_format: "json" or "csv"

        Returns:
            Serialized export

        Raises:
            ValueError: If the format is not supported
        """
        if export_format not in ("json", "csv"):
            raise ValueError(f"Unsupported export format: {export_format}")

        filters = replace(filters or AuditQueryFilters(), offset=0, limit=EXPORT_MAX_ROWS)
        entries, _ = await self._repository.query(filters)
        rows = [record_to_dict(entry) for entry in entries]

        if export_format == "json":
            return json.dumps(rows, indent=2, default=str)

        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=EXPORT_COLUMNS, extrasaction="ignore")
        writer.writeheader()
        for row in rows:
            writer.writerow(row)
        return buffer.getvalue()
