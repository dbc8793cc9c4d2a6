# exchange_audit/api/audit.py
"""Audit API endpoints for viewing, exporting and verifying audit logs."""

from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_audit.audit.models import ActorType, AuditSeverity
from exchange_audit.audit.repository import AuditQueryFilters
from exchange_audit.audit.setup import build_audit_service, build_query_service
from exchange_audit.db.database import get_session
from exchange_audit.models import AuditLogRecord


# Response schemas
class AuditLogResponse(BaseModel):
    """Response model for a single audit log."""

    id: str
    created_at: datetime
    actor_type: str
    actor_id: str | None
    actor_email: str | None
    actor_role: str | None
    action: str
    entity_type: str
    entity_id: str
    diff_before: Any = None
    diff_after: Any = None
    changes: list[dict[str, Any]] | None
    reason: str | None
    context: dict[str, Any] | None
    ip_address: str
    user_agent: str | None
    severity: str
    is_reviewable: bool
    mfa_required: bool
    mfa_method: str | None
    mfa_verified_at: datetime | None
    mfa_event_id: str | None
    freeze_checksum: str


class AuditLogListResponse(BaseModel):
    """Response model for paginated audit log list."""

    logs: list[AuditLogResponse]
    total: int
    offset: int
    limit: int


class TopActorResponse(BaseModel):
    actor_id: str
    actor_type: str
    email: str
    action_count: int


class AuditStatsResponse(BaseModel):
    """Response model for audit statistics."""

    total_actions: int
    actions_by_type: dict[str, int]
    actions_by_entity: dict[str, int]
    actions_by_severity: dict[str, int]
    top_actors: list[TopActorResponse]


class IntegrityResponse(BaseModel):
    """Response model for a freeze checksum verification."""

    id: str
    is_valid: bool


# Router
router = APIRouter(prefix="/api/audit", tags=["audit"])


@router.get("/stats", response_model=AuditStatsResponse)
async def get_audit_stats(
    from_date: datetime | None = Query(default=None),
    to_date: datetime | None = Query(default=None),
    db: AsyncSession = Depends(get_session),
) -> AuditStatsResponse:
    """Get audit log statistics.

    Returns:
        Total count, breakdown by action, entity type and severity, and the most active actors
    """
    stats = await build_query_service(db).get_audit_statistics(from_date, to_date)

    return AuditStatsResponse(
        total_actions=stats.total_actions,
        actions_by_type=stats.actions_by_type,
        actions_by_entity=stats.actions_by_entity,
        actions_by_severity=stats.actions_by_severity,
        top_actors=[TopActorResponse(**vars(actor)) for actor in stats.top_actors],
    )


@router.get("/entity/{entity_type}/{entity_id}", response_model=list[AuditLogResponse])
async def get_entity_audit_trail(
    entity_type: str,
    entity_id: str,
    db: AsyncSession = Depends(get_session),
) -> list[AuditLogResponse]:
    """Get the full history of one entity, newest first."""
    records = await build_query_service(db).get_entity_audit_trail(entity_type, entity_id)
    return [_record_to_response(record) for record in records]


@router.get("/actors/{actor_id}/activity", response_model=list[AuditLogResponse])
async def get_actor_activity(
    actor_id: str,
    limit: int = Query(default=100, ge=1, le=1000),
    db: AsyncSession = Depends(get_session),
) -> list[AuditLogResponse]:
    """Get recent actions performed by one admin or user."""
    records = await build_query_service(db).get_user_activity(actor_id, limit)
    return [_record_to_response(record) for record in records]


@router.get("/admin/recent", response_model=list[AuditLogResponse])
async def get_recent_admin_actions(
    limit: int = Query(default=50, ge=1, le=500),
    db: AsyncSession = Depends(get_session),
) -> list[AuditLogResponse]:
    records = await build_query_service(db).get_recent_admin_actions(limit)
    return [_record_to_response(record) for record in records]


@router.get("/review-queue", response_model=list[AuditLogResponse])
async def get_review_queue(
    db: AsyncSession = Depends(get_session),
) -> list[AuditLogResponse]:
    """Get reviewable entries that have not been reviewed yet."""
    records = await build_query_service(db).get_review_queue()
    return [_record_to_response(record) for record in records]


@router.get("/export")
async def export_audit_logs(
    export_format: str = Query(default="json", alias="format"),
    actor_id: str | None = Query(default=None),
    action: str | None = Query(default=None),
    entity_type: str | None = Query(default=None),
    from_date: datetime | None = Query(default=None),
    to_date: datetime | None = Query(default=None),
    db: AsyncSession = Depends(get_session),
) -> Response:
    """Export matching audit logs as a JSON or CSV download.

    Raises:
        HTTPException: 400 if the format is not supported
    """
    filters = AuditQueryFilters(
        actor_id=actor_id,
        action=action,
        entity_type=entity_type,
        from_date=from_date,
        to_date=to_date,
    )

    try:
        content = await build_query_service(db).export_logs(filters, export_format)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    media_type = "text/csv" if export_format == "csv" else "application/json"
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename=audit_logs.{export_format}"},
    )


@router.get("/{entry_id}/verify", response_model=IntegrityResponse)
async def verify_audit_entry(
    entry_id: UUID,
    db: AsyncSession = Depends(get_session),
) -> IntegrityResponse:
    """Recompute the freeze checksum of a stored entry.

    Raises:
        HTTPException: 404 if the entry does not exist
    """
    record = await _get_record_or_404(db, entry_id)
    is_valid = await build_audit_service(db).verify_entry(record.id)
    return IntegrityResponse(id=str(entry_id), is_valid=is_valid)


@router.get("/{entry_id}", response_model=AuditLogResponse)
async def get_audit_entry(
    entry_id: UUID,
    db: AsyncSession = Depends(get_session),
) -> AuditLogResponse:
    """Get a single audit entry by UUID.

    Raises:
        HTTPException: 404 if audit entry not found
    """
    record = await _get_record_or_404(db, entry_id)
    return _record_to_response(record)


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    actor_id: str | None = Query(default=None),
    actor_type: ActorType | None = Query(default=None),
    action: str | None = Query(default=None),
    entity_type: str | None = Query(default=None),
    entity_id: str | None = Query(default=None),
    ip_address: str | None = Query(default=None),
    severity: AuditSeverity | None = Query(default=None),
    is_reviewable: bool | None = Query(default=None),
    search: str | None = Query(default=None),
    from_date: datetime | None = Query(default=None),
    to_date: datetime | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
) -> AuditLogListResponse:
    """List audit logs with optional filtering and pagination.

    Args:
        actor_id: Filter by acting admin/user id
        actor_type: Filter by stream (ADMIN, USER, SYSTEM)
        action: Filter by action tag (e.g., "USER_SUSPENDED")
        entity_type: Filter by entity type (e.g., "User", "KycSession")
        entity_id: Filter by specific entity id
        ip_address: Filter by IP substring
        severity: Filter by severity
        is_reviewable: Filter by compliance review flag
        search: Case-insensitive match on action, entity or actor email
        from_date: Filter entries created at or after this time
        to_date: Filter entries created at or before this time
        offset: Number of records to skip (default 0)
        limit: Maximum number of records to return (default 50, max 100)
        db: Database session

    Returns:
        Paginated list of audit logs with total count
    """
    filters = AuditQueryFilters(
        actor_id=actor_id,
        actor_type=actor_type,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        ip_address=ip_address,
        severity=severity,
        is_reviewable=is_reviewable,
        search=search,
        from_date=from_date,
        to_date=to_date,
        offset=offset,
        limit=limit,
    )
    page = await build_query_service(db).get_audit_logs(filters)

    return AuditLogListResponse(
        logs=[_record_to_response(record) for record in page.entries],
        total=page.total_count,
        offset=offset,
        limit=limit,
    )


async def _get_record_or_404(db: AsyncSession, entry_id: UUID) -> AuditLogRecord:
    record = await db.get(AuditLogRecord, entry_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Audit entry not found")
    return record


def _as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to timestamps read back without tzinfo (SQLite)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _record_to_response(record: AuditLogRecord) -> AuditLogResponse:
    """Convert an AuditLogRecord to an AuditLogResponse.

    Args:
        record: Stored audit entry

    Returns:
        AuditLogResponse model
    """
    return AuditLogResponse(
        id=str(record.id),
        created_at=_as_utc(record.created_at),
        actor_type=record.actor_type,
        actor_id=record.actor_id,
        actor_email=record.actor_email,
        actor_role=record.actor_role,
        action=record.action,
        entity_type=record.entity_type,
        entity_id=record.entity_id,
        diff_before=record.diff_before,
        diff_after=record.diff_after,
        changes=record.changes,
        reason=record.reason,
        context=record.context,
        ip_address=record.ip_address,
        user_agent=record.user_agent,
        severity=record.severity,
        is_reviewable=record.is_reviewable,
        mfa_required=record.mfa_required,
        mfa_method=record.mfa_method,
        mfa_verified_at=_as_utc(record.mfa_verified_at),
        mfa_event_id=record.mfa_event_id,
        freeze_checksum=record.freeze_checksum,
    )
