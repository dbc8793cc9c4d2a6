# exchange_audit/models/audit_log.py
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Boolean, DateTime, Index, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from exchange_audit.db.database import Base


class AuditLogRecord(Base):
    """Persisted audit entry.

    Admin, user and system streams share this table; ``actor_type`` is the
    discriminant. Rows are insert-only.
    """

    __tablename__ = "audit_logs"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)

    actor_type: Mapped[str] = mapped_column(String(20), index=True)
    actor_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    actor_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    actor_role: Mapped[str | None] = mapped_column(String(50), nullable=True)

    action: Mapped[str] = mapped_column(String(100), index=True)
    entity_type: Mapped[str] = mapped_column(String(100))
    entity_id: Mapped[str] = mapped_column(String(100))

    diff_before: Mapped[Any] = mapped_column(JSON(none_as_null=True), nullable=True)
    diff_after: Mapped[Any] = mapped_column(JSON(none_as_null=True), nullable=True)
    changes: Mapped[Any] = mapped_column(JSON(none_as_null=True), nullable=True)

    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    context: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)

    ip_address: Mapped[str] = mapped_column(String(64), default="unknown")
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)

    severity: Mapped[str] = mapped_column(String(20), index=True)
    is_reviewable: Mapped[bool] = mapped_column(Boolean, default=False)

    # Step-up authentication
    mfa_required: Mapped[bool] = mapped_column(Boolean, default=False)
    mfa_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    mfa_verified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    mfa_event_id: Mapped[str | None] = mapped_column(String(100), nullable=True)

    freeze_checksum: Mapped[str] = mapped_column(String(64))

    __table_args__ = (Index("ix_audit_logs_entity", "entity_type", "entity_id"),)

    @property
    def is_system(self) -> bool:
        return self.actor_type == "SYSTEM"
