"""Create admins, users and audit_logs tables.

Revision ID: 001_audit_core
Revises:
Create Date: 2026-10-19
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import JSONB, UUID

revision = "001_audit_core"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "admins",
        sa.Column("id", sa.VARCHAR(50), primary_key=True),
        sa.Column("email", sa.VARCHAR(255), nullable=False, unique=True),
        sa.Column("work_email", sa.VARCHAR(255), nullable=True),
        sa.Column("role_code", sa.VARCHAR(50), nullable=False, server_default="ADMIN"),
        sa.Column(
            "created_at",
            sa.TIMESTAMP,
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    )

    op.create_table(
        "users",
        sa.Column("id", sa.VARCHAR(50), primary_key=True),
        sa.Column("email", sa.VARCHAR(255), nullable=False, unique=True),
        sa.Column("role", sa.VARCHAR(50), nullable=False, server_default="USER"),
        sa.Column(
            "created_at",
            sa.TIMESTAMP,
            nullable=False,
            server_default=sa.text("NOW()"),
        ),
    )

    op.create_table(
        "audit_logs",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("actor_type", sa.VARCHAR(20), nullable=False),
        sa.Column("actor_id", sa.VARCHAR(100), nullable=True),
        sa.Column("actor_email", sa.VARCHAR(255), nullable=True),
        sa.Column("actor_role", sa.VARCHAR(50), nullable=True),
        sa.Column("action", sa.VARCHAR(100), nullable=False),
        sa.Column("entity_type", sa.VARCHAR(100), nullable=False),
        sa.Column("entity_id", sa.VARCHAR(100), nullable=False),
        sa.Column("diff_before", JSONB, nullable=True),
        sa.Column("diff_after", JSONB, nullable=True),
        sa.Column("changes", JSONB, nullable=True),
        sa.Column("reason", sa.TEXT, nullable=True),
        sa.Column("context", JSONB, nullable=True),
        sa.Column("ip_address", sa.VARCHAR(64), nullable=False, server_default="unknown"),
        sa.Column("user_agent", sa.TEXT, nullable=True),
        sa.Column("severity", sa.VARCHAR(20), nullable=False),
        sa.Column("is_reviewable", sa.BOOLEAN, nullable=False, server_default=sa.false()),
        sa.Column("mfa_required", sa.BOOLEAN, nullable=False, server_default=sa.false()),
        sa.Column("mfa_method", sa.VARCHAR(50), nullable=True),
        sa.Column("mfa_verified_at", sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column("mfa_event_id", sa.VARCHAR(100), nullable=True),
        sa.Column("freeze_checksum", sa.VARCHAR(64), nullable=False),
        sa.CheckConstraint(
            "actor_type IN ('ADMIN', 'USER', 'SYSTEM')",
            name="ck_audit_logs_actor_type",
        ),
        sa.CheckConstraint(
            "severity IN ('INFO', 'WARNING', 'CRITICAL')",
            name="ck_audit_logs_severity",
        ),
        # System entries have no actor; admin and user entries always do
        sa.CheckConstraint(
            "(actor_type = 'SYSTEM') = (actor_id IS NULL)",
            name="ck_audit_logs_actor_id",
        ),
        # Admin entries always carry both snapshots
        sa.CheckConstraint(
            "actor_type <> 'ADMIN' OR (diff_before IS NOT NULL AND diff_after IS NOT NULL)",
            name="ck_audit_logs_admin_diff",
        ),
    )

    # Indexes for common query patterns
    op.create_index("ix_audit_logs_created_at", "audit_logs", ["created_at"])
    op.create_index("ix_audit_logs_actor_type", "audit_logs", ["actor_type"])
    op.create_index("ix_audit_logs_actor_id", "audit_logs", ["actor_id"])
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_severity", "audit_logs", ["severity"])
    op.create_index("ix_audit_logs_entity", "audit_logs", ["entity_type", "entity_id"])

    # Partial index backing the compliance review queue
    op.execute("""
        CREATE INDEX ix_audit_logs_reviewable ON audit_logs (created_at DESC)
        WHERE is_reviewable
    """)

    # Audit rows are insert-only
    op.execute("""
        DO $$
        BEGIN
            REVOKE UPDATE, DELETE ON audit_logs FROM PUBLIC;
            GRANT INSERT, SELECT ON audit_logs TO PUBLIC;
        EXCEPTION
            WHEN undefined_object THEN
                NULL;
            WHEN insufficient_privilege THEN
                NULL;
        END $$;
    """)


def downgrade() -> None:
    op.drop_table("audit_logs")
    op.drop_table("users")
    op.drop_table("admins")
