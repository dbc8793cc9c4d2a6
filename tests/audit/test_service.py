"""Tests for AuditService write path."""

import logging
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from exchange_audit.audit.models import ActorType, AuditSeverity
from exchange_audit.models import AdminAccount, UserAccount


async def seed_accounts(session):
    session.add_all(
        [
            AdminAccount(id="adm_1", email="ops@exchange.test", role_code="OPERATIONS"),
            UserAccount(id="usr_1", email="alice@example.com"),
        ]
    )
    await session.commit()


class TestAuditServiceInit:
    def test_repository_defaults_to_sink(self):
        from exchange_audit.audit.integrity import ChecksumGenerator
        from exchange_audit.audit.repository import AuditRepository
        from exchange_audit.audit.service import AuditService

        repo = AuditRepository(MagicMock())
        service = AuditService(sink=repo, actors=MagicMock(), checksum=ChecksumGenerator("s"))

        assert service._repository is repo

    @pytest.mark.asyncio
    async def test_custom_sink_without_repository_cannot_verify(self):
        from exchange_audit.audit.integrity import ChecksumGenerator
        from exchange_audit.audit.service import AuditService

        service = AuditService(
            sink=AsyncMock(), actors=MagicMock(), checksum=ChecksumGenerator("s")
        )

        with pytest.raises(RuntimeError):
            await service.verify_entry(uuid4())


class TestLogAdminAction:
    """Tests for log_admin_action()."""

    @pytest.mark.asyncio
    async def test_order_status_change(self, db_session, audit_service):
        await seed_accounts(db_session)

        record = await audit_service.log_admin_action(
            "adm_1",
            "ORDER_STATUS_CHANGED",
            "Order",
            "ord_9",
            {"status": "PENDING"},
            {"status": "PROCESSING"},
        )

        assert record.severity == AuditSeverity.INFO.value
        assert record.freeze_checksum
        assert record.diff_before == {"status": "PENDING"}
        assert record.diff_after == {"status": "PROCESSING"}
        assert record.actor_type == "ADMIN"
        assert record.actor_email == "ops@exchange.test"
        assert record.actor_role == "OPERATIONS"

    @pytest.mark.asyncio
    async def test_empty_diffs_are_valid(self, audit_service):
        record = await audit_service.log_admin_action(
            "adm_1", "SETTINGS_UPDATED", "SystemSettings", "global", {}, {}
        )

        assert record.diff_before == {}
        assert record.diff_after == {}

    @pytest.mark.asyncio
    async def test_omitting_new_value_is_rejected(self, audit_service):
        with pytest.raises(TypeError):
            await audit_service.log_admin_action(
                "adm_1", "SETTINGS_UPDATED", "SystemSettings", "global", {}
            )

    @pytest.mark.asyncio
    async def test_none_diff_is_rejected(self, audit_service):
        with pytest.raises(ValueError):
            await audit_service.log_admin_action(
                "adm_1", "SETTINGS_UPDATED", "SystemSettings", "global", None, {}
            )

    @pytest.mark.asyncio
    async def test_unknown_admin_is_recorded_as_unknown(self, audit_service):
        record = await audit_service.log_admin_action(
            "adm_ghost", "SETTINGS_UPDATED", "SystemSettings", "global", {}, {}
        )

        assert record.actor_email == "unknown"
        assert record.actor_role == "ADMIN"

    @pytest.mark.asyncio
    async def test_critical_action_logs_warning(self, audit_service, caplog):
        with caplog.at_level(logging.INFO, logger="exchange_audit.audit.service"):
            record = await audit_service.log_admin_action(
                "adm_1", "TENANT_DELETED", "Tenant", "t_1", {"name": "Acme"}, {}
            )

        assert record.severity == "CRITICAL"
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert any("TENANT_DELETED" in r.getMessage() for r in warnings)


class TestLogUserAction:
    @pytest.mark.asyncio
    async def test_kyc_submission_has_no_diff(self, db_session, audit_service):
        await seed_accounts(db_session)

        record = await audit_service.log_user_action("usr_1", "KYC_SUBMITTED", "KycSession", "ks_1")

        assert record.diff_before is None
        assert record.diff_after is None
        assert record.actor_type == "USER"
        assert record.actor_email == "alice@example.com"
        assert record.severity == "INFO"

    @pytest.mark.asyncio
    async def test_request_context_is_captured(self, audit_service):
        from exchange_audit.audit.context import request_scope

        with request_scope({"x-forwarded-for": "203.0.113.5, 10.0.0.1", "user-agent": "pytest"}):
            record = await audit_service.log_user_action("usr_1", "USER_LOGIN", "User", "usr_1")

        assert record.ip_address == "203.0.113.5"
        assert record.user_agent == "pytest"

    @pytest.mark.asyncio
    async def test_outside_request_context_is_unknown(self, audit_service):
        record = await audit_service.log_user_action("usr_1", "USER_LOGIN", "User", "usr_1")

        assert record.ip_address == "unknown"
        assert record.user_agent is None


class TestLogSystemAction:
    @pytest.mark.asyncio
    async def test_system_flag_is_added(self, audit_service):
        record = await audit_service.log_system_action(
            "KYC_WEBHOOK_RECEIVED", "KycSession", "ks_1", {"provider": "sumsub"}
        )

        assert record.actor_type == "SYSTEM"
        assert record.actor_id is None
        assert record.context == {"provider": "sumsub", "system": True}

    @pytest.mark.asyncio
    async def test_metadata_is_not_mutated(self, audit_service):
        metadata = {"provider": "sumsub"}

        await audit_service.log_system_action(
            "KYC_WEBHOOK_RECEIVED", "KycSession", "ks_1", metadata
        )

        assert metadata == {"provider": "sumsub"}


class TestLogAction:
    @pytest.mark.asyncio
    async def test_with_actor_is_admin_entry(self, audit_service):
        record = await audit_service.log_action(
            "USER_SUSPENDED",
            "User",
            "usr_1",
            diff={"old_value": {"status": "ACTIVE"}},
            actor_id="adm_1",
        )

        assert record.actor_type == "ADMIN"
        assert record.diff_before == {"status": "ACTIVE"}
        assert record.diff_after == {}
        assert record.severity == "WARNING"

    @pytest.mark.asyncio
    async def test_without_actor_is_system_entry(self, audit_service):
        record = await audit_service.log_action("SYSTEM_MAINTENANCE", "SystemSettings", "global")

        assert record.actor_type == "SYSTEM"
        assert record.diff_before is None


class TestLog:
    @pytest.mark.asyncio
    async def test_mfa_metadata_and_explicit_severity(self, audit_service):
        from datetime import datetime, timezone

        verified_at = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)

        record = await audit_service.log(
            action="APPROVE_PAYOUT",
            entity_type="Order",
            entity_id="ord_9",
            actor_type=ActorType.ADMIN,
            actor_id="adm_1",
            actor_email="ops@exchange.test",
            actor_role="OPERATIONS",
            diff_before={"status": "PENDING"},
            diff_after={"status": "APPROVED"},
            reason="Verified bank statement",
            mfa_required=True,
            mfa_method="totp",
            mfa_verified_at=verified_at,
            mfa_event_id="mfa_1",
        )

        assert record.severity == "CRITICAL"
        assert record.is_reviewable is True
        assert record.reason == "Verified bank statement"
        assert record.mfa_required is True
        assert record.mfa_method == "totp"
        assert record.mfa_event_id == "mfa_1"

    @pytest.mark.asyncio
    async def test_string_severity_override(self, audit_service, caplog):
        with caplog.at_level(logging.WARNING):
            record = await audit_service.log(
                action="ORDER_CREATED",
                entity_type="Order",
                entity_id="ord_1",
                actor_type="SYSTEM",
                severity="CRITICAL",
            )

        assert record.severity == "CRITICAL"
        assert "severity=CRITICAL" in caplog.text

    @pytest.mark.asyncio
    async def test_sink_failure_propagates(self):
        from exchange_audit.audit.integrity import ChecksumGenerator
        from exchange_audit.audit.service import AuditService

        sink = AsyncMock()
        sink.persist.side_effect = RuntimeError("disk full")
        actors = AsyncMock()
        actors.get_snapshot.return_value = None
        service = AuditService(sink=sink, actors=actors, checksum=ChecksumGenerator("s"))

        with pytest.raises(RuntimeError, match="disk full"):
            await service.log_user_action("usr_1", "USER_LOGIN", "User", "usr_1")


class TestReviewAndVerify:
    @pytest.mark.asyncio
    async def test_record_review_writes_new_entry(self, audit_service):
        original = await audit_service.log_admin_action(
            "adm_1",
            "APPROVE_PAYOUT",
            "Order",
            "ord_9",
            {"status": "PENDING"},
            {"status": "APPROVED"},
        )

        review = await audit_service.record_review(original.id, "adm_2", notes="Looks fine")

        assert review.action == "AUDIT_LOG_REVIEWED"
        assert review.entity_type == "AuditLog"
        assert review.entity_id == str(original.id)
        assert review.reason == "Looks fine"
        assert review.is_reviewable is False
        assert review.context["reviewed_action"] == "APPROVE_PAYOUT"

    @pytest.mark.asyncio
    async def test_record_review_of_missing_entry(self, audit_service):
        with pytest.raises(LookupError):
            await audit_service.record_review(uuid4(), "adm_2")

    @pytest.mark.asyncio
    async def test_verify_entry(self, db_session, audit_service):
        record = await audit_service.log_user_action("usr_1", "USER_LOGIN", "User", "usr_1")

        assert await audit_service.verify_entry(record.id) is True
        assert await audit_service.verify_entry(uuid4()) is False

    @pytest.mark.asyncio
    async def test_verify_entry_detects_tampering(self, db_session, audit_service):
        record = await audit_service.log_user_action("usr_1", "USER_LOGIN", "User", "usr_1")

        record.action = "USER_LOGOUT"
        await db_session.commit()

        assert await audit_service.verify_entry(record.id) is False
