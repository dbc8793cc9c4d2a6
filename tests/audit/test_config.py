"""Tests for audit classification rules and application settings."""

import logging

import pytest

from exchange_audit.audit.models import AuditSeverity


class TestClassifySeverity:
    """Tests for classify_severity() three-tier precedence."""

    def test_critical_set_member_is_critical(self):
        from exchange_audit.audit.config import classify_severity

        assert classify_severity("ADMIN_ROLE_CHANGED") == AuditSeverity.CRITICAL
        assert classify_severity("APPROVE_PAYOUT") == AuditSeverity.CRITICAL

    def test_tenant_deleted_is_critical_not_warning(self):
        """Exact-set membership wins over the DELETE keyword."""
        from exchange_audit.audit.config import classify_severity

        assert classify_severity("TENANT_DELETED") == AuditSeverity.CRITICAL

    def test_every_critical_action_wins_over_keywords(self):
        from exchange_audit.audit.config import CRITICAL_ACTIONS, classify_severity

        for action in CRITICAL_ACTIONS:
            assert classify_severity(action) == AuditSeverity.CRITICAL, action

    def test_critical_check_happens_before_keyword_check(self):
        from exchange_audit.audit import config

        with pytest.MonkeyPatch.context() as mp:
            mp.setattr(config, "CRITICAL_ACTIONS", frozenset({"PAYOUT_REJECTED"}))
            assert config.classify_severity("PAYOUT_REJECTED") == AuditSeverity.CRITICAL

    @pytest.mark.parametrize(
        "action",
        ["USER_DELETED", "USER_SUSPENDED", "KYC_REJECTED", "ADMIN_TERMINATED", "WALLET_DELETE"],
    )
    def test_keyword_hit_is_warning(self, action):
        from exchange_audit.audit.config import classify_severity

        assert classify_severity(action) == AuditSeverity.WARNING

    def test_incidental_keyword_match_is_warning(self):
        from exchange_audit.audit.config import classify_severity

        assert classify_severity("REJECT_REASON_UPDATED") == AuditSeverity.WARNING

    def test_keyword_match_is_case_sensitive(self):
        from exchange_audit.audit.config import classify_severity

        assert classify_severity("user_deleted") == AuditSeverity.INFO

    @pytest.mark.parametrize("action", ["ORDER_STATUS_CHANGED", "KYC_SUBMITTED", "USER_LOGIN"])
    def test_everything_else_is_info(self, action):
        from exchange_audit.audit.config import classify_severity

        assert classify_severity(action) == AuditSeverity.INFO


class TestIsReviewableAction:
    def test_payout_approval_is_reviewable(self):
        from exchange_audit.audit.config import is_reviewable_action

        assert is_reviewable_action("APPROVE_PAYOUT") is True

    def test_login_is_not_reviewable(self):
        from exchange_audit.audit.config import is_reviewable_action

        assert is_reviewable_action("USER_LOGIN") is False


class TestChecksumFields:
    def test_checksum_fields_exclude_database_id(self):
        from exchange_audit.audit.config import CHECKSUM_FIELDS

        assert "id" not in CHECKSUM_FIELDS
        assert set(CHECKSUM_FIELDS) == {
            "actor_type",
            "actor_id",
            "action",
            "entity_type",
            "entity_id",
            "created_at",
        }


class TestSettings:
    """Tests for audit-related application settings."""

    def test_effective_salt_falls_back_to_dev_salt(self):
        from exchange_audit.config import DEV_AUDIT_SALT, Settings

        config = Settings(audit_salt=None)

        assert config.effective_audit_salt == DEV_AUDIT_SALT

    def test_effective_salt_uses_configured_salt(self):
        from exchange_audit.config import Settings

        config = Settings(audit_salt="prod-salt")

        assert config.effective_audit_salt == "prod-salt"

    def test_validate_passes_silently_with_salt(self, caplog):
        from exchange_audit.config import Settings, validate_audit_settings

        with caplog.at_level(logging.WARNING):
            validate_audit_settings(Settings(audit_salt="prod-salt", audit_salt_required=True))

        assert "AUDIT_SALT" not in caplog.text

    def test_validate_warns_when_salt_missing(self, caplog):
        from exchange_audit.config import Settings, validate_audit_settings

        with caplog.at_level(logging.WARNING):
            validate_audit_settings(Settings(audit_salt=None, audit_salt_required=False))

        assert "AUDIT_SALT is not set" in caplog.text

    def test_validate_fails_when_salt_required(self):
        from exchange_audit.config import Settings, validate_audit_settings

        with pytest.raises(RuntimeError, match="AUDIT_SALT"):
            validate_audit_settings(Settings(audit_salt=None, audit_salt_required=True))

    def test_env_file_is_read_and_unrelated_keys_ignored(self, tmp_path):
        from exchange_audit.config import Settings

        env_file = tmp_path / ".env"
        env_file.write_text("AUDIT_SALT=file-salt\nSUMSUB_APP_TOKEN=unrelated\n")

        config = Settings(_env_file=env_file)

        assert Settings.model_config["env_file"] == ".env"
        assert config.effective_audit_salt == "file-salt"
