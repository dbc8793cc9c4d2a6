"""Tests for freeze checksum computation and verification."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from exchange_audit.audit.models import ActorType

SALT = "test-salt"


def make_fields(**overrides):
    """Helper to create checksum input fields."""
    fields = {
        "actor_type": ActorType.ADMIN,
        "actor_id": "adm_1",
        "action": "ORDER_STATUS_CHANGED",
        "entity_type": "Order",
        "entity_id": "ord_9",
        "created_at": datetime(2026, 1, 15, 10, 30, 0, 123456, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return fields


class TestComputeChecksum:
    """Tests for compute_checksum() function."""

    def test_checksum_is_64_char_hex(self):
        from exchange_audit.audit.integrity import compute_checksum

        checksum = compute_checksum(make_fields(), SALT)

        assert len(checksum) == 64
        assert all(c in "0123456789abcdef" for c in checksum)

    def test_checksum_is_deterministic(self):
        from exchange_audit.audit.integrity import compute_checksum

        fields = make_fields()

        assert compute_checksum(fields, SALT) == compute_checksum(fields, SALT)
        assert compute_checksum(fields, SALT) == compute_checksum(make_fields(), SALT)

    @pytest.mark.parametrize(
        "field,value",
        [
            ("actor_id", "adm_2"),
            ("action", "ORDER_CANCELLED"),
            ("entity_id", "ord_10"),
            ("created_at", datetime(2026, 1, 15, 10, 30, 0, 123457, tzinfo=timezone.utc)),
            ("actor_type", ActorType.USER),
            ("entity_type", "User"),
        ],
    )
    def test_checksum_changes_with_any_identifying_field(self, field, value):
        from exchange_audit.audit.integrity import compute_checksum

        original = compute_checksum(make_fields(), SALT)
        modified = compute_checksum(make_fields(**{field: value}), SALT)

        assert original != modified

    def test_checksum_depends_on_salt(self):
        from exchange_audit.audit.integrity import compute_checksum

        first = compute_checksum(make_fields(), "salt-a")
        second = compute_checksum(make_fields(), "salt-b")

        assert first != second

    def test_checksum_ignores_non_identifying_fields(self):
        from exchange_audit.audit.integrity import compute_checksum

        with_extras = make_fields(reason="anything", context={"k": "v"}, id=uuid4())

        assert compute_checksum(with_extras, SALT) == compute_checksum(make_fields(), SALT)

    def test_naive_timestamp_hashes_as_utc(self):
        """Stores that drop tzinfo must still verify."""
        from exchange_audit.audit.integrity import compute_checksum

        aware = make_fields()
        naive = make_fields(created_at=aware["created_at"].replace(tzinfo=None))

        assert compute_checksum(aware, SALT) == compute_checksum(naive, SALT)

    def test_equivalent_timezones_hash_the_same(self):
        from exchange_audit.audit.integrity import compute_checksum

        utc_time = make_fields()["created_at"]
        shifted = utc_time.astimezone(timezone(timedelta(hours=3)))

        assert compute_checksum(make_fields(), SALT) == compute_checksum(
            make_fields(created_at=shifted), SALT
        )

    def test_enum_and_string_actor_type_hash_the_same(self):
        from exchange_audit.audit.integrity import compute_checksum

        assert compute_checksum(make_fields(actor_type="ADMIN"), SALT) == compute_checksum(
            make_fields(), SALT
        )


class TestVerifyChecksum:
    """Tests for verify_checksum() function."""

    def test_verify_valid_checksum(self):
        from exchange_audit.audit.integrity import compute_checksum, verify_checksum

        entry = make_fields()
        entry["freeze_checksum"] = compute_checksum(entry, SALT)

        assert verify_checksum(entry, SALT) is True

    def test_verify_detects_tampered_action(self):
        from exchange_audit.audit.integrity import compute_checksum, verify_checksum

        entry = make_fields()
        entry["freeze_checksum"] = compute_checksum(entry, SALT)
        entry["action"] = "ORDER_CANCELLED"

        assert verify_checksum(entry, SALT) is False

    def test_verify_with_wrong_salt_fails(self):
        from exchange_audit.audit.integrity import compute_checksum, verify_checksum

        entry = make_fields()
        entry["freeze_checksum"] = compute_checksum(entry, SALT)

        assert verify_checksum(entry, "other-salt") is False

    def test_verify_missing_checksum_fails(self):
        from exchange_audit.audit.integrity import verify_checksum

        assert verify_checksum(make_fields(), SALT) is False

    def test_verify_entries_reports_each_failure(self):
        from exchange_audit.audit.integrity import compute_checksum, verify_entries

        good = make_fields(id="good")
        good["freeze_checksum"] = compute_checksum(good, SALT)
        bad = make_fields(id="bad")
        bad["freeze_checksum"] = "0" * 64

        is_valid, errors = verify_entries([good, bad], SALT)

        assert is_valid is False
        assert len(errors) == 1
        assert "bad" in errors[0]


class TestChecksumGenerator:
    """Tests for ChecksumGenerator."""

    def test_requires_salt(self):
        from exchange_audit.audit.integrity import ChecksumGenerator

        with pytest.raises(ValueError):
            ChecksumGenerator("")

    def test_compute_matches_function(self):
        from exchange_audit.audit.integrity import ChecksumGenerator, compute_checksum

        generator = ChecksumGenerator(SALT)

        assert generator.compute(make_fields()) == compute_checksum(make_fields(), SALT)

    def test_verify_round_trip(self):
        from exchange_audit.audit.integrity import ChecksumGenerator

        generator = ChecksumGenerator(SALT)
        entry = make_fields()
        entry["freeze_checksum"] = generator.compute(entry)

        assert generator.verify(entry) is True
        assert generator.verify_many([entry]) == (True, [])
