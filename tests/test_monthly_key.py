"""
Tests for monthly key derivation and calendar periods
"""

import hashlib
import re
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from forum_access.core.monthly_key import (
    KEY_LENGTH,
    Period,
    derive_monthly_key,
    keys_match,
    normalize_submitted_key,
)

UTC = ZoneInfo("UTC")


def test_derivation_matches_digest_prefix():
    expected = hashlib.sha256(b"u1-2024-5-s").hexdigest()[:8].upper()

    assert derive_monthly_key("u1", 2024, 5, "s") == expected


def test_key_shape():
    key = derive_monthly_key("u1", 2024, 5, "s")

    assert len(key) == KEY_LENGTH
    assert re.fullmatch(r"[0-9A-F]{8}", key)


def test_deterministic():
    assert derive_monthly_key("u1", 2024, 5, "s") == derive_monthly_key("u1", 2024, 5, "s")


@pytest.mark.parametrize(
    "args",
    [
        ("u2", 2024, 5, "s"),
        ("u1", 2025, 5, "s"),
        ("u1", 2024, 6, "s"),
        ("u1", 2024, 5, "t"),
    ],
)
def test_any_input_changes_key(args):
    assert derive_monthly_key(*args) != derive_monthly_key("u1", 2024, 5, "s")


def test_lowercase_padded_submission_matches():
    key = derive_monthly_key("u1", 2024, 5, "s")

    assert keys_match(f"  {key.lower()}  ", key) is True


def test_wrong_submission_does_not_match():
    key = derive_monthly_key("u1", 2024, 5, "s")

    assert keys_match("00000000" if key != "00000000" else "11111111", key) is False
    assert keys_match("", key) is False


def test_non_string_submission_never_matches():
    assert keys_match(None, "ABCDEF12") is False
    assert keys_match(12345678, "12345678") is False
    assert normalize_submitted_key(None) is None


class TestPeriod:
    def test_rejects_invalid_month(self):
        with pytest.raises(ValueError):
            Period(2024, 13)
        with pytest.raises(ValueError):
            Period(2024, 0)

    def test_from_datetime_uses_reference_zone(self):
        moment = datetime(2024, 5, 31, 23, 30, tzinfo=timezone.utc)

        assert Period.from_datetime(moment, UTC) == Period(2024, 5)
        assert Period.from_datetime(moment, ZoneInfo("Europe/Madrid")) == Period(2024, 6)

    def test_naive_datetimes_are_utc(self):
        assert Period.from_datetime(datetime(2024, 1, 1, 0, 0), UTC) == Period(2024, 1)

    def test_current_with_explicit_now(self):
        now = datetime(2024, 5, 15, tzinfo=timezone.utc)

        assert Period.current(UTC, now) == Period(2024, 5)

    def test_next_rolls_over_year(self):
        assert Period(2024, 12).next() == Period(2025, 1)
        assert Period(2024, 5).next() == Period(2024, 6)

    def test_end_of_month(self):
        end = Period(2024, 2).end_of_month(UTC)

        assert end.year == 2024 and end.month == 2 and end.day == 29
        assert (end.hour, end.minute, end.second, end.microsecond) == (23, 59, 59, 999999)

    def test_ordering(self):
        assert Period(2024, 5) < Period(2024, 6) < Period(2025, 1)
