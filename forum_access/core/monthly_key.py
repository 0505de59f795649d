"""
Monthly key derivation.

A monthly key is the first eight hex characters, uppercased, of
``sha256("{principal_id}-{year}-{month}-{salt}")``. It depends only on its
arguments; whether a key is accepted "now" is decided by comparing calendar
periods in the lockout machine.
"""

from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any
from zoneinfo import ZoneInfo

KEY_LENGTH = 8
KEY_SEPARATOR = "-"


@dataclass(frozen=True, order=True)
class Period:
    """A calendar year + month in the reference time zone."""

    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month out of range: {self.month}")

    @classmethod
    def from_datetime(cls, moment: datetime, tz: ZoneInfo) -> "Period":
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        local = moment.astimezone(tz)
        return cls(local.year, local.month)

    @classmethod
    def current(cls, tz: ZoneInfo, now: datetime | None = None) -> "Period":
        return cls.from_datetime(now or datetime.now(timezone.utc), tz)

    def next(self) -> "Period":
        if self.month == 12:
            return Period(self.year + 1, 1)
        return Period(self.year, self.month + 1)

    def start(self, tz: ZoneInfo) -> datetime:
        return datetime(self.year, self.month, 1, tzinfo=tz)

    def end_of_month(self, tz: ZoneInfo) -> datetime:
        """Last representable instant of the period, in ``tz``."""
        return self.next().start(tz) - timedelta(microseconds=1)


def derive_monthly_key(principal_id: Any, year: int, month: int, salt: str) -> str:
    """Derive the key a principal must enter during ``year``/``month``."""
    data = KEY_SEPARATOR.join([str(principal_id), str(year), str(month), salt])
    digest = hashlib.sha256(data.encode("utf-8")).hexdigest()
    return digest[:KEY_LENGTH].upper()


def normalize_submitted_key(submitted: Any) -> str | None:
    if not isinstance(submitted, str):
        return None
    return submitted.strip().upper()


def keys_match(submitted: Any, expected: str) -> bool:
    """Case-insensitive, whitespace-trimmed, constant-time comparison."""
    candidate = normalize_submitted_key(submitted)
    if candidate is None:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))
