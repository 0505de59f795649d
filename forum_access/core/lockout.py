"""
Attempt lockout state machine for monthly key verification.

Transitions are pure functions over an immutable ``AttemptSnapshot``; the
service layer loads a snapshot, applies a transition and persists the
result with a compare-and-swap on ``version``. Lock expiry is evaluated
lazily against ``now``: a lock ending at ``T`` no longer applies at ``T``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from forum_access.core.monthly_key import Period

# Forces "unverified" after an administrative unlock
UNLOCK_SENTINEL = datetime(2000, 1, 1, tzinfo=timezone.utc)


class KeyState(str, Enum):
    UNVERIFIED = "unverified"
    LOCKED = "locked"
    VERIFIED = "verified"


class AttemptDecision(str, Enum):
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    LOCKED_OUT = "locked_out"


@dataclass(frozen=True)
class LockoutPolicy:
    max_attempts: int = 3
    lock_duration: timedelta = timedelta(minutes=30)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.lock_duration <= timedelta(0):
            raise ValueError("lock_duration must be positive")


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from stores without time zones."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass(frozen=True)
class AttemptSnapshot:
    attempts: int = 0
    locked_until: Optional[datetime] = None
    last_verified_at: datetime = UNLOCK_SENTINEL
    is_valid: bool = False
    period: Optional[Period] = None
    key_echo: Optional[str] = None
    version: int = 0

    @classmethod
    def from_record(cls, record: Any) -> "AttemptSnapshot":
        period = None
        if record.period_year is not None and record.period_month is not None:
            period = Period(record.period_year, record.period_month)
        return cls(
            attempts=record.attempts or 0,
            locked_until=as_utc(record.locked_until),
            last_verified_at=as_utc(record.last_verified_at) or UNLOCK_SENTINEL,
            is_valid=bool(record.is_valid),
            period=period,
            key_echo=record.key_echo,
            version=record.version or 0,
        )

    def as_values(self) -> dict[str, Any]:
        """Column values for persisting this snapshot."""
        return {
            "attempts": self.attempts,
            "locked_until": self.locked_until,
            "last_verified_at": self.last_verified_at,
            "is_valid": self.is_valid,
            "period_year": self.period.year if self.period else None,
            "period_month": self.period.month if self.period else None,
            "key_echo": self.key_echo,
        }


@dataclass(frozen=True)
class AttemptOutcome:
    decision: AttemptDecision
    snapshot: AttemptSnapshot
    changed: bool
    retry_after_seconds: int = 0

    @property
    def accepted(self) -> bool:
        return self.decision == AttemptDecision.ACCEPTED


@dataclass(frozen=True)
class KeyStatus:
    state: KeyState
    attempts: int
    max_attempts: int
    locked_until: Optional[datetime]
    last_verified_at: Optional[datetime]
    retry_after_seconds: int = 0

    @property
    def verified(self) -> bool:
        return self.state == KeyState.VERIFIED

    @property
    def locked(self) -> bool:
        return self.state == KeyState.LOCKED


def lock_active(snapshot: AttemptSnapshot, now: datetime) -> bool:
    return snapshot.locked_until is not None and now < snapshot.locked_until


def seconds_until_unlock(snapshot: AttemptSnapshot, now: datetime) -> int:
    if not lock_active(snapshot, now):
        return 0
    return max(math.ceil((snapshot.locked_until - now).total_seconds()), 1)


def clear_expired_lock(snapshot: AttemptSnapshot, now: datetime) -> AttemptSnapshot:
    """Locked -> Unverified once the lock window has passed."""
    if snapshot.locked_until is not None and not lock_active(snapshot, now):
        return replace(snapshot, attempts=0, locked_until=None)
    return snapshot


def is_verified_for(snapshot: AttemptSnapshot, period: Period) -> bool:
    """Verified only for the period of the last success, never carried over."""
    return snapshot.is_valid and snapshot.period == period


def evaluate_status(
    snapshot: Optional[AttemptSnapshot],
    *,
    now: datetime,
    period: Period,
    policy: LockoutPolicy,
) -> KeyStatus:
    """Read-only view of a principal's state; ``None`` means never attempted."""
    if snapshot is None:
        return KeyStatus(
            state=KeyState.UNVERIFIED,
            attempts=0,
            max_attempts=policy.max_attempts,
            locked_until=None,
            last_verified_at=None,
        )

    if lock_active(snapshot, now):
        return KeyStatus(
            state=KeyState.LOCKED,
            attempts=snapshot.attempts,
            max_attempts=policy.max_attempts,
            locked_until=snapshot.locked_until,
            last_verified_at=snapshot.last_verified_at,
            retry_after_seconds=seconds_until_unlock(snapshot, now),
        )

    view = clear_expired_lock(snapshot, now)
    state = KeyState.VERIFIED if is_verified_for(view, period) else KeyState.UNVERIFIED
    return KeyStatus(
        state=state,
        attempts=view.attempts,
        max_attempts=policy.max_attempts,
        locked_until=None,
        last_verified_at=view.last_verified_at,
    )


def apply_attempt(
    snapshot: AttemptSnapshot,
    *,
    matched: bool,
    expected_key: str,
    now: datetime,
    period: Period,
    policy: LockoutPolicy,
) -> AttemptOutcome:
    """Apply one verification attempt and return the resulting state."""
    if lock_active(snapshot, now):
        return AttemptOutcome(
            decision=AttemptDecision.LOCKED_OUT,
            snapshot=snapshot,
            changed=False,
            retry_after_seconds=seconds_until_unlock(snapshot, now),
        )

    current = clear_expired_lock(snapshot, now)

    if matched:
        verified = replace(
            current,
            attempts=0,
            locked_until=None,
            last_verified_at=now,
            is_valid=True,
            period=period,
            key_echo=expected_key,
        )
        return AttemptOutcome(decision=AttemptDecision.ACCEPTED, snapshot=verified, changed=True)

    attempts = current.attempts + 1
    if attempts >= policy.max_attempts:
        locked = replace(current, attempts=attempts, locked_until=now + policy.lock_duration)
        return AttemptOutcome(
            decision=AttemptDecision.LOCKED_OUT,
            snapshot=locked,
            changed=True,
            retry_after_seconds=seconds_until_unlock(locked, now),
        )

    return AttemptOutcome(
        decision=AttemptDecision.REJECTED,
        snapshot=replace(current, attempts=attempts),
        changed=True,
    )


def admin_unlock(snapshot: AttemptSnapshot) -> AttemptSnapshot:
    """Force any state back to Unverified without counting an attempt."""
    return replace(
        snapshot,
        attempts=0,
        locked_until=None,
        is_valid=False,
        last_verified_at=UNLOCK_SENTINEL,
        period=Period(UNLOCK_SENTINEL.year, UNLOCK_SENTINEL.month),
    )
