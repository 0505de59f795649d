"""
Tests for Monthly Key Service
Verification flow, lockout, admin unlock and compare-and-swap retries
"""

from copy import copy
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest

from forum_access.core.exceptions import (
    ConcurrentUpdateError,
    InvalidCredentialError,
    LockedOutError,
    PrincipalNotFoundError,
)
from forum_access.core.lockout import UNLOCK_SENTINEL, LockoutPolicy
from forum_access.core.monthly_key import Period
from forum_access.services.monthly_key import UNLOCK_ACTION, MonthlyKeyService


class FakeKeyStore:
    """In-memory stand-in for the attempt record repository"""

    def __init__(self):
        self.records = {}
        self.conflicts = 0
        self.swaps = 0

    async def get_by_user(self, db, user_id):
        record = self.records.get(user_id)
        return copy(record) if record else None

    async def get_or_create(self, db, user_id):
        if user_id not in self.records:
            self.records[user_id] = SimpleNamespace(
                user_id=user_id,
                attempts=0,
                locked_until=None,
                last_verified_at=UNLOCK_SENTINEL,
                is_valid=False,
                period_year=None,
                period_month=None,
                key_echo=None,
                version=0,
            )
        return copy(self.records[user_id])

    async def compare_and_swap(self, db, *, user_id, expected_version, values):
        record = self.records[user_id]
        if self.conflicts:
            # Another writer got there first
            self.conflicts -= 1
            record.version += 1
            return False
        if record.version != expected_version:
            return False
        for field, value in values.items():
            setattr(record, field, value)
        record.version += 1
        self.swaps += 1
        return True


class Clock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


@pytest.fixture
def clock(fixed_now):
    return Clock(fixed_now)


@pytest.fixture
def store():
    return FakeKeyStore()


@pytest.fixture
def service(clock, store, sample_user):
    service = MonthlyKeyService(clock=clock)
    service.repository = store
    service.user_repository = AsyncMock()
    service.user_repository.get.return_value = sample_user
    service.admin_log_repository = AsyncMock()
    service.settings_service = AsyncMock()
    service.settings_service.get_lockout_policy.return_value = LockoutPolicy()
    return service


def _current_key(service, user_id, clock):
    return service.key_for(user_id, Period.from_datetime(clock.now, service.timezone))


# ==================== Verification ====================


class TestVerify:
    @pytest.mark.asyncio
    async def test_lowercase_padded_key_is_accepted(self, service, mock_db, sample_user, clock, store):
        key = _current_key(service, sample_user.id, clock)

        result = await service.verify(mock_db, sample_user.id, f"  {key.lower()} ")

        assert result.verified is True
        assert result.valid_until == datetime(2024, 5, 31, 23, 59, 59, 999999, tzinfo=timezone.utc)
        record = store.records[sample_user.id]
        assert record.is_valid is True
        assert (record.period_year, record.period_month) == (2024, 5)
        assert record.attempts == 0
        mock_db.commit.assert_awaited()

    @pytest.mark.asyncio
    async def test_wrong_key_reports_remaining_attempts(self, service, mock_db, sample_user):
        with pytest.raises(InvalidCredentialError) as exc_info:
            await service.verify(mock_db, sample_user.id, "WRONGKEY")

        assert exc_info.value.attempts == 1
        assert exc_info.value.attempts_remaining == 2
        assert exc_info.value.to_dict()["attempts_remaining"] == 2

    @pytest.mark.asyncio
    async def test_blank_key_counts_as_failure(self, service, mock_db, sample_user, store):
        with pytest.raises(InvalidCredentialError):
            await service.verify(mock_db, sample_user.id, "")

        assert store.records[sample_user.id].attempts == 1

    @pytest.mark.asyncio
    async def test_third_failure_locks_and_fourth_does_not_count(self, service, mock_db, sample_user, store):
        for _ in range(2):
            with pytest.raises(InvalidCredentialError):
                await service.verify(mock_db, sample_user.id, "WRONGKEY")

        with pytest.raises(LockedOutError) as exc_info:
            await service.verify(mock_db, sample_user.id, "WRONGKEY")
        assert exc_info.value.retry_after_seconds == 30 * 60
        assert store.records[sample_user.id].attempts == 3
        swaps = store.swaps

        with pytest.raises(LockedOutError):
            await service.verify(mock_db, sample_user.id, "WRONGKEY")
        assert store.records[sample_user.id].attempts == 3
        assert store.swaps == swaps

    @pytest.mark.asyncio
    async def test_correct_key_refused_while_locked(self, service, mock_db, sample_user, clock):
        for _ in range(3):
            with pytest.raises((InvalidCredentialError, LockedOutError)):
                await service.verify(mock_db, sample_user.id, "WRONGKEY")

        with pytest.raises(LockedOutError):
            await service.verify(mock_db, sample_user.id, _current_key(service, sample_user.id, clock))

    @pytest.mark.asyncio
    async def test_lock_expires_without_admin_action(self, service, mock_db, sample_user, clock):
        for _ in range(3):
            with pytest.raises((InvalidCredentialError, LockedOutError)):
                await service.verify(mock_db, sample_user.id, "WRONGKEY")

        clock.now = clock.now + timedelta(minutes=30)

        result = await service.verify(mock_db, sample_user.id, _current_key(service, sample_user.id, clock))
        assert result.verified is True

    @pytest.mark.asyncio
    async def test_runtime_policy_is_applied(self, service, mock_db, sample_user):
        service.settings_service.get_lockout_policy.return_value = LockoutPolicy(
            max_attempts=1, lock_duration=timedelta(minutes=5)
        )

        with pytest.raises(LockedOutError) as exc_info:
            await service.verify(mock_db, sample_user.id, "WRONGKEY")

        assert exc_info.value.retry_after_seconds == 300


# ==================== Concurrency ====================


class TestCompareAndSwap:
    @pytest.mark.asyncio
    async def test_lost_race_is_retried(self, service, mock_db, sample_user, store):
        store.conflicts = 1

        with pytest.raises(InvalidCredentialError):
            await service.verify(mock_db, sample_user.id, "WRONGKEY")

        assert store.records[sample_user.id].attempts == 1
        assert store.swaps == 1

    @pytest.mark.asyncio
    async def test_retries_exhausted(self, service, mock_db, sample_user, store):
        store.conflicts = 10

        with pytest.raises(ConcurrentUpdateError):
            await service.verify(mock_db, sample_user.id, "WRONGKEY")

        assert store.records[sample_user.id].attempts == 0


# ==================== Status ====================


class TestStatus:
    @pytest.mark.asyncio
    async def test_status_without_record(self, service, mock_db, sample_user, store):
        status = await service.get_status(mock_db, sample_user.id)

        assert status.verified is False
        assert status.attempts == 0
        assert status.max_attempts == 3
        assert (status.year, status.month) == (2024, 5)
        assert sample_user.id not in store.records

    @pytest.mark.asyncio
    async def test_verification_expires_with_the_month(self, service, mock_db, sample_user, clock):
        await service.verify(mock_db, sample_user.id, _current_key(service, sample_user.id, clock))
        assert (await service.get_status(mock_db, sample_user.id)).verified is True

        clock.now = datetime(2024, 6, 1, 0, 0, tzinfo=timezone.utc)

        status = await service.get_status(mock_db, sample_user.id)
        assert status.verified is False
        assert status.valid_until is None
        assert (status.year, status.month) == (2024, 6)

    @pytest.mark.asyncio
    async def test_locked_status(self, service, mock_db, sample_user, clock):
        for _ in range(3):
            with pytest.raises((InvalidCredentialError, LockedOutError)):
                await service.verify(mock_db, sample_user.id, "WRONGKEY")

        status = await service.get_status(mock_db, sample_user.id)

        assert status.locked is True
        assert status.locked_until == clock.now + timedelta(minutes=30)
        assert status.retry_after_seconds == 1800


# ==================== Admin unlock ====================


class TestAdminUnlock:
    @pytest.mark.asyncio
    async def test_unknown_user(self, service, mock_db):
        service.user_repository.get.return_value = None

        with pytest.raises(PrincipalNotFoundError):
            await service.admin_unlock(mock_db, target_user_id=uuid4(), acting_user_id=uuid4())

    @pytest.mark.asyncio
    async def test_no_record_is_noop(self, service, mock_db, sample_user, store):
        reset = await service.admin_unlock(mock_db, target_user_id=sample_user.id, acting_user_id=uuid4())

        assert reset is False
        assert sample_user.id not in store.records
        service.admin_log_repository.record.assert_not_called()
        assert (await service.get_status(mock_db, sample_user.id)).verified is False

    @pytest.mark.asyncio
    async def test_unlock_clears_lock_and_verification(self, service, mock_db, sample_user, store):
        for _ in range(3):
            with pytest.raises((InvalidCredentialError, LockedOutError)):
                await service.verify(mock_db, sample_user.id, "WRONGKEY")
        admin_id = uuid4()

        reset = await service.admin_unlock(
            mock_db, target_user_id=sample_user.id, acting_user_id=admin_id, ip="10.0.0.1"
        )

        assert reset is True
        record = store.records[sample_user.id]
        assert record.attempts == 0
        assert record.locked_until is None
        assert record.is_valid is False
        assert record.last_verified_at == UNLOCK_SENTINEL

        status = await service.get_status(mock_db, sample_user.id)
        assert status.locked is False
        assert status.verified is False

        service.admin_log_repository.record.assert_awaited_once()
        kwargs = service.admin_log_repository.record.call_args.kwargs
        assert kwargs["user_id"] == admin_id
        assert kwargs["action"] == UNLOCK_ACTION
        assert kwargs["resource_id"] == str(sample_user.id)
        assert kwargs["ip"] == "10.0.0.1"

    @pytest.mark.asyncio
    async def test_unlock_revokes_current_verification(self, service, mock_db, sample_user, clock):
        await service.verify(mock_db, sample_user.id, _current_key(service, sample_user.id, clock))

        await service.admin_unlock(mock_db, target_user_id=sample_user.id, acting_user_id=uuid4())

        assert (await service.get_status(mock_db, sample_user.id)).verified is False

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_fail_unlock(self, service, mock_db, sample_user, store):
        await store.get_or_create(mock_db, sample_user.id)
        service.admin_log_repository.record.side_effect = RuntimeError("audit table unavailable")

        reset = await service.admin_unlock(mock_db, target_user_id=sample_user.id, acting_user_id=uuid4())

        assert reset is True
        mock_db.rollback.assert_awaited()


# ==================== Key lookup ====================


class TestKeyLookup:
    @pytest.mark.asyncio
    async def test_get_user_key(self, service, mock_db, sample_user, clock):
        info = await service.get_user_key(mock_db, sample_user.id)

        assert info.user_id == sample_user.id
        assert info.monthly_key == _current_key(service, sample_user.id, clock)
        assert (info.year, info.month) == (2024, 5)

    @pytest.mark.asyncio
    async def test_get_user_key_unknown_user(self, service, mock_db):
        service.user_repository.get.return_value = None

        with pytest.raises(PrincipalNotFoundError):
            await service.get_user_key(mock_db, uuid4())

    @pytest.mark.asyncio
    async def test_overview(self, service, mock_db, sample_user, clock, store):
        other = SimpleNamespace(id=uuid4(), email="other@example.org", name="Other")
        await service.verify(mock_db, sample_user.id, _current_key(service, sample_user.id, clock))
        verified_record = store.records[sample_user.id]
        service.user_repository.list_with_key_records.return_value = (
            [(sample_user, verified_record), (other, None)],
            2,
        )

        items, total = await service.overview(mock_db, skip=0, limit=50)

        assert total == 2
        assert items[0].verified is True
        assert items[0].monthly_key == _current_key(service, sample_user.id, clock)
        assert items[1].verified is False
        assert items[1].attempts == 0
