"""
Monthly Key Service
Verification, status, administrative unlock and operator overview.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Callable, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from forum_access.core.config import settings
from forum_access.core.exceptions import (
    ConcurrentUpdateError,
    InvalidCredentialError,
    LockedOutError,
    PrincipalNotFoundError,
)
from forum_access.core.lockout import (
    AttemptDecision,
    AttemptOutcome,
    AttemptSnapshot,
    admin_unlock,
    apply_attempt,
    evaluate_status,
)
from forum_access.core.monthly_key import Period, derive_monthly_key, keys_match
from forum_access.models.user import User
from forum_access.repositories.admin_log import admin_log_repository
from forum_access.repositories.monthly_key import monthly_key_repository
from forum_access.repositories.user import user_repository
from forum_access.schemas.monthly_key import (
    CredentialStatus,
    UserKeyInfo,
    UserKeyOverviewItem,
    VerifyKeyResponse,
)
from forum_access.services.system_setting import system_setting_service

logger = structlog.get_logger()

UNLOCK_ACTION = "unlock_monthly_key"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MonthlyKeyService:
    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        self.repository = monthly_key_repository
        self.user_repository = user_repository
        self.admin_log_repository = admin_log_repository
        self.settings_service = system_setting_service
        self.clock = clock

    @property
    def timezone(self) -> ZoneInfo:
        return ZoneInfo(settings.MONTHLY_KEY_TIMEZONE)

    def current_period(self, now: Optional[datetime] = None) -> Period:
        return Period.current(self.timezone, now or self.clock())

    def key_for(self, user_id: UUID, period: Period) -> str:
        return derive_monthly_key(user_id, period.year, period.month, settings.MONTHLY_KEY_SALT.get_secret_value())

    async def get_status(self, db: AsyncSession, user_id: UUID) -> CredentialStatus:
        now = self.clock()
        period = self.current_period(now)
        policy = await self.settings_service.get_lockout_policy(db)

        record = await self.repository.get_by_user(db, user_id)
        snapshot = AttemptSnapshot.from_record(record) if record else None
        status = evaluate_status(snapshot, now=now, period=period, policy=policy)

        return CredentialStatus(
            verified=status.verified,
            attempts=status.attempts,
            max_attempts=status.max_attempts,
            locked=status.locked,
            locked_until=status.locked_until,
            retry_after_seconds=status.retry_after_seconds,
            last_verified_at=status.last_verified_at,
            valid_until=period.end_of_month(self.timezone) if status.verified else None,
            year=period.year,
            month=period.month,
        )

    async def _apply_with_retry(
        self,
        db: AsyncSession,
        user_id: UUID,
        transition: Callable[[AttemptSnapshot], AttemptOutcome],
    ) -> AttemptOutcome:
        """Run ``transition`` against the stored record until the write wins."""
        for _ in range(settings.MONTHLY_KEY_CAS_RETRIES):
            record = await self.repository.get_or_create(db, user_id)
            snapshot = AttemptSnapshot.from_record(record)
            outcome = transition(snapshot)
            if not outcome.changed:
                await db.commit()
                return outcome

            swapped = await self.repository.compare_and_swap(
                db,
                user_id=user_id,
                expected_version=snapshot.version,
                values=outcome.snapshot.as_values(),
            )
            if swapped:
                await db.commit()
                return outcome

        logger.error("Monthly key record update kept conflicting", user_id=str(user_id))
        raise ConcurrentUpdateError()

    async def verify(self, db: AsyncSession, user_id: UUID, submitted_key: str) -> VerifyKeyResponse:
        """
        Verify a submitted monthly key for the current period

        Raises:
            LockedOutError: The attempt budget is exhausted (or was just exhausted)
            InvalidCredentialError: The key did not match; attempts remain
        """
        now = self.clock()
        period = self.current_period(now)
        policy = await self.settings_service.get_lockout_policy(db)
        expected = self.key_for(user_id, period)
        matched = keys_match(submitted_key, expected)

        outcome = await self._apply_with_retry(
            db,
            user_id,
            lambda snapshot: apply_attempt(
                snapshot,
                matched=matched,
                expected_key=expected,
                now=now,
                period=period,
                policy=policy,
            ),
        )

        if outcome.decision == AttemptDecision.ACCEPTED:
            logger.info("Monthly key verified", user_id=str(user_id), year=period.year, month=period.month)
            return VerifyKeyResponse(valid_until=period.end_of_month(self.timezone))

        if outcome.decision == AttemptDecision.LOCKED_OUT:
            logger.warning(
                "Monthly key verification locked",
                user_id=str(user_id),
                attempts=outcome.snapshot.attempts,
                locked_until=outcome.snapshot.locked_until.isoformat(),
                newly_locked=outcome.changed,
            )
            raise LockedOutError(
                locked_until=outcome.snapshot.locked_until,
                retry_after_seconds=outcome.retry_after_seconds,
            )

        logger.info(
            "Monthly key rejected",
            user_id=str(user_id),
            attempts=outcome.snapshot.attempts,
            max_attempts=policy.max_attempts,
        )
        raise InvalidCredentialError(attempts=outcome.snapshot.attempts, max_attempts=policy.max_attempts)

    async def _get_target_user(self, db: AsyncSession, user_id: UUID) -> User:
        user = await self.user_repository.get(db, id=user_id)
        if not user:
            raise PrincipalNotFoundError()
        return user

    async def admin_unlock(
        self,
        db: AsyncSession,
        *,
        target_user_id: UUID,
        acting_user_id: UUID,
        ip: Optional[str] = None,
    ) -> bool:
        """
        Reset a user's lockout and verification state

        Returns False when the user never attempted verification (nothing to
        reset). Raises PrincipalNotFoundError for unknown users.
        """
        target = await self._get_target_user(db, target_user_id)

        record = await self.repository.get_by_user(db, target_user_id)
        if record is None:
            logger.info("Unlock requested for user without key record", target_user_id=str(target_user_id))
            return False

        await self._apply_with_retry(
            db,
            target_user_id,
            lambda snapshot: AttemptOutcome(
                decision=AttemptDecision.REJECTED,
                snapshot=admin_unlock(snapshot),
                changed=True,
            ),
        )
        logger.info(
            "Monthly key unlocked by admin",
            target_user_id=str(target_user_id),
            acting_user_id=str(acting_user_id),
        )

        try:
            await self.admin_log_repository.record(
                db,
                user_id=acting_user_id,
                action=UNLOCK_ACTION,
                resource="user",
                resource_id=str(target_user_id),
                details={"target_user": {"id": str(target.id), "email": target.email, "name": target.name}},
                ip=ip,
            )
            await db.commit()
        except Exception as exc:  # noqa: BLE001
            await db.rollback()
            logger.error("Failed to record admin log", action=UNLOCK_ACTION, error=str(exc))

        return True

    async def get_user_key(self, db: AsyncSession, user_id: UUID) -> UserKeyInfo:
        target = await self._get_target_user(db, user_id)
        period = self.current_period()
        return UserKeyInfo(
            user_id=target.id,
            name=target.name,
            email=target.email,
            year=period.year,
            month=period.month,
            monthly_key=self.key_for(target.id, period),
        )

    async def overview(self, db: AsyncSession, *, skip: int, limit: int) -> tuple[list[UserKeyOverviewItem], int]:
        now = self.clock()
        period = self.current_period(now)
        policy = await self.settings_service.get_lockout_policy(db)

        rows, total = await self.user_repository.list_with_key_records(db, skip=skip, limit=limit)

        items = []
        for user, record in rows:
            snapshot = AttemptSnapshot.from_record(record) if record else None
            status = evaluate_status(snapshot, now=now, period=period, policy=policy)
            items.append(
                UserKeyOverviewItem(
                    user_id=user.id,
                    name=user.name,
                    email=user.email,
                    year=period.year,
                    month=period.month,
                    monthly_key=self.key_for(user.id, period),
                    verified=status.verified,
                    attempts=status.attempts,
                    max_attempts=status.max_attempts,
                    locked=status.locked,
                    locked_until=status.locked_until,
                    last_verified_at=status.last_verified_at,
                )
            )
        return items, total


monthly_key_service = MonthlyKeyService()
