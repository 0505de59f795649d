"""
Monthly Key Attempt Repository
Per-user attempt records with optimistic compare-and-swap writes.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional
from uuid import UUID

import structlog
from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession

from forum_access.core.lockout import UNLOCK_SENTINEL
from forum_access.models.monthly_key import MonthlyKeyAuth
from forum_access.repositories.base import CRUDBase

logger = structlog.get_logger()


class MonthlyKeyRepository(CRUDBase[MonthlyKeyAuth]):
    async def get_by_user(self, db: AsyncSession, user_id: UUID) -> Optional[MonthlyKeyAuth]:
        query = (
            select(MonthlyKeyAuth)
            .where(MonthlyKeyAuth.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    def _insert_ignore(self, db: AsyncSession, values: dict[str, Any]):
        dialect = db.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert(MonthlyKeyAuth).values(**values).on_conflict_do_nothing(
                index_elements=[MonthlyKeyAuth.user_id]
            )
        if dialect == "sqlite":
            return sqlite.insert(MonthlyKeyAuth).values(**values).on_conflict_do_nothing(
                index_elements=[MonthlyKeyAuth.user_id]
            )
        raise NotImplementedError(f"Unsupported database dialect: {dialect}")

    async def get_or_create(self, db: AsyncSession, user_id: UUID) -> MonthlyKeyAuth:
        """
        Return the user's record, inserting an empty one if none exists.

        Concurrent first attempts race on the unique ``user_id``; the loser's
        insert is a no-op and both read back the same row.
        """
        record = await self.get_by_user(db, user_id)
        if record is not None:
            return record

        stmt = self._insert_ignore(
            db,
            {
                "id": uuid.uuid4(),
                "user_id": user_id,
                "attempts": 0,
                "locked_until": None,
                "last_verified_at": UNLOCK_SENTINEL,
                "is_valid": False,
                "version": 0,
            },
        )
        await db.execute(stmt)
        logger.debug("Monthly key record initialized", user_id=str(user_id))

        record = await self.get_by_user(db, user_id)
        if record is None:
            raise RuntimeError(f"Monthly key record for {user_id} vanished after insert")
        return record

    async def compare_and_swap(
        self,
        db: AsyncSession,
        *,
        user_id: UUID,
        expected_version: int,
        values: dict[str, Any],
    ) -> bool:
        """
        Write ``values`` only if the stored version still equals
        ``expected_version``. Returns False when another writer got there first.
        """
        stmt = (
            update(MonthlyKeyAuth)
            .where(
                MonthlyKeyAuth.user_id == user_id,
                MonthlyKeyAuth.version == expected_version,
            )
            .values(**values, version=expected_version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        swapped = result.rowcount == 1
        if not swapped:
            logger.info("Monthly key record changed concurrently", user_id=str(user_id), version=expected_version)
        return swapped


monthly_key_repository = MonthlyKeyRepository(MonthlyKeyAuth)
