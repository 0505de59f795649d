"""
User Repository
Read access to principals and their role assignments.
"""

from __future__ import annotations

from typing import Optional
from uuid import UUID

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from forum_access.models.monthly_key import MonthlyKeyAuth
from forum_access.models.user import User
from forum_access.repositories.base import CRUDBase

logger = structlog.get_logger()


class UserRepository(CRUDBase[User]):
    async def get_active(self, db: AsyncSession, user_id: UUID) -> Optional[User]:
        query = select(User).where(
            User.id == user_id,
            User.is_active == True,  # noqa: E712
            User.is_deleted == False,  # noqa: E712
        )
        result = await db.execute(query)
        return result.scalar_one_or_none()

    async def list_with_key_records(
        self,
        db: AsyncSession,
        *,
        skip: int,
        limit: int,
    ) -> tuple[list[tuple[User, Optional[MonthlyKeyAuth]]], int]:
        """Active users with their attempt record (if any), ordered by name."""
        base = select(User).where(User.is_active == True, User.is_deleted == False)  # noqa: E712

        count_query = select(func.count()).select_from(base.subquery())
        total = (await db.execute(count_query)).scalar() or 0

        query = (
            select(User, MonthlyKeyAuth)
            .outerjoin(MonthlyKeyAuth, MonthlyKeyAuth.user_id == User.id)
            .where(User.is_active == True, User.is_deleted == False)  # noqa: E712
            .order_by(User.name.asc(), User.email.asc())
            .offset(skip)
            .limit(limit)
        )
        result = await db.execute(query)
        return [(row[0], row[1]) for row in result.all()], total


user_repository = UserRepository(User)
