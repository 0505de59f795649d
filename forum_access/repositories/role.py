"""
Role Repository
"""

from __future__ import annotations

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from forum_access.models.role import Role
from forum_access.repositories.base import CRUDBase

logger = structlog.get_logger()


class RoleRepository(CRUDBase[Role]):
    async def list_all(self, db: AsyncSession) -> list[Role]:
        result = await db.execute(select(Role).order_by(Role.name.asc()))
        return list(result.scalars().all())


role_repository = RoleRepository(Role)
