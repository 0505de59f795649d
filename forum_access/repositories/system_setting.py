"""
System Setting Repository
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from forum_access.models.system_setting import SystemSetting
from forum_access.repositories.base import CRUDBase


class SystemSettingRepository(CRUDBase[SystemSetting]):
    async def get_value(self, db: AsyncSession, key: str) -> Optional[str]:
        result = await db.execute(select(SystemSetting.value).where(SystemSetting.key == key))
        return result.scalar_one_or_none()


system_setting_repository = SystemSettingRepository(SystemSetting)
