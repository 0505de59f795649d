"""
Admin Log Repository
"""

from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from forum_access.models.admin_log import AdminLog
from forum_access.repositories.base import CRUDBase

logger = structlog.get_logger()


class AdminLogRepository(CRUDBase[AdminLog]):
    async def record(
        self,
        db: AsyncSession,
        *,
        user_id: Optional[UUID],
        action: str,
        resource: str,
        resource_id: Optional[str],
        details: Optional[dict[str, Any]] = None,
        ip: Optional[str] = None,
    ) -> AdminLog:
        entry = AdminLog(
            user_id=user_id,
            action=action,
            resource=resource,
            resource_id=resource_id,
            details=details or {},
            ip=ip,
        )
        db.add(entry)
        await db.flush()
        logger.info("Admin action recorded", action=action, resource=resource, resource_id=resource_id)
        return entry


admin_log_repository = AdminLogRepository(AdminLog)
