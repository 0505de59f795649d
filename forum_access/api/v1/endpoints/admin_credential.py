"""Monthly key administration endpoints (admin-only)."""

from __future__ import annotations

from typing import Any, Optional
from uuid import UUID

import structlog
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from forum_access.core.database import get_db
from forum_access.core.deps import require_admin
from forum_access.models.user import User
from forum_access.schemas.base import PaginatedResponse, SuccessResponse
from forum_access.schemas.monthly_key import UnlockRequest, UserKeyInfo
from forum_access.services.monthly_key import monthly_key_service

logger = structlog.get_logger()
router = APIRouter()


def _client_ip(request: Request) -> Optional[str]:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else None


@router.post("/unlock", response_model=SuccessResponse)
async def unlock_user(
    payload: UnlockRequest,
    request: Request,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Reset a user's attempts and lock; the user must verify again."""
    reset = await monthly_key_service.admin_unlock(
        db,
        target_user_id=payload.user_id,
        acting_user_id=current_user.id,
        ip=_client_ip(request),
    )
    if not reset:
        return SuccessResponse(
            message="User has no monthly key record, nothing to unlock",
            data={"user_id": str(payload.user_id), "reset": False},
        )
    return SuccessResponse(
        message="Monthly key lock cleared",
        data={"user_id": str(payload.user_id), "reset": True},
    )


@router.get("/overview", response_model=PaginatedResponse)
async def list_key_overview(
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Current-period keys and verification state of active users."""
    items, total = await monthly_key_service.overview(db, skip=skip, limit=limit)
    return PaginatedResponse.create(items=items, total=total, skip=skip, limit=limit)


@router.get("/users/{user_id}", response_model=UserKeyInfo)
async def get_user_key(
    user_id: UUID,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Current-period key of a single user."""
    logger.info("Monthly key looked up by admin", target_user_id=str(user_id), acting_user_id=str(current_user.id))
    return await monthly_key_service.get_user_key(db, user_id)
