"""Monthly key endpoints for the signed-in user."""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from forum_access.core.database import get_db
from forum_access.core.deps import get_current_user
from forum_access.models.user import User
from forum_access.schemas.monthly_key import CredentialStatus, VerifyKeyRequest, VerifyKeyResponse
from forum_access.services.monthly_key import monthly_key_service

logger = structlog.get_logger()
router = APIRouter()


@router.get("/status", response_model=CredentialStatus)
async def get_credential_status(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """Current-period verification and lockout state."""
    return await monthly_key_service.get_status(db, current_user.id)


@router.post("/verify", response_model=VerifyKeyResponse)
async def verify_monthly_key(
    payload: VerifyKeyRequest,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Any:
    """
    Verify the monthly key.

    400 with remaining attempts on a wrong key, 423 while locked.
    """
    return await monthly_key_service.verify(db, current_user.id, payload.key)
