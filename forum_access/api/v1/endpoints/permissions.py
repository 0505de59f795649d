"""Permission view endpoints for the signed-in user."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from forum_access.core.deps import get_current_permissions, get_current_user
from forum_access.models.user import User
from forum_access.schemas.access import PermissionsResponse, SyncCheckRequest, SyncCheckResponse
from forum_access.services.access import access_service

router = APIRouter()


@router.get("", response_model=PermissionsResponse)
async def get_permissions(
    permissions: frozenset[str] = Depends(get_current_permissions),
) -> Any:
    """Authoritative permission set aggregated from the user's roles."""
    return access_service.describe(permissions)


@router.post("/sync", response_model=SyncCheckResponse)
async def check_permission_sync(
    payload: SyncCheckRequest,
    current_user: User = Depends(get_current_user),
    permissions: frozenset[str] = Depends(get_current_permissions),
) -> Any:
    """Tell the client whether its cached permission list is stale."""
    return access_service.check_sync(permissions, payload.cached_permissions, user_id=current_user.id)
