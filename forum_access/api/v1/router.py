"""
API v1 Router
Main router for all API v1 endpoints
"""

from fastapi import APIRouter
from forum_access.api.v1.endpoints import admin_credential, credential, health, permissions

api_router = APIRouter()

# Monthly key endpoints
api_router.include_router(
    credential.router,
    prefix="/credential",
    tags=["credential"]
)

# Monthly key administration
api_router.include_router(
    admin_credential.router,
    prefix="/admin/credential",
    tags=["admin"]
)

# Permission views
api_router.include_router(
    permissions.router,
    prefix="/auth/permissions",
    tags=["permissions"]
)

# Health and monitoring endpoints
api_router.include_router(
    health.router,
    prefix="/health",
    tags=["health"]
)
