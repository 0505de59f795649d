"""
FastAPI Dependencies
Authentication and permission checks
"""

from typing import Optional
from uuid import UUID

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from forum_access.core.database import get_db
from forum_access.core.exceptions import ForbiddenError, UnauthenticatedError
from forum_access.core.permission_resolver import permission_resolver
from forum_access.core.permissions import SUPER_PERMISSION, PermissionLike, permission_value
from forum_access.core.rbac import has_any_permission, missing_permissions
from forum_access.core.security import verify_token
from forum_access.models.user import User
from forum_access.repositories.user import user_repository

logger = structlog.get_logger()

security = HTTPBearer(auto_error=False)


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> User:
    """
    Get current authenticated user from the bearer token

    Raises:
        UnauthenticatedError: If no valid token is present or the user is unknown or inactive
    """
    if not credentials:
        logger.warning("Missing authentication credentials")
        raise UnauthenticatedError()

    subject = verify_token(credentials.credentials, token_type="access")
    try:
        user_id = UUID(subject)
    except ValueError:
        logger.warning("Token subject is not a user id", subject=subject)
        raise UnauthenticatedError("Could not validate credentials")

    user = await user_repository.get_active(db, user_id)
    if not user:
        logger.warning("User not found or inactive", user_id=subject)
        raise UnauthenticatedError("User not found or inactive")

    logger.debug("User authenticated successfully", user_id=subject)
    return user


async def get_current_permissions(
    current_user: User = Depends(get_current_user)
) -> frozenset[str]:
    """Authoritative aggregate permission set of the current user"""
    return permission_resolver.resolve_permissions(current_user)


def check_permissions(required_permissions: list[PermissionLike]):
    """
    Dependency factory requiring every permission in ``required_permissions``

    The super permission satisfies any requirement.
    """
    required = [permission_value(p) for p in required_permissions]

    async def permission_checker(
        current_user: User = Depends(get_current_user),
        permissions: frozenset[str] = Depends(get_current_permissions),
    ) -> User:
        missing = missing_permissions(permissions, required)
        if missing:
            logger.warning(
                "User lacks required permission",
                user_id=str(current_user.id),
                missing=missing,
            )
            raise ForbiddenError(missing)

        logger.debug("Permission check passed", user_id=str(current_user.id), permissions=required)
        return current_user

    return permission_checker


def check_any_permission(candidate_permissions: list[PermissionLike]):
    """
    Dependency factory requiring at least one permission in ``candidate_permissions``
    """
    candidates = [permission_value(p) for p in candidate_permissions]

    async def permission_checker(
        current_user: User = Depends(get_current_user),
        permissions: frozenset[str] = Depends(get_current_permissions),
    ) -> User:
        if not has_any_permission(permissions, candidates):
            logger.warning(
                "User lacks all candidate permissions",
                user_id=str(current_user.id),
                candidates=candidates,
            )
            raise ForbiddenError(candidates)
        return current_user

    return permission_checker


require_admin = check_permissions([SUPER_PERMISSION])
