"""
Canonical permission catalog for the forum.

Permissions are closed str-enums; their ``value`` is the wire and storage
representation. ``AdminPermission.ADMIN_ACCESS`` is the super token: holding
it satisfies every permission check.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union


class AdminPermission(str, Enum):
    ADMIN_ACCESS = "admin_access"

    VIEW_USERS = "view_users"
    CREATE_USER = "create_user"
    EDIT_USER = "edit_user"
    DELETE_USER = "delete_user"

    VIEW_ROLES = "view_roles"
    CREATE_ROLE = "create_role"
    EDIT_ROLE = "edit_role"
    DELETE_ROLE = "delete_role"

    VIEW_POSTS = "view_posts"
    CREATE_POST = "create_post"
    EDIT_POST = "edit_post"
    DELETE_POST = "delete_post"

    VIEW_COMMENTS = "view_comments"
    EDIT_COMMENT = "edit_comment"
    DELETE_COMMENT = "delete_comment"

    VIEW_FILES = "view_files"
    UPLOAD_FILE = "upload_file"
    DELETE_FILE = "delete_file"

    VIEW_NOTIFICATIONS = "view_notifications"
    CREATE_NOTIFICATION = "create_notification"

    VIEW_SETTINGS = "view_settings"
    EDIT_SETTINGS = "edit_settings"

    VIEW_LOGS = "view_logs"


class UserPermission(str, Enum):
    VIEW_FORUM = "view_forum"
    CREATE_TOPIC = "create_topic"

    VIEW_SERVICES = "view_services"
    ACCESS_FILE_DOWNLOADS = "access_file_downloads"
    ACCESS_DATABASE = "access_database"
    ACCESS_MINIO = "access_minio"

    ACCESS_WORKING_PAPERS = "access_working_papers"

    VIEW_PROFILE = "view_profile"


PermissionLike = Union[AdminPermission, UserPermission, str]

SUPER_PERMISSION: str = AdminPermission.ADMIN_ACCESS.value

ALL_PERMISSIONS: frozenset[str] = frozenset(
    [p.value for p in AdminPermission] + [p.value for p in UserPermission]
)


def permission_value(permission: PermissionLike) -> str:
    """Return the wire string of a permission enum member or raw token."""
    if isinstance(permission, Enum):
        return permission.value
    return str(permission)


def is_known_permission(token: str) -> bool:
    return token in ALL_PERMISSIONS


def parse_permission(token: str) -> Optional[PermissionLike]:
    """Map a stored token back to its enum member, or ``None`` if unknown."""
    for enum_cls in (AdminPermission, UserPermission):
        try:
            return enum_cls(token)
        except ValueError:
            continue
    return None
