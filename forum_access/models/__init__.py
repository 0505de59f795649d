"""
SQLAlchemy Models Package
Forum access-control models
"""

from forum_access.models.user import User
from forum_access.models.role import Role, UserRole
from forum_access.models.monthly_key import MonthlyKeyAuth
from forum_access.models.system_setting import SystemSetting
from forum_access.models.admin_log import AdminLog

__all__ = [
    "User",
    "Role",
    "UserRole",
    "MonthlyKeyAuth",
    "SystemSetting",
    "AdminLog",
]
