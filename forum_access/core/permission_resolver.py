"""
Permission resolver seam.

Permissions always come from the user's role assignments as stored in the
database; client-held caches are never consulted here.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from forum_access.core.rbac import aggregate_permissions


class PermissionResolver(ABC):
    @abstractmethod
    def resolve_permissions(self, user: Any) -> frozenset[str]:
        raise NotImplementedError


class DBPermissionResolver(PermissionResolver):
    def resolve_permissions(self, user: Any) -> frozenset[str]:
        return aggregate_permissions(user.role_assignments or [])


permission_resolver = DBPermissionResolver()
