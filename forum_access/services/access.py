"""
Access Service
Server-authoritative permission views and client cache drift checks.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog

from forum_access.core.rbac import is_admin
from forum_access.core.sync import diff_permissions, needs_resync
from forum_access.schemas.access import PermissionsResponse, SyncCheckResponse

logger = structlog.get_logger()


class AccessService:
    def describe(self, permissions: Iterable[str]) -> PermissionsResponse:
        perm_set = frozenset(permissions)
        return PermissionsResponse(permissions=sorted(perm_set), is_admin=is_admin(perm_set))

    def check_sync(
        self,
        permissions: Iterable[str],
        cached_permissions: Iterable[str],
        user_id: Any = None,
    ) -> SyncCheckResponse:
        """
        Compare a client-held permission list against the server aggregate.

        The cached list only decides whether the client should refresh.
        """
        authoritative = frozenset(permissions)
        cached = frozenset(cached_permissions)
        resync = needs_resync(cached, authoritative)
        diff = diff_permissions(cached, authoritative)

        if resync:
            logger.info(
                "Client permission cache is stale",
                user_id=str(user_id) if user_id is not None else None,
                missing=list(diff.missing),
            )

        return SyncCheckResponse(
            needs_resync=resync,
            missing=list(diff.missing),
            extra=list(diff.extra),
            permissions=sorted(authoritative),
        )


access_service = AccessService()
