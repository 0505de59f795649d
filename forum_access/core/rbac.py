"""
RBAC helpers: role aggregation and permission checks.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any, Optional

import structlog

from forum_access.core.normalizer import UnrecognizedShape, classify_permissions, tokens_for_shape
from forum_access.core.permissions import SUPER_PERMISSION, PermissionLike, permission_value

logger = structlog.get_logger()


def _role_fields(role: Any) -> tuple[Optional[str], Any]:
    """Extract (name, raw permissions) from a role, assignment or mapping."""
    if isinstance(role, Mapping):
        if "role" in role and isinstance(role["role"], Mapping):
            role = role["role"]
        return role.get("name"), role.get("permissions")

    # UserRole assignment rows expose the role through a relationship
    inner = getattr(role, "role", None)
    if inner is not None and hasattr(inner, "permissions"):
        role = inner
    return getattr(role, "name", None), getattr(role, "permissions", None)


def aggregate_permissions(roles: Iterable[Any]) -> frozenset[str]:
    """
    Union the normalized permission tokens of every role.

    Roles whose stored field cannot be normalized contribute nothing; the
    condition is logged for operators.
    """
    aggregate: set[str] = set()
    for role in roles:
        name, raw = _role_fields(role)
        shape = classify_permissions(raw)
        if isinstance(shape, UnrecognizedShape):
            logger.warning(
                "Malformed permission data on role, ignoring its permissions",
                error_code="MALFORMED_PERMISSION_DATA",
                role=name,
                raw_type=shape.raw_type,
            )
            continue
        aggregate.update(tokens_for_shape(shape))
    return frozenset(aggregate)


def is_admin(permissions: Iterable[str]) -> bool:
    return SUPER_PERMISSION in permissions


def has_permission(permissions: Iterable[str], permission: PermissionLike) -> bool:
    """True if ``permission`` is held or the super token is held."""
    perm_set = permissions if isinstance(permissions, (set, frozenset)) else set(permissions)
    return SUPER_PERMISSION in perm_set or permission_value(permission) in perm_set


def has_any_permission(permissions: Iterable[str], required: Iterable[PermissionLike]) -> bool:
    """True if the super token or at least one of ``required`` is held.

    An empty ``required`` cannot be satisfied and returns False for a
    non-admin set.
    """
    perm_set = permissions if isinstance(permissions, (set, frozenset)) else set(permissions)
    if SUPER_PERMISSION in perm_set:
        return True
    return any(permission_value(p) in perm_set for p in required)


def has_all_permissions(permissions: Iterable[str], required: Iterable[PermissionLike]) -> bool:
    """True if the super token or every one of ``required`` is held.

    An empty ``required`` is vacuously satisfied.
    """
    perm_set = permissions if isinstance(permissions, (set, frozenset)) else set(permissions)
    if SUPER_PERMISSION in perm_set:
        return True
    return all(permission_value(p) in perm_set for p in required)


def missing_permissions(permissions: Iterable[str], required: Iterable[PermissionLike]) -> list[str]:
    """Tokens from ``required`` that the set does not satisfy, in order."""
    perm_set = permissions if isinstance(permissions, (set, frozenset)) else set(permissions)
    if SUPER_PERMISSION in perm_set:
        return []
    return [permission_value(p) for p in required if permission_value(p) not in perm_set]
