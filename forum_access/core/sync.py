"""
Drift detection between a client-cached permission view and the server view.

The cached set is only ever compared against the authoritative aggregate;
it is never used to grant access.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from forum_access.core.permissions import SUPER_PERMISSION


@dataclass(frozen=True)
class PermissionDiff:
    missing: tuple[str, ...]
    extra: tuple[str, ...]

    @property
    def in_sync(self) -> bool:
        return not self.missing and not self.extra


def needs_resync(cached: Iterable[str], authoritative: Iterable[str]) -> bool:
    """
    True when the cached view under-authorizes the principal.

    Tokens present only in the cache are not reported; use
    ``diff_permissions`` for a two-way comparison.
    """
    cached_set = set(cached)
    authoritative_set = set(authoritative)

    if SUPER_PERMISSION in authoritative_set and SUPER_PERMISSION not in cached_set:
        return True
    return not authoritative_set.issubset(cached_set)


def diff_permissions(cached: Iterable[str], authoritative: Iterable[str]) -> PermissionDiff:
    cached_set = set(cached)
    authoritative_set = set(authoritative)
    return PermissionDiff(
        missing=tuple(sorted(authoritative_set - cached_set)),
        extra=tuple(sorted(cached_set - authoritative_set)),
    )
