"""
Operator commands.

    forum-access normalize-roles [--dry-run]
    forum-access monthly-key <user_id> [--year YEAR --month MONTH]
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence
from uuid import UUID
from zoneinfo import ZoneInfo

import structlog

from forum_access.core.config import settings
from forum_access.core.database import AsyncSessionLocal
from forum_access.core.exceptions import MalformedPermissionDataError
from forum_access.core.logging import setup_logging
from forum_access.core.monthly_key import Period, derive_monthly_key
from forum_access.core.normalizer import normalize_permissions_strict
from forum_access.core.permissions import is_known_permission
from forum_access.repositories.role import role_repository

logger = structlog.get_logger()


@dataclass
class RoleMigration:
    role_name: str
    before: Any
    after: list[str] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.before != self.after


def plan_role_migration(role_name: str, raw: Any) -> RoleMigration:
    """
    Canonical form of one role's stored permissions.

    Tokens outside the permission catalog are dropped and reported.

    Raises:
        MalformedPermissionDataError: The stored field has no recognized shape
    """
    tokens = normalize_permissions_strict(raw, role_name=role_name)
    return RoleMigration(
        role_name=role_name,
        before=raw,
        after=[t for t in tokens if is_known_permission(t)],
        dropped=[t for t in tokens if not is_known_permission(t)],
    )


async def normalize_roles(dry_run: bool = False) -> int:
    malformed = 0
    async with AsyncSessionLocal() as db:
        roles = await role_repository.list_all(db)
        for role in roles:
            try:
                plan = plan_role_migration(role.name, role.permissions)
            except MalformedPermissionDataError as exc:
                malformed += 1
                logger.warning(
                    "Role permissions could not be normalized, left untouched",
                    error_code=exc.code,
                    role=exc.role_name,
                    raw_type=exc.raw_type,
                )
                print(f"! {role.name}: unrecognized permission data ({exc.raw_type}), skipped")
                continue

            if plan.dropped:
                print(f"- {role.name}: dropping unknown permissions {', '.join(plan.dropped)}")
            if not plan.changed:
                continue

            print(f"* {role.name}: {len(plan.after)} permission(s) in canonical form")
            if not dry_run:
                await role_repository.update(db, db_obj=role, obj_in={"permissions": plan.after}, commit=False)

        if dry_run:
            await db.rollback()
            print("Dry run, no changes written")
        else:
            await db.commit()
            logger.info("Role permissions normalized", roles=len(roles), malformed=malformed)

    return 1 if malformed else 0


def monthly_key(user_id: str, year: Optional[int] = None, month: Optional[int] = None) -> str:
    principal_id = UUID(user_id)
    current = Period.current(ZoneInfo(settings.MONTHLY_KEY_TIMEZONE))
    period = Period(year or current.year, month or current.month)
    return derive_monthly_key(principal_id, period.year, period.month, settings.MONTHLY_KEY_SALT.get_secret_value())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="forum-access",
        description="Forum access-control maintenance commands",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    normalize = subparsers.add_parser(
        "normalize-roles",
        help="Rewrite stored role permissions into the canonical list form",
    )
    normalize.add_argument(
        "--dry-run",
        action="store_true",
        help="Report what would change without writing",
    )

    key = subparsers.add_parser(
        "monthly-key",
        help="Print a user's monthly key",
    )
    key.add_argument("user_id", help="User id (UUID)")
    key.add_argument("--year", type=int, default=None, help="Defaults to the current year")
    key.add_argument("--month", type=int, default=None, choices=range(1, 13), metavar="MONTH",
                     help="Defaults to the current month")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> None:
    setup_logging()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "normalize-roles":
        sys.exit(asyncio.run(normalize_roles(dry_run=args.dry_run)))

    try:
        print(monthly_key(args.user_id, year=args.year, month=args.month))
    except ValueError as exc:
        parser.error(str(exc))


if __name__ == "__main__":
    main()
