"""Operator commands for inspecting and promoting user roles."""

from __future__ import annotations

import argparse
import asyncio
import sys

import structlog

from dealtracker.config.logging import setup_logging
from dealtracker.config.settings import get_settings
from dealtracker.storage.database import get_engine
from dealtracker.storage.repositories.profiles import ProfileRepository
from dealtracker.types import UserRole

logger = structlog.get_logger(__name__)


async def check_role(repo: ProfileRepository, email: str) -> int:
    profile = await repo.get_by_email(email)
    if profile is None:
        print(f"No profile found for {email}")
        return 1
    print(f"{profile.email}: {profile.role}")
    return 0


async def promote(repo: ProfileRepository, email: str) -> int:
    profile = await repo.get_by_email(email)
    if profile is None:
        print(f"No profile found for {email}")
        return 1
    if profile.role == UserRole.ADMIN.value:
        print(f"{profile.email} is already an admin")
        return 0
    await repo.set_role(profile.id, UserRole.ADMIN)
    logger.info("profile_promoted", user_id=profile.id)
    print(f"{profile.email} is now an admin")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dealtracker-admin", description=__doc__)
    sub = parser.add_subparsers(dest="command", required=True)
    check = sub.add_parser("check", help="Print the role stored for a user")
    check.add_argument("email")
    up = sub.add_parser("promote", help="Grant the admin role to a user")
    up.add_argument("email")
    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    setup_logging(log_level=get_settings().log_level)
    repo = ProfileRepository(get_engine())
    command = check_role if args.command == "check" else promote
    sys.exit(asyncio.run(command(repo, args.email.strip().lower())))


if __name__ == "__main__":
    main()
