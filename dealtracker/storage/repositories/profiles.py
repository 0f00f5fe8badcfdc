"""Profile repository: the application-level view of each principal."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlmodel import col, select

from dealtracker.models.database import Profile, Startup, StartupMember
from dealtracker.storage.database import session_scope
from dealtracker.types import UserRole

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = structlog.get_logger(__name__)


class ProfileRepository:
    """Database-backed profile store."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def get(self, profile_id: str) -> Profile | None:
        async with session_scope(self._engine) as session:
            return await session.get(Profile, profile_id)

    async def get_by_email(self, email: str) -> Profile | None:
        async with session_scope(self._engine) as session:
            stmt = select(Profile).where(col(Profile.email) == email.lower())
            result = await session.execute(stmt)
            return result.scalars().first()

    async def update_full_name(self, profile_id: str, full_name: str | None) -> Profile | None:
        async with session_scope(self._engine) as session:
            profile = await session.get(Profile, profile_id)
            if not profile:
                return None
            profile.full_name = full_name
            session.add(profile)
            await session.commit()
            logger.info("profile_name_updated", profile_id=profile_id)
            return profile

    async def set_role(self, profile_id: str, role: UserRole) -> Profile | None:
        async with session_scope(self._engine) as session:
            profile = await session.get(Profile, profile_id)
            if not profile:
                return None
            profile.role = role.value
            session.add(profile)
            await session.commit()
            logger.info("profile_role_updated", profile_id=profile_id, role=role.value)
            return profile

    async def list_admin_ids(self) -> list[str]:
        async with session_scope(self._engine) as session:
            stmt = select(Profile.id).where(col(Profile.role) == UserRole.ADMIN.value)
            result = await session.execute(stmt)
            return [pid for (pid,) in result.all()]

    async def list_by_ids(self, profile_ids: list[str]) -> list[Profile]:
        """Return the given profiles ordered by display name."""
        if not profile_ids:
            return []
        async with session_scope(self._engine) as session:
            stmt = select(Profile).where(col(Profile.id).in_(profile_ids))
            result = await session.execute(stmt)
            profiles = list(result.scalars().all())
        return sorted(profiles, key=lambda p: (p.full_name or p.email).lower())

    async def list_non_admin_with_startups(self) -> list[tuple[Profile, list[tuple[Startup, str]]]]:
        """Every non-admin profile with (startup, member role) pairs, newest first."""
        async with session_scope(self._engine) as session:
            stmt = (
                select(Profile)
                .where(col(Profile.role) != UserRole.ADMIN.value)
                .order_by(col(Profile.created_at).desc())
            )
            profiles = list((await session.execute(stmt)).scalars().all())
            if not profiles:
                return []

            member_stmt = (
                select(StartupMember, Startup)
                .join(Startup, col(Startup.id) == col(StartupMember.startup_id))
                .where(col(StartupMember.user_id).in_([p.id for p in profiles]))
                .order_by(col(Startup.name))
            )
            rows = (await session.execute(member_stmt)).all()

        by_user: dict[str, list[tuple[Startup, str]]] = {}
        for member, startup in rows:
            by_user.setdefault(member.user_id, []).append((startup, member.role))
        return [(p, by_user.get(p.id, [])) for p in profiles]
