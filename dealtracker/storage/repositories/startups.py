"""Startup (tenant) and membership repositories."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlmodel import col, select

from dealtracker.exceptions import AccessDeniedError
from dealtracker.models.database import Startup, StartupMember
from dealtracker.storage.database import session_scope
from dealtracker.types import MemberRole

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from dealtracker.web.tenant_context import TenantContext

logger = structlog.get_logger(__name__)


class StartupRepository:
    """Tenant records. Only admins create startups or list every one of them."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def get(self, startup_id: str) -> Startup | None:
        async with session_scope(self._engine) as session:
            return await session.get(Startup, startup_id)

    async def create(
        self, name: str, description: str | None = None, category: str | None = None
    ) -> Startup:
        async with session_scope(self._engine) as session:
            startup = Startup(name=name, description=description, category=category)
            session.add(startup)
            await session.commit()
            logger.info("startup_created", startup_id=startup.id, name=name)
            return startup

    async def list_all_unscoped(self, tenant: TenantContext) -> list[Startup]:
        """List every startup regardless of membership. Admin only."""
        if not tenant.is_admin:
            raise AccessDeniedError("Only admins can list all startups")
        async with session_scope(self._engine) as session:
            result = await session.execute(select(Startup).order_by(col(Startup.name)))
            return list(result.scalars().all())

    async def list_for_member(self, profile_id: str) -> list[Startup]:
        async with session_scope(self._engine) as session:
            stmt = (
                select(Startup)
                .join(StartupMember, col(StartupMember.startup_id) == col(Startup.id))
                .where(col(StartupMember.user_id) == profile_id)
                .order_by(col(Startup.name))
            )
            result = await session.execute(stmt)
            # A duplicated membership row must not duplicate the startup
            unique: dict[str, Startup] = {}
            for startup in result.scalars().all():
                unique.setdefault(startup.id, startup)
            return list(unique.values())

    async def list_accessible(self, tenant: TenantContext) -> list[Startup]:
        """Startups the caller may switch to: all for admins, memberships otherwise."""
        if tenant.is_admin:
            return await self.list_all_unscoped(tenant)
        return await self.list_for_member(tenant.principal_id)

    async def first_by_name(self) -> str | None:
        async with session_scope(self._engine) as session:
            stmt = select(Startup.id).order_by(col(Startup.name)).limit(1)
            result = await session.execute(stmt)
            return result.scalars().first()


class MembershipRepository:
    """Profile-to-startup access grants."""

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def is_member(self, profile_id: str, startup_id: str) -> bool:
        async with session_scope(self._engine) as session:
            stmt = (
                select(StartupMember.id)
                .where(
                    col(StartupMember.user_id) == profile_id,
                    col(StartupMember.startup_id) == startup_id,
                )
                .limit(1)
            )
            result = await session.execute(stmt)
            return result.scalars().first() is not None

    async def first_startup_for(self, profile_id: str) -> str | None:
        async with session_scope(self._engine) as session:
            stmt = (
                select(StartupMember.startup_id)
                .where(col(StartupMember.user_id) == profile_id)
                .order_by(col(StartupMember.created_at))
                .limit(1)
            )
            result = await session.execute(stmt)
            return result.scalars().first()

    async def list_member_ids(self, startup_id: str) -> list[str]:
        async with session_scope(self._engine) as session:
            stmt = select(StartupMember.user_id).where(col(StartupMember.startup_id) == startup_id)
            result = await session.execute(stmt)
            return list(dict.fromkeys(result.scalars().all()))

    async def add_member(
        self, startup_id: str, user_id: str, role: MemberRole = MemberRole.FOUNDER
    ) -> StartupMember:
        """Grant access; an existing grant for the same pair is returned unchanged."""
        async with session_scope(self._engine) as session:
            stmt = select(StartupMember).where(
                col(StartupMember.user_id) == user_id,
                col(StartupMember.startup_id) == startup_id,
            )
            existing = (await session.execute(stmt)).scalars().first()
            if existing:
                return existing
            member = StartupMember(startup_id=startup_id, user_id=user_id, role=role.value)
            session.add(member)
            await session.commit()
            logger.info("member_added", startup_id=startup_id, user_id=user_id, role=role.value)
            return member
