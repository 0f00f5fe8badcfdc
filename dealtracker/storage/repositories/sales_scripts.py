"""Tenant-scoped sales script repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlmodel import col, or_, select

from dealtracker.models.database import SalesScript, _utc_now
from dealtracker.storage.database import session_scope

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from dealtracker.types import ScriptChannel
    from dealtracker.web.tenant_context import TenantContext

logger = structlog.get_logger(__name__)


class SalesScriptRepository:
    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def list_all(
        self,
        tenant: TenantContext,
        channel: ScriptChannel | None = None,
        search: str = "",
    ) -> list[SalesScript]:
        """Scripts for the tenant, optionally filtered by channel and title/content text."""
        if not tenant.has_tenant:
            return []
        stmt = select(SalesScript).where(col(SalesScript.startup_id) == tenant.startup_id)
        if channel is not None:
            stmt = stmt.where(col(SalesScript.channel) == channel.value)
        if search.strip():
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(col(SalesScript.title).ilike(pattern), col(SalesScript.content).ilike(pattern))
            )
        stmt = stmt.order_by(col(SalesScript.updated_at).desc())
        async with session_scope(self._engine) as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def create(
        self, tenant: TenantContext, title: str, content: str, channel: ScriptChannel
    ) -> SalesScript:
        startup_id = tenant.require_startup()
        async with session_scope(self._engine) as session:
            script = SalesScript(
                startup_id=startup_id, title=title, content=content, channel=channel.value
            )
            session.add(script)
            await session.commit()
            logger.info("sales_script_created", id=script.id, startup_id=startup_id)
            return script

    async def update(
        self,
        tenant: TenantContext,
        script_id: str,
        title: str,
        content: str,
        channel: ScriptChannel,
    ) -> SalesScript | None:
        startup_id = tenant.require_startup()
        async with session_scope(self._engine) as session:
            stmt = select(SalesScript).where(
                col(SalesScript.id) == script_id, col(SalesScript.startup_id) == startup_id
            )
            script = (await session.execute(stmt)).scalars().first()
            if not script:
                return None
            script.title = title
            script.content = content
            script.channel = channel.value
            script.updated_at = _utc_now()
            session.add(script)
            await session.commit()
            logger.info("sales_script_updated", id=script_id)
            return script

    async def delete(self, tenant: TenantContext, script_id: str) -> bool:
        startup_id = tenant.require_startup()
        async with session_scope(self._engine) as session:
            stmt = select(SalesScript).where(
                col(SalesScript.id) == script_id, col(SalesScript.startup_id) == startup_id
            )
            script = (await session.execute(stmt)).scalars().first()
            if not script:
                return False
            await session.delete(script)
            await session.commit()
            logger.info("sales_script_deleted", id=script_id)
            return True
