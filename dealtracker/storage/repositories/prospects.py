"""Tenant-scoped prospect repository."""

from __future__ import annotations

from datetime import date  # noqa: TC003 - used at runtime in query filters
from typing import TYPE_CHECKING, Any

import structlog
from sqlmodel import col, select

from dealtracker.models.database import Prospect, _utc_now
from dealtracker.storage.database import session_scope
from dealtracker.types import ProspectStage

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine
    from sqlmodel.sql.expression import SelectOfScalar

    from dealtracker.web.tenant_context import TenantContext

logger = structlog.get_logger(__name__)

_EDITABLE_FIELDS = frozenset(
    {
        "company_name",
        "contact_name",
        "contact_email",
        "industry",
        "function",
        "estimated_value",
        "stage",
        "notes",
        "next_action",
        "next_action_due",
        "meeting_date",
        "owner_id",
    }
)


class ProspectRepository:
    """Prospects, always filtered by the caller's validated startup.

    Reads without a startup return nothing; writes without one raise
    ``AccessDeniedError`` via ``TenantContext.require_startup``.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def _list(self, stmt: SelectOfScalar[Prospect]) -> list[Prospect]:
        async with session_scope(self._engine) as session:
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def list_all(self, tenant: TenantContext) -> list[Prospect]:
        if not tenant.has_tenant:
            return []
        stmt = (
            select(Prospect)
            .where(col(Prospect.startup_id) == tenant.startup_id)
            .order_by(col(Prospect.updated_at).desc())
        )
        return await self._list(stmt)

    async def list_active(self, tenant: TenantContext) -> list[Prospect]:
        if not tenant.has_tenant:
            return []
        stmt = (
            select(Prospect)
            .where(
                col(Prospect.startup_id) == tenant.startup_id,
                col(Prospect.stage) != ProspectStage.CLOSED_LOST.value,
            )
            .order_by(col(Prospect.updated_at).desc())
        )
        return await self._list(stmt)

    async def list_dead(self, tenant: TenantContext) -> list[Prospect]:
        if not tenant.has_tenant:
            return []
        stmt = (
            select(Prospect)
            .where(
                col(Prospect.startup_id) == tenant.startup_id,
                col(Prospect.stage) == ProspectStage.CLOSED_LOST.value,
            )
            .order_by(col(Prospect.updated_at).desc())
        )
        return await self._list(stmt)

    async def list_meetings(
        self, tenant: TenantContext, on_or_after: date | None = None
    ) -> list[Prospect]:
        """Prospects with a meeting date that are not dead leads, soonest first."""
        if not tenant.has_tenant:
            return []
        stmt = select(Prospect).where(
            col(Prospect.startup_id) == tenant.startup_id,
            col(Prospect.meeting_date).is_not(None),
            col(Prospect.stage) != ProspectStage.CLOSED_LOST.value,
        )
        if on_or_after is not None:
            stmt = stmt.where(col(Prospect.meeting_date) >= on_or_after)
        stmt = stmt.order_by(col(Prospect.meeting_date))
        return await self._list(stmt)

    async def get(self, tenant: TenantContext, prospect_id: str) -> Prospect | None:
        if not tenant.has_tenant:
            return None
        async with session_scope(self._engine) as session:
            stmt = select(Prospect).where(
                col(Prospect.id) == prospect_id,
                col(Prospect.startup_id) == tenant.startup_id,
            )
            result = await session.execute(stmt)
            return result.scalars().first()

    async def create(self, tenant: TenantContext, **fields: Any) -> Prospect:
        startup_id = tenant.require_startup()
        values = {k: v for k, v in fields.items() if k in _EDITABLE_FIELDS}
        async with session_scope(self._engine) as session:
            prospect = Prospect(startup_id=startup_id, **values)
            session.add(prospect)
            await session.commit()
            logger.info("prospect_created", id=prospect.id, startup_id=startup_id)
            return prospect

    async def update(
        self, tenant: TenantContext, prospect_id: str, **fields: Any
    ) -> tuple[dict[str, Any], Prospect] | None:
        """Apply ``fields`` and return ``(previous values, updated row)``, or None if not in this tenant."""
        startup_id = tenant.require_startup()
        async with session_scope(self._engine) as session:
            stmt = select(Prospect).where(
                col(Prospect.id) == prospect_id,
                col(Prospect.startup_id) == startup_id,
            )
            prospect = (await session.execute(stmt)).scalars().first()
            if not prospect:
                return None
            before = prospect.model_dump()
            for key, value in fields.items():
                if key in _EDITABLE_FIELDS:
                    setattr(prospect, key, value)
            prospect.updated_at = _utc_now()
            session.add(prospect)
            await session.commit()
            logger.info("prospect_updated", id=prospect_id, fields=sorted(fields))
            return before, prospect

    async def delete(self, tenant: TenantContext, prospect_id: str) -> bool:
        startup_id = tenant.require_startup()
        async with session_scope(self._engine) as session:
            stmt = select(Prospect).where(
                col(Prospect.id) == prospect_id,
                col(Prospect.startup_id) == startup_id,
            )
            prospect = (await session.execute(stmt)).scalars().first()
            if not prospect:
                return False
            await session.delete(prospect)
            await session.commit()
            logger.info("prospect_deleted", id=prospect_id, startup_id=startup_id)
            return True
