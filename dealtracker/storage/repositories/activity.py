"""Read side of the activity log. Rows are written only by ActivityRecorder."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlmodel import col, select

from dealtracker.models.database import ActivityLog, Profile
from dealtracker.storage.database import session_scope

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from dealtracker.web.tenant_context import TenantContext


class ActivityRepository:
    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def list_recent(
        self, tenant: TenantContext, limit: int = 10
    ) -> list[tuple[ActivityLog, str | None]]:
        """Newest activity in the tenant with the actor's display name."""
        if not tenant.has_tenant:
            return []
        stmt = (
            select(ActivityLog, Profile)
            .join(Profile, col(Profile.id) == col(ActivityLog.user_id), isouter=True)
            .where(col(ActivityLog.startup_id) == tenant.startup_id)
            .order_by(col(ActivityLog.created_at).desc())
            .limit(limit)
        )
        return await self._rows(stmt)

    async def list_for_prospect(
        self, tenant: TenantContext, prospect_id: str
    ) -> list[tuple[ActivityLog, str | None]]:
        if not tenant.has_tenant:
            return []
        stmt = (
            select(ActivityLog, Profile)
            .join(Profile, col(Profile.id) == col(ActivityLog.user_id), isouter=True)
            .where(
                col(ActivityLog.startup_id) == tenant.startup_id,
                col(ActivityLog.prospect_id) == prospect_id,
            )
            .order_by(col(ActivityLog.created_at).desc())
        )
        return await self._rows(stmt)

    async def _rows(self, stmt) -> list[tuple[ActivityLog, str | None]]:  # type: ignore[no-untyped-def]
        async with session_scope(self._engine) as session:
            rows = (await session.execute(stmt)).all()
        return [
            (entry, (profile.full_name or profile.email) if profile else None)
            for entry, profile in rows
        ]
