"""Activity feed and dashboard summary API."""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncEngine

from dealtracker.services.dashboard import DashboardService
from dealtracker.storage.repositories.activity import ActivityRepository
from dealtracker.web.auth.tenancy import get_tenant
from dealtracker.web.dependencies import get_dashboard_service, get_db_engine
from dealtracker.web.tenant_context import TenantContext

router = APIRouter(prefix="/api", tags=["activity"])


@router.get("/activity")
async def recent_activity(
    limit: int = Query(default=20, ge=1, le=200),
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
) -> list[dict[str, Any]]:
    entries = await ActivityRepository(engine).list_recent(tenant, limit)
    return [
        {
            "id": entry.id,
            "prospect_id": entry.prospect_id,
            "action_type": entry.action_type,
            "description": entry.description,
            "user": user,
            "created_at": entry.created_at.isoformat(),
        }
        for entry, user in entries
    ]


@router.get("/dashboard")
async def dashboard_summary(
    tenant: TenantContext = Depends(get_tenant),
    service: DashboardService = Depends(get_dashboard_service),
) -> dict[str, Any]:
    data = await service.build_dashboard(tenant, date.today())
    return data.to_dict()
