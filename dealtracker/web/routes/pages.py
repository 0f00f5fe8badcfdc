"""Server-rendered HTML page routes.

Every page depends on ``get_tenant``. With no validated startup the
listings come back empty and the page renders its empty state.
"""

from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncEngine

from dealtracker.services.accounts import AccountService
from dealtracker.services.dashboard import DashboardService
from dealtracker.services.invites import InviteService
from dealtracker.services.materials import MaterialService
from dealtracker.services.prospects import ProspectService
from dealtracker.storage.repositories.products import ProductRepository
from dealtracker.storage.repositories.profiles import ProfileRepository
from dealtracker.storage.repositories.sales_scripts import SalesScriptRepository
from dealtracker.storage.repositories.startups import StartupRepository
from dealtracker.types import (
    INDUSTRIES,
    STAGE_LABELS,
    MaterialType,
    ProspectFunction,
    ScriptChannel,
)
from dealtracker.web.auth.tenancy import get_tenant
from dealtracker.web.dependencies import (
    get_account_service,
    get_dashboard_service,
    get_db_engine,
    get_invite_service,
    get_material_service,
    get_prospect_service,
)
from dealtracker.web.tenant_context import TenantContext

router = APIRouter(tags=["pages"])

templates = Jinja2Templates(directory=str(Path(__file__).parent.parent / "templates"))


async def _layout(engine: AsyncEngine, tenant: TenantContext) -> dict[str, Any]:
    """Context shared by every page: the caller and the startup switcher."""
    startups = await StartupRepository(engine).list_accessible(tenant)
    current = next((s for s in startups if s.id == tenant.startup_id), None)
    return {"tenant": tenant, "startups": startups, "current_startup": current}


async def _render(
    request: Request,
    engine: AsyncEngine,
    tenant: TenantContext,
    template: str,
    context: dict[str, Any],
) -> HTMLResponse:
    return templates.TemplateResponse(
        request, template, {**await _layout(engine, tenant), **context}
    )


@router.get("/dashboard", response_class=HTMLResponse)
async def dashboard_page(
    request: Request,
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
    service: DashboardService = Depends(get_dashboard_service),
) -> HTMLResponse:
    data = await service.build_dashboard(tenant, date.today())
    return await _render(
        request, engine, tenant, "dashboard.html", {"data": data, "stage_labels": STAGE_LABELS}
    )


@router.get("/prospects", response_class=HTMLResponse)
async def prospects_page(
    request: Request,
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
    service: ProspectService = Depends(get_prospect_service),
) -> HTMLResponse:
    prospects = await service.list_active(tenant)
    owners = await service.candidate_owners(tenant)
    return await _render(
        request,
        engine,
        tenant,
        "prospects.html",
        {
            "prospects": prospects,
            "owners": {p.id: p.full_name or p.email for p in owners},
            "stage_labels": STAGE_LABELS,
            "industries": INDUSTRIES,
            "functions": list(ProspectFunction),
        },
    )


@router.get("/prospects/{prospect_id}", response_class=HTMLResponse)
async def prospect_detail_page(
    request: Request,
    prospect_id: str,
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
    service: ProspectService = Depends(get_prospect_service),
) -> HTMLResponse:
    prospect = await service.get(tenant, prospect_id)
    history = await service.history(tenant, prospect_id)
    owners = await service.candidate_owners(tenant)
    return await _render(
        request,
        engine,
        tenant,
        "prospect_detail.html",
        {
            "prospect": prospect,
            "history": history,
            "owners": owners,
            "stage_labels": STAGE_LABELS,
            "industries": INDUSTRIES,
            "functions": list(ProspectFunction),
        },
    )


@router.get("/dead-leads", response_class=HTMLResponse)
async def dead_leads_page(
    request: Request,
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
    service: ProspectService = Depends(get_prospect_service),
) -> HTMLResponse:
    prospects = await service.list_dead_leads(tenant)
    return await _render(request, engine, tenant, "dead_leads.html", {"prospects": prospects})


@router.get("/calendar", response_class=HTMLResponse)
async def calendar_page(
    request: Request,
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
    service: ProspectService = Depends(get_prospect_service),
) -> HTMLResponse:
    meetings = await service.list_meetings(tenant)
    by_month: dict[str, list[Any]] = {}
    for prospect in meetings:
        if prospect.meeting_date:
            by_month.setdefault(prospect.meeting_date.strftime("%B %Y"), []).append(prospect)
    return await _render(
        request,
        engine,
        tenant,
        "calendar.html",
        {"by_month": by_month, "today": date.today(), "stage_labels": STAGE_LABELS},
    )


@router.get("/products", response_class=HTMLResponse)
async def products_page(
    request: Request,
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
) -> HTMLResponse:
    products = await ProductRepository(engine).list_all(tenant)
    return await _render(request, engine, tenant, "products.html", {"products": products})


@router.get("/materials", response_class=HTMLResponse)
async def materials_page(
    request: Request,
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
    service: MaterialService = Depends(get_material_service),
) -> HTMLResponse:
    materials = await service.list_materials(tenant)
    return await _render(
        request,
        engine,
        tenant,
        "materials.html",
        {"materials": materials, "material_types": list(MaterialType)},
    )


@router.get("/sales-scripts", response_class=HTMLResponse)
async def sales_scripts_page(
    request: Request,
    channel: ScriptChannel | None = None,
    q: str = "",
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
) -> HTMLResponse:
    scripts = await SalesScriptRepository(engine).list_all(tenant, channel=channel, search=q)
    return await _render(
        request,
        engine,
        tenant,
        "sales_scripts.html",
        {"scripts": scripts, "channels": list(ScriptChannel), "channel": channel, "q": q},
    )


@router.get("/settings", response_class=HTMLResponse)
async def settings_page(
    request: Request,
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
    accounts: AccountService = Depends(get_account_service),
    invites: InviteService = Depends(get_invite_service),
) -> HTMLResponse:
    profile = await ProfileRepository(engine).get(tenant.principal_id)
    context: dict[str, Any] = {"profile": profile, "all_startups": [], "team": [], "invites": []}
    if tenant.is_admin:
        context["all_startups"] = await StartupRepository(engine).list_all_unscoped(tenant)
        context["team"] = (await accounts.get_team_members(tenant)).value or []
        context["invites"] = (await invites.list_pending_invites(tenant)).value or []
    return await _render(request, engine, tenant, "settings.html", context)
