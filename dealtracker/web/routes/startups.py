"""Startup switching. The hint cookie is written only after validation."""

from __future__ import annotations

from typing import Any
from urllib.parse import urlsplit

import structlog
from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncEngine

from dealtracker.exceptions import AccessDeniedError
from dealtracker.storage.repositories.profiles import ProfileRepository
from dealtracker.storage.repositories.startups import MembershipRepository, StartupRepository
from dealtracker.web.auth.session import require_principal
from dealtracker.web.auth.tenancy import get_tenant, resolve_tenant, set_tenant_cookie
from dealtracker.web.dependencies import get_db_engine
from dealtracker.web.routes.auth import safe_next
from dealtracker.web.tenant_context import Principal, TenantContext

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["startups"])


class SelectStartupRequest(BaseModel):
    startup_id: str


def _referring_path(request: Request) -> str:
    """The referring page as a local path; other origins fall back to the dashboard."""
    referer = request.headers.get("referer")
    if not referer:
        return "/dashboard"
    parts = urlsplit(referer)
    if parts.netloc and parts.netloc != request.url.netloc:
        return "/dashboard"
    path = parts.path + (f"?{parts.query}" if parts.query else "")
    return safe_next(path)


async def _select(engine: AsyncEngine, principal: Principal, startup_id: str) -> str:
    profile = await ProfileRepository(engine).get(principal.user_id)
    resolved = await resolve_tenant(profile, startup_id, MembershipRepository(engine))
    if resolved is None:
        raise AccessDeniedError("You do not have access to that startup")
    logger.info("startup_selected", startup_id=resolved)
    return resolved


@router.post("/api/startups/current")
async def select_startup_api(
    body: SelectStartupRequest,
    response: Response,
    principal: Principal = Depends(require_principal),
    engine: AsyncEngine = Depends(get_db_engine),
) -> dict[str, str]:
    startup_id = await _select(engine, principal, body.startup_id)
    set_tenant_cookie(response, startup_id)
    return {"startup_id": startup_id}


@router.post("/startups/current")
async def select_startup_form(
    request: Request,
    principal: Principal = Depends(require_principal),
    engine: AsyncEngine = Depends(get_db_engine),
) -> Response:
    """Form post from the sidebar switcher; redirects back to the referring page."""
    form = await request.form()
    startup_id = await _select(engine, principal, str(form.get("startup_id", "")))
    response = RedirectResponse(url=_referring_path(request), status_code=303)
    set_tenant_cookie(response, startup_id)
    return response


@router.get("/api/startups")
async def list_startups(
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
) -> dict[str, Any]:
    startups = await StartupRepository(engine).list_accessible(tenant)
    return {
        "current": tenant.startup_id,
        "startups": [s.model_dump(mode="json") for s in startups],
    }
