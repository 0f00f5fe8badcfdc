"""Settings API: profile name, and admin-only startup, user and invite management.

Admin endpoints carry no role gate of their own; the services re-check the
stored role on every call and answer ``{"error": ...}`` when it fails.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from dealtracker.services.accounts import AccountService, ActionResult
from dealtracker.services.invites import InviteService
from dealtracker.types import MemberRole
from dealtracker.web.auth.tenancy import get_tenant
from dealtracker.web.dependencies import get_account_service, get_invite_service
from dealtracker.web.tenant_context import TenantContext

router = APIRouter(prefix="/api/settings", tags=["settings"])


class ProfileNameRequest(BaseModel):
    full_name: str = Field(max_length=200)


class CreateStartupRequest(BaseModel):
    name: str
    description: str | None = None
    category: str | None = None


class CreateUserRequest(BaseModel):
    email: str
    password: str
    full_name: str
    startup_id: str
    role: MemberRole = MemberRole.FOUNDER


class CreateInviteRequest(BaseModel):
    email: str
    startup_id: str
    role: MemberRole = MemberRole.FOUNDER


def _action_response(result: ActionResult, payload: dict[str, Any]) -> JSONResponse:
    if not result.ok:
        return JSONResponse(status_code=403 if result.denied else 400, content={"error": result.error})
    return JSONResponse(status_code=200, content={"success": True, **payload})


@router.put("/profile")
async def update_profile_name(
    body: ProfileNameRequest,
    tenant: TenantContext = Depends(get_tenant),
    service: AccountService = Depends(get_account_service),
) -> dict[str, Any]:
    profile = await service.update_profile_name(tenant, body.full_name)
    return {"id": profile.id, "full_name": profile.full_name, "email": profile.email}


@router.post("/startups")
async def create_startup(
    body: CreateStartupRequest,
    tenant: TenantContext = Depends(get_tenant),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    result = await service.create_startup(tenant, body.name, body.description, body.category)
    payload = {"startup": result.value.model_dump(mode="json")} if result.ok else {}
    return _action_response(result, payload)


@router.post("/users")
async def create_user_with_password(
    body: CreateUserRequest,
    tenant: TenantContext = Depends(get_tenant),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    result = await service.create_user_with_password(
        tenant,
        email=body.email,
        password=body.password,
        full_name=body.full_name,
        startup_id=body.startup_id,
        role=body.role,
    )
    return _action_response(result, {"user_id": result.value} if result.ok else {})


@router.get("/team")
async def get_team_members(
    tenant: TenantContext = Depends(get_tenant),
    service: AccountService = Depends(get_account_service),
) -> JSONResponse:
    result = await service.get_team_members(tenant)
    members = [
        {
            "id": profile.id,
            "email": profile.email,
            "full_name": profile.full_name,
            "role": profile.role,
            "created_at": profile.created_at.isoformat(),
            "startups": [{"id": s.id, "name": s.name, "role": role} for s, role in startups],
        }
        for profile, startups in (result.value or [])
    ]
    return _action_response(result, {"members": members})


@router.get("/invites")
async def list_pending_invites(
    tenant: TenantContext = Depends(get_tenant),
    service: InviteService = Depends(get_invite_service),
) -> JSONResponse:
    result = await service.list_pending_invites(tenant)
    invites = [
        {
            "id": invite.id,
            "email": invite.email,
            "startup_id": invite.startup_id,
            "startup_name": name,
            "role": invite.role,
            "expires_at": invite.expires_at.isoformat(),
            "usable": usable,
        }
        for invite, name, usable in (result.value or [])
    ]
    return _action_response(result, {"invites": invites})


@router.post("/invites")
async def create_invite(
    body: CreateInviteRequest,
    tenant: TenantContext = Depends(get_tenant),
    service: InviteService = Depends(get_invite_service),
) -> JSONResponse:
    result = await service.create_invite(
        tenant, email=body.email, startup_id=body.startup_id, role=body.role
    )
    payload: dict[str, Any] = {}
    if result.ok:
        payload = {
            "invite_id": result.value.id,
            "token": result.value.token,
            "invite_url": f"/invite/{result.value.token}",
        }
    return _action_response(result, payload)


@router.delete("/invites/{invite_id}")
async def delete_invite(
    invite_id: str,
    tenant: TenantContext = Depends(get_tenant),
    service: InviteService = Depends(get_invite_service),
) -> JSONResponse:
    result = await service.delete_invite(tenant, invite_id)
    return _action_response(result, {})
