"""Prospect API routes: CRUD, single-field changes, notes, dead-lead revival."""

from __future__ import annotations

from datetime import date
from typing import Any

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import Response
from pydantic import BaseModel

from dealtracker.services.prospects import ProspectFields, ProspectService
from dealtracker.web.auth.tenancy import get_tenant
from dealtracker.web.dependencies import get_prospect_service
from dealtracker.web.tenant_context import TenantContext

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/prospects", tags=["prospects"])


class StageRequest(BaseModel):
    stage: str


class OwnerRequest(BaseModel):
    owner_id: str | None = None


class IndustryRequest(BaseModel):
    industry: str | None = None


class NoteRequest(BaseModel):
    note: str


def _dump(prospects: list[Any]) -> list[dict[str, Any]]:
    return [p.model_dump(mode="json") for p in prospects]


@router.get("")
async def list_prospects(
    tenant: TenantContext = Depends(get_tenant),
    service: ProspectService = Depends(get_prospect_service),
) -> list[dict[str, Any]]:
    """Active prospects (everything except closed-lost), most recently updated first."""
    return _dump(await service.list_active(tenant))


@router.get("/dead")
async def list_dead_leads(
    tenant: TenantContext = Depends(get_tenant),
    service: ProspectService = Depends(get_prospect_service),
) -> list[dict[str, Any]]:
    return _dump(await service.list_dead_leads(tenant))


@router.get("/meetings")
async def list_meetings(
    upcoming: bool = False,
    tenant: TenantContext = Depends(get_tenant),
    service: ProspectService = Depends(get_prospect_service),
) -> list[dict[str, Any]]:
    if upcoming:
        return _dump(await service.list_upcoming_meetings(tenant, date.today()))
    return _dump(await service.list_meetings(tenant))


@router.get("/owners")
async def list_candidate_owners(
    tenant: TenantContext = Depends(get_tenant),
    service: ProspectService = Depends(get_prospect_service),
) -> list[dict[str, Any]]:
    owners = await service.candidate_owners(tenant)
    return [{"id": p.id, "name": p.full_name or p.email, "role": p.role} for p in owners]


@router.post("", status_code=201)
async def create_prospect(
    body: ProspectFields,
    tenant: TenantContext = Depends(get_tenant),
    service: ProspectService = Depends(get_prospect_service),
) -> dict[str, Any]:
    prospect = await service.create_prospect(tenant, body)
    return prospect.model_dump(mode="json")


@router.get("/{prospect_id}")
async def get_prospect(
    prospect_id: str,
    tenant: TenantContext = Depends(get_tenant),
    service: ProspectService = Depends(get_prospect_service),
) -> dict[str, Any]:
    prospect = await service.get(tenant, prospect_id)
    return prospect.model_dump(mode="json")


@router.put("/{prospect_id}")
async def update_prospect(
    prospect_id: str,
    body: ProspectFields,
    tenant: TenantContext = Depends(get_tenant),
    service: ProspectService = Depends(get_prospect_service),
) -> dict[str, Any]:
    prospect = await service.update_prospect(tenant, prospect_id, body)
    return prospect.model_dump(mode="json")


@router.patch("/{prospect_id}/stage")
async def change_stage(
    prospect_id: str,
    body: StageRequest,
    tenant: TenantContext = Depends(get_tenant),
    service: ProspectService = Depends(get_prospect_service),
) -> dict[str, Any]:
    prospect = await service.change_stage(tenant, prospect_id, body.stage)
    return prospect.model_dump(mode="json")


@router.patch("/{prospect_id}/owner")
async def change_owner(
    prospect_id: str,
    body: OwnerRequest,
    tenant: TenantContext = Depends(get_tenant),
    service: ProspectService = Depends(get_prospect_service),
) -> dict[str, Any]:
    prospect = await service.change_owner(tenant, prospect_id, body.owner_id)
    return prospect.model_dump(mode="json")


@router.patch("/{prospect_id}/industry")
async def change_industry(
    prospect_id: str,
    body: IndustryRequest,
    tenant: TenantContext = Depends(get_tenant),
    service: ProspectService = Depends(get_prospect_service),
) -> dict[str, Any]:
    prospect = await service.change_industry(tenant, prospect_id, body.industry)
    return prospect.model_dump(mode="json")


@router.post("/{prospect_id}/notes")
async def add_note(
    prospect_id: str,
    body: NoteRequest,
    tenant: TenantContext = Depends(get_tenant),
    service: ProspectService = Depends(get_prospect_service),
) -> dict[str, Any]:
    prospect = await service.add_note(tenant, prospect_id, body.note)
    return prospect.model_dump(mode="json")


@router.post("/{prospect_id}/revive")
async def revive_dead_lead(
    prospect_id: str,
    tenant: TenantContext = Depends(get_tenant),
    service: ProspectService = Depends(get_prospect_service),
) -> dict[str, Any]:
    prospect = await service.revive_dead_lead(tenant, prospect_id)
    return prospect.model_dump(mode="json")


@router.get("/{prospect_id}/activity")
async def prospect_activity(
    prospect_id: str,
    tenant: TenantContext = Depends(get_tenant),
    service: ProspectService = Depends(get_prospect_service),
) -> list[dict[str, Any]]:
    entries = await service.history(tenant, prospect_id)
    return [
        {
            "id": entry.id,
            "action_type": entry.action_type,
            "description": entry.description,
            "user": user,
            "created_at": entry.created_at.isoformat(),
        }
        for entry, user in entries
    ]


@router.delete("/{prospect_id}")
async def delete_prospect(
    prospect_id: str,
    tenant: TenantContext = Depends(get_tenant),
    service: ProspectService = Depends(get_prospect_service),
) -> Response:
    await service.delete_prospect(tenant, prospect_id)
    return Response(status_code=204)
