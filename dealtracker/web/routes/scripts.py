"""Sales script API routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncEngine

from dealtracker.exceptions import RecordNotFoundError
from dealtracker.storage.repositories.sales_scripts import SalesScriptRepository
from dealtracker.types import ScriptChannel
from dealtracker.web.auth.tenancy import get_tenant
from dealtracker.web.dependencies import get_db_engine
from dealtracker.web.tenant_context import TenantContext

router = APIRouter(prefix="/api/sales-scripts", tags=["sales-scripts"])


class ScriptRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)
    channel: ScriptChannel = ScriptChannel.EMAIL


@router.get("")
async def list_scripts(
    channel: ScriptChannel | None = None,
    q: str = "",
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
) -> list[dict[str, Any]]:
    scripts = await SalesScriptRepository(engine).list_all(tenant, channel=channel, search=q)
    return [s.model_dump(mode="json") for s in scripts]


@router.post("", status_code=201)
async def create_script(
    body: ScriptRequest,
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
) -> dict[str, Any]:
    script = await SalesScriptRepository(engine).create(
        tenant, body.title.strip(), body.content, body.channel
    )
    return script.model_dump(mode="json")


@router.put("/{script_id}")
async def update_script(
    script_id: str,
    body: ScriptRequest,
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
) -> dict[str, Any]:
    script = await SalesScriptRepository(engine).update(
        tenant, script_id, body.title.strip(), body.content, body.channel
    )
    if not script:
        raise RecordNotFoundError("Sales script not found")
    return script.model_dump(mode="json")


@router.delete("/{script_id}")
async def delete_script(
    script_id: str,
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
) -> Response:
    if not await SalesScriptRepository(engine).delete(tenant, script_id):
        raise RecordNotFoundError("Sales script not found")
    return Response(status_code=204)
