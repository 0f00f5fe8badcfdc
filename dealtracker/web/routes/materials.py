"""Sales material routes: multipart upload, version upload, download, delete."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response

from dealtracker.config.settings import get_settings
from dealtracker.exceptions import InvalidInputError
from dealtracker.services.materials import MaterialService
from dealtracker.web.auth.tenancy import get_tenant
from dealtracker.web.dependencies import get_material_service
from dealtracker.web.tenant_context import TenantContext

router = APIRouter(prefix="/api/materials", tags=["materials"])

CHUNK_SIZE = 64 * 1024


async def read_upload(file: UploadFile, limit: int) -> bytes:
    """Read an upload, stopping as soon as it grows past ``limit`` bytes."""
    if file.size is not None and file.size > limit:
        raise InvalidInputError("Uploaded file is too large")
    chunks: list[bytes] = []
    total = 0
    while chunk := await file.read(CHUNK_SIZE):
        total += len(chunk)
        if total > limit:
            raise InvalidInputError("Uploaded file is too large")
        chunks.append(chunk)
    return b"".join(chunks)


@router.get("")
async def list_materials(
    tenant: TenantContext = Depends(get_tenant),
    service: MaterialService = Depends(get_material_service),
) -> list[dict[str, Any]]:
    rows = await service.list_materials(tenant)
    return [
        {**material.model_dump(mode="json"), "versions": [v.model_dump(mode="json") for v in versions]}
        for material, versions in rows
    ]


@router.post("", status_code=201)
async def create_material(
    name: str = Form(...),
    type: str = Form("other"),  # noqa: A002
    notes: str | None = Form(None),
    file: UploadFile = File(...),
    tenant: TenantContext = Depends(get_tenant),
    service: MaterialService = Depends(get_material_service),
) -> dict[str, Any]:
    data = await read_upload(file, get_settings().max_upload_bytes)
    material, version = await service.create_material(
        tenant,
        name=name,
        material_type=type,
        notes=notes,
        file_name=file.filename or "",
        data=data,
    )
    return {**material.model_dump(mode="json"), "versions": [version.model_dump(mode="json")]}


@router.post("/{material_id}/versions", status_code=201)
async def upload_version(
    material_id: str,
    file: UploadFile = File(...),
    tenant: TenantContext = Depends(get_tenant),
    service: MaterialService = Depends(get_material_service),
) -> dict[str, Any]:
    data = await read_upload(file, get_settings().max_upload_bytes)
    version = await service.upload_version(
        tenant, material_id, file_name=file.filename or "", data=data
    )
    return version.model_dump(mode="json")


@router.get("/versions/{version_id}/download")
async def download_version(
    version_id: str,
    tenant: TenantContext = Depends(get_tenant),
    service: MaterialService = Depends(get_material_service),
) -> Response:
    file_name, data = await service.download_version(tenant, version_id)
    return Response(
        content=data,
        media_type="application/octet-stream",
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(file_name)}"},
    )


@router.delete("/{material_id}")
async def delete_material(
    material_id: str,
    tenant: TenantContext = Depends(get_tenant),
    service: MaterialService = Depends(get_material_service),
) -> Response:
    await service.delete_material(tenant, material_id)
    return Response(status_code=204)
