"""Sales material uploads: versioned objects under ``{startup}/{material}/v{n}.{ext}``."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from dealtracker.exceptions import (
    BackendError,
    InvalidInputError,
    RecordNotFoundError,
    StorageError,
)
from dealtracker.storage.object_store import material_key
from dealtracker.storage.repositories.materials import MaterialRepository
from dealtracker.types import ActivityType, MaterialType

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from dealtracker.audit.logger import ActivityRecorder
    from dealtracker.models.database import Material, MaterialVersion
    from dealtracker.storage.object_store import ObjectStore
    from dealtracker.web.tenant_context import TenantContext

logger = structlog.get_logger(__name__)


def parse_material_type(value: str) -> MaterialType:
    try:
        return MaterialType(value)
    except ValueError as exc:
        raise InvalidInputError(f"Unknown material type: {value}") from exc


class MaterialService:
    def __init__(
        self,
        engine: AsyncEngine,
        store: ObjectStore,
        recorder: ActivityRecorder,
        max_upload_bytes: int | None = None,
    ) -> None:
        self._materials = MaterialRepository(engine)
        self._store = store
        self._recorder = recorder
        self._max_upload_bytes = max_upload_bytes

    def _check_upload(self, file_name: str, data: bytes) -> str:
        file_name = file_name.strip().replace("/", "_").replace("\\", "_")
        if not file_name:
            raise InvalidInputError("A file is required")
        if not data:
            raise InvalidInputError("Uploaded file is empty")
        if self._max_upload_bytes is not None and len(data) > self._max_upload_bytes:
            raise InvalidInputError("Uploaded file is too large")
        return file_name

    async def list_materials(
        self, tenant: TenantContext
    ) -> list[tuple[Material, list[MaterialVersion]]]:
        return await self._materials.list_with_versions(tenant)

    async def create_material(
        self,
        tenant: TenantContext,
        *,
        name: str,
        material_type: str | MaterialType,
        notes: str | None,
        file_name: str,
        data: bytes,
    ) -> tuple[Material, MaterialVersion]:
        """Create a material together with its first uploaded version."""
        name = name.strip()
        if not name:
            raise InvalidInputError("Material name is required")
        kind = parse_material_type(material_type)
        file_name = self._check_upload(file_name, data)
        tenant.require_startup()

        material = await self._materials.create(tenant, name, kind, (notes or "").strip() or None)
        try:
            version = await self._store_version(tenant, material, file_name, data)
        except BackendError:
            await self._materials.delete(tenant, material.id)
            raise
        return material, version

    async def upload_version(
        self, tenant: TenantContext, material_id: str, *, file_name: str, data: bytes
    ) -> MaterialVersion:
        """Upload a new version numbered one past the highest stored version."""
        file_name = self._check_upload(file_name, data)
        material = await self._materials.get(tenant, material_id)
        if material is None:
            raise RecordNotFoundError("Material not found")
        return await self._store_version(tenant, material, file_name, data)

    async def _store_version(
        self, tenant: TenantContext, material: Material, file_name: str, data: bytes
    ) -> MaterialVersion:
        startup_id = tenant.require_startup()
        version = await self._materials.add_version(
            tenant,
            material.id,
            file_name=file_name,
            uploaded_by=tenant.principal_id,
            path_for=lambda n: material_key(startup_id, material.id, n, file_name),
        )
        if version is None:
            raise RecordNotFoundError("Material not found")
        try:
            await self._store.put(version.file_path, data)
        except StorageError:
            await self._materials.remove_version(version.id)
            raise

        await self._recorder.record(
            startup_id=startup_id,
            actor_id=tenant.principal_id,
            category=ActivityType.MATERIAL_UPLOADED,
            description=f"Uploaded {material.name} (v{version.version_number})",
            metadata={"material_id": material.id, "version": version.version_number},
        )
        logger.info(
            "material_uploaded",
            material_id=material.id,
            version=version.version_number,
            size=len(data),
        )
        return version

    async def download_version(self, tenant: TenantContext, version_id: str) -> tuple[str, bytes]:
        found = await self._materials.get_version(tenant, version_id)
        if found is None:
            raise RecordNotFoundError("File not found")
        _, version = found
        data = await self._store.get(version.file_path)
        if data is None:
            raise RecordNotFoundError("File not found")
        return version.file_name, data

    async def delete_material(self, tenant: TenantContext, material_id: str) -> None:
        """Remove the material, its version rows and every stored object."""
        paths = await self._materials.delete(tenant, material_id)
        if paths is None:
            raise RecordNotFoundError("Material not found")
        for path in paths:
            try:
                await self._store.delete(path)
            except StorageError:
                logger.warning("material_object_delete_failed", path=path)
