"""Tenant-scoped sales material repository with per-material version numbering."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING

import structlog
from sqlmodel import col, delete, func, select

from dealtracker.models.database import Material, MaterialVersion
from dealtracker.storage.database import session_scope

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from dealtracker.types import MaterialType
    from dealtracker.web.tenant_context import TenantContext

logger = structlog.get_logger(__name__)


class MaterialRepository:
    """Materials and their uploaded versions.

    Versions have no ``startup_id`` column of their own; every version
    lookup joins through its material so the tenant filter still applies.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def list_with_versions(
        self, tenant: TenantContext
    ) -> list[tuple[Material, list[MaterialVersion]]]:
        """Materials newest first, each with its versions highest number first."""
        if not tenant.has_tenant:
            return []
        async with session_scope(self._engine) as session:
            stmt = (
                select(Material)
                .where(col(Material.startup_id) == tenant.startup_id)
                .order_by(col(Material.created_at).desc())
            )
            materials = list((await session.execute(stmt)).scalars().all())
            if not materials:
                return []
            version_stmt = (
                select(MaterialVersion)
                .where(col(MaterialVersion.material_id).in_([m.id for m in materials]))
                .order_by(col(MaterialVersion.version_number).desc())
            )
            versions = (await session.execute(version_stmt)).scalars().all()

        by_material: dict[str, list[MaterialVersion]] = {}
        for version in versions:
            by_material.setdefault(version.material_id, []).append(version)
        return [(m, by_material.get(m.id, [])) for m in materials]

    async def get(self, tenant: TenantContext, material_id: str) -> Material | None:
        if not tenant.has_tenant:
            return None
        async with session_scope(self._engine) as session:
            stmt = select(Material).where(
                col(Material.id) == material_id,
                col(Material.startup_id) == tenant.startup_id,
            )
            return (await session.execute(stmt)).scalars().first()

    async def create(
        self, tenant: TenantContext, name: str, material_type: MaterialType, notes: str | None
    ) -> Material:
        startup_id = tenant.require_startup()
        async with session_scope(self._engine) as session:
            material = Material(
                startup_id=startup_id, name=name, type=material_type.value, notes=notes
            )
            session.add(material)
            await session.commit()
            logger.info("material_created", id=material.id, startup_id=startup_id)
            return material

    async def add_version(
        self,
        tenant: TenantContext,
        material_id: str,
        file_name: str,
        uploaded_by: str,
        path_for: Callable[[int], str],
    ) -> MaterialVersion | None:
        """Insert the next version row (stored max + 1) for a material in this tenant.

        ``path_for`` maps the allocated version number to its storage key. The
        unique (material_id, version_number) constraint rejects a concurrent
        duplicate allocation, which surfaces as ``BackendError``.
        """
        startup_id = tenant.require_startup()
        async with session_scope(self._engine) as session:
            owner_stmt = select(Material.id).where(
                col(Material.id) == material_id, col(Material.startup_id) == startup_id
            )
            if (await session.execute(owner_stmt)).scalars().first() is None:
                return None
            max_stmt = select(func.max(MaterialVersion.version_number)).where(
                col(MaterialVersion.material_id) == material_id
            )
            number = ((await session.execute(max_stmt)).scalar_one_or_none() or 0) + 1
            version = MaterialVersion(
                material_id=material_id,
                version_number=number,
                file_path=path_for(number),
                file_name=file_name,
                uploaded_by=uploaded_by,
            )
            session.add(version)
            await session.commit()
            logger.info("material_version_added", material_id=material_id, version=number)
            return version

    async def remove_version(self, version_id: str) -> None:
        """Drop a version row whose object upload failed."""
        async with session_scope(self._engine) as session:
            await session.execute(delete(MaterialVersion).where(col(MaterialVersion.id) == version_id))
            await session.commit()

    async def get_version(
        self, tenant: TenantContext, version_id: str
    ) -> tuple[Material, MaterialVersion] | None:
        if not tenant.has_tenant:
            return None
        async with session_scope(self._engine) as session:
            stmt = (
                select(Material, MaterialVersion)
                .join(MaterialVersion, col(MaterialVersion.material_id) == col(Material.id))
                .where(
                    col(MaterialVersion.id) == version_id,
                    col(Material.startup_id) == tenant.startup_id,
                )
            )
            row = (await session.execute(stmt)).first()
            if row is None:
                return None
            material, version = row
            return material, version

    async def delete(self, tenant: TenantContext, material_id: str) -> list[str] | None:
        """Delete a material and its version rows, returning the storage keys to remove."""
        startup_id = tenant.require_startup()
        async with session_scope(self._engine) as session:
            stmt = select(Material).where(
                col(Material.id) == material_id, col(Material.startup_id) == startup_id
            )
            material = (await session.execute(stmt)).scalars().first()
            if not material:
                return None
            paths_stmt = select(MaterialVersion.file_path).where(
                col(MaterialVersion.material_id) == material_id
            )
            paths = [p for (p,) in (await session.execute(paths_stmt)).all()]
            await session.execute(
                delete(MaterialVersion).where(col(MaterialVersion.material_id) == material_id)
            )
            await session.delete(material)
            await session.commit()
            logger.info("material_deleted", id=material_id, versions=len(paths))
            return paths
