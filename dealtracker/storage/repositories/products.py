"""Tenant-scoped product repository."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from sqlmodel import col, select

from dealtracker.models.database import Product
from dealtracker.storage.database import session_scope

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from dealtracker.web.tenant_context import TenantContext

logger = structlog.get_logger(__name__)


class ProductRepository:
    def __init__(self, engine: AsyncEngine) -> None:
        self._engine = engine

    async def list_all(self, tenant: TenantContext) -> list[Product]:
        if not tenant.has_tenant:
            return []
        async with session_scope(self._engine) as session:
            stmt = (
                select(Product)
                .where(col(Product.startup_id) == tenant.startup_id)
                .order_by(col(Product.created_at).desc())
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())

    async def create(
        self,
        tenant: TenantContext,
        name: str,
        description: str | None = None,
        pricing: str | None = None,
    ) -> Product:
        startup_id = tenant.require_startup()
        async with session_scope(self._engine) as session:
            product = Product(
                startup_id=startup_id, name=name, description=description, pricing=pricing
            )
            session.add(product)
            await session.commit()
            logger.info("product_created", id=product.id, startup_id=startup_id)
            return product

    async def update(
        self,
        tenant: TenantContext,
        product_id: str,
        name: str,
        description: str | None = None,
        pricing: str | None = None,
    ) -> Product | None:
        startup_id = tenant.require_startup()
        async with session_scope(self._engine) as session:
            stmt = select(Product).where(
                col(Product.id) == product_id, col(Product.startup_id) == startup_id
            )
            product = (await session.execute(stmt)).scalars().first()
            if not product:
                return None
            product.name = name
            product.description = description
            product.pricing = pricing
            session.add(product)
            await session.commit()
            logger.info("product_updated", id=product_id)
            return product

    async def delete(self, tenant: TenantContext, product_id: str) -> bool:
        startup_id = tenant.require_startup()
        async with session_scope(self._engine) as session:
            stmt = select(Product).where(
                col(Product.id) == product_id, col(Product.startup_id) == startup_id
            )
            product = (await session.execute(stmt)).scalars().first()
            if not product:
                return False
            await session.delete(product)
            await session.commit()
            logger.info("product_deleted", id=product_id)
            return True
