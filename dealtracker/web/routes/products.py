"""Product CRUD API routes."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncEngine

from dealtracker.exceptions import RecordNotFoundError
from dealtracker.storage.repositories.products import ProductRepository
from dealtracker.web.auth.tenancy import get_tenant
from dealtracker.web.dependencies import get_db_engine
from dealtracker.web.tenant_context import TenantContext

router = APIRouter(prefix="/api/products", tags=["products"])


class ProductRequest(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    pricing: str | None = None


@router.get("")
async def list_products(
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
) -> list[dict[str, Any]]:
    products = await ProductRepository(engine).list_all(tenant)
    return [p.model_dump(mode="json") for p in products]


@router.post("", status_code=201)
async def create_product(
    body: ProductRequest,
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
) -> dict[str, Any]:
    product = await ProductRepository(engine).create(
        tenant, body.name.strip(), body.description, body.pricing
    )
    return product.model_dump(mode="json")


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    body: ProductRequest,
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
) -> dict[str, Any]:
    product = await ProductRepository(engine).update(
        tenant, product_id, body.name.strip(), body.description, body.pricing
    )
    if not product:
        raise RecordNotFoundError("Product not found")
    return product.model_dump(mode="json")


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    tenant: TenantContext = Depends(get_tenant),
    engine: AsyncEngine = Depends(get_db_engine),
) -> Response:
    if not await ProductRepository(engine).delete(tenant, product_id):
        raise RecordNotFoundError("Product not found")
    return Response(status_code=204)
