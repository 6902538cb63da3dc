"""Product and recipient CRUD endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.market_service.schemas import (
    Page,
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    RecipientCreate,
    RecipientResponse,
    RecipientUpdate,
)
from services.market_service.schemas.common import DEFAULT_LIMIT, MAX_LIMIT
from services.market_service.services import product_ops, recipient_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["catalog"])


# ============================================================================
# PRODUCTS
# ============================================================================


@router.post(
    "/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED
)
async def create_product(
    product_in: ProductCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await product_ops.create_product(db, data=product_in)


@router.get("/products", response_model=Page[ProductResponse])
async def list_products(
    offset: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """List products, newest first."""
    products, total = await product_ops.list_products(db, offset=offset, limit=limit)
    return {"data": products, "total": total, "offset": offset, "limit": limit}


@router.get("/products/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await product_ops.get_product(db, product_id=product_id)


@router.patch("/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    product_in: ProductUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Update a product. Existing orders keep the prices they were placed at."""
    return await product_ops.update_product(db, product_id=product_id, data=product_in)


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a product that no confirmed order uses."""
    await product_ops.delete_product(db, product_id=product_id)


# ============================================================================
# RECIPIENTS
# ============================================================================


@router.post(
    "/recipients",
    response_model=RecipientResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_recipient(
    recipient_in: RecipientCreate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await recipient_ops.create_recipient(db, data=recipient_in)


@router.get("/recipients", response_model=Page[RecipientResponse])
async def list_recipients(
    offset: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    recipients, total = await recipient_ops.list_recipients(
        db, offset=offset, limit=limit
    )
    return {"data": recipients, "total": total, "offset": offset, "limit": limit}


@router.get("/recipients/{recipient_id}", response_model=RecipientResponse)
async def get_recipient(
    recipient_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await recipient_ops.get_recipient(db, recipient_id=recipient_id)


@router.patch("/recipients/{recipient_id}", response_model=RecipientResponse)
async def update_recipient(
    recipient_id: uuid.UUID,
    recipient_in: RecipientUpdate,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await recipient_ops.update_recipient(
        db, recipient_id=recipient_id, data=recipient_in
    )


@router.delete("/recipients/{recipient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recipient(
    recipient_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a recipient that has no orders."""
    await recipient_ops.delete_recipient(db, recipient_id=recipient_id)
