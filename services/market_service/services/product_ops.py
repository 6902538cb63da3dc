"""Product catalog operations."""

import uuid

from fastapi import HTTPException, status
from libs.common.logging import get_logger
from services.market_service.models import Order, OrderItem, OrderStatus, Product
from services.market_service.schemas import ProductCreate, ProductUpdate
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def create_product(db: AsyncSession, *, data: ProductCreate) -> Product:
    product = Product(**data.model_dump())
    db.add(product)
    await db.commit()
    await db.refresh(product)
    logger.info("Created product %s (%s)", product.id, product.name)
    return product


async def list_products(
    db: AsyncSession, *, offset: int = 0, limit: int = 10
) -> tuple[list[Product], int]:
    total = (await db.execute(select(func.count(Product.id)))).scalar_one()
    result = await db.execute(
        select(Product)
        .order_by(Product.created_at.desc(), Product.id)
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def get_product(db: AsyncSession, *, product_id: uuid.UUID) -> Product:
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Product with ID {product_id} not found",
        )
    return product


async def update_product(
    db: AsyncSession, *, product_id: uuid.UUID, data: ProductUpdate
) -> Product:
    """Apply a partial update. Existing order items keep their snapshots."""
    product = await get_product(db, product_id=product_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(product, field, value)
    await db.commit()
    await db.refresh(product)
    return product


async def delete_product(db: AsyncSession, *, product_id: uuid.UUID) -> None:
    """Delete a product unless a confirmed order still references it.

    Items on draft and cancelled orders keep their name/price snapshot and
    lose only the product link.
    """
    product = await get_product(db, product_id=product_id)

    in_use = await db.execute(
        select(func.count(OrderItem.id))
        .join(Order, Order.id == OrderItem.order_id)
        .where(
            OrderItem.product_id == product_id,
            Order.status == OrderStatus.CONFIRMED,
        )
    )
    if in_use.scalar_one() > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete product that is used in confirmed orders",
        )

    await db.execute(
        update(OrderItem)
        .where(OrderItem.product_id == product_id)
        .values(product_id=None)
    )
    await db.execute(delete(Product).where(Product.id == product.id))
    await db.commit()
    logger.info("Deleted product %s", product_id)
