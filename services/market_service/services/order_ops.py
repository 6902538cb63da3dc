"""Order engine: the draft → confirmed / cancelled state machine.

Amounts are recomputed from current catalog prices whenever the item set is
written, and snapshotted on the items. ``subtotal_cents == total_cents ==
sum(line_total_cents)`` holds after every write.
"""

import uuid
from typing import Optional

from fastapi import HTTPException, status
from libs.common.currency import line_total
from libs.common.logging import get_logger
from services.market_service.models import (
    Currency,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    Receipt,
)
from services.market_service.schemas import OrderCreate, OrderItemInput, OrderUpdate
from services.market_service.services.receipt_ops import delete_receipt_files_for_order
from services.market_service.services.recipient_ops import get_recipient
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)


def _order_query():
    return select(Order).options(
        selectinload(Order.recipient),
        selectinload(Order.items),
        selectinload(Order.receipts),
    )


async def _build_items(
    db: AsyncSession, items: list[OrderItemInput]
) -> tuple[list[OrderItem], int, Currency]:
    """Price ``items`` from the catalog. Returns ``(items, subtotal, currency)``."""
    if not items:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Order must contain at least one item",
        )

    product_ids = {item.product_id for item in items}
    result = await db.execute(select(Product).where(Product.id.in_(product_ids)))
    products = {product.id: product for product in result.scalars().all()}
    if len(products) < len(product_ids):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="One or more products not found",
        )

    currency = products[items[0].product_id].currency
    if any(product.currency != currency for product in products.values()):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "code": "MIXED_CURRENCY",
                "message": "All products in an order must share one currency",
            },
        )

    order_items = []
    subtotal = 0
    for position, item in enumerate(items):
        product = products[item.product_id]
        amount = line_total(product.sale_price_cents, item.qty)
        order_items.append(
            OrderItem(
                product_id=product.id,
                position=position,
                product_name=product.name,
                unit_price_cents=product.sale_price_cents,
                qty=item.qty,
                line_total_cents=amount,
            )
        )
        subtotal += amount
    return order_items, subtotal, currency


async def find_one(db: AsyncSession, *, order_id: uuid.UUID) -> Order:
    result = await db.execute(
        _order_query()
        .where(Order.id == order_id)
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Order with ID {order_id} not found",
        )
    return order


async def find_all(
    db: AsyncSession,
    *,
    offset: int = 0,
    limit: int = 10,
    status_filter: Optional[OrderStatus] = None,
) -> tuple[list[Order], int]:
    count_query = select(func.count(Order.id))
    query = _order_query()
    if status_filter:
        count_query = count_query.where(Order.status == status_filter)
        query = query.where(Order.status == status_filter)

    total = (await db.execute(count_query)).scalar_one()
    result = await db.execute(
        query.order_by(Order.created_at.desc(), Order.id).offset(offset).limit(limit)
    )
    return list(result.scalars().all()), total


async def create_order(db: AsyncSession, *, data: OrderCreate) -> Order:
    await get_recipient(db, recipient_id=data.recipient_id)
    items, subtotal, currency = await _build_items(db, data.items)

    order = Order(
        recipient_id=data.recipient_id,
        status=OrderStatus.DRAFT,
        subtotal_cents=subtotal,
        total_cents=subtotal,
        currency=currency,
        items=items,
    )
    db.add(order)
    await db.commit()

    logger.info(
        "Created order %s for recipient %s (%d items, total=%d)",
        order.id,
        data.recipient_id,
        len(items),
        subtotal,
    )
    return await find_one(db, order_id=order.id)


async def update_order(
    db: AsyncSession, *, order_id: uuid.UUID, data: OrderUpdate
) -> Order:
    """Edit a draft order's recipient and/or replace its whole item set."""
    order = await find_one(db, order_id=order_id)
    if order.status != OrderStatus.DRAFT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only draft orders can be updated",
        )

    if data.recipient_id is not None:
        await get_recipient(db, recipient_id=data.recipient_id)
        order.recipient_id = data.recipient_id

    if data.items is not None:
        items, subtotal, currency = await _build_items(db, data.items)
        # Delete the old rows before inserting replacements
        order.items.clear()
        await db.flush()
        order.items.extend(items)
        order.subtotal_cents = subtotal
        order.total_cents = subtotal
        order.currency = currency

    await db.commit()
    logger.info("Updated order %s", order_id)
    return await find_one(db, order_id=order_id)


async def confirm_order(db: AsyncSession, *, order_id: uuid.UUID) -> Order:
    order = await find_one(db, order_id=order_id)
    if order.status != OrderStatus.DRAFT:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only draft orders can be confirmed",
        )
    order.status = OrderStatus.CONFIRMED
    await db.commit()
    logger.info("Confirmed order %s", order_id)
    return await find_one(db, order_id=order_id)


async def cancel_order(db: AsyncSession, *, order_id: uuid.UUID) -> Order:
    order = await find_one(db, order_id=order_id)
    if order.status == OrderStatus.CANCELLED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Order is already cancelled",
        )
    order.status = OrderStatus.CANCELLED
    await db.commit()
    logger.info("Cancelled order %s", order_id)
    return await find_one(db, order_id=order_id)


async def remove_order(db: AsyncSession, *, order_id: uuid.UUID) -> None:
    """Delete an order in any status with its items and receipts."""
    await find_one(db, order_id=order_id)

    await delete_receipt_files_for_order(db, order_id=order_id)
    await db.execute(delete(Receipt).where(Receipt.order_id == order_id))
    await db.execute(delete(OrderItem).where(OrderItem.order_id == order_id))
    await db.execute(delete(Order).where(Order.id == order_id))
    await db.commit()
    logger.info("Deleted order %s", order_id)
