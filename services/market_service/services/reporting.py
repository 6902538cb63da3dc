"""Revenue reports over confirmed orders.

"Revenue" here is margin: ``(unit_price_cents - purchase_price_cents) * qty``,
using the sale price snapshotted on the item and the product's current
purchase price. Items whose product has since been deleted drop out.
"""

from datetime import datetime
from typing import Optional

from libs.common.currency import DEFAULT_CURRENCY
from services.market_service.models import (
    Order,
    OrderItem,
    OrderStatus,
    Product,
    Recipient,
)
from services.market_service.schemas import (
    ProductRevenue,
    RecipientRevenue,
    TotalRevenue,
)
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

_margin = (OrderItem.unit_price_cents - Product.purchase_price_cents) * OrderItem.qty


def _confirmed_in_range(
    query, start_date: Optional[datetime], end_date: Optional[datetime]
):
    query = query.where(Order.status == OrderStatus.CONFIRMED)
    if start_date:
        query = query.where(Order.created_at >= start_date)
    if end_date:
        query = query.where(Order.created_at <= end_date)
    return query


async def revenue_by_product(
    db: AsyncSession,
    *,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> list[ProductRevenue]:
    revenue = func.sum(_margin).label("total_revenue_cents")
    query = (
        select(
            Product.id,
            Product.name,
            revenue,
            func.sum(OrderItem.qty).label("total_quantity"),
            Order.currency,
        )
        .select_from(OrderItem)
        .join(Order, Order.id == OrderItem.order_id)
        .join(Product, Product.id == OrderItem.product_id)
        .group_by(Product.id, Product.name, Order.currency)
        .order_by(revenue.desc())
    )
    result = await db.execute(_confirmed_in_range(query, start_date, end_date))
    return [
        ProductRevenue(
            product_id=row.id,
            product_name=row.name,
            total_revenue_cents=int(row.total_revenue_cents or 0),
            total_quantity=int(row.total_quantity or 0),
            currency=row.currency,
        )
        for row in result.all()
    ]


async def revenue_by_recipient(
    db: AsyncSession,
    *,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> list[RecipientRevenue]:
    revenue = func.sum(_margin).label("total_revenue_cents")
    query = (
        select(
            Recipient.id,
            Recipient.name,
            revenue,
            func.count(func.distinct(Order.id)).label("total_orders"),
            Order.currency,
        )
        .select_from(OrderItem)
        .join(Order, Order.id == OrderItem.order_id)
        .join(Product, Product.id == OrderItem.product_id)
        .join(Recipient, Recipient.id == Order.recipient_id)
        .group_by(Recipient.id, Recipient.name, Order.currency)
        .order_by(revenue.desc())
    )
    result = await db.execute(_confirmed_in_range(query, start_date, end_date))
    return [
        RecipientRevenue(
            recipient_id=row.id,
            recipient_name=row.name,
            total_revenue_cents=int(row.total_revenue_cents or 0),
            total_orders=int(row.total_orders or 0),
            currency=row.currency,
        )
        for row in result.all()
    ]


async def total_revenue(
    db: AsyncSession,
    *,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> TotalRevenue:
    """Aggregate margin across confirmed orders; zero when there are none."""
    query = (
        select(
            func.sum(_margin).label("total_revenue_cents"),
            func.count(func.distinct(Order.id)).label("total_orders"),
            Order.currency,
        )
        .select_from(OrderItem)
        .join(Order, Order.id == OrderItem.order_id)
        .join(Product, Product.id == OrderItem.product_id)
        .group_by(Order.currency)
        .order_by(Order.currency)
    )
    result = await db.execute(_confirmed_in_range(query, start_date, end_date))
    row = result.first()
    if row is None:
        return TotalRevenue(
            total_revenue_cents=0, total_orders=0, currency=DEFAULT_CURRENCY
        )
    return TotalRevenue(
        total_revenue_cents=int(row.total_revenue_cents or 0),
        total_orders=int(row.total_orders or 0),
        currency=row.currency,
    )
