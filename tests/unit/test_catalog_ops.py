"""Unit tests for product and recipient operations."""

import uuid

import pytest
from fastapi import HTTPException
from pydantic import ValidationError
from services.market_service.models import OrderItem, OrderStatus, Product, Recipient
from services.market_service.schemas import (
    ProductCreate,
    ProductUpdate,
    RecipientCreate,
    RecipientUpdate,
)
from services.market_service.services import order_ops, product_ops, recipient_ops
from sqlalchemy import select
from tests.factories import OrderFactory, ProductFactory, RecipientFactory

# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_and_list_products(db_session):
    for name in ("Tea", "Coffee", "Cocoa"):
        await product_ops.create_product(
            db_session,
            data=ProductCreate(
                name=name, purchase_price_cents=100, sale_price_cents=250
            ),
        )

    page, total = await product_ops.list_products(db_session, offset=1, limit=1)

    assert total == 3
    assert len(page) == 1


def test_product_prices_must_be_non_negative():
    with pytest.raises(ValidationError):
        ProductCreate(name="Broken", purchase_price_cents=-1, sale_price_cents=10)


def test_product_currency_is_a_closed_set():
    with pytest.raises(ValidationError):
        ProductCreate(
            name="Dollar item",
            purchase_price_cents=1,
            sale_price_cents=2,
            currency="USD",
        )


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_product_is_partial(db_session):
    product = ProductFactory.create(name="Old", sale_price_cents=500)
    db_session.add(product)
    await db_session.commit()

    updated = await product_ops.update_product(
        db_session, product_id=product.id, data=ProductUpdate(name="New")
    )

    assert updated.name == "New"
    assert updated.sale_price_cents == 500


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_missing_product(db_session):
    with pytest.raises(HTTPException) as exc_info:
        await product_ops.get_product(db_session, product_id=uuid.uuid4())

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delete_product_used_by_confirmed_order_fails(db_session, catalog):
    product_a, _, recipient = catalog
    db_session.add(
        OrderFactory.create(recipient, [(product_a, 1)], status=OrderStatus.CONFIRMED)
    )
    await db_session.commit()

    with pytest.raises(HTTPException) as exc_info:
        await product_ops.delete_product(db_session, product_id=product_a.id)

    assert exc_info.value.status_code == 400
    assert await db_session.get(Product, product_a.id) is not None


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delete_product_used_only_by_draft_keeps_order_snapshot(
    db_session, catalog
):
    product_a, _, recipient = catalog
    order = OrderFactory.create(recipient, [(product_a, 2)])
    cancelled = OrderFactory.create(
        recipient, [(product_a, 1)], status=OrderStatus.CANCELLED
    )
    db_session.add_all([order, cancelled])
    await db_session.commit()

    await product_ops.delete_product(db_session, product_id=product_a.id)

    items = (await db_session.execute(select(OrderItem))).scalars().all()
    assert len(items) == 2
    assert all(item.product_id is None for item in items)
    reloaded = await order_ops.find_one(db_session, order_id=order.id)
    assert reloaded.items[0].product_name == "Product A"
    assert reloaded.total_cents == 19800


# ---------------------------------------------------------------------------
# Recipients
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_create_recipient_with_contacts(db_session):
    recipient = await recipient_ops.create_recipient(
        db_session,
        data=RecipientCreate(
            name="Olena", email="olena@example.com", phone="+380671112233"
        ),
    )

    assert recipient.id is not None
    assert recipient.address is None


def test_recipient_email_is_validated():
    with pytest.raises(ValidationError):
        RecipientCreate(name="Bad", email="not-an-email")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_update_recipient_clears_optional_field(db_session):
    recipient = RecipientFactory.create()
    db_session.add(recipient)
    await db_session.commit()

    updated = await recipient_ops.update_recipient(
        db_session,
        recipient_id=recipient.id,
        data=RecipientUpdate(phone=None, name=None),
    )

    assert updated.phone is None
    assert updated.name == "Test Recipient"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delete_recipient_with_orders_fails(db_session, catalog):
    product_a, _, recipient = catalog
    db_session.add(
        OrderFactory.create(recipient, [(product_a, 1)], status=OrderStatus.CANCELLED)
    )
    await db_session.commit()

    with pytest.raises(HTTPException) as exc_info:
        await recipient_ops.delete_recipient(db_session, recipient_id=recipient.id)

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
@pytest.mark.unit
async def test_delete_recipient_without_orders(db_session):
    recipient = RecipientFactory.create()
    db_session.add(recipient)
    await db_session.commit()

    await recipient_ops.delete_recipient(db_session, recipient_id=recipient.id)

    result = await db_session.execute(
        select(Recipient).where(Recipient.id == recipient.id)
    )
    assert result.scalar_one_or_none() is None
