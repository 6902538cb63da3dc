"""
Model factories for creating valid test data.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    product = ProductFactory.create(sale_price_cents=1500)
    db_session.add(product)
    await db_session.commit()
"""

import uuid
from datetime import datetime, timezone

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _uuid() -> uuid.UUID:
    return uuid.uuid4()


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _unique_email() -> str:
    return f"test-{uuid.uuid4().hex[:8]}@test.com"


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class ProductFactory:
    @staticmethod
    def create(**overrides):
        from services.market_service.models import Currency, Product

        defaults = {
            "id": _uuid(),
            "name": f"Product {uuid.uuid4().hex[:6]}",
            "purchase_price_cents": 1000,
            "sale_price_cents": 2500,
            "currency": Currency.UAH,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Product(**defaults)


class RecipientFactory:
    @staticmethod
    def create(**overrides):
        from services.market_service.models import Recipient

        defaults = {
            "id": _uuid(),
            "name": "Test Recipient",
            "email": _unique_email(),
            "phone": "+380501234567",
            "address": "Kyiv, Khreshchatyk 1",
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Recipient(**defaults)


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------


class OrderFactory:
    """Builds an order priced from ``lines``: [(product, qty), ...]."""

    @staticmethod
    def create(recipient, lines=(), **overrides):
        from services.market_service.models import (
            Currency,
            Order,
            OrderItem,
            OrderStatus,
        )

        items = [
            OrderItem(
                id=_uuid(),
                product_id=product.id,
                position=position,
                product_name=product.name,
                unit_price_cents=product.sale_price_cents,
                qty=qty,
                line_total_cents=product.sale_price_cents * qty,
            )
            for position, (product, qty) in enumerate(lines)
        ]
        subtotal = sum(item.line_total_cents for item in items)
        defaults = {
            "id": _uuid(),
            "recipient_id": recipient.id,
            "status": OrderStatus.DRAFT,
            "subtotal_cents": subtotal,
            "total_cents": subtotal,
            "currency": Currency.UAH,
            "created_at": _now(),
            "updated_at": _now(),
            "items": items,
        }
        defaults.update(overrides)
        return Order(**defaults)


# ---------------------------------------------------------------------------
# Receipts
# ---------------------------------------------------------------------------


class ReceiptFactory:
    @staticmethod
    def create(order_id, **overrides):
        from services.market_service.models import (
            Receipt,
            ReceiptStatus,
            ReceiptVariant,
        )

        defaults = {
            "id": _uuid(),
            "order_id": order_id,
            "number": f"{_now().year}-{uuid.uuid4().int % 1_000_000:06d}",
            "variant": ReceiptVariant.DEFAULT,
            "pdf_url": None,
            "pdf_path": None,
            "hash": None,
            "status": ReceiptStatus.GENERATED,
            "created_at": _now(),
        }
        defaults.update(overrides)
        return Receipt(**defaults)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class UserFactory:
    @staticmethod
    def create(**overrides):
        from services.market_service.models import User

        defaults = {
            "id": _uuid(),
            "email": _unique_email(),
            "password_hash": "not-a-bcrypt-hash",
            "first_name": "Test",
            "last_name": "Operator",
            "is_active": True,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return User(**defaults)
