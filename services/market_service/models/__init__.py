"""Market service models package."""

from services.market_service.models.auth import User
from services.market_service.models.catalog import Product, Recipient
from services.market_service.models.commerce import (
    Order,
    OrderItem,
    Receipt,
    ReceiptCounter,
)
from services.market_service.models.enums import (
    Currency,
    OrderStatus,
    ReceiptStatus,
    ReceiptVariant,
)

__all__ = [
    "Currency",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Product",
    "Receipt",
    "ReceiptCounter",
    "ReceiptStatus",
    "ReceiptVariant",
    "Recipient",
    "User",
]
