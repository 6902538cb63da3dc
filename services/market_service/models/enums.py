"""Enum definitions for market service models."""

import enum

from libs.common.currency import Currency


def enum_values(enum_cls):
    """Return persistent DB values for SAEnum mappings."""
    return [member.value for member in enum_cls]


class OrderStatus(str, enum.Enum):
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class ReceiptStatus(str, enum.Enum):
    GENERATED = "generated"
    VOID = "void"


class ReceiptVariant(str, enum.Enum):
    DEFAULT = "default"
    COMPACT = "compact"
    STANDARD = "standard"


__all__ = [
    "Currency",
    "OrderStatus",
    "ReceiptStatus",
    "ReceiptVariant",
    "enum_values",
]
