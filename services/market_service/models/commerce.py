"""Commerce models: orders, line items, receipts and the receipt counter.

Domain rules kept at the schema level:
- order_items snapshot product name and sale price at order-write time
- one live (``generated``) receipt per order, enforced by a partial unique index
- receipt numbers are unique across all receipts
"""

import uuid
from datetime import datetime
from typing import Optional

from libs.common.datetime_utils import utc_now
from libs.db.base import Base
from services.market_service.models.enums import (
    Currency,
    OrderStatus,
    ReceiptStatus,
    ReceiptVariant,
    enum_values,
)
from sqlalchemy import BigInteger, CheckConstraint, DateTime
from sqlalchemy import Enum as SAEnum
from sqlalchemy import ForeignKey, Index, Integer, String, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

# ============================================================================
# ORDERS
# ============================================================================


class Order(Base):
    """A recipient's order. Totals always equal the sum of its items."""

    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("recipients.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(
            OrderStatus,
            values_callable=enum_values,
            name="order_status_enum",
            native_enum=False,
            length=20,
        ),
        default=OrderStatus.DRAFT,
        nullable=False,
        index=True,
    )

    # Money snapshot (cents). No tax/discount layer: total == subtotal.
    subtotal_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    currency: Mapped[Currency] = mapped_column(
        SAEnum(
            Currency,
            values_callable=enum_values,
            name="currency_enum",
            native_enum=False,
            length=3,
        ),
        default=Currency.UAH,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    # Relationships
    recipient = relationship("Recipient", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
    )
    receipts = relationship("Receipt", back_populates="order")

    def __repr__(self):
        return f"<Order {self.id} {self.status.value}>"


class OrderItem(Base):
    """Line item with the product's name and sale price captured at order time."""

    __tablename__ = "order_items"
    __table_args__ = (CheckConstraint("qty >= 1", name="qty_positive"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # NULL once the product is deleted; the snapshot below stays valid
    product_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    product_name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    qty: Mapped[int] = mapped_column(Integer, nullable=False)
    line_total_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # Relationships
    order = relationship("Order", back_populates="items")
    product = relationship("Product", back_populates="order_items")

    def __repr__(self):
        return f"<OrderItem {self.product_name} x{self.qty}>"


# ============================================================================
# RECEIPTS
# ============================================================================


class Receipt(Base):
    """Numbered PDF proof of purchase for a confirmed order."""

    __tablename__ = "receipts"
    __table_args__ = (
        Index(
            "uq_receipts_order_id_generated",
            "order_id",
            unique=True,
            postgresql_where=text("status = 'generated'"),
            sqlite_where=text("status = 'generated'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )

    number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    variant: Mapped[ReceiptVariant] = mapped_column(
        SAEnum(
            ReceiptVariant,
            values_callable=enum_values,
            name="receipt_variant_enum",
            native_enum=False,
            length=20,
        ),
        default=ReceiptVariant.DEFAULT,
        nullable=False,
    )
    pdf_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    pdf_path: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    status: Mapped[ReceiptStatus] = mapped_column(
        SAEnum(
            ReceiptStatus,
            values_callable=enum_values,
            name="receipt_status_enum",
            native_enum=False,
            length=20,
        ),
        default=ReceiptStatus.GENERATED,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, index=True
    )

    # Relationships
    order = relationship("Order", back_populates="receipts")

    def __repr__(self):
        return f"<Receipt {self.number}>"


class ReceiptCounter(Base):
    """Per-year receipt sequence. Rows are incremented atomically, never read-then-written."""

    __tablename__ = "receipt_counters"

    year: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    last_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
