"""Pydantic schemas for orders and line items."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from services.market_service.models import (
    Currency,
    OrderStatus,
    ReceiptStatus,
    ReceiptVariant,
)
from services.market_service.schemas.catalog import RecipientResponse


class OrderItemInput(BaseModel):
    product_id: uuid.UUID = Field(
        ..., validation_alias=AliasChoices("product_id", "productId")
    )
    qty: int = Field(..., ge=1)


class OrderCreate(BaseModel):
    recipient_id: uuid.UUID = Field(
        ..., validation_alias=AliasChoices("recipient_id", "recipientId")
    )
    items: list[OrderItemInput] = Field(..., min_length=1)


class OrderUpdate(BaseModel):
    recipient_id: Optional[uuid.UUID] = Field(
        None, validation_alias=AliasChoices("recipient_id", "recipientId")
    )
    items: Optional[list[OrderItemInput]] = Field(None, min_length=1)


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    product_id: Optional[uuid.UUID] = None
    product_name: str
    unit_price_cents: int
    qty: int
    line_total_cents: int


class OrderReceiptSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    number: str
    status: ReceiptStatus
    variant: ReceiptVariant
    pdf_url: Optional[str] = None
    created_at: datetime


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    recipient_id: uuid.UUID
    status: OrderStatus
    subtotal_cents: int
    total_cents: int
    currency: Currency
    created_at: datetime
    updated_at: datetime
    recipient: Optional[RecipientResponse] = None
    items: list[OrderItemResponse] = []
    receipts: list[OrderReceiptSummary] = []
