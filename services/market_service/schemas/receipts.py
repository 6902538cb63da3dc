"""Pydantic schemas for receipts and printing."""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from services.market_service.models import (
    Currency,
    OrderStatus,
    ReceiptStatus,
    ReceiptVariant,
)
from services.market_service.schemas.catalog import RecipientResponse
from services.market_service.schemas.orders import OrderItemResponse


class ReceiptOrderSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    status: OrderStatus
    subtotal_cents: int
    total_cents: int
    currency: Currency
    created_at: datetime
    recipient: Optional[RecipientResponse] = None


class ReceiptOrderDetail(ReceiptOrderSummary):
    items: list[OrderItemResponse] = []


class ReceiptResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    order_id: uuid.UUID
    number: str
    variant: ReceiptVariant
    status: ReceiptStatus
    pdf_url: Optional[str] = None
    pdf_path: Optional[str] = None
    hash: Optional[str] = None
    created_at: datetime


class ReceiptListItem(ReceiptResponse):
    order: Optional[ReceiptOrderSummary] = None


class ReceiptDetail(ReceiptResponse):
    order: Optional[ReceiptOrderDetail] = None


class PrintResponse(BaseModel):
    success: bool
    message: str
    printer: Optional[str] = None


class PrinterListResponse(BaseModel):
    printers: list[str]
