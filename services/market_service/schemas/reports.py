"""Pydantic schemas for revenue reports."""

import uuid
from typing import Optional

from pydantic import BaseModel
from services.market_service.models import Currency


class ProductRevenue(BaseModel):
    product_id: Optional[uuid.UUID] = None
    product_name: str
    total_revenue_cents: int
    total_quantity: int
    currency: Currency


class RecipientRevenue(BaseModel):
    recipient_id: uuid.UUID
    recipient_name: str
    total_revenue_cents: int
    total_orders: int
    currency: Currency


class TotalRevenue(BaseModel):
    total_revenue_cents: int
    total_orders: int
    currency: Currency
