"""Revenue report endpoints."""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.common.datetime_utils import ensure_aware
from libs.db.session import get_async_db
from services.market_service.schemas import (
    ProductRevenue,
    RecipientRevenue,
    TotalRevenue,
)
from services.market_service.services import reporting
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/reports", tags=["reports"])


def date_range(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
) -> tuple[Optional[datetime], Optional[datetime]]:
    """Inclusive creation-date window shared by all reports.

    Bounds without an offset are read as UTC; all bounds are compared in UTC.
    """
    if start_date:
        start_date = ensure_aware(start_date).astimezone(timezone.utc)
    if end_date:
        end_date = ensure_aware(end_date).astimezone(timezone.utc)
    if start_date and end_date and start_date > end_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="start_date must not be after end_date",
        )
    return start_date, end_date


@router.get("/revenue/products", response_model=list[ProductRevenue])
async def revenue_by_product(
    window: tuple = Depends(date_range),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Margin per product across confirmed orders, highest first."""
    start_date, end_date = window
    return await reporting.revenue_by_product(
        db, start_date=start_date, end_date=end_date
    )


@router.get("/revenue/recipients", response_model=list[RecipientRevenue])
async def revenue_by_recipient(
    window: tuple = Depends(date_range),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    start_date, end_date = window
    return await reporting.revenue_by_recipient(
        db, start_date=start_date, end_date=end_date
    )


@router.get("/revenue/total", response_model=TotalRevenue)
async def total_revenue(
    window: tuple = Depends(date_range),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    start_date, end_date = window
    return await reporting.total_revenue(db, start_date=start_date, end_date=end_date)
