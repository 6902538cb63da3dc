"""Recipient (customer) operations."""

import uuid

from fastapi import HTTPException, status
from libs.common.logging import get_logger
from services.market_service.models import Order, Recipient
from services.market_service.schemas import RecipientCreate, RecipientUpdate
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)


async def create_recipient(db: AsyncSession, *, data: RecipientCreate) -> Recipient:
    recipient = Recipient(**data.model_dump())
    db.add(recipient)
    await db.commit()
    await db.refresh(recipient)
    logger.info("Created recipient %s", recipient.id)
    return recipient


async def list_recipients(
    db: AsyncSession, *, offset: int = 0, limit: int = 10
) -> tuple[list[Recipient], int]:
    total = (await db.execute(select(func.count(Recipient.id)))).scalar_one()
    result = await db.execute(
        select(Recipient)
        .order_by(Recipient.created_at.desc(), Recipient.id)
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def get_recipient(db: AsyncSession, *, recipient_id: uuid.UUID) -> Recipient:
    recipient = await db.get(Recipient, recipient_id)
    if not recipient:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Recipient with ID {recipient_id} not found",
        )
    return recipient


async def update_recipient(
    db: AsyncSession, *, recipient_id: uuid.UUID, data: RecipientUpdate
) -> Recipient:
    recipient = await get_recipient(db, recipient_id=recipient_id)
    updates = data.model_dump(exclude_unset=True)
    # name is required on the row; null only clears the optional contact fields
    if updates.get("name", "") is None:
        updates.pop("name")
    for field, value in updates.items():
        setattr(recipient, field, value)
    await db.commit()
    await db.refresh(recipient)
    return recipient


async def delete_recipient(db: AsyncSession, *, recipient_id: uuid.UUID) -> None:
    recipient = await get_recipient(db, recipient_id=recipient_id)

    order_count = await db.execute(
        select(func.count(Order.id)).where(Order.recipient_id == recipient_id)
    )
    if order_count.scalar_one() > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete recipient with existing orders",
        )

    await db.execute(delete(Recipient).where(Recipient.id == recipient.id))
    await db.commit()
    logger.info("Deleted recipient %s", recipient_id)
