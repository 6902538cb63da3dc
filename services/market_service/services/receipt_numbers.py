"""Receipt number allocation.

Numbers look like ``2025-000042``: the calendar year and a per-year counter
held in ``receipt_counters``. The counter row is bumped with a single
``UPDATE ... RETURNING`` and committed straight away, so like a database
sequence it never hands out the same value twice but may leave gaps.
"""

from libs.common.datetime_utils import unix_ms, utc_now
from libs.common.logging import get_logger
from services.market_service.models import ReceiptCounter
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

SEQUENCE_WIDTH = 6


def format_receipt_number(year: int, value: int) -> str:
    return f"{year}-{value:0{SEQUENCE_WIDTH}d}"


def fallback_receipt_number(year: int) -> str:
    """Timestamp-derived number used when the counter table is unusable."""
    return f"{year}-{str(unix_ms())[-SEQUENCE_WIDTH:]}"


async def _increment(db: AsyncSession, year: int) -> int:
    result = await db.execute(
        update(ReceiptCounter)
        .where(ReceiptCounter.year == year)
        .values(last_value=ReceiptCounter.last_value + 1)
        .returning(ReceiptCounter.last_value)
        .execution_options(synchronize_session=False)
    )
    value = result.scalar_one_or_none()
    if value is None:
        # First receipt of the year
        db.add(ReceiptCounter(year=year, last_value=1))
        await db.flush()
        value = 1
    await db.commit()
    return value


async def next_receipt_number(db: AsyncSession) -> str:
    """Allocate the next receipt number for the current year.

    Commits the session; callers must not hold pending work in it.
    """
    year = utc_now().year
    try:
        try:
            value = await _increment(db, year)
        except IntegrityError:
            # Another request created this year's row first
            await db.rollback()
            value = await _increment(db, year)
    except SQLAlchemyError as e:
        await db.rollback()
        number = fallback_receipt_number(year)
        logger.error(
            "Receipt counter unavailable, using fallback number %s: %s", number, e
        )
        return number
    return format_receipt_number(year, value)
