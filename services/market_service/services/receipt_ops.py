"""Receipt engine: numbered, hashed PDF receipts for confirmed orders.

File writes never happen inside an open database transaction: the PDF is
rendered and written first, then the row referencing it is inserted. If the
insert fails the freshly written file is removed again.
"""

import asyncio
import hashlib
import os
import uuid
from typing import Optional

from fastapi import HTTPException, status
from libs.common.config import get_settings
from libs.common.datetime_utils import ensure_aware, unix_ms
from libs.common.logging import get_logger
from libs.common.pdf import generate_receipt_pdf
from services.market_service.models import (
    Order,
    OrderStatus,
    Receipt,
    ReceiptStatus,
    ReceiptVariant,
)
from services.market_service.services.branding import get_branding_store
from services.market_service.services.printing import PrintResult, get_printer_backend
from services.market_service.services.receipt_numbers import next_receipt_number
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

logger = get_logger(__name__)

FILENAME_PREFIXES = {
    ReceiptVariant.DEFAULT: "receipt",
    ReceiptVariant.COMPACT: "compact-receipt",
    ReceiptVariant.STANDARD: "standard-receipt",
}


# ============================================================================
# FILE HELPERS
# ============================================================================


def receipt_filename(number: str, variant: ReceiptVariant) -> str:
    return f"{FILENAME_PREFIXES[variant]}-{number}-{unix_ms()}.pdf"


def receipt_pdf_url(receipt_id: uuid.UUID) -> str:
    settings = get_settings()
    return f"{settings.RECEIPT_BASE_URL.rstrip('/')}{settings.API_PREFIX}/receipts/{receipt_id}/pdf"


def sha256_hex(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def _write_bytes(path: str, data: bytes) -> None:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as f:
        f.write(data)


def _read_bytes(path: str) -> bytes:
    with open(path, "rb") as f:
        return f.read()


async def _file_exists(path: Optional[str]) -> bool:
    if not path:
        return False
    return await asyncio.to_thread(os.path.isfile, path)


async def remove_receipt_file(path: Optional[str]) -> bool:
    """Best-effort unlink. Returns True when a file was removed."""
    if not path:
        return False
    try:
        await asyncio.to_thread(os.remove, path)
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.warning("Failed to delete receipt file %s: %s", path, e)
        return False
    return True


async def _store_pdf(
    pdf_bytes: bytes, *, number: str, variant: ReceiptVariant
) -> tuple[str, str]:
    """Write the PDF to receipt storage. Returns ``(path, sha256)``."""
    storage_dir = get_settings().RECEIPT_STORAGE_PATH
    path = os.path.join(storage_dir, receipt_filename(number, variant))
    try:
        await asyncio.to_thread(_write_bytes, path, pdf_bytes)
    except OSError as e:
        logger.error("Failed to write receipt file %s: %s", path, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to store receipt PDF",
        ) from e
    return path, sha256_hex(pdf_bytes)


# ============================================================================
# RENDERING
# ============================================================================


async def render_receipt(
    order: Order, *, number: str, variant: ReceiptVariant
) -> bytes:
    """Render the receipt PDF for ``order`` (recipient and items loaded)."""
    settings = get_settings()
    branding = get_branding_store()
    company_name = await branding.get_company_name()
    logo_path = await branding.get_logo_path()

    recipient = order.recipient
    try:
        pdf_bytes = await asyncio.to_thread(
            generate_receipt_pdf,
            receipt_number=number,
            order_date=ensure_aware(order.created_at),
            recipient={
                "name": recipient.name,
                "email": recipient.email,
                "phone": recipient.phone,
                "address": recipient.address,
            },
            items=[
                {
                    "product_name": item.product_name,
                    "qty": item.qty,
                    "unit_price_cents": item.unit_price_cents,
                    "line_total_cents": item.line_total_cents,
                }
                for item in order.items
            ],
            subtotal_cents=order.subtotal_cents,
            total_cents=order.total_cents,
            currency=order.currency.value,
            company_name=company_name,
            logo_path=logo_path,
            variant=variant.value,
            font_path=settings.RECEIPT_FONT_PATH,
            bold_font_path=settings.RECEIPT_BOLD_FONT_PATH,
        )
    except Exception as e:
        logger.exception("Receipt rendering failed for order %s", order.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to render receipt PDF",
        ) from e

    if not pdf_bytes.startswith(b"%PDF"):
        logger.error("Renderer returned invalid PDF for order %s", order.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Generated receipt is not a valid PDF",
        )
    return pdf_bytes


# ============================================================================
# QUERIES
# ============================================================================


async def _load_order(db: AsyncSession, order_id: uuid.UUID) -> Order:
    result = await db.execute(
        select(Order)
        .where(Order.id == order_id)
        .options(selectinload(Order.recipient), selectinload(Order.items))
        .execution_options(populate_existing=True)
    )
    order = result.scalar_one_or_none()
    if not order:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Order with ID {order_id} not found",
        )
    return order


async def find_all(
    db: AsyncSession, *, offset: int = 0, limit: int = 10
) -> tuple[list[Receipt], int]:
    total = (await db.execute(select(func.count(Receipt.id)))).scalar_one()
    result = await db.execute(
        select(Receipt)
        .options(selectinload(Receipt.order).selectinload(Order.recipient))
        .order_by(Receipt.created_at.desc(), Receipt.id)
        .offset(offset)
        .limit(limit)
    )
    return list(result.scalars().all()), total


async def find_one(db: AsyncSession, *, receipt_id: uuid.UUID) -> Receipt:
    result = await db.execute(
        select(Receipt)
        .where(Receipt.id == receipt_id)
        .options(
            selectinload(Receipt.order).selectinload(Order.recipient),
            selectinload(Receipt.order).selectinload(Order.items),
        )
        .execution_options(populate_existing=True)
    )
    receipt = result.scalar_one_or_none()
    if not receipt:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Receipt with ID {receipt_id} not found",
        )
    return receipt


# ============================================================================
# RETENTION
# ============================================================================


async def prune_receipts(db: AsyncSession, *, limit: Optional[int] = None) -> int:
    """Keep at most ``limit - 1`` generated receipts, dropping the oldest.

    Runs before a new receipt is added so the total stays within ``limit``.
    Removes files and rows and commits. Returns the number pruned.
    """
    limit = limit or get_settings().RECEIPT_RETENTION_LIMIT
    count = (
        await db.execute(
            select(func.count(Receipt.id)).where(
                Receipt.status == ReceiptStatus.GENERATED
            )
        )
    ).scalar_one()
    if count < limit:
        return 0

    surplus = count - (limit - 1)
    result = await db.execute(
        select(Receipt.id, Receipt.pdf_path)
        .where(Receipt.status == ReceiptStatus.GENERATED)
        .order_by(Receipt.created_at.asc(), Receipt.id)
        .limit(surplus)
    )
    oldest = result.all()

    for _, pdf_path in oldest:
        await remove_receipt_file(pdf_path)

    await db.execute(delete(Receipt).where(Receipt.id.in_([r.id for r in oldest])))
    await db.commit()
    logger.info("Pruned %d old receipts (retention limit %d)", len(oldest), limit)
    return len(oldest)


async def delete_receipt_files_for_order(
    db: AsyncSession, *, order_id: uuid.UUID
) -> int:
    """Unlink every receipt file of an order. Rows are left to the caller."""
    result = await db.execute(
        select(Receipt.pdf_path).where(Receipt.order_id == order_id)
    )
    removed = 0
    for pdf_path in result.scalars().all():
        if await remove_receipt_file(pdf_path):
            removed += 1
    if removed:
        logger.info("Deleted %d receipt files for order %s", removed, order_id)
    return removed


# ============================================================================
# GENERATION
# ============================================================================


def _is_number_collision(error: IntegrityError) -> bool:
    """True when the unique receipt number, not the one-per-order index, failed."""
    # PostgreSQL names the constraint, SQLite names the column
    message = str(error.orig)
    return "uq_receipts_number" in message or "receipts.number" in message


async def generate_receipt(
    db: AsyncSession,
    *,
    order_id: uuid.UUID,
    variant: ReceiptVariant = ReceiptVariant.DEFAULT,
) -> Receipt:
    """Create the receipt for a confirmed order.

    Raises 404 for an unknown order, 400 unless the order is confirmed and
    409 when a generated receipt already exists (including a concurrent
    request winning the insert).
    """
    order = await _load_order(db, order_id)
    if order.status != OrderStatus.CONFIRMED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Receipt can only be generated for confirmed orders",
        )

    existing = await db.execute(
        select(Receipt.id).where(
            Receipt.order_id == order_id,
            Receipt.status == ReceiptStatus.GENERATED,
        )
    )
    if existing.first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Receipt already exists for this order",
        )

    try:
        await prune_receipts(db)
    except (SQLAlchemyError, OSError) as e:
        await db.rollback()
        logger.warning("Receipt pruning failed, continuing: %s", e)

    number = await next_receipt_number(db)
    order = await _load_order(db, order_id)

    pdf_bytes = await render_receipt(order, number=number, variant=variant)
    pdf_path, digest = await _store_pdf(pdf_bytes, number=number, variant=variant)

    receipt_id = uuid.uuid4()
    receipt = Receipt(
        id=receipt_id,
        order_id=order.id,
        number=number,
        variant=variant,
        pdf_url=receipt_pdf_url(receipt_id),
        pdf_path=pdf_path,
        hash=digest,
        status=ReceiptStatus.GENERATED,
    )
    db.add(receipt)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        await remove_receipt_file(pdf_path)
        logger.warning("Receipt insert conflict for order %s: %s", order_id, e)
        if _is_number_collision(e):
            detail = f"Receipt number {number} is already taken, retry the request"
        else:
            detail = "Receipt already exists for this order"
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=detail
        ) from e
    except Exception:
        await db.rollback()
        await remove_receipt_file(pdf_path)
        raise

    logger.info(
        "Generated receipt %s (%s) for order %s", number, variant.value, order_id
    )
    return await find_one(db, receipt_id=receipt_id)


async def regenerate_receipt_pdf(
    db: AsyncSession, *, receipt_id: uuid.UUID
) -> Receipt:
    """Re-render a receipt's PDF in place: same id, number and variant."""
    receipt = await find_one(db, receipt_id=receipt_id)

    if receipt.pdf_path and await remove_receipt_file(receipt.pdf_path):
        logger.info("Removed old receipt file %s", receipt.pdf_path)

    pdf_bytes = await render_receipt(
        receipt.order, number=receipt.number, variant=receipt.variant
    )
    pdf_path, digest = await _store_pdf(
        pdf_bytes, number=receipt.number, variant=receipt.variant
    )

    receipt.pdf_path = pdf_path
    receipt.hash = digest
    receipt.pdf_url = receipt_pdf_url(receipt.id)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        await remove_receipt_file(pdf_path)
        raise

    logger.info("Regenerated PDF for receipt %s", receipt.number)
    return await find_one(db, receipt_id=receipt_id)


async def _ensure_pdf(db: AsyncSession, receipt: Receipt) -> Receipt:
    """Return a receipt whose file exists, regenerating it once if missing."""
    if await _file_exists(receipt.pdf_path):
        return receipt

    logger.warning(
        "PDF for receipt %s missing at %s, regenerating", receipt.number, receipt.pdf_path
    )
    try:
        return await regenerate_receipt_pdf(db, receipt_id=receipt.id)
    except (HTTPException, OSError, SQLAlchemyError) as e:
        logger.error("Automatic regeneration failed for receipt %s: %s", receipt.id, e)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Receipt PDF file not found",
        ) from e


async def get_receipt_pdf(
    db: AsyncSession, *, receipt_id: uuid.UUID
) -> tuple[bytes, str]:
    """Return ``(pdf_bytes, download_filename)`` for a receipt."""
    receipt = await _ensure_pdf(db, await find_one(db, receipt_id=receipt_id))
    try:
        pdf_bytes = await asyncio.to_thread(_read_bytes, receipt.pdf_path)
    except OSError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Receipt PDF file not found",
        ) from e
    return pdf_bytes, f"receipt-{receipt.number}.pdf"


# ============================================================================
# PRINTING
# ============================================================================


async def print_receipt(
    db: AsyncSession, *, receipt_id: uuid.UUID, printer: Optional[str] = None
) -> PrintResult:
    receipt = await find_one(db, receipt_id=receipt_id)
    try:
        receipt = await _ensure_pdf(db, receipt)
    except HTTPException:
        return PrintResult(
            success=False, message="Receipt PDF file not found", printer=printer
        )

    result = await get_printer_backend().print_file(
        os.path.abspath(receipt.pdf_path), printer
    )
    if result.success:
        logger.info("Receipt %s sent to printer %s", receipt.number, printer or "default")
    return result


async def get_available_printers() -> list[str]:
    return await get_printer_backend().list_printers()
