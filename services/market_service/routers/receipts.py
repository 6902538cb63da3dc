"""Receipt endpoints: generation, download, regeneration and printing."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser
from libs.db.session import get_async_db
from services.market_service.models import ReceiptVariant
from services.market_service.schemas import (
    Page,
    PrinterListResponse,
    PrintResponse,
    ReceiptDetail,
    ReceiptListItem,
    ReceiptResponse,
)
from services.market_service.schemas.common import DEFAULT_LIMIT, MAX_LIMIT
from services.market_service.services import receipt_ops
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/receipts", tags=["receipts"])


# ============================================================================
# GENERATION
# ============================================================================


@router.post(
    "/orders/{order_id}/receipt",
    response_model=ReceiptResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_receipt(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Generate the receipt for a confirmed order."""
    return await receipt_ops.generate_receipt(db, order_id=order_id)


@router.post(
    "/orders/{order_id}/receipt/compact",
    response_model=ReceiptResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_compact_receipt(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await receipt_ops.generate_receipt(
        db, order_id=order_id, variant=ReceiptVariant.COMPACT
    )


@router.post(
    "/orders/{order_id}/receipt/standard",
    response_model=ReceiptResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_standard_receipt(
    order_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await receipt_ops.generate_receipt(
        db, order_id=order_id, variant=ReceiptVariant.STANDARD
    )


# ============================================================================
# QUERIES
# ============================================================================


@router.get("", response_model=Page[ReceiptListItem])
async def list_receipts(
    offset: int = Query(0, ge=0),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    receipts, total = await receipt_ops.find_all(db, offset=offset, limit=limit)
    return {"data": receipts, "total": total, "offset": offset, "limit": limit}


# Declared before /{receipt_id} so "printers" is not parsed as an id
@router.get("/printers", response_model=PrinterListResponse)
async def list_printers(current_user: AuthUser = Depends(get_current_user)):
    """List printers known to the host print subsystem."""
    return {"printers": await receipt_ops.get_available_printers()}


@router.get("/{receipt_id}", response_model=ReceiptDetail)
async def get_receipt(
    receipt_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    return await receipt_ops.find_one(db, receipt_id=receipt_id)


@router.get("/{receipt_id}/pdf", response_class=Response)
async def download_receipt_pdf(
    receipt_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Download the receipt PDF, regenerating it if the file has gone missing."""
    pdf_bytes, filename = await receipt_ops.get_receipt_pdf(db, receipt_id=receipt_id)
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "Pragma": "no-cache",
            "Expires": "0",
        },
    )


# ============================================================================
# MAINTENANCE
# ============================================================================


@router.post("/{receipt_id}/regenerate", response_model=ReceiptResponse)
async def regenerate_receipt(
    receipt_id: uuid.UUID,
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    """Re-render the PDF in place, keeping the receipt number."""
    return await receipt_ops.regenerate_receipt_pdf(db, receipt_id=receipt_id)


@router.post("/{receipt_id}/print", response_model=PrintResponse)
async def print_receipt(
    receipt_id: uuid.UUID,
    printer: Optional[str] = Query(None),
    current_user: AuthUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_async_db),
):
    result = await receipt_ops.print_receipt(
        db, receipt_id=receipt_id, printer=printer
    )
    return PrintResponse(
        success=result.success, message=result.message, printer=result.printer
    )
