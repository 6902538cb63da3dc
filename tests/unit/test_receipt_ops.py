"""Unit tests for the receipt engine.

Covers generation guards, numbering, hashing, retention pruning,
regeneration, missing-file repair and the insert-race conflict.
"""

import hashlib
import os
import re
import uuid
from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from libs.common.config import get_settings
from services.market_service.models import (
    OrderStatus,
    Receipt,
    ReceiptCounter,
    ReceiptStatus,
    ReceiptVariant,
)
from services.market_service.services import receipt_numbers, receipt_ops
from services.market_service.services.printing import PrinterBackend, PrintResult
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from tests.factories import OrderFactory, ReceiptFactory

NUMBER_PATTERN = re.compile(r"^\d{4}-\d{6}$")


async def _confirmed_order(db, catalog, qty=1):
    product_a, _, recipient = catalog
    order = OrderFactory.create(
        recipient, [(product_a, qty)], status=OrderStatus.CONFIRMED
    )
    db.add(order)
    await db.commit()
    return order


async def _generated_count(db) -> int:
    result = await db.execute(
        select(func.count(Receipt.id)).where(Receipt.status == ReceiptStatus.GENERATED)
    )
    return result.scalar_one()


# ---------------------------------------------------------------------------
# generate_receipt
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_generate_receipt_writes_hashed_pdf(db_session, catalog):
    order = await _confirmed_order(db_session, catalog)

    receipt = await receipt_ops.generate_receipt(db_session, order_id=order.id)

    assert NUMBER_PATTERN.match(receipt.number)
    assert receipt.status == ReceiptStatus.GENERATED
    assert receipt.variant == ReceiptVariant.DEFAULT
    assert os.path.basename(receipt.pdf_path).startswith(f"receipt-{receipt.number}-")
    with open(receipt.pdf_path, "rb") as f:
        content = f.read()
    assert content.startswith(b"%PDF")
    assert receipt.hash == hashlib.sha256(content).hexdigest()
    assert receipt.pdf_url == f"http://test/api/v1/receipts/{receipt.id}/pdf"


@pytest.mark.asyncio
@pytest.mark.unit
async def test_generate_receipt_requires_confirmed_order(db_session, catalog):
    product_a, _, recipient = catalog
    order = OrderFactory.create(recipient, [(product_a, 1)])
    db_session.add(order)
    await db_session.commit()

    with pytest.raises(HTTPException) as exc_info:
        await receipt_ops.generate_receipt(db_session, order_id=order.id)

    assert exc_info.value.status_code == 400


@pytest.mark.asyncio
@pytest.mark.unit
async def test_generate_receipt_unknown_order(db_session):
    with pytest.raises(HTTPException) as exc_info:
        await receipt_ops.generate_receipt(db_session, order_id=uuid.uuid4())

    assert exc_info.value.status_code == 404


@pytest.mark.asyncio
@pytest.mark.unit
async def test_second_receipt_for_order_conflicts(db_session, catalog):
    order = await _confirmed_order(db_session, catalog)
    await receipt_ops.generate_receipt(db_session, order_id=order.id)

    with pytest.raises(HTTPException) as exc_info:
        await receipt_ops.generate_receipt(db_session, order_id=order.id)

    assert exc_info.value.status_code == 409
    assert await _generated_count(db_session) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_void_receipt_does_not_block_new_one(db_session, catalog):
    order = await _confirmed_order(db_session, catalog)
    db_session.add(ReceiptFactory.create(order.id, status=ReceiptStatus.VOID))
    await db_session.commit()

    receipt = await receipt_ops.generate_receipt(db_session, order_id=order.id)

    assert receipt.status == ReceiptStatus.GENERATED


@pytest.mark.asyncio
@pytest.mark.unit
async def test_receipt_numbers_increase_per_year(db_session, catalog):
    first = await receipt_ops.generate_receipt(
        db_session, order_id=(await _confirmed_order(db_session, catalog)).id
    )
    second = await receipt_ops.generate_receipt(
        db_session, order_id=(await _confirmed_order(db_session, catalog)).id
    )

    year = datetime.now(timezone.utc).year
    assert first.number == f"{year}-000001"
    assert second.number == f"{year}-000002"
    counter = await db_session.get(ReceiptCounter, year)
    assert counter.last_value == 2


@pytest.mark.asyncio
@pytest.mark.unit
async def test_compact_variant_filename_prefix(db_session, catalog):
    order = await _confirmed_order(db_session, catalog)

    receipt = await receipt_ops.generate_receipt(
        db_session, order_id=order.id, variant=ReceiptVariant.COMPACT
    )

    assert receipt.variant == ReceiptVariant.COMPACT
    assert os.path.basename(receipt.pdf_path).startswith("compact-receipt-")


@pytest.mark.asyncio
@pytest.mark.unit
async def test_insert_race_maps_to_conflict_and_removes_file(
    db_session, session_factory, catalog, monkeypatch, isolated_storage
):
    order = await _confirmed_order(db_session, catalog)
    real_next_number = receipt_numbers.next_receipt_number

    async def _next_number_after_competitor(db):
        # A concurrent request wins the insert after our existence check
        async with session_factory() as other:
            other.add(ReceiptFactory.create(order.id))
            await other.commit()
        return await real_next_number(db)

    monkeypatch.setattr(
        receipt_ops, "next_receipt_number", _next_number_after_competitor
    )

    with pytest.raises(HTTPException) as exc_info:
        await receipt_ops.generate_receipt(db_session, order_id=order.id)

    assert exc_info.value.status_code == 409
    assert list(isolated_storage.glob("*.pdf")) == []
    assert await _generated_count(db_session) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_number_collision_is_reported_as_conflict(
    db_session, catalog, monkeypatch, isolated_storage
):
    taken = await _confirmed_order(db_session, catalog)
    db_session.add(ReceiptFactory.create(taken.id, number="2025-123456"))
    await db_session.commit()
    order = await _confirmed_order(db_session, catalog)

    async def _taken_number(db):
        return "2025-123456"

    monkeypatch.setattr(receipt_ops, "next_receipt_number", _taken_number)

    with pytest.raises(HTTPException) as exc_info:
        await receipt_ops.generate_receipt(db_session, order_id=order.id)

    assert exc_info.value.status_code == 409
    assert "2025-123456" in exc_info.value.detail
    assert "already exists for this order" not in exc_info.value.detail
    assert list(isolated_storage.glob("*.pdf")) == []


# ---------------------------------------------------------------------------
# Numbering fallback
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_number_falls_back_when_counter_table_missing(db_session, test_engine):
    async with test_engine.begin() as conn:
        await conn.run_sync(ReceiptCounter.__table__.drop)

    number = await receipt_numbers.next_receipt_number(db_session)

    assert NUMBER_PATTERN.match(number)
    assert number.startswith(f"{datetime.now(timezone.utc).year}-")

    # Recreate so teardown's drop_all finds every table
    async with test_engine.begin() as conn:
        await conn.run_sync(ReceiptCounter.__table__.create)


def test_format_receipt_number_pads_sequence():
    assert receipt_numbers.format_receipt_number(2025, 42) == "2025-000042"


# ---------------------------------------------------------------------------
# Retention
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_pruning_keeps_newest_receipts(
    db_session, catalog, monkeypatch, isolated_storage
):
    monkeypatch.setattr(get_settings(), "RECEIPT_RETENTION_LIMIT", 3)
    isolated_storage.mkdir(parents=True)
    base_time = datetime.now(timezone.utc) - timedelta(days=1)

    seeded = []
    for index in range(4):
        order = await _confirmed_order(db_session, catalog)
        pdf_file = isolated_storage / f"receipt-old-{index}.pdf"
        pdf_file.write_bytes(b"%PDF-1.4 old")
        receipt = ReceiptFactory.create(
            order.id,
            number=f"2000-{index:06d}",
            pdf_path=str(pdf_file),
            created_at=base_time + timedelta(minutes=index),
        )
        db_session.add(receipt)
        seeded.append((receipt.id, pdf_file))
    await db_session.commit()

    new_order = await _confirmed_order(db_session, catalog)
    new_receipt = await receipt_ops.generate_receipt(db_session, order_id=new_order.id)

    remaining = set(
        (await db_session.execute(select(Receipt.id))).scalars().all()
    )
    # 4 >= 3, so the oldest 4 - (3 - 1) = 2 go
    for receipt_id, pdf_file in seeded[:2]:
        assert receipt_id not in remaining
        assert not pdf_file.exists()
    for receipt_id, pdf_file in seeded[2:]:
        assert receipt_id in remaining
        assert pdf_file.exists()
    assert new_receipt.id in remaining
    assert await _generated_count(db_session) == 3


@pytest.mark.asyncio
@pytest.mark.unit
async def test_pruning_failure_does_not_block_generation(
    db_session, catalog, monkeypatch
):
    async def _failing_prune(db, *, limit=None):
        raise OperationalError("DELETE FROM receipts", {}, Exception("database is locked"))

    monkeypatch.setattr(receipt_ops, "prune_receipts", _failing_prune)
    order = await _confirmed_order(db_session, catalog)

    receipt = await receipt_ops.generate_receipt(db_session, order_id=order.id)

    assert NUMBER_PATTERN.match(receipt.number)
    assert receipt.status == ReceiptStatus.GENERATED
    assert os.path.isfile(receipt.pdf_path)
    assert await _generated_count(db_session) == 1


@pytest.mark.asyncio
@pytest.mark.unit
async def test_prune_below_limit_is_noop(db_session, catalog):
    order = await _confirmed_order(db_session, catalog)
    db_session.add(ReceiptFactory.create(order.id))
    await db_session.commit()

    assert await receipt_ops.prune_receipts(db_session, limit=10) == 0
    assert await _generated_count(db_session) == 1


# ---------------------------------------------------------------------------
# Regeneration and download
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.unit
async def test_regenerate_keeps_identity_and_replaces_file(db_session, catalog):
    order = await _confirmed_order(db_session, catalog)
    receipt = await receipt_ops.generate_receipt(
        db_session, order_id=order.id, variant=ReceiptVariant.STANDARD
    )
    old_path = receipt.pdf_path

    regenerated = await receipt_ops.regenerate_receipt_pdf(
        db_session, receipt_id=receipt.id
    )

    assert regenerated.id == receipt.id
    assert regenerated.number == receipt.number
    assert regenerated.variant == ReceiptVariant.STANDARD
    assert os.path.basename(regenerated.pdf_path).startswith("standard-receipt-")
    if regenerated.pdf_path != old_path:
        assert not os.path.exists(old_path)
    with open(regenerated.pdf_path, "rb") as f:
        assert regenerated.hash == hashlib.sha256(f.read()).hexdigest()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_get_pdf_regenerates_missing_file(db_session, catalog):
    order = await _confirmed_order(db_session, catalog)
    receipt = await receipt_ops.generate_receipt(db_session, order_id=order.id)
    os.remove(receipt.pdf_path)

    content, filename = await receipt_ops.get_receipt_pdf(
        db_session, receipt_id=receipt.id
    )

    assert content.startswith(b"%PDF")
    assert filename == f"receipt-{receipt.number}.pdf"
    repaired = await receipt_ops.find_one(db_session, receipt_id=receipt.id)
    assert os.path.exists(repaired.pdf_path)
    assert repaired.hash == hashlib.sha256(content).hexdigest()


@pytest.mark.asyncio
@pytest.mark.unit
async def test_find_one_missing_receipt(db_session):
    with pytest.raises(HTTPException) as exc_info:
        await receipt_ops.find_one(db_session, receipt_id=uuid.uuid4())

    assert exc_info.value.status_code == 404


# ---------------------------------------------------------------------------
# Printing
# ---------------------------------------------------------------------------


class RecordingBackend(PrinterBackend):
    name = "recording"

    def __init__(self):
        self.printed = []

    async def list_printers(self):
        return ["Office", "Warehouse"]

    async def print_file(self, path, printer=None):
        self.printed.append((path, printer))
        return PrintResult(success=True, message="queued", printer=printer)


@pytest.mark.asyncio
@pytest.mark.unit
async def test_print_receipt_sends_stored_file(db_session, catalog, monkeypatch):
    backend = RecordingBackend()
    monkeypatch.setattr(receipt_ops, "get_printer_backend", lambda: backend)
    order = await _confirmed_order(db_session, catalog)
    receipt = await receipt_ops.generate_receipt(db_session, order_id=order.id)

    result = await receipt_ops.print_receipt(
        db_session, receipt_id=receipt.id, printer="Office"
    )

    assert result.success is True
    assert backend.printed == [(os.path.abspath(receipt.pdf_path), "Office")]
    assert await receipt_ops.get_available_printers() == ["Office", "Warehouse"]


@pytest.mark.asyncio
@pytest.mark.unit
async def test_print_failure_leaves_receipt_untouched(
    db_session, catalog, monkeypatch
):
    monkeypatch.setattr(receipt_ops, "get_printer_backend", lambda: PrinterBackend())
    order = await _confirmed_order(db_session, catalog)
    receipt = await receipt_ops.generate_receipt(db_session, order_id=order.id)

    result = await receipt_ops.print_receipt(db_session, receipt_id=receipt.id)

    assert result.success is False
    reloaded = await receipt_ops.find_one(db_session, receipt_id=receipt.id)
    assert reloaded.status == ReceiptStatus.GENERATED
    assert reloaded.hash == receipt.hash
