"""Unit tests for the ReportLab receipt renderer."""

from datetime import datetime, timezone

import pytest
from libs.common.pdf import generate_receipt_pdf
from PIL import Image


def _render(**overrides):
    kwargs = {
        "receipt_number": "2025-000001",
        "order_date": datetime(2025, 3, 14, 10, 30, tzinfo=timezone.utc),
        "recipient": {
            "name": "Recipient R",
            "email": "r@example.com",
            "phone": None,
            "address": "Main St <1> & Co",
        },
        "items": [
            {
                "product_name": "Product A",
                "qty": 2,
                "unit_price_cents": 9900,
                "line_total_cents": 19800,
            },
            {
                "product_name": "Product B",
                "qty": 1,
                "unit_price_cents": 5500,
                "line_total_cents": 5500,
            },
        ],
        "subtotal_cents": 25300,
        "total_cents": 25300,
        "currency": "UAH",
        "company_name": "Acme Trading",
    }
    kwargs.update(overrides)
    return generate_receipt_pdf(**kwargs)


@pytest.mark.unit
@pytest.mark.parametrize("variant", ["default", "compact", "standard"])
def test_every_variant_renders_pdf(variant):
    assert _render(variant=variant).startswith(b"%PDF")


@pytest.mark.unit
def test_render_with_logo(tmp_path):
    logo = tmp_path / "logo.png"
    Image.new("RGB", (64, 32), color=(74, 144, 226)).save(logo, format="PNG")

    assert _render(logo_path=str(logo), variant="standard").startswith(b"%PDF")


@pytest.mark.unit
def test_missing_logo_and_font_paths_are_ignored(tmp_path):
    content = _render(
        logo_path=str(tmp_path / "absent.png"),
        font_path=str(tmp_path / "absent.ttf"),
        company_name="",
    )
    assert content.startswith(b"%PDF")


@pytest.mark.unit
def test_unknown_variant_rejected():
    with pytest.raises(ValueError):
        _render(variant="fancy")
