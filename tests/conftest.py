import pytest
import pytest_asyncio

from libs.common.config import get_settings
from services.market_service.services import user_ops
from tests.factories import ProductFactory, RecipientFactory


@pytest.fixture(autouse=True)
def isolated_storage(tmp_path, monkeypatch):
    """Point receipt storage and branding assets at the test's tmp dir."""
    settings = get_settings()
    receipts_dir = tmp_path / "receipts"
    assets_dir = tmp_path / "assets"
    monkeypatch.setattr(settings, "RECEIPT_STORAGE_PATH", str(receipts_dir))
    monkeypatch.setattr(settings, "ASSETS_PATH", str(assets_dir))
    monkeypatch.setattr(settings, "RECEIPT_BASE_URL", "http://test")
    monkeypatch.setattr(settings, "RECEIPT_RETENTION_LIMIT", 10)
    monkeypatch.setattr(settings, "API_KEY", None)
    # Cheapest cost bcrypt accepts
    monkeypatch.setattr(user_ops, "BCRYPT_ROUNDS", 4)
    return receipts_dir


@pytest_asyncio.fixture
async def catalog(db_session):
    """Products A (5000/9900) and B (3000/5500) plus recipient R."""
    product_a = ProductFactory.create(
        name="Product A", purchase_price_cents=5000, sale_price_cents=9900
    )
    product_b = ProductFactory.create(
        name="Product B", purchase_price_cents=3000, sale_price_cents=5500
    )
    recipient = RecipientFactory.create(name="Recipient R")
    db_session.add_all([product_a, product_b, recipient])
    await db_session.commit()
    return product_a, product_b, recipient
