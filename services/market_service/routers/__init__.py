"""Market service routers."""

from services.market_service.routers.auth import router as auth_router
from services.market_service.routers.catalog import router as catalog_router
from services.market_service.routers.orders import router as orders_router
from services.market_service.routers.receipts import router as receipts_router
from services.market_service.routers.reports import router as reports_router
from services.market_service.routers.settings import router as settings_router

__all__ = [
    "auth_router",
    "catalog_router",
    "orders_router",
    "receipts_router",
    "reports_router",
    "settings_router",
]
