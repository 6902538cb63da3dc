"""Market service schemas package."""

from services.market_service.schemas.auth import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    UserResponse,
)
from services.market_service.schemas.catalog import (
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    RecipientCreate,
    RecipientResponse,
    RecipientUpdate,
)
from services.market_service.schemas.common import MessageResponse, Page, Pagination
from services.market_service.schemas.orders import (
    OrderCreate,
    OrderItemInput,
    OrderItemResponse,
    OrderResponse,
    OrderUpdate,
)
from services.market_service.schemas.receipts import (
    PrinterListResponse,
    PrintResponse,
    ReceiptDetail,
    ReceiptListItem,
    ReceiptResponse,
)
from services.market_service.schemas.reports import (
    ProductRevenue,
    RecipientRevenue,
    TotalRevenue,
)
from services.market_service.schemas.settings import (
    CompanyNameResponse,
    CompanyNameUpdate,
    CompanyNameUpdated,
    LogoUploadResponse,
)

__all__ = [
    "AuthResponse",
    "CompanyNameResponse",
    "CompanyNameUpdate",
    "CompanyNameUpdated",
    "LoginRequest",
    "LogoUploadResponse",
    "MessageResponse",
    "OrderCreate",
    "OrderItemInput",
    "OrderItemResponse",
    "OrderResponse",
    "OrderUpdate",
    "Page",
    "Pagination",
    "PrintResponse",
    "PrinterListResponse",
    "ProductCreate",
    "ProductResponse",
    "ProductRevenue",
    "ProductUpdate",
    "ReceiptDetail",
    "ReceiptListItem",
    "ReceiptResponse",
    "RecipientCreate",
    "RecipientResponse",
    "RecipientRevenue",
    "RecipientUpdate",
    "RegisterRequest",
    "TotalRevenue",
    "UserResponse",
]
