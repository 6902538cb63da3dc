"""FastAPI application for the market back office."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from libs.common.config import get_settings
from libs.common.error_handler import add_exception_handlers
from libs.common.logging import get_logger
from libs.common.middleware import add_observability_middleware
from libs.common.rate_limit import limiter, rate_limit_exceeded_handler
from services.market_service.routers import (
    auth_router,
    catalog_router,
    orders_router,
    receipts_router,
    reports_router,
    settings_router,
)
from services.market_service.services.printing import get_printer_backend
from slowapi.errors import RateLimitExceeded

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    # Pick the printer backend once, before the first request
    get_printer_backend()
    logger.info(
        "Market service starting (env=%s, receipts=%s)",
        settings.ENVIRONMENT,
        settings.RECEIPT_STORAGE_PATH,
    )
    yield


def create_app() -> FastAPI:
    """Create and configure the market back office FastAPI app."""
    settings = get_settings()
    app = FastAPI(
        title="Market Back Office",
        version="0.1.0",
        description="Products, recipients, orders and PDF receipts.",
        lifespan=lifespan,
    )

    # Add rate limiter state to app
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Content-Disposition", "X-Request-ID"],
    )

    # Add observability (structured logging + request tracing)
    add_observability_middleware(app)

    # Add global exception handlers for consistent error responses
    add_exception_handlers(app)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "market"}

    prefix = settings.API_PREFIX
    app.include_router(auth_router, prefix=prefix)
    app.include_router(catalog_router, prefix=prefix)
    app.include_router(orders_router, prefix=prefix)
    app.include_router(receipts_router, prefix=prefix)
    app.include_router(reports_router, prefix=prefix)
    app.include_router(settings_router, prefix=prefix)

    return app


app = create_app()
