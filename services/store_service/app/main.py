"""FastAPI application for the Store Service."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from libs.common.error_handler import add_exception_handlers
from libs.common.middleware import add_http_middleware
from libs.common.redis import close_redis
from services.store_service.errors import StoreError
from services.store_service.routers import (
    catalog_router,
    media_router,
    orders_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await close_redis()


def create_app() -> FastAPI:
    """Create and configure the Store Service FastAPI app."""
    app = FastAPI(
        title="Centery Store Service",
        version="0.1.0",
        description="Storefront API over a Bitable product catalog and order ledger.",
        lifespan=lifespan,
    )

    add_http_middleware(app)
    add_exception_handlers(app, StoreError)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "store"}

    app.include_router(catalog_router, prefix="/api")
    app.include_router(orders_router, prefix="/api")
    app.include_router(media_router, prefix="/api")

    return app


app = create_app()
