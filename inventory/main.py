"""FastAPI application entry point.

Product inventory service: CSV import with upsert-by-code, CSV export in
storefront and spreadsheet dialects, and plain product CRUD.
"""

import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator
from uuid import uuid4

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from inventory import __version__
from inventory.config import settings
from inventory.core.exporters import get_formatter_registry
from inventory.core.header_aliases import get_alias_loader, load_header_aliases
from inventory.errors import (
    CsvFormatError,
    ProductConflictError,
    ProductNotFoundError,
    UnknownExportFormatError,
    UploadTooLargeError,
)
from inventory.infra.database import close_db_engine, create_tables, verify_db_connection
from inventory.infra.logging import (
    bind_request_context,
    clear_request_context,
    get_logger,
    setup_logging,
)
from inventory.schemas.common import ErrorResponse

# Import routers
from inventory.api.routes.health import router as health_router
from inventory.api.routes.products import router as products_router
from inventory.api.routes.transfer import router as transfer_router

# Setup logging first
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler.

    Startup:
    - Load the header alias table
    - Create tables when configured to
    - Verify database connection

    Shutdown:
    - Close database connections
    - Clear the alias cache
    """
    logger.info("Inventory API starting", environment=settings.environment)

    try:
        aliases = load_header_aliases()
        logger.info("Header aliases loaded", version=aliases.version, aliases=len(aliases))
    except Exception as e:
        logger.warning("Failed to preload header aliases", error=str(e))

    logger.info("Export formats registered", formats=get_formatter_registry().get_available())

    if settings.create_tables_on_startup:
        await create_tables()

    db_ok = await verify_db_connection()
    if not db_ok:
        logger.warning("Database connection failed - will retry on first request")

    yield

    logger.info("Inventory API shutting down")
    await close_db_engine()
    get_alias_loader().clear_cache()
    logger.info("Cleanup complete")


app = FastAPI(
    title="Product Inventory API",
    description="Bulk CSV import/export and CRUD for a product catalogue",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.environment == "dev" else None,
    redoc_url=None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Bind request context for all logs and log the outcome.

    The caller's `X-Request-ID` is reused when present and echoed back.
    """
    request_id = request.headers.get("X-Request-ID") or uuid4().hex
    bind_request_context(request_id, request.method, request.url.path)
    started = time.perf_counter()

    try:
        response = await call_next(request)
        logger.info(
            "Request handled",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        response.headers["X-Request-ID"] = request_id
        return response
    finally:
        clear_request_context()


# =============================================================================
# Exception Handlers
# =============================================================================


@app.exception_handler(CsvFormatError)
async def csv_format_handler(request: Request, exc: CsvFormatError) -> JSONResponse:
    logger.warning("Rejected malformed CSV", error=str(exc), path=request.url.path)
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": f"Bad CSV format: {exc}"},
    )


@app.exception_handler(UnknownExportFormatError)
async def unknown_format_handler(request: Request, exc: UnknownExportFormatError) -> JSONResponse:
    logger.warning("Unknown export format", requested=exc.requested)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(ProductNotFoundError)
async def not_found_handler(request: Request, exc: ProductNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(ProductConflictError)
async def conflict_handler(request: Request, exc: ProductConflictError) -> JSONResponse:
    logger.warning("Product write conflict", error=exc.detail, path=request.url.path)
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content={"detail": str(exc)})


@app.exception_handler(UploadTooLargeError)
async def too_large_handler(request: Request, exc: UploadTooLargeError) -> JSONResponse:
    logger.warning("Upload too large", size_bytes=exc.size, limit_bytes=exc.limit)
    return JSONResponse(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        content={"detail": str(exc)},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle uncaught exceptions with a structured 500 body."""
    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        exc_info=True,
    )
    body = ErrorResponse(error="Internal server error", error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body.model_dump(exclude_none=True),
    )


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(health_router, tags=["Health"])
# Transfer routes first so /import and /export are not captured as ids.
app.include_router(transfer_router, prefix="/api/products", tags=["Import/Export"])
app.include_router(products_router, prefix="/api/products", tags=["Products"])


@app.get("/")
async def root() -> dict:
    """Root endpoint - basic service info."""
    return {
        "service": "Product Inventory API",
        "version": __version__,
        "environment": settings.environment,
    }
