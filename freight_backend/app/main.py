"""
FastAPI Application Entry Point.

This is the main application file for the Freight Reconciliation backend.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import DBAPIError
from freight_backend.app.core.config import settings
from freight_backend.app.api.v1.router import router as api_v1_router
from freight_backend.app.core.observability import ObservabilityMiddleware, configure_logging
from freight_backend.app.core.redis_client import close_redis, ping_redis
from freight_backend.app.db.session import engine, Base
from freight_backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    storage_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from freight_backend.app.models.account import Account
from freight_backend.app.models.ledger_entry import LedgerEntry
from freight_backend.app.models.shipment import Shipment
from freight_backend.app.models.financial_document import FinancialDocument, DocumentLine
from freight_backend.app.models.club_batch import ClubBatch, ClubBatchItem
from freight_backend.app.models.audit_log import AuditLog
from freight_backend.app.models.dlq import DeadLetterQueue

configure_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables on startup.
    2. Closes the Redis pool and disposes the engine on shutdown.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_redis()
    await engine.dispose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Ledger, billing and club reconciliation for freight operations",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(DBAPIError, storage_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status, application information and Redis reachability
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "redis": "up" if await ping_redis() else "down",
    }


# Include API v1 router
app.include_router(api_v1_router, prefix=f"/{settings.api_version}")
