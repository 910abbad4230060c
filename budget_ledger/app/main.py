"""
FastAPI Application Entry Point.

Barangay Budget Ledger API.
"""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from budget_ledger.app.core.config import settings
from budget_ledger.app.core.observability import ObservabilityMiddleware, configure_logging
from budget_ledger.app.api.v1.router import router as api_v1_router
from budget_ledger.app.db.session import engine, Base, get_session_factory
from budget_ledger.app.services.container import build_ledger_services
from budget_ledger.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from budget_ledger.app.models.tenant import Tenant  # noqa: F401
from budget_ledger.app.models.user import User  # noqa: F401
from budget_ledger.app.models.project import Project  # noqa: F401
from budget_ledger.app.models.budget_account import BudgetAccount  # noqa: F401
from budget_ledger.app.models.budget_transaction import BudgetTransaction  # noqa: F401
from budget_ledger.app.models.audit_log import AuditLog  # noqa: F401

logger = logging.getLogger("budget_ledger")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Configures logging and creates database tables.
    2. Builds the ledger services (one lock registry per process).
    3. On shutdown, waits for pending audit writes.
    """
    configure_logging(settings.log_level)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    services = getattr(app.state, "ledger_services", None)
    if services is None:
        services = build_ledger_services(get_session_factory())
        app.state.ledger_services = services
    logger.info("Budget ledger started")

    yield

    await services.audit.drain()
    logger.info("Budget ledger stopped")


app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Per-barangay budget ledger with role-based access and an audit trail",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Welcome to the Barangay Budget Ledger API",
        "docs": "/docs",
        "health": "/health",
    }
