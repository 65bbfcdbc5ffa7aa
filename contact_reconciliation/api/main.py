"""
Contact Reconciliation Service - FastAPI Application

Provides:
- Identity consolidation of partial contact records (POST /identify)
- Health, readiness and liveness probes
- Prometheus metrics
"""

import logging
import structlog
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from contact_reconciliation import __version__
from contact_reconciliation.api.middleware import RequestIDMiddleware, get_cors_origins
from contact_reconciliation.api.routes import health, identify
from contact_reconciliation.config import get_settings
from contact_reconciliation.db.client import close_db, create_schema, init_db
from contact_reconciliation.kernel.http.errors import register_exception_handlers

# Map log level string to logging constant
_LOG_LEVEL_MAP = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


def _get_log_level() -> int:
    """Get numeric log level from settings."""
    level_str = get_settings().log_level.lower()
    return _LOG_LEVEL_MAP.get(level_str, logging.INFO)


# Configure structured logging
structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer()
        if get_settings().log_format == "json"
        else structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(_get_log_level()),
    context_class=dict,
    logger_factory=structlog.PrintLoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - startup and shutdown."""
    settings = get_settings()

    logger.info(
        "Starting Contact Reconciliation Service",
        version=__version__,
        environment=settings.environment,
    )

    await init_db()
    logger.info("PostgreSQL connection initialized")

    if settings.db_create_schema:
        await create_schema()

    yield

    logger.info("Shutting down Contact Reconciliation Service")
    await close_db()


app = FastAPI(
    title="Contact Reconciliation API",
    description="Consolidates partial email/phone contact records into one identity per person",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

register_exception_handlers(app)

# Request ID tracking
app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

# Prometheus metrics endpoint
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(identify.router, tags=["Identity"])


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Contact Reconciliation API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "metrics": "/metrics",
    }
