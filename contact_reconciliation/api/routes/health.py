"""Health check endpoints."""

import time

import structlog
from fastapi import APIRouter, Response

from contact_reconciliation import __version__
from contact_reconciliation.db.client import is_db_initialized, ping
from contact_reconciliation.kernel.time import isoformat_z, utc_now

router = APIRouter()
logger = structlog.get_logger()

# Track startup time
_startup_monotonic = time.monotonic()


@router.get("/health")
async def health_check():
    """
    Basic health check endpoint.
    Returns 200 if the service is running.
    """
    return {
        "status": "OK",
        "service": "contact-reconciliation",
        "version": __version__,
        "timestamp": isoformat_z(utc_now()),
        "uptime_seconds": round(time.monotonic() - _startup_monotonic, 3),
    }


@router.get("/ready")
async def readiness_check(response: Response):
    """
    Readiness check endpoint.
    Verifies the contact store answers queries.
    """
    checks = {"postgres": False}

    if is_db_initialized():
        try:
            checks["postgres"] = await ping()
        except Exception as e:
            logger.warning("PostgreSQL health check failed", error=str(e))

    all_healthy = all(checks.values())
    if not all_healthy:
        response.status_code = 503

    return {
        "status": "ready" if all_healthy else "degraded",
        "checks": checks,
        "timestamp": isoformat_z(utc_now()),
    }


@router.get("/live")
async def liveness_check():
    """
    Liveness check for Kubernetes.
    Returns 200 if the process is alive.
    """
    return {"status": "alive"}
