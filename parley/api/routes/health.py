"""Health & Readiness Probes: liveness and readiness endpoints.

Invariants:
    - GET /health/ always returns 200 if process is up (liveness)
    - GET /health/ready returns 503 if the database is unreachable (readiness)
    - Readiness reports whether the analysis capability has credentials, without failing on it
"""

import logging
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from parley import __version__

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/health", tags=["health"])


@router.get("/", status_code=status.HTTP_200_OK)
async def health_check():
    """Basic liveness probe. Returns 200 if the process is up."""
    return {
        "status": "healthy",
        "service": "parley-api",
        "version": __version__,
    }


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness probe: includes database connectivity."""
    db = getattr(request.app.state, "db", None)
    db_ok = await db.health_check() if db else False
    if not db_ok:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "not_ready",
                "reason": "database_unavailable",
            },
        )
    analysis = getattr(request.app.state, "analysis", None)
    configured = bool(analysis and getattr(analysis, "configured", False))
    return {
        "status": "ready",
        "checks": {
            "database": "healthy",
            "analysis": "configured" if configured else "missing_api_key",
        },
    }
