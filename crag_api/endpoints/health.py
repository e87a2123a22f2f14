"""Health endpoint."""

import logging
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from ..clock import utc_now
from ..errors import StorageUnavailable

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/health")
def health(request: Request):
    """Liveness + DB ping. 503 when the database does not answer."""
    timestamp = utc_now().isoformat()
    try:
        request.app.state.storage.ping()
    except StorageUnavailable as e:
        # No exponer detalles del driver al cliente
        logger.warning("[HEALTH] Database check failed: %s", e)
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "timestamp": timestamp,
                "database": "disconnected",
                "error": "Database unavailable",
            },
        )

    return {
        "status": "healthy",
        "timestamp": timestamp,
        "database": "connected",
        "uptime": round(time.monotonic() - request.app.state.started_at, 3),
    }
