"""Health check endpoint."""

import logging
from datetime import datetime, timezone
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/health", tags=["health"])


@router.get("")
def health(request: Request):
    """Health check endpoint with store status."""
    health_status = {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
        "services": {}
    }

    store = getattr(request.app.state, "store", None)
    if store is not None and store.ping():
        health_status["services"]["store"] = {
            "status": "healthy",
            "message": "Store reachable"
        }
    else:
        health_status["services"]["store"] = {
            "status": "unhealthy",
            "message": "Store not open or not reachable"
        }
        health_status["status"] = "degraded"

    status_code = (
        status.HTTP_200_OK if health_status["status"] == "healthy"
        else status.HTTP_503_SERVICE_UNAVAILABLE
    )

    return JSONResponse(
        content=health_status,
        status_code=status_code
    )
