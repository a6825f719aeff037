"""Per-request access logging."""

import logging
import time

from fastapi import Request

logger = logging.getLogger("api.access")


async def log_requests(request: Request, call_next):
    """Log method, path, status and latency of every request.

    An exception escaping the handler is logged as status 500 and re-raised.
    """
    start = time.perf_counter()
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        return response
    finally:
        latency_ms = (time.perf_counter() - start) * 1000
        logger.info("Request", extra={
            "method": request.method,
            "path": request.url.path,
            "status": status_code,
            "latency_ms": round(latency_ms, 2),
        })
