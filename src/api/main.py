"""FastAPI application entry point."""

import os
import sys
import logging
import tomllib
from contextlib import asynccontextmanager
from pathlib import Path
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from dotenv import load_dotenv

# Load environment variables from .env file
# Must be called before importing modules that read env vars (store path, bcrypt cost)
load_dotenv()

# Add src to path
# main.py is at /app/src/api/main.py
# src is at /app/src, so we go up 2 levels
_src_path = Path(__file__).parent.parent
sys.path.insert(0, str(_src_path))

from api.middleware.request_logging import log_requests
from api.routes import health, users
from utils.logging import setup_structured_logging
from adapter.kvstore.connection import open_store

setup_structured_logging(
    level=os.getenv("LOG_LEVEL", "INFO"),
    log_file=os.getenv("LOG_FILE"),
)

logger = logging.getLogger(__name__)

# Read version from pyproject.toml (single source of truth)
_project_root = _src_path.parent
with open(_project_root / "pyproject.toml", "rb") as f:
    VERSION = tomllib.load(f)["project"]["version"]

SERVICE_NAME = "User Service API"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: open the store on startup, close it on shutdown."""
    store = open_store()
    app.state.store = store

    yield  # App runs here

    store.close()
    app.state.store = None
    logger.info("Store closed", extra={"path": store.path})


# Create FastAPI app
app = FastAPI(
    title=SERVICE_NAME,
    description="CRUD and search API for users backed by an embedded key-value store",
    version=VERSION,
    lifespan=lifespan,
)

app.middleware("http")(log_requests)


@app.exception_handler(RequestValidationError)
async def invalid_payload_handler(request: Request, exc: RequestValidationError):
    """Report malformed bodies as 400 instead of FastAPI's default 422."""
    logger.warning("Invalid request payload", extra={
        "path": request.url.path,
        "errors": str(exc.errors())[:500],
    })
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": "Invalid request payload"},
    )


# Register routes
app.include_router(users.router)
app.include_router(health.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": SERVICE_NAME,
        "version": VERSION,
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("APP_PORT", 3000))
    # Requests are already logged by log_requests
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=port,
        access_log=False
    )
