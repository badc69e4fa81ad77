"""
SyncScript Dashboard Backend - FastAPI Application

REST API over the task engine: toggles, filtered lists, views and the
energy overview.

Usage:
    uvicorn syncscript.dashboard.backend.main:app --host 127.0.0.1 --port 8080 --reload

    Or run directly:
    python -m syncscript.dashboard.backend.main
"""

import json
import logging
from contextlib import asynccontextmanager
from datetime import datetime

# Load .env file before anything else
from dotenv import load_dotenv
load_dotenv()

import yaml
from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from syncscript import __version__
from syncscript.dashboard.backend import CONFIG_PATH, PROJECT_ROOT
from syncscript.dashboard.backend.models import ErrorResponse, HealthCheck
from syncscript.dashboard.backend.routes import api_router
from syncscript.dashboard.backend.routes.tasks import get_store, set_store
from syncscript.logging_config import setup_logging
from syncscript.tasks.errors import NotFoundError, ValidationError
from syncscript.tasks.store import load_tasks

setup_logging()
logger = logging.getLogger(__name__)


def load_config() -> dict:
    """Load dashboard configuration from YAML."""
    if CONFIG_PATH.exists():
        with open(CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


# Global config
config = load_config()
dashboard_config = config.get("dashboard", {})


def load_snapshot() -> None:
    """Seed the store from the configured JSON snapshot, if any."""
    snapshot_path = dashboard_config.get("snapshot_path")
    if not snapshot_path:
        return

    path = PROJECT_ROOT / snapshot_path
    if not path.exists():
        logger.warning(f"Task snapshot not found: {path}")
        return

    with open(path) as f:
        items = json.load(f)
    set_store(load_tasks(items))
    logger.info(f"Loaded {len(items)} tasks from {path}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting SyncScript Dashboard Backend...")
    load_snapshot()
    yield
    logger.info("Shutting down SyncScript Dashboard Backend...")


# Create FastAPI application
app = FastAPI(
    title="SyncScript Task API",
    description="Task completion, rewards and filtered task views",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
    lifespan=lifespan,
)

# Configure CORS
security_config = dashboard_config.get("security", {})
allowed_origins = security_config.get(
    "allowed_origins", ["http://localhost:3000", "http://127.0.0.1:3000"]
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# Health
# =============================================================================


@app.get("/api/health", response_model=HealthCheck)
async def health_check():
    """Report service health and how many tasks are loaded."""
    return HealthCheck(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(),
        tasks_loaded=len(get_store()),
    )


# =============================================================================
# Error Handlers
# =============================================================================


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with consistent format."""
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail), code=f"HTTP_{exc.status_code}").model_dump(),
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=ErrorResponse(error=str(exc), code="NOT_FOUND").model_dump(),
    )


@app.exception_handler(ValidationError)
async def validation_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=422,
        content=ErrorResponse(error=str(exc), code="VALIDATION_ERROR").model_dump(),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(error="Internal server error", code="INTERNAL_ERROR").model_dump(),
    )


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(api_router)


# =============================================================================
# Main Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    host = dashboard_config.get("host", "127.0.0.1")
    port = dashboard_config.get("api_port", 8080)

    uvicorn.run(
        "syncscript.dashboard.backend.main:app", host=host, port=port, reload=True, log_level="info"
    )
