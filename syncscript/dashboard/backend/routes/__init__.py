"""Dashboard API Routes Package

Aggregates route handlers into a single router for the FastAPI app.
"""

from fastapi import APIRouter

from .tasks import router as tasks_router


# Create main API router
api_router = APIRouter(prefix="/api")

api_router.include_router(tasks_router, prefix="/tasks", tags=["tasks"])

__all__ = ["api_router"]
