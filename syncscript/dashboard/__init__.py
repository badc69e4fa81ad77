"""Web Dashboard - task engine over HTTP

Components:
    backend/main.py: FastAPI application
    backend/routes/: API route handlers
    backend/models.py: Request/response models
"""
