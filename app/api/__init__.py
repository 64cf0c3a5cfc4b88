"""API routes."""

from app.api.internal import router as internal_router

__all__ = ["internal_router"]
