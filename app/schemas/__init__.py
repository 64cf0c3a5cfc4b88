"""Pydantic schemas for request/response validation."""

from app.schemas.jobs import TrustBoostRequest

__all__ = ["TrustBoostRequest"]
