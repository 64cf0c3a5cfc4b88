"""Request schemas for the internal job and trust endpoints."""

from __future__ import annotations

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field


class TrustBoostRequest(BaseModel):
    """Credit one positive action to a founder immediately."""

    founder_id: UUID
    action: Literal["match_accepted", "circle_joined", "meeting_attended", "feedback_given"] = (
        Field(..., description="Action whose boost value is applied")
    )
