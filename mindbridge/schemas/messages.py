"""Pydantic models for direct message requests."""

from pydantic import BaseModel, Field


class SendMessageRequest(BaseModel):
    """Request body for sending a direct message."""
    receiverId: str = Field(..., min_length=1, max_length=128)
    content: str = Field(..., min_length=1)
