"""Pydantic models for friend request bodies."""

from pydantic import BaseModel, Field


class FriendRequestRequest(BaseModel):
    """Request body for asking another user to be friends."""
    userId: str = Field(..., min_length=1, max_length=128)
