"""
Pydantic models for mood log and journal request validation.

Lengths here mirror the limits the services enforce after stripping.
"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field

from mindbridge.models import JournalVisibility, MoodValue, MoodVisibility


class LogMoodRequest(BaseModel):
    """Request body for logging today's (or a given day's) mood."""
    value: MoodValue
    note: str = Field("", max_length=500)
    visibility: MoodVisibility = MoodVisibility.PRIVATE
    day: Optional[date] = None


class CreateJournalEntryRequest(BaseModel):
    """Request body for writing a journal entry."""
    title: str = Field(..., min_length=1, max_length=100)
    body: str = Field(..., min_length=1, max_length=10000)
    visibility: JournalVisibility = JournalVisibility.PRIVATE


class UpdateJournalEntryRequest(BaseModel):
    """Request body for editing a journal entry. Only sent fields change."""
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    body: Optional[str] = Field(None, min_length=1, max_length=10000)
    visibility: Optional[JournalVisibility] = None
