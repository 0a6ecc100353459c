"""Mood tracking and journal services."""

from mindbridge.services.wellbeing.journal_service import JournalService
from mindbridge.services.wellbeing.mood_service import MoodService

__all__ = ["JournalService", "MoodService"]
