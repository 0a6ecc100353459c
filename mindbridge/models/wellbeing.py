"""
Domain types for mood logs and journal entries.

Both belong to a single user and carry their own visibility. A mood log is
keyed by (user, calendar day); logging twice on one day replaces the value.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from bson import ObjectId

from mindbridge.models.circles import MalformedDocumentError, check_fields, enum_value


class MoodValue(str, Enum):
    GOOD = "good"
    NEUTRAL = "neutral"
    BAD = "bad"


class MoodVisibility(str, Enum):
    PRIVATE = "private"
    PUBLIC = "public"


class JournalVisibility(str, Enum):
    PRIVATE = "private"
    # Readable by users who share an active circle with the author
    CIRCLE = "circle"
    PUBLIC = "public"


MOOD_FIELDS = {
    "_id": ObjectId,
    "userId": str,
    "date": str,
    "value": str,
    "note": str,
    "visibility": str,
    "createdAt": datetime,
    "updatedAt": datetime,
}

JOURNAL_FIELDS = {
    "_id": ObjectId,
    "userId": str,
    "title": str,
    "body": str,
    "visibility": str,
    "createdAt": datetime,
    "updatedAt": datetime,
}


@dataclass(frozen=True)
class MoodLog:
    """One user's mood for one day (date is YYYY-MM-DD)."""
    id: str
    user_id: str
    date: str
    value: MoodValue
    note: str
    visibility: MoodVisibility
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class JournalEntry:
    id: str
    user_id: str
    title: str
    body: str
    visibility: JournalVisibility
    created_at: datetime
    updated_at: datetime


def mood_from_document(doc: Mapping[str, Any]) -> MoodLog:
    """Map a `moodlogs` document to a MoodLog."""
    check_fields(doc, "mood log", MOOD_FIELDS)
    doc_id = doc["_id"]

    try:
        datetime.strptime(doc["date"], "%Y-%m-%d")
    except ValueError:
        raise MalformedDocumentError("mood log", f"field date is not a day: {doc['date']!r}", doc_id)

    return MoodLog(
        id=str(doc_id),
        user_id=doc["userId"],
        date=doc["date"],
        value=enum_value(MoodValue, doc["value"], "mood log", "value", doc_id),
        note=doc["note"],
        visibility=enum_value(MoodVisibility, doc["visibility"], "mood log", "visibility", doc_id),
        created_at=doc["createdAt"],
        updated_at=doc["updatedAt"],
    )


def journal_from_document(doc: Mapping[str, Any]) -> JournalEntry:
    """Map a `journalentries` document to a JournalEntry."""
    check_fields(doc, "journal entry", JOURNAL_FIELDS)
    doc_id = doc["_id"]

    return JournalEntry(
        id=str(doc_id),
        user_id=doc["userId"],
        title=doc["title"],
        body=doc["body"],
        visibility=enum_value(
            JournalVisibility, doc["visibility"], "journal entry", "visibility", doc_id
        ),
        created_at=doc["createdAt"],
        updated_at=doc["updatedAt"],
    )
