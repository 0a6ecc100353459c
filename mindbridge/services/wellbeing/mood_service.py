"""
Mood tracking service.

One log per user per calendar day (collection: moodlogs). Logging again on
the same day replaces the value, note and visibility but keeps createdAt.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from common.database.store import StoreCaller
from common.utils.exceptions import ValidationException
from mindbridge.models import MoodLog, MoodValue, MoodVisibility, mood_from_document

logger = logging.getLogger(__name__)

NOTE_MAX_LENGTH = 500


def day_key(day: Union[date, str, None] = None) -> str:
    """
    Normalize a day to YYYY-MM-DD. None means today in UTC.

    Raises:
        ValidationException: Not a calendar day
    """
    if day is None:
        return datetime.now(timezone.utc).date().isoformat()
    if isinstance(day, datetime):
        return day.date().isoformat()
    if isinstance(day, date):
        return day.isoformat()
    try:
        return datetime.strptime(day, "%Y-%m-%d").date().isoformat()
    except (TypeError, ValueError):
        raise ValidationException(message="Date must be YYYY-MM-DD", code="INVALID_DATE")


class MoodService:
    """Handles daily mood logs and their summaries."""

    def __init__(self, db: AsyncIOMotorDatabase, store: Optional[StoreCaller] = None):
        self._db = db
        self._collection = db["moodlogs"]
        self._store = store or StoreCaller()

    async def ensure_indexes(self) -> None:
        await self._store.call_idempotent(
            lambda: self._collection.create_index(
                [("userId", ASCENDING), ("date", ASCENDING)], unique=True, name="user_day"
            ),
            "create mood log index",
        )

    async def log_mood(
        self,
        user_id: str,
        value: Union[MoodValue, str],
        note: str = "",
        visibility: Union[MoodVisibility, str] = MoodVisibility.PRIVATE,
        day: Union[date, str, None] = None,
    ) -> MoodLog:
        """
        Record the user's mood for a day, replacing any earlier log that day.

        Raises:
            ValidationException: Unknown value or visibility, bad date, or note too long
        """
        try:
            value = MoodValue(value)
        except ValueError:
            raise ValidationException(message="Mood must be good, neutral or bad", code="INVALID_MOOD")
        try:
            visibility = MoodVisibility(visibility)
        except ValueError:
            raise ValidationException(
                message="Visibility must be private or public", code="INVALID_VISIBILITY"
            )

        note = (note or "").strip()
        if len(note) > NOTE_MAX_LENGTH:
            raise ValidationException(
                message=f"Note cannot exceed {NOTE_MAX_LENGTH} characters",
                code="NOTE_TOO_LONG",
            )
        key = day_key(day)

        now = datetime.now(timezone.utc)
        query = {"userId": user_id, "date": key}
        update = {
            "$set": {
                "value": value.value,
                "note": note,
                "visibility": visibility.value,
                "updatedAt": now,
            },
            "$setOnInsert": {"createdAt": now},
        }

        def upsert():
            return self._collection.find_one_and_update(
                query, update, upsert=True, return_document=ReturnDocument.AFTER
            )

        try:
            doc = await self._store.call_idempotent(upsert, "log mood")
        except DuplicateKeyError:
            # A concurrent first log for the same day won the insert; update it instead
            doc = await self._store.call_idempotent(upsert, "log mood")

        logger.info(f"User {user_id} logged mood {value.value} for {key}")
        return mood_from_document(doc)

    async def get_mood(
        self, viewer_id: Optional[str], user_id: str, day: Union[date, str, None] = None
    ) -> Optional[MoodLog]:
        """The user's log for a day, if there is one the viewer may see."""
        query: Dict[str, Any] = {"userId": user_id, "date": day_key(day)}
        if viewer_id != user_id:
            query["visibility"] = MoodVisibility.PUBLIC.value
        doc = await self._store.call_idempotent(
            lambda: self._collection.find_one(query), "get mood"
        )
        return mood_from_document(doc) if doc else None

    async def list_moods(
        self, viewer_id: Optional[str], user_id: str, days: int = 30
    ) -> List[MoodLog]:
        """
        Logs from the last `days` days, newest first.

        Owners see all their logs; everyone else only the public ones.
        """
        query = self._range_query(user_id, days)
        if viewer_id != user_id:
            query["visibility"] = MoodVisibility.PUBLIC.value
        docs = await self._store.call_idempotent(
            lambda: self._collection.find(query).sort("date", DESCENDING).to_list(length=days),
            "list moods",
        )
        return [mood_from_document(doc) for doc in docs]

    async def delete_mood(self, user_id: str, day: Union[date, str, None] = None) -> bool:
        """Delete the user's own log for a day. False if there was none."""
        key = day_key(day)
        result = await self._store.call_idempotent(
            lambda: self._collection.delete_one({"userId": user_id, "date": key}),
            "delete mood",
        )
        if result.deleted_count:
            logger.info(f"User {user_id} deleted mood log for {key}")
        return result.deleted_count > 0

    async def mood_summary(self, user_id: str, days: int = 7) -> Dict[str, Any]:
        """Count of each mood value over the user's last `days` days."""
        query = self._range_query(user_id, days)
        docs = await self._store.call_idempotent(
            lambda: self._collection.find(query).to_list(length=days),
            "summarize moods",
        )
        logs = [mood_from_document(doc) for doc in docs]

        counts = {value.value: 0 for value in MoodValue}
        for log in logs:
            counts[log.value.value] += 1
        return {
            "from": query["date"]["$gte"],
            "to": query["date"]["$lte"],
            "days": days,
            "logged": len(logs),
            "counts": counts,
        }

    @staticmethod
    def _range_query(user_id: str, days: int) -> Dict[str, Any]:
        if days < 1:
            raise ValidationException(message="Days must be at least 1", code="INVALID_RANGE")
        today = datetime.now(timezone.utc).date()
        start = today - timedelta(days=days - 1)
        return {"userId": user_id, "date": {"$gte": start.isoformat(), "$lte": today.isoformat()}}
