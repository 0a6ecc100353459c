"""
Journal service.

Entries belong to their author (collection: journalentries). Visibility
decides who else may read them: nobody, users sharing an active circle
with the author, or everyone. Only the author edits or deletes.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from common.database.store import StoreCaller
from common.utils.exceptions import NotFoundException, ValidationException
from mindbridge.models import (
    JournalEntry,
    JournalVisibility,
    journal_from_document,
    parse_object_id,
)
from mindbridge.services.circles.membership_service import MembershipService

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 100
BODY_MAX_LENGTH = 10000


def _check_text(value: Optional[str], field: str, max_length: int) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationException(message=f"{field} cannot be empty", code="INVALID_INPUT")
    if len(value) > max_length:
        raise ValidationException(
            message=f"{field} cannot exceed {max_length} characters", code="INVALID_INPUT"
        )
    return value


def _check_visibility(value: Union[JournalVisibility, str]) -> JournalVisibility:
    try:
        return JournalVisibility(value)
    except ValueError:
        raise ValidationException(
            message="Visibility must be private, circle or public", code="INVALID_VISIBILITY"
        )


class JournalService:
    """Handles journal entries and who may read them."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        membership_service: MembershipService,
        store: Optional[StoreCaller] = None,
    ):
        self._db = db
        self._collection = db["journalentries"]
        self._memberships = membership_service
        self._store = store or StoreCaller()

    async def ensure_indexes(self) -> None:
        await self._store.call_idempotent(
            lambda: self._collection.create_index(
                [("userId", ASCENDING), ("createdAt", DESCENDING)], name="user_created"
            ),
            "create journal index",
        )

    async def create_entry(
        self,
        user_id: str,
        title: str,
        body: str,
        visibility: Union[JournalVisibility, str] = JournalVisibility.PRIVATE,
    ) -> JournalEntry:
        """
        Write a new entry.

        Raises:
            ValidationException: Empty or oversized title/body, or unknown visibility
        """
        now = datetime.now(timezone.utc)
        doc = {
            "userId": user_id,
            "title": _check_text(title, "Title", TITLE_MAX_LENGTH),
            "body": _check_text(body, "Body", BODY_MAX_LENGTH),
            "visibility": _check_visibility(visibility).value,
            "createdAt": now,
            "updatedAt": now,
        }
        result = await self._store.call(
            lambda: self._collection.insert_one(doc), "insert journal entry"
        )
        doc["_id"] = result.inserted_id

        logger.info(f"User {user_id} created journal entry {result.inserted_id}")
        return journal_from_document(doc)

    async def get_entry(self, viewer_id: Optional[str], entry_id: str) -> JournalEntry:
        """
        Fetch one entry the viewer may read.

        Raises:
            NotFoundException: Missing, or hidden from the viewer
        """
        doc = await self._find_doc(entry_id)
        if doc:
            entry = journal_from_document(doc)
            if await self._can_read(viewer_id, entry.user_id, entry.visibility):
                return entry
        raise self._not_found()

    async def list_entries(
        self, viewer_id: Optional[str], user_id: str, limit: int = 50
    ) -> List[JournalEntry]:
        """A user's entries readable by the viewer, newest first."""
        visible = await self._visible_to(viewer_id, user_id)
        query: Dict[str, Any] = {"userId": user_id}
        if visible is not None:
            query["visibility"] = {"$in": [v.value for v in visible]}

        docs = await self._store.call_idempotent(
            lambda: self._collection.find(query)
            .sort("createdAt", DESCENDING)
            .to_list(length=limit),
            "list journal entries",
        )
        return [journal_from_document(doc) for doc in docs]

    async def update_entry(
        self,
        user_id: str,
        entry_id: str,
        title: Optional[str] = None,
        body: Optional[str] = None,
        visibility: Union[JournalVisibility, str, None] = None,
    ) -> JournalEntry:
        """
        Change any of title, body and visibility on the user's own entry.

        Raises:
            NotFoundException: No such entry owned by the user
            ValidationException: A supplied field is invalid, or none was supplied
        """
        changes: Dict[str, Any] = {}
        if title is not None:
            changes["title"] = _check_text(title, "Title", TITLE_MAX_LENGTH)
        if body is not None:
            changes["body"] = _check_text(body, "Body", BODY_MAX_LENGTH)
        if visibility is not None:
            changes["visibility"] = _check_visibility(visibility).value

        entry_oid = parse_object_id(entry_id)
        if entry_oid is None:
            raise self._not_found()
        if not changes:
            raise ValidationException(message="Nothing to update", code="INVALID_INPUT")
        changes["updatedAt"] = datetime.now(timezone.utc)

        updated = await self._store.call_idempotent(
            lambda: self._collection.find_one_and_update(
                {"_id": entry_oid, "userId": user_id},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            ),
            "update journal entry",
        )
        if not updated:
            raise self._not_found()

        logger.info(f"User {user_id} updated journal entry {entry_id}")
        return journal_from_document(updated)

    async def delete_entry(self, user_id: str, entry_id: str) -> None:
        """
        Delete the user's own entry.

        Raises:
            NotFoundException: No such entry owned by the user
        """
        entry_oid = parse_object_id(entry_id)
        if entry_oid is None:
            raise self._not_found()
        result = await self._store.call_idempotent(
            lambda: self._collection.delete_one({"_id": entry_oid, "userId": user_id}),
            "delete journal entry",
        )
        if not result.deleted_count:
            raise self._not_found()
        logger.info(f"User {user_id} deleted journal entry {entry_id}")

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    async def _visible_to(
        self, viewer_id: Optional[str], user_id: str
    ) -> Optional[List[JournalVisibility]]:
        """Visibilities the viewer may read for this author. None means all."""
        if viewer_id and viewer_id == user_id:
            return None
        visible = [JournalVisibility.PUBLIC]
        if await self._memberships.shares_active_circle(viewer_id, user_id):
            visible.append(JournalVisibility.CIRCLE)
        return visible

    async def _can_read(
        self, viewer_id: Optional[str], user_id: str, visibility: JournalVisibility
    ) -> bool:
        if visibility == JournalVisibility.PUBLIC or (viewer_id and viewer_id == user_id):
            return True
        if visibility == JournalVisibility.CIRCLE:
            return await self._memberships.shares_active_circle(viewer_id, user_id)
        return False

    async def _find_doc(self, entry_id: str) -> Optional[Dict[str, Any]]:
        entry_oid = parse_object_id(entry_id)
        if entry_oid is None:
            return None
        return await self._store.call_idempotent(
            lambda: self._collection.find_one({"_id": entry_oid}), "find journal entry"
        )

    @staticmethod
    def _not_found() -> NotFoundException:
        return NotFoundException(message="Journal entry not found", code="ENTRY_NOT_FOUND")
