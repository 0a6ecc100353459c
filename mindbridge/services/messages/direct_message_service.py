"""
Direct message service.

Stores one document per message (collection: directmessages) and exposes a
change-stream backed feed of newly received messages. The feed is best
effort: events emitted while nobody is listening are not replayed.

When built with a FriendshipService, only accepted friends can message each
other. Reading an existing conversation is not gated.
"""

import logging
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import PyMongoError

from common.database.store import StoreCaller, StoreUnavailable
from common.utils.exceptions import ForbiddenException, ValidationException
from mindbridge.models import DirectMessage, message_from_document, parse_object_id
from mindbridge.services.friends.friendship_service import FriendshipService

logger = logging.getLogger(__name__)

DEFAULT_MAX_LENGTH = 2000


class DirectMessageService:
    """Handles sending, reading and streaming direct messages."""

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        store: Optional[StoreCaller] = None,
        max_length: int = DEFAULT_MAX_LENGTH,
        page_size: int = 100,
        friendships: Optional[FriendshipService] = None,
    ):
        self._db = db
        self._collection = db["directmessages"]
        self._store = store or StoreCaller()
        self._max_length = max_length
        self._page_size = page_size
        self._friendships = friendships

    async def ensure_indexes(self) -> None:
        await self._store.call_idempotent(
            lambda: self._collection.create_index(
                [("senderId", ASCENDING), ("receiverId", ASCENDING), ("createdAt", ASCENDING)],
                name="conversation",
            ),
            "create conversation index",
        )
        await self._store.call_idempotent(
            lambda: self._collection.create_index(
                [("receiverId", ASCENDING), ("isRead", ASCENDING)], name="receiver_unread"
            ),
            "create unread index",
        )

    async def send_message(
        self, sender_id: str, receiver_id: str, content: str
    ) -> DirectMessage:
        """
        Store a message from sender to receiver.

        Raises:
            ValidationException: Empty, oversized or self-addressed message
            ForbiddenException: Friendship required and the users are not friends
        """
        if not receiver_id or receiver_id == sender_id:
            raise ValidationException(
                message="Cannot send a message to yourself",
                code="INVALID_RECEIVER",
            )

        if self._friendships is not None and not await self._friendships.are_friends(
            sender_id, receiver_id
        ):
            raise ForbiddenException(
                message="You can only message your friends",
                code="NOT_FRIENDS",
            )

        content = content.strip() if content else ""

        if not content:
            raise ValidationException(
                message="Message content cannot be empty",
                code="EMPTY_MESSAGE",
            )

        if len(content) > self._max_length:
            raise ValidationException(
                message=f"Message cannot exceed {self._max_length} characters",
                code="MESSAGE_TOO_LONG",
            )

        message_doc = {
            "senderId": sender_id,
            "receiverId": receiver_id,
            "content": content,
            "isRead": False,
            "createdAt": datetime.now(timezone.utc),
        }
        result = await self._store.call(
            lambda: self._collection.insert_one(message_doc), "insert direct message"
        )
        message_doc["_id"] = result.inserted_id

        logger.info(f"Message {result.inserted_id} sent from {sender_id} to {receiver_id}")
        return message_from_document(message_doc)

    async def get_conversation(
        self, user_id: str, other_user_id: str, limit: Optional[int] = None
    ) -> List[DirectMessage]:
        """Most recent messages between two users, returned oldest first."""
        limit = limit or self._page_size
        query = {
            "$or": [
                {"senderId": user_id, "receiverId": other_user_id},
                {"senderId": other_user_id, "receiverId": user_id},
            ]
        }
        docs = await self._store.call_idempotent(
            lambda: self._collection.find(query)
            .sort("createdAt", DESCENDING)
            .to_list(length=limit),
            "get conversation",
        )
        docs.reverse()
        return [message_from_document(doc) for doc in docs]

    async def mark_as_read(self, user_id: str, message_id: str) -> bool:
        """Mark a message read. Only its receiver can do this."""
        message_oid = parse_object_id(message_id)
        if message_oid is None:
            return False

        result = await self._store.call_idempotent(
            lambda: self._collection.update_one(
                {"_id": message_oid, "receiverId": user_id},
                {"$set": {"isRead": True}},
            ),
            "mark message read",
        )
        return result.matched_count > 0

    async def unread_count(self, user_id: str) -> int:
        return await self._store.call_idempotent(
            lambda: self._collection.count_documents({"receiverId": user_id, "isRead": False}),
            "count unread messages",
        )

    async def watch_incoming(self, user_id: str) -> AsyncIterator[DirectMessage]:
        """
        Yield messages inserted for the user from now on.

        Requires a replica set or sharded cluster. Stream errors end the
        iteration with StoreUnavailable; callers reconnect if they want to.
        """
        pipeline: List[Dict[str, Any]] = [
            {"$match": {"operationType": "insert", "fullDocument.receiverId": user_id}}
        ]
        try:
            async with self._collection.watch(pipeline) as stream:
                logger.info(f"Watching incoming messages for {user_id}")
                async for change in stream:
                    yield message_from_document(change["fullDocument"])
        except PyMongoError as e:
            logger.warning(f"Message stream for {user_id} ended: {e}")
            raise StoreUnavailable("watch incoming messages", e) from e
