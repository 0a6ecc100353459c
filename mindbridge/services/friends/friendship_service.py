"""
Friendship service.

One document per pair of users (collection: friendships). The pair is
identified by an order-independent `pairKey` with a unique index, so two
users can never hold more than one request or friendship between them.
A request is pending until the addressee accepts it; rejecting, cancelling
and unfriending all delete the document.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError

from common.database.store import StoreCaller
from common.utils.exceptions import ConflictException, NotFoundException, ValidationException
from mindbridge.models import (
    Friendship,
    FriendshipStatus,
    RelationStatus,
    friendship_from_document,
    pair_key,
    parse_object_id,
)

logger = logging.getLogger(__name__)


class FriendshipService:
    """Handles friend requests and the friendship predicate."""

    def __init__(self, db: AsyncIOMotorDatabase, store: Optional[StoreCaller] = None):
        self._db = db
        self._collection = db["friendships"]
        self._store = store or StoreCaller()

    async def ensure_indexes(self) -> None:
        await self._store.call_idempotent(
            lambda: self._collection.create_index(
                [("pairKey", ASCENDING)], unique=True, name="unique_pair"
            ),
            "create friendship pair index",
        )
        await self._store.call_idempotent(
            lambda: self._collection.create_index(
                [("addresseeId", ASCENDING), ("status", ASCENDING)], name="addressee_status"
            ),
            "create friendship addressee index",
        )
        await self._store.call_idempotent(
            lambda: self._collection.create_index(
                [("requesterId", ASCENDING), ("status", ASCENDING)], name="requester_status"
            ),
            "create friendship requester index",
        )

    # ─────────────────────────────────────────────────────────────────
    # Requests
    # ─────────────────────────────────────────────────────────────────

    async def send_request(self, requester_id: str, addressee_id: str) -> Friendship:
        """
        Ask another user to become friends.

        Raises:
            ValidationException: Missing addressee, or a request to yourself
            ConflictException: A request or friendship already links the pair
        """
        addressee_id = (addressee_id or "").strip()
        if not addressee_id or addressee_id == requester_id:
            raise ValidationException(
                message="Cannot send a friend request to yourself",
                code="INVALID_FRIEND",
            )

        key = pair_key(requester_id, addressee_id)
        existing = await self._find_pair(key)
        if existing:
            raise self._pair_conflict(friendship_from_document(existing), requester_id)

        now = datetime.now(timezone.utc)
        doc = {
            "requesterId": requester_id,
            "addresseeId": addressee_id,
            "pairKey": key,
            "status": FriendshipStatus.PENDING.value,
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            result = await self._store.call(
                lambda: self._collection.insert_one(doc), "insert friend request"
            )
        except DuplicateKeyError:
            # Both users asked at the same moment
            existing = await self._find_pair(key)
            if existing:
                raise self._pair_conflict(friendship_from_document(existing), requester_id)
            raise ConflictException(message="Friend request already exists", code="FRIENDSHIP_EXISTS")
        doc["_id"] = result.inserted_id

        logger.info(f"User {requester_id} sent a friend request to {addressee_id}")
        return friendship_from_document(doc)

    async def accept_request(self, user_id: str, friendship_id: str) -> Friendship:
        """
        Accept a pending request addressed to the user.

        Raises:
            NotFoundException: No pending request with that id is addressed to the user
        """
        request_oid = self._request_oid(friendship_id)
        updated = await self._store.call(
            lambda: self._collection.find_one_and_update(
                {
                    "_id": request_oid,
                    "addresseeId": user_id,
                    "status": FriendshipStatus.PENDING.value,
                },
                {
                    "$set": {
                        "status": FriendshipStatus.ACCEPTED.value,
                        "updatedAt": datetime.now(timezone.utc),
                    }
                },
                return_document=ReturnDocument.AFTER,
            ),
            "accept friend request",
        )
        if not updated:
            raise self._request_not_found()

        friendship = friendship_from_document(updated)
        logger.info(f"User {user_id} accepted friend request from {friendship.requester_id}")
        return friendship

    async def reject_request(self, user_id: str, friendship_id: str) -> None:
        """Decline a pending request addressed to the user."""
        await self._delete_pending(friendship_id, {"addresseeId": user_id}, "reject friend request")
        logger.info(f"User {user_id} rejected friend request {friendship_id}")

    async def cancel_request(self, user_id: str, friendship_id: str) -> None:
        """Withdraw a pending request the user sent."""
        await self._delete_pending(friendship_id, {"requesterId": user_id}, "cancel friend request")
        logger.info(f"User {user_id} cancelled friend request {friendship_id}")

    async def remove_friend(self, user_id: str, friend_id: str) -> None:
        """
        End an accepted friendship. Either side may do this.

        Raises:
            NotFoundException: The users are not friends
        """
        key = pair_key(user_id, friend_id)
        removed = await self._store.call(
            lambda: self._collection.find_one_and_delete(
                {"pairKey": key, "status": FriendshipStatus.ACCEPTED.value}
            ),
            "remove friend",
        )
        if not removed:
            raise NotFoundException(message="Friendship not found", code="FRIENDSHIP_NOT_FOUND")
        logger.info(f"User {user_id} removed friend {friend_id}")

    # ─────────────────────────────────────────────────────────────────
    # Queries
    # ─────────────────────────────────────────────────────────────────

    async def relation_status(self, user_id: str, other_user_id: str) -> RelationStatus:
        if not other_user_id or other_user_id == user_id:
            return RelationStatus.NONE
        doc = await self._find_pair(pair_key(user_id, other_user_id))
        if not doc:
            return RelationStatus.NONE
        return friendship_from_document(doc).relation_for(user_id)

    async def are_friends(self, user_a: str, user_b: str) -> bool:
        if not user_a or not user_b or user_a == user_b:
            return False
        count = await self._store.call_idempotent(
            lambda: self._collection.count_documents(
                {"pairKey": pair_key(user_a, user_b), "status": FriendshipStatus.ACCEPTED.value}
            ),
            "check friendship",
        )
        return count > 0

    async def list_friends(self, user_id: str, limit: int = 200) -> List[Friendship]:
        """Accepted friendships of the user, most recently accepted first."""
        query = {
            "$or": [{"requesterId": user_id}, {"addresseeId": user_id}],
            "status": FriendshipStatus.ACCEPTED.value,
        }
        return await self._list(query, "updatedAt", limit, "list friends")

    async def list_incoming(self, user_id: str, limit: int = 100) -> List[Friendship]:
        """Pending requests addressed to the user, newest first."""
        query = {"addresseeId": user_id, "status": FriendshipStatus.PENDING.value}
        return await self._list(query, "createdAt", limit, "list incoming friend requests")

    async def list_outgoing(self, user_id: str, limit: int = 100) -> List[Friendship]:
        """Pending requests the user sent, newest first."""
        query = {"requesterId": user_id, "status": FriendshipStatus.PENDING.value}
        return await self._list(query, "createdAt", limit, "list outgoing friend requests")

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    async def _find_pair(self, key: str) -> Optional[Dict[str, Any]]:
        return await self._store.call_idempotent(
            lambda: self._collection.find_one({"pairKey": key}), "find friendship"
        )

    async def _list(
        self, query: Dict[str, Any], sort_field: str, limit: int, operation: str
    ) -> List[Friendship]:
        docs = await self._store.call_idempotent(
            lambda: self._collection.find(query)
            .sort(sort_field, DESCENDING)
            .to_list(length=limit),
            operation,
        )
        return [friendship_from_document(doc) for doc in docs]

    async def _delete_pending(
        self, friendship_id: str, party: Dict[str, str], operation: str
    ) -> None:
        request_oid = self._request_oid(friendship_id)
        removed = await self._store.call(
            lambda: self._collection.find_one_and_delete(
                {"_id": request_oid, "status": FriendshipStatus.PENDING.value, **party}
            ),
            operation,
        )
        if not removed:
            raise self._request_not_found()

    def _request_oid(self, friendship_id: str) -> ObjectId:
        request_oid = parse_object_id(friendship_id)
        if request_oid is None:
            raise self._request_not_found()
        return request_oid

    @staticmethod
    def _request_not_found() -> NotFoundException:
        return NotFoundException(message="Friend request not found", code="FRIEND_REQUEST_NOT_FOUND")

    @staticmethod
    def _pair_conflict(existing: Friendship, requester_id: str) -> ConflictException:
        relation = existing.relation_for(requester_id)
        if relation == RelationStatus.FRIENDS:
            return ConflictException(message="You are already friends", code="ALREADY_FRIENDS")
        if relation == RelationStatus.PENDING_RECEIVED:
            return ConflictException(
                message="This user has already sent you a friend request",
                code="REQUEST_PENDING",
            )
        return ConflictException(message="Friend request already sent", code="REQUEST_PENDING")
