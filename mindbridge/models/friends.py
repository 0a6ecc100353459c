"""Domain types for friendships between users."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from bson import ObjectId

from mindbridge.models.circles import check_fields, enum_value


class FriendshipStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class RelationStatus(str, Enum):
    """How one user stands towards another, from the first user's side."""
    NONE = "none"
    PENDING_SENT = "pending_sent"
    PENDING_RECEIVED = "pending_received"
    FRIENDS = "friends"


FRIENDSHIP_FIELDS = {
    "_id": ObjectId,
    "requesterId": str,
    "addresseeId": str,
    "pairKey": str,
    "status": str,
    "createdAt": datetime,
    "updatedAt": datetime,
}


def pair_key(user_a: str, user_b: str) -> str:
    """Order-independent key for the two users of a friendship."""
    low, high = sorted((user_a, user_b))
    return f"{low}|{high}"


@dataclass(frozen=True)
class Friendship:
    """A friend request, or an accepted friendship once the addressee agrees."""
    id: str
    requester_id: str
    addressee_id: str
    status: FriendshipStatus
    created_at: datetime
    updated_at: datetime

    @property
    def is_accepted(self) -> bool:
        return self.status == FriendshipStatus.ACCEPTED

    def involves(self, user_id: str) -> bool:
        return user_id in (self.requester_id, self.addressee_id)

    def other_party(self, user_id: str) -> str:
        return self.addressee_id if user_id == self.requester_id else self.requester_id

    def relation_for(self, user_id: str) -> RelationStatus:
        if self.is_accepted:
            return RelationStatus.FRIENDS
        if user_id == self.requester_id:
            return RelationStatus.PENDING_SENT
        return RelationStatus.PENDING_RECEIVED


def friendship_from_document(doc: Mapping[str, Any]) -> Friendship:
    """Map a `friendships` document to a Friendship."""
    check_fields(doc, "friendship", FRIENDSHIP_FIELDS)
    doc_id = doc["_id"]

    return Friendship(
        id=str(doc_id),
        requester_id=doc["requesterId"],
        addressee_id=doc["addresseeId"],
        status=enum_value(FriendshipStatus, doc["status"], "friendship", "status", doc_id),
        created_at=doc["createdAt"],
        updated_at=doc["updatedAt"],
    )
