"""Domain type for direct messages between users."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from bson import ObjectId

from mindbridge.models.circles import check_fields

MESSAGE_FIELDS = {
    "_id": ObjectId,
    "senderId": str,
    "receiverId": str,
    "content": str,
    "isRead": bool,
    "createdAt": datetime,
}


@dataclass(frozen=True)
class DirectMessage:
    """A message from one user to another."""
    id: str
    sender_id: str
    receiver_id: str
    content: str
    is_read: bool
    created_at: datetime


def message_from_document(doc: Mapping[str, Any]) -> DirectMessage:
    """Map a `directmessages` document to a DirectMessage."""
    check_fields(doc, "message", MESSAGE_FIELDS)

    return DirectMessage(
        id=str(doc["_id"]),
        sender_id=doc["senderId"],
        receiver_id=doc["receiverId"],
        content=doc["content"],
        is_read=doc["isRead"],
        created_at=doc["createdAt"],
    )
