"""
Domain models for MindBridge.

Frozen dataclasses plus validated mapping functions from stored documents.
"""

from mindbridge.models.circles import (
    Circle,
    Comment,
    MalformedDocumentError,
    Membership,
    MembershipStatus,
    Post,
    Role,
    Visibility,
    circle_from_document,
    comment_from_document,
    membership_from_document,
    parse_object_id,
    post_from_document,
)
from mindbridge.models.friends import (
    Friendship,
    FriendshipStatus,
    RelationStatus,
    friendship_from_document,
    pair_key,
)
from mindbridge.models.messages import DirectMessage, message_from_document
from mindbridge.models.wellbeing import (
    JournalEntry,
    JournalVisibility,
    MoodLog,
    MoodValue,
    MoodVisibility,
    journal_from_document,
    mood_from_document,
)

__all__ = [
    "Circle",
    "Comment",
    "MalformedDocumentError",
    "Membership",
    "MembershipStatus",
    "Post",
    "Role",
    "Visibility",
    "circle_from_document",
    "comment_from_document",
    "membership_from_document",
    "parse_object_id",
    "post_from_document",
    "Friendship",
    "FriendshipStatus",
    "RelationStatus",
    "friendship_from_document",
    "pair_key",
    "DirectMessage",
    "message_from_document",
    "JournalEntry",
    "JournalVisibility",
    "MoodLog",
    "MoodValue",
    "MoodVisibility",
    "journal_from_document",
    "mood_from_document",
]
