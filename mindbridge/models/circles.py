"""
Domain types for circles, memberships, posts and comments.

Stored documents are converted through explicit per-entity mapping functions.
A document missing a field, carrying a wrong type or an unknown enum value is
rejected with MalformedDocumentError instead of being patched with defaults.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from bson import ObjectId
from bson.errors import InvalidId


class Visibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class Role(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"


class MembershipStatus(str, Enum):
    ACTIVE = "active"
    PENDING = "pending"


class MalformedDocumentError(ValueError):
    """A stored document does not match the shape of its entity."""

    def __init__(self, entity: str, reason: str, document_id: Any = None):
        self.entity = entity
        self.reason = reason
        self.document_id = document_id
        where = f" {document_id}" if document_id is not None else ""
        super().__init__(f"Malformed {entity} document{where}: {reason}")


def parse_object_id(value: Any) -> Optional[ObjectId]:
    """Return an ObjectId for a hex string or ObjectId, None if it is not one."""
    if isinstance(value, ObjectId):
        return value
    # ObjectId(None) would mint a fresh id
    if not isinstance(value, str):
        return None
    try:
        return ObjectId(value)
    except InvalidId:
        return None


@dataclass(frozen=True)
class Circle:
    """A named discussion group with visibility and cached member count."""
    id: str
    name: str
    description: str
    tags: Tuple[str, ...]
    visibility: Visibility
    created_by: str
    created_at: datetime
    member_count: int


@dataclass(frozen=True)
class Membership:
    """The (role, status) relationship between a user and a circle."""
    circle_id: str
    user_id: str
    role: Role
    status: MembershipStatus
    joined_at: datetime

    @property
    def is_active(self) -> bool:
        return self.status == MembershipStatus.ACTIVE

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN and self.is_active


@dataclass(frozen=True)
class Post:
    """Circle-scoped content unit. author_id never changes after creation."""
    id: str
    circle_id: str
    author_id: str
    title: str
    body: str
    created_at: datetime
    updated_at: datetime
    comment_count: int


@dataclass(frozen=True)
class Comment:
    """Post-scoped content unit. author_id never changes after creation."""
    id: str
    post_id: str
    circle_id: str
    author_id: str
    body: str
    created_at: datetime
    updated_at: datetime


# ─────────────────────────────────────────────────────────────────
# Document mapping
# ─────────────────────────────────────────────────────────────────

def check_fields(
    doc: Mapping[str, Any],
    entity: str,
    fields: Dict[str, Any],
) -> None:
    """
    Verify every expected field is present with the expected type.

    Args:
        doc: Raw document from the store
        entity: Entity name used in error messages
        fields: Field name -> type or tuple of types

    Raises:
        MalformedDocumentError: On the first missing or mistyped field
    """
    if not isinstance(doc, Mapping):
        raise MalformedDocumentError(entity, f"expected a mapping, got {type(doc).__name__}")

    doc_id = doc.get("_id")
    missing = sorted(name for name in fields if name not in doc)
    if missing:
        raise MalformedDocumentError(entity, f"missing fields: {', '.join(missing)}", doc_id)

    for name, expected in fields.items():
        value = doc[name]
        # bool is an int subclass; counters must be real integers
        if expected is int and isinstance(value, bool):
            raise MalformedDocumentError(entity, f"field {name} must be int, got bool", doc_id)
        if not isinstance(value, expected):
            raise MalformedDocumentError(
                entity,
                f"field {name} has type {type(value).__name__}",
                doc_id,
            )


def enum_value(enum_cls, value: str, entity: str, field: str, doc_id: Any):
    try:
        return enum_cls(value)
    except ValueError:
        raise MalformedDocumentError(entity, f"field {field} has unknown value {value!r}", doc_id)


def _non_negative(value: int, entity: str, field: str, doc_id: Any) -> int:
    if value < 0:
        raise MalformedDocumentError(entity, f"field {field} is negative", doc_id)
    return value


CIRCLE_FIELDS = {
    "_id": ObjectId,
    "name": str,
    "description": str,
    "tags": list,
    "visibility": str,
    "createdBy": str,
    "createdAt": datetime,
    "memberCount": int,
}

MEMBERSHIP_FIELDS = {
    "circleId": ObjectId,
    "userId": str,
    "role": str,
    "status": str,
    "joinedAt": datetime,
}

POST_FIELDS = {
    "_id": ObjectId,
    "circleId": ObjectId,
    "authorId": str,
    "title": str,
    "body": str,
    "createdAt": datetime,
    "updatedAt": datetime,
    "commentCount": int,
}

COMMENT_FIELDS = {
    "_id": ObjectId,
    "postId": ObjectId,
    "circleId": ObjectId,
    "authorId": str,
    "body": str,
    "createdAt": datetime,
    "updatedAt": datetime,
}


def circle_from_document(doc: Mapping[str, Any]) -> Circle:
    """Map a `circles` document to a Circle."""
    check_fields(doc, "circle", CIRCLE_FIELDS)
    doc_id = doc["_id"]
    if not all(isinstance(tag, str) for tag in doc["tags"]):
        raise MalformedDocumentError("circle", "tags must all be strings", doc_id)

    return Circle(
        id=str(doc_id),
        name=doc["name"],
        description=doc["description"],
        tags=tuple(doc["tags"]),
        visibility=enum_value(Visibility, doc["visibility"], "circle", "visibility", doc_id),
        created_by=doc["createdBy"],
        created_at=doc["createdAt"],
        member_count=_non_negative(doc["memberCount"], "circle", "memberCount", doc_id),
    )


def membership_from_document(doc: Mapping[str, Any]) -> Membership:
    """Map a `circlememberships` document to a Membership."""
    check_fields(doc, "membership", MEMBERSHIP_FIELDS)
    doc_id = doc.get("_id")

    return Membership(
        circle_id=str(doc["circleId"]),
        user_id=doc["userId"],
        role=enum_value(Role, doc["role"], "membership", "role", doc_id),
        status=enum_value(MembershipStatus, doc["status"], "membership", "status", doc_id),
        joined_at=doc["joinedAt"],
    )


def post_from_document(doc: Mapping[str, Any]) -> Post:
    """Map a `circleposts` document to a Post."""
    check_fields(doc, "post", POST_FIELDS)
    doc_id = doc["_id"]

    return Post(
        id=str(doc_id),
        circle_id=str(doc["circleId"]),
        author_id=doc["authorId"],
        title=doc["title"],
        body=doc["body"],
        created_at=doc["createdAt"],
        updated_at=doc["updatedAt"],
        comment_count=_non_negative(doc["commentCount"], "post", "commentCount", doc_id),
    )


def comment_from_document(doc: Mapping[str, Any]) -> Comment:
    """Map a `circlecomments` document to a Comment."""
    check_fields(doc, "comment", COMMENT_FIELDS)

    return Comment(
        id=str(doc["_id"]),
        post_id=str(doc["postId"]),
        circle_id=str(doc["circleId"]),
        author_id=doc["authorId"],
        body=doc["body"],
        created_at=doc["createdAt"],
        updated_at=doc["updatedAt"],
    )
