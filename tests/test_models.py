"""Tests for the explicit document-to-model mapping functions."""

from datetime import datetime, timezone

import pytest
from bson import ObjectId

from mindbridge.models import (
    FriendshipStatus,
    JournalVisibility,
    MalformedDocumentError,
    MembershipStatus,
    MoodValue,
    RelationStatus,
    Role,
    Visibility,
    circle_from_document,
    comment_from_document,
    friendship_from_document,
    journal_from_document,
    membership_from_document,
    message_from_document,
    mood_from_document,
    pair_key,
    parse_object_id,
    post_from_document,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def circle_doc():
    return {
        "_id": ObjectId(),
        "name": "Mindfulness",
        "description": "Daily practice",
        "tags": ["calm"],
        "visibility": "public",
        "createdBy": "user-a",
        "createdAt": NOW,
        "updatedAt": NOW,
        "memberCount": 3,
    }


class TestCircleMapping:
    def test_maps_all_fields(self, circle_doc):
        circle = circle_from_document(circle_doc)

        assert circle.id == str(circle_doc["_id"])
        assert circle.visibility is Visibility.PUBLIC
        assert circle.tags == ("calm",)
        assert circle.member_count == 3

    def test_missing_field_is_rejected(self, circle_doc):
        del circle_doc["memberCount"]

        with pytest.raises(MalformedDocumentError, match="memberCount"):
            circle_from_document(circle_doc)

    def test_unknown_visibility_is_rejected(self, circle_doc):
        circle_doc["visibility"] = "secret"

        with pytest.raises(MalformedDocumentError, match="visibility"):
            circle_from_document(circle_doc)

    def test_bool_counter_is_rejected(self, circle_doc):
        circle_doc["memberCount"] = True

        with pytest.raises(MalformedDocumentError):
            circle_from_document(circle_doc)

    def test_negative_counter_is_rejected(self, circle_doc):
        circle_doc["memberCount"] = -1

        with pytest.raises(MalformedDocumentError, match="negative"):
            circle_from_document(circle_doc)

    def test_non_string_tag_is_rejected(self, circle_doc):
        circle_doc["tags"] = ["calm", 7]

        with pytest.raises(MalformedDocumentError, match="tags"):
            circle_from_document(circle_doc)


class TestMembershipMapping:
    def test_admin_requires_active_status(self):
        doc = {
            "circleId": ObjectId(),
            "userId": "user-b",
            "role": "admin",
            "status": "pending",
            "joinedAt": NOW,
        }

        membership = membership_from_document(doc)

        assert membership.role is Role.ADMIN
        assert membership.status is MembershipStatus.PENDING
        assert membership.is_admin is False
        assert membership.is_active is False

    def test_string_circle_id_is_rejected(self):
        doc = {
            "circleId": str(ObjectId()),
            "userId": "user-b",
            "role": "member",
            "status": "active",
            "joinedAt": NOW,
        }

        with pytest.raises(MalformedDocumentError, match="circleId"):
            membership_from_document(doc)


class TestContentMapping:
    def test_post(self):
        doc = {
            "_id": ObjectId(),
            "circleId": ObjectId(),
            "authorId": "user-c",
            "title": "Hello",
            "body": "World",
            "createdAt": NOW,
            "updatedAt": NOW,
            "commentCount": 0,
        }

        post = post_from_document(doc)

        assert post.circle_id == str(doc["circleId"])
        assert post.author_id == "user-c"

    def test_comment_without_author_is_rejected(self):
        doc = {
            "_id": ObjectId(),
            "postId": ObjectId(),
            "circleId": ObjectId(),
            "body": "Nice",
            "createdAt": NOW,
            "updatedAt": NOW,
        }

        with pytest.raises(MalformedDocumentError, match="authorId"):
            comment_from_document(doc)

    def test_message_read_flag_must_be_bool(self):
        doc = {
            "_id": ObjectId(),
            "senderId": "a",
            "receiverId": "b",
            "content": "hi",
            "isRead": "no",
            "createdAt": NOW,
        }

        with pytest.raises(MalformedDocumentError, match="isRead"):
            message_from_document(doc)


class TestFriendshipMapping:
    def test_relation_from_each_side(self):
        doc = {
            "_id": ObjectId(),
            "requesterId": "user-a",
            "addresseeId": "user-b",
            "pairKey": pair_key("user-b", "user-a"),
            "status": "pending",
            "createdAt": NOW,
            "updatedAt": NOW,
        }

        friendship = friendship_from_document(doc)

        assert friendship.status is FriendshipStatus.PENDING
        assert friendship.relation_for("user-a") is RelationStatus.PENDING_SENT
        assert friendship.relation_for("user-b") is RelationStatus.PENDING_RECEIVED
        assert friendship.other_party("user-b") == "user-a"

    def test_pair_key_ignores_order(self):
        assert pair_key("b", "a") == pair_key("a", "b") == "a|b"

    def test_unknown_status_is_rejected(self):
        doc = {
            "_id": ObjectId(),
            "requesterId": "user-a",
            "addresseeId": "user-b",
            "pairKey": "user-a|user-b",
            "status": "rejected",
            "createdAt": NOW,
            "updatedAt": NOW,
        }

        with pytest.raises(MalformedDocumentError, match="status"):
            friendship_from_document(doc)


class TestWellbeingMapping:
    def test_mood_log(self):
        doc = {
            "_id": ObjectId(),
            "userId": "user-a",
            "date": "2026-03-01",
            "value": "neutral",
            "note": "",
            "visibility": "private",
            "createdAt": NOW,
            "updatedAt": NOW,
        }

        assert mood_from_document(doc).value is MoodValue.NEUTRAL

    def test_mood_log_with_bad_date_is_rejected(self):
        doc = {
            "_id": ObjectId(),
            "userId": "user-a",
            "date": "March 1st",
            "value": "good",
            "note": "",
            "visibility": "public",
            "createdAt": NOW,
            "updatedAt": NOW,
        }

        with pytest.raises(MalformedDocumentError, match="date"):
            mood_from_document(doc)

    def test_journal_entry(self):
        doc = {
            "_id": ObjectId(),
            "userId": "user-a",
            "title": "Monday",
            "body": "Calm",
            "visibility": "circle",
            "createdAt": NOW,
            "updatedAt": NOW,
        }

        assert journal_from_document(doc).visibility is JournalVisibility.CIRCLE


class TestParseObjectId:
    def test_valid_hex(self):
        oid = ObjectId()

        assert parse_object_id(str(oid)) == oid

    def test_passthrough(self):
        oid = ObjectId()

        assert parse_object_id(oid) is oid

    @pytest.mark.parametrize("value", ["not-an-id", "", None, 42])
    def test_invalid(self, value):
        assert parse_object_id(value) is None
