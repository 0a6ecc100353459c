"""
Circle posts and comments.

Authors may edit or delete their own content; circle admins may moderate
any content in their circle. Author ids are written once at creation and
never touched by edits.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument

from common.database.store import StoreCaller, StoreUnavailable
from mindbridge.models import (
    Circle,
    Comment,
    Post,
    comment_from_document,
    parse_object_id,
    post_from_document,
)
from mindbridge.services.circles.membership_service import MembershipService
from mindbridge.services.circles.outcomes import LedgerResult, Outcome

logger = logging.getLogger(__name__)


class CircleContentService:
    """
    Handles posts and comments inside circles.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        membership_service: MembershipService,
        store: Optional[StoreCaller] = None,
        require_membership_to_post: bool = True,
    ):
        """
        Initialize CircleContentService.

        Args:
            db: MongoDB database connection
            membership_service: Ledger used for membership and admin checks
            store: Store call wrapper carrying retry settings
            require_membership_to_post: Only active members may post or comment
        """
        self._db = db
        self._posts_collection = db["circleposts"]
        self._comments_collection = db["circlecomments"]
        self._memberships = membership_service
        self._store = store or StoreCaller()
        self._require_membership_to_post = require_membership_to_post

    async def ensure_indexes(self) -> None:
        await self._store.call_idempotent(
            lambda: self._posts_collection.create_index(
                [("circleId", ASCENDING), ("createdAt", DESCENDING)], name="circle_created"
            ),
            "create post index",
        )
        await self._store.call_idempotent(
            lambda: self._comments_collection.create_index(
                [("postId", ASCENDING), ("createdAt", ASCENDING)], name="post_created"
            ),
            "create comment index",
        )

    # ─────────────────────────────────────────────────────────────────
    # Posts
    # ─────────────────────────────────────────────────────────────────

    async def create_post(
        self, author_id: Optional[str], circle_id: str, title: str, body: str
    ) -> LedgerResult[Post]:
        """Publish a post in a circle."""
        if not author_id:
            return LedgerResult.failure(Outcome.UNAUTHENTICATED)

        circle = await self._memberships.get_circle(circle_id)
        if circle is None:
            return LedgerResult.failure(Outcome.CIRCLE_NOT_FOUND)

        denial = await self._check_can_contribute(author_id, circle)
        if denial is not None:
            return denial

        title = (title or "").strip()
        body = (body or "").strip()
        if not title or not body:
            return LedgerResult.failure(Outcome.INVALID_INPUT, "Title and body are required")

        now = datetime.now(timezone.utc)
        post_doc = {
            "circleId": ObjectId(circle.id),
            "authorId": author_id,
            "title": title,
            "body": body,
            "createdAt": now,
            "updatedAt": now,
            "commentCount": 0,
        }
        result = await self._store.call(
            lambda: self._posts_collection.insert_one(post_doc), "insert post"
        )
        post_doc["_id"] = result.inserted_id

        logger.info(f"User {author_id} posted {result.inserted_id} in circle {circle.id}")
        return LedgerResult.success(post_from_document(post_doc))

    async def get_post(self, post_id: Any) -> Optional[Post]:
        doc = await self._find_post_doc(post_id)
        return post_from_document(doc) if doc else None

    async def list_posts(
        self, viewer_id: Optional[str], circle_id: str, limit: int = 100
    ) -> LedgerResult[List[Post]]:
        """Posts of a circle, newest first."""
        circle = await self._memberships.get_circle(circle_id)
        if circle is None:
            return LedgerResult.failure(Outcome.CIRCLE_NOT_FOUND)
        denial = await self._check_can_view(viewer_id, circle)
        if denial is not None:
            return denial

        circle_oid = ObjectId(circle.id)
        docs = await self._store.call_idempotent(
            lambda: self._posts_collection.find({"circleId": circle_oid})
            .sort("createdAt", DESCENDING)
            .to_list(length=limit),
            "list posts",
        )
        return LedgerResult.success([post_from_document(doc) for doc in docs])

    async def edit_post(
        self,
        acting_user_id: Optional[str],
        post_id: str,
        title: Optional[str] = None,
        body: Optional[str] = None,
    ) -> LedgerResult[Post]:
        """Change a post's title and/or body."""
        if not acting_user_id:
            return LedgerResult.failure(Outcome.UNAUTHENTICATED)

        doc = await self._find_post_doc(post_id)
        if not doc:
            return LedgerResult.failure(Outcome.POST_NOT_FOUND)
        post = post_from_document(doc)

        denial = await self._check_can_modify(acting_user_id, post.author_id, post.circle_id, "edit post")
        if denial is not None:
            return denial

        updates: Dict[str, Any] = {}
        for key, value in (("title", title), ("body", body)):
            if value is None:
                continue
            value = value.strip()
            if not value:
                return LedgerResult.failure(Outcome.INVALID_INPUT, f"{key} cannot be empty")
            updates[key] = value
        if not updates:
            return LedgerResult.failure(Outcome.INVALID_INPUT, "Nothing to update")
        updates["updatedAt"] = datetime.now(timezone.utc)

        post_oid = doc["_id"]
        updated = await self._store.call_idempotent(
            lambda: self._posts_collection.find_one_and_update(
                {"_id": post_oid},
                {"$set": updates},
                return_document=ReturnDocument.AFTER,
            ),
            "update post",
        )
        if not updated:
            return LedgerResult.failure(Outcome.POST_NOT_FOUND)

        logger.info(f"User {acting_user_id} edited post {post_id}")
        return LedgerResult.success(post_from_document(updated))

    async def delete_post(
        self, acting_user_id: Optional[str], post_id: str
    ) -> LedgerResult[bool]:
        """Delete a post and its comments."""
        if not acting_user_id:
            return LedgerResult.failure(Outcome.UNAUTHENTICATED)

        doc = await self._find_post_doc(post_id)
        if not doc:
            return LedgerResult.failure(Outcome.POST_NOT_FOUND)
        post = post_from_document(doc)

        denial = await self._check_can_modify(acting_user_id, post.author_id, post.circle_id, "delete post")
        if denial is not None:
            return denial

        post_oid = doc["_id"]
        result = await self._store.call(
            lambda: self._posts_collection.delete_one({"_id": post_oid}), "delete post"
        )
        if result.deleted_count == 0:
            return LedgerResult.failure(Outcome.POST_NOT_FOUND)

        comments = await self._store.call_idempotent(
            lambda: self._comments_collection.delete_many({"postId": post_oid}),
            "delete post comments",
        )
        logger.info(
            f"User {acting_user_id} deleted post {post_id} with {comments.deleted_count} comments"
        )
        return LedgerResult.success(True)

    # ─────────────────────────────────────────────────────────────────
    # Comments
    # ─────────────────────────────────────────────────────────────────

    async def create_comment(
        self, author_id: Optional[str], post_id: str, body: str
    ) -> LedgerResult[Comment]:
        """Comment on a post."""
        if not author_id:
            return LedgerResult.failure(Outcome.UNAUTHENTICATED)

        doc = await self._find_post_doc(post_id)
        if not doc:
            return LedgerResult.failure(Outcome.POST_NOT_FOUND)
        post = post_from_document(doc)

        circle = await self._memberships.get_circle(post.circle_id)
        if circle is None:
            return LedgerResult.failure(Outcome.CIRCLE_NOT_FOUND)
        denial = await self._check_can_contribute(author_id, circle)
        if denial is not None:
            return denial

        body = (body or "").strip()
        if not body:
            return LedgerResult.failure(Outcome.INVALID_INPUT, "Comment cannot be empty")

        now = datetime.now(timezone.utc)
        post_oid = doc["_id"]
        comment_doc = {
            "postId": post_oid,
            "circleId": doc["circleId"],
            "authorId": author_id,
            "body": body,
            "createdAt": now,
            "updatedAt": now,
        }
        result = await self._store.call(
            lambda: self._comments_collection.insert_one(comment_doc), "insert comment"
        )
        comment_oid = result.inserted_id
        comment_doc["_id"] = comment_oid

        try:
            await self._store.call(
                lambda: self._posts_collection.update_one(
                    {"_id": post_oid}, {"$inc": {"commentCount": 1}}
                ),
                "increment comment count",
            )
        except StoreUnavailable:
            await self._undo_comment(comment_oid)
            raise

        logger.info(f"User {author_id} commented {comment_oid} on post {post_id}")
        return LedgerResult.success(comment_from_document(comment_doc))

    async def _undo_comment(self, comment_oid: ObjectId) -> None:
        try:
            await self._store.call(
                lambda: self._comments_collection.delete_one({"_id": comment_oid}),
                "undo comment",
            )
        except StoreUnavailable as e:
            logger.error(f"Could not undo comment {comment_oid}, commentCount is behind: {e}")

    async def list_comments(
        self, viewer_id: Optional[str], post_id: str, limit: int = 500
    ) -> LedgerResult[List[Comment]]:
        """Comments on a post, oldest first."""
        doc = await self._find_post_doc(post_id)
        if not doc:
            return LedgerResult.failure(Outcome.POST_NOT_FOUND)

        circle = await self._memberships.get_circle(doc["circleId"])
        if circle is None:
            return LedgerResult.failure(Outcome.CIRCLE_NOT_FOUND)
        denial = await self._check_can_view(viewer_id, circle)
        if denial is not None:
            return denial

        post_oid = doc["_id"]
        docs = await self._store.call_idempotent(
            lambda: self._comments_collection.find({"postId": post_oid})
            .sort("createdAt", ASCENDING)
            .to_list(length=limit),
            "list comments",
        )
        return LedgerResult.success([comment_from_document(d) for d in docs])

    async def edit_comment(
        self, acting_user_id: Optional[str], comment_id: str, body: str
    ) -> LedgerResult[Comment]:
        """Change a comment's body."""
        if not acting_user_id:
            return LedgerResult.failure(Outcome.UNAUTHENTICATED)

        doc = await self._find_comment_doc(comment_id)
        if not doc:
            return LedgerResult.failure(Outcome.COMMENT_NOT_FOUND)
        comment = comment_from_document(doc)

        denial = await self._check_can_modify(
            acting_user_id, comment.author_id, comment.circle_id, "edit comment"
        )
        if denial is not None:
            return denial

        body = (body or "").strip()
        if not body:
            return LedgerResult.failure(Outcome.INVALID_INPUT, "Comment cannot be empty")

        comment_oid = doc["_id"]
        updated = await self._store.call_idempotent(
            lambda: self._comments_collection.find_one_and_update(
                {"_id": comment_oid},
                {"$set": {"body": body, "updatedAt": datetime.now(timezone.utc)}},
                return_document=ReturnDocument.AFTER,
            ),
            "update comment",
        )
        if not updated:
            return LedgerResult.failure(Outcome.COMMENT_NOT_FOUND)

        logger.info(f"User {acting_user_id} edited comment {comment_id}")
        return LedgerResult.success(comment_from_document(updated))

    async def delete_comment(
        self, acting_user_id: Optional[str], comment_id: str
    ) -> LedgerResult[bool]:
        """Delete a comment and decrement its post's comment count."""
        if not acting_user_id:
            return LedgerResult.failure(Outcome.UNAUTHENTICATED)

        doc = await self._find_comment_doc(comment_id)
        if not doc:
            return LedgerResult.failure(Outcome.COMMENT_NOT_FOUND)
        comment = comment_from_document(doc)

        denial = await self._check_can_modify(
            acting_user_id, comment.author_id, comment.circle_id, "delete comment"
        )
        if denial is not None:
            return denial

        comment_oid = doc["_id"]
        removed = await self._store.call(
            lambda: self._comments_collection.find_one_and_delete({"_id": comment_oid}),
            "delete comment",
        )
        if not removed:
            return LedgerResult.failure(Outcome.COMMENT_NOT_FOUND)

        post_oid = doc["postId"]
        await self._store.call(
            lambda: self._posts_collection.update_one(
                {"_id": post_oid, "commentCount": {"$gt": 0}},
                {"$inc": {"commentCount": -1}},
            ),
            "decrement comment count",
        )

        logger.info(f"User {acting_user_id} deleted comment {comment_id}")
        return LedgerResult.success(True)

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    async def _find_post_doc(self, post_id: Any) -> Optional[Dict[str, Any]]:
        post_oid = parse_object_id(post_id)
        if post_oid is None:
            return None
        return await self._store.call_idempotent(
            lambda: self._posts_collection.find_one({"_id": post_oid}), "find post"
        )

    async def _find_comment_doc(self, comment_id: Any) -> Optional[Dict[str, Any]]:
        comment_oid = parse_object_id(comment_id)
        if comment_oid is None:
            return None
        return await self._store.call_idempotent(
            lambda: self._comments_collection.find_one({"_id": comment_oid}), "find comment"
        )

    async def _check_can_contribute(
        self, user_id: str, circle: Circle
    ) -> Optional[LedgerResult]:
        """Active members may post; without that requirement, anyone who can read the circle."""
        if self._require_membership_to_post:
            allowed = await self._memberships.is_member(user_id, circle.id)
        else:
            allowed = await self._memberships.can_view_circle(user_id, circle)
        if allowed:
            return None
        logger.info(f"User {user_id} denied posting in circle {circle.id}")
        return LedgerResult.failure(Outcome.NOT_AUTHORIZED, "Join the circle to post")

    async def _check_can_view(
        self, viewer_id: Optional[str], circle: Circle
    ) -> Optional[LedgerResult]:
        if await self._memberships.can_view_circle(viewer_id, circle):
            return None
        logger.info(f"User {viewer_id} denied content of private circle {circle.id}")
        return LedgerResult.failure(Outcome.NOT_AUTHORIZED)

    async def _check_can_modify(
        self, acting_user_id: str, author_id: str, circle_id: str, action: str
    ) -> Optional[LedgerResult]:
        """Authors may modify their own content; circle admins may modify any."""
        if acting_user_id == author_id:
            return None
        if await self._memberships.is_admin(acting_user_id, circle_id):
            return None
        logger.info(f"User {acting_user_id} denied {action} in circle {circle_id}")
        return LedgerResult.failure(Outcome.NOT_AUTHORIZED)
