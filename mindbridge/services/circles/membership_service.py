"""
Circle membership ledger.

Tracks per-circle membership rows (role, status) and answers every
authorization question about them. The acting user is always an explicit
argument. Denials are returned as LedgerResult values; store outages raise
StoreUnavailable.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from common.database.store import StoreCaller, StoreUnavailable
from mindbridge.models import (
    Circle,
    Membership,
    MembershipStatus,
    Role,
    Visibility,
    circle_from_document,
    membership_from_document,
    parse_object_id,
)
from mindbridge.services.circles.outcomes import LedgerResult, Outcome

logger = logging.getLogger(__name__)

# Circles still being provisioned are invisible to every read.
VISIBLE_CIRCLE = {"provisioning": {"$ne": True}}

UPDATABLE_CIRCLE_FIELDS = ("name", "description", "tags", "visibility")


def normalize_tags(tags: Optional[Iterable[Any]]) -> Optional[List[str]]:
    """Strip tags, drop blanks and duplicates while keeping order. None if invalid."""
    if tags is None:
        return []
    if isinstance(tags, str):
        return None
    cleaned: List[str] = []
    for tag in tags:
        if not isinstance(tag, str):
            return None
        tag = tag.strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


def _parse_visibility(value: Any) -> Optional[Visibility]:
    try:
        return Visibility(value)
    except ValueError:
        return None


class MembershipService:
    """
    Handles circle creation, joining, moderation and the membership predicates.
    """

    def __init__(
        self,
        db: AsyncIOMotorDatabase,
        store: Optional[StoreCaller] = None,
        private_content_members_only: bool = True,
    ):
        """
        Initialize MembershipService.

        Args:
            db: MongoDB database connection
            store: Store call wrapper carrying retry settings
            private_content_members_only: Require an active membership to read
                private-circle member lists and content
        """
        self._db = db
        self._circles_collection = db["circles"]
        self._memberships_collection = db["circlememberships"]
        self._store = store or StoreCaller()
        self._private_content_members_only = private_content_members_only

    async def ensure_indexes(self) -> None:
        """Create the indexes the ledger relies on."""
        await self._store.call_idempotent(
            lambda: self._memberships_collection.create_index(
                [("circleId", ASCENDING), ("userId", ASCENDING)],
                unique=True,
                name="circle_user_unique",
            ),
            "create membership unique index",
        )
        await self._store.call_idempotent(
            lambda: self._memberships_collection.create_index(
                [("userId", ASCENDING), ("status", ASCENDING)],
                name="user_status",
            ),
            "create membership user index",
        )
        await self._store.call_idempotent(
            lambda: self._circles_collection.create_index(
                [("createdAt", DESCENDING)], name="created_at"
            ),
            "create circle index",
        )

    # ─────────────────────────────────────────────────────────────────
    # Circle creation
    # ─────────────────────────────────────────────────────────────────

    async def create_circle(
        self,
        owner_id: Optional[str],
        name: str,
        description: str,
        tags: Optional[Iterable[str]] = None,
        visibility: Any = Visibility.PUBLIC,
    ) -> LedgerResult[Circle]:
        """
        Create a circle together with its creator's admin membership.

        The circle is inserted with a provisioning marker, so reads ignore it
        until the admin membership exists. If the membership insert or the
        marker removal fails, the circle is rolled back.

        Returns:
            LedgerResult carrying the new Circle
        """
        if not owner_id:
            return LedgerResult.failure(Outcome.UNAUTHENTICATED)

        name = (name or "").strip()
        description = (description or "").strip()
        if not name or not description:
            return LedgerResult.failure(
                Outcome.INVALID_INPUT, "Name and description are required"
            )

        parsed_visibility = _parse_visibility(visibility)
        if parsed_visibility is None:
            return LedgerResult.failure(Outcome.INVALID_INPUT, "Unknown visibility")

        clean_tags = normalize_tags(tags)
        if clean_tags is None:
            return LedgerResult.failure(Outcome.INVALID_INPUT, "Tags must be strings")

        now = datetime.now(timezone.utc)
        circle_doc = {
            "name": name,
            "description": description,
            "tags": clean_tags,
            "visibility": parsed_visibility.value,
            "createdBy": owner_id,
            "createdAt": now,
            "updatedAt": now,
            "memberCount": 1,
            "provisioning": True,
        }

        result = await self._store.call(
            lambda: self._circles_collection.insert_one(circle_doc), "insert circle"
        )
        circle_id = result.inserted_id
        circle_doc["_id"] = circle_id

        membership_doc = {
            "circleId": circle_id,
            "userId": owner_id,
            "role": Role.ADMIN.value,
            "status": MembershipStatus.ACTIVE.value,
            "joinedAt": now,
        }

        try:
            await self._store.call(
                lambda: self._memberships_collection.insert_one(membership_doc),
                "insert creator membership",
            )
            await self._store.call_idempotent(
                lambda: self._circles_collection.update_one(
                    {"_id": circle_id}, {"$unset": {"provisioning": ""}}
                ),
                "finalize circle",
            )
        except (StoreUnavailable, PyMongoError) as e:
            logger.error(f"Circle {circle_id} creation by {owner_id} failed after insert: {e}")
            await self._rollback_circle(circle_id, owner_id)
            return LedgerResult.failure(Outcome.PARTIAL_CREATE_FAILURE)

        circle_doc.pop("provisioning", None)
        logger.info(
            f"Circle {circle_id} created by {owner_id} ({parsed_visibility.value})"
        )
        return LedgerResult.success(circle_from_document(circle_doc))

    async def _rollback_circle(self, circle_id: ObjectId, owner_id: str) -> None:
        """Remove the pieces of a half-created circle."""
        try:
            await self._store.call_idempotent(
                lambda: self._memberships_collection.delete_many({"circleId": circle_id}),
                "roll back creator membership",
            )
            await self._store.call_idempotent(
                lambda: self._circles_collection.delete_one({"_id": circle_id}),
                "roll back circle",
            )
            logger.warning(f"Rolled back circle {circle_id} for {owner_id}")
        except (StoreUnavailable, PyMongoError) as e:
            # The provisioning marker keeps the leftover circle out of every read.
            logger.error(f"Rollback of circle {circle_id} failed, left provisioning: {e}")

    # ─────────────────────────────────────────────────────────────────
    # Joining and leaving
    # ─────────────────────────────────────────────────────────────────

    async def request_join(
        self, user_id: Optional[str], circle_id: str
    ) -> LedgerResult[Membership]:
        """
        Ask to join a circle.

        Public circles admit immediately; private circles record a pending
        request for an admin to decide.
        """
        if not user_id:
            return LedgerResult.failure(Outcome.UNAUTHENTICATED)

        circle = await self._load_circle(circle_id)
        if circle is None:
            return LedgerResult.failure(Outcome.CIRCLE_NOT_FOUND)
        circle_oid = ObjectId(circle.id)

        existing = await self._find_membership_doc(circle_oid, user_id)
        if existing:
            logger.info(f"User {user_id} already has a membership in circle {circle_id}")
            return LedgerResult.failure(Outcome.ALREADY_MEMBER)

        status = (
            MembershipStatus.ACTIVE
            if circle.visibility == Visibility.PUBLIC
            else MembershipStatus.PENDING
        )
        membership_doc = {
            "circleId": circle_oid,
            "userId": user_id,
            "role": Role.MEMBER.value,
            "status": status.value,
            "joinedAt": datetime.now(timezone.utc),
        }

        try:
            await self._store.call(
                lambda: self._memberships_collection.insert_one(membership_doc),
                "insert membership",
            )
        except DuplicateKeyError:
            logger.info(f"Concurrent join for user {user_id} in circle {circle_id} rejected")
            return LedgerResult.failure(Outcome.ALREADY_MEMBER)

        if status == MembershipStatus.ACTIVE:
            try:
                await self._adjust_member_count(circle_oid, 1)
            except StoreUnavailable:
                await self._undo_join(circle_oid, user_id)
                raise

        logger.info(f"User {user_id} joined circle {circle_id} as {status.value}")
        return LedgerResult.success(membership_from_document(membership_doc))

    async def _undo_join(self, circle_oid: ObjectId, user_id: str) -> None:
        try:
            await self._store.call(
                lambda: self._memberships_collection.delete_one(
                    {"circleId": circle_oid, "userId": user_id}
                ),
                "undo membership",
            )
        except StoreUnavailable as e:
            logger.error(
                f"Could not undo membership of {user_id} in circle {circle_oid}, "
                f"memberCount needs reconciling: {e}"
            )

    async def leave(self, user_id: Optional[str], circle_id: str) -> LedgerResult[bool]:
        """
        Remove the user's own membership in any status.

        Returns a successful result whose value says whether a row existed.
        """
        if not user_id:
            return LedgerResult.failure(Outcome.UNAUTHENTICATED)

        circle_oid = parse_object_id(circle_id)
        if circle_oid is None:
            return LedgerResult.success(False)

        removed = await self._store.call(
            lambda: self._memberships_collection.find_one_and_delete(
                {"circleId": circle_oid, "userId": user_id}
            ),
            "delete own membership",
        )
        if not removed:
            return LedgerResult.success(False)

        await self._release_membership(circle_oid, removed)

        logger.info(f"User {user_id} left circle {circle_id}")
        return LedgerResult.success(True)

    # ─────────────────────────────────────────────────────────────────
    # Predicates
    # ─────────────────────────────────────────────────────────────────

    async def get_membership(
        self, user_id: Optional[str], circle_id: str
    ) -> Optional[Membership]:
        """Return the user's membership in a circle, if any."""
        if not user_id:
            return None
        circle_oid = parse_object_id(circle_id)
        if circle_oid is None:
            return None
        doc = await self._find_membership_doc(circle_oid, user_id)
        return membership_from_document(doc) if doc else None

    async def is_member(self, user_id: Optional[str], circle_id: str) -> bool:
        membership = await self.get_membership(user_id, circle_id)
        return membership is not None and membership.is_active

    async def is_admin(self, user_id: Optional[str], circle_id: str) -> bool:
        membership = await self.get_membership(user_id, circle_id)
        return membership is not None and membership.is_admin

    async def is_pending(self, user_id: Optional[str], circle_id: str) -> bool:
        membership = await self.get_membership(user_id, circle_id)
        return membership is not None and membership.status == MembershipStatus.PENDING

    async def can_view_circle(self, viewer_id: Optional[str], circle: Circle) -> bool:
        """Whether the viewer may read a circle's members and content."""
        if circle.visibility == Visibility.PUBLIC or not self._private_content_members_only:
            return True
        return await self.is_member(viewer_id, circle.id)

    async def shares_active_circle(self, user_a: Optional[str], user_b: Optional[str]) -> bool:
        """Whether both users hold an active membership in at least one common circle."""
        if not user_a or not user_b:
            return False
        memberships = await self._store.call_idempotent(
            lambda: self._memberships_collection.find(
                {"userId": user_a, "status": MembershipStatus.ACTIVE.value}
            ).to_list(length=None),
            "list user memberships",
        )
        circle_ids = [m["circleId"] for m in memberships]
        if not circle_ids:
            return False
        shared = await self._store.call_idempotent(
            lambda: self._memberships_collection.count_documents(
                {
                    "userId": user_b,
                    "status": MembershipStatus.ACTIVE.value,
                    "circleId": {"$in": circle_ids},
                }
            ),
            "count shared circles",
        )
        return shared > 0

    # ─────────────────────────────────────────────────────────────────
    # Admin operations
    # ─────────────────────────────────────────────────────────────────

    async def approve_join(
        self, acting_user_id: Optional[str], circle_id: str, target_user_id: str
    ) -> LedgerResult[bool]:
        """Turn a pending request into an active membership."""
        denial = await self._check_admin(acting_user_id, circle_id, "approve join")
        if denial is not None:
            return denial
        circle_oid = ObjectId(circle_id)

        # Conditional on pending so concurrent approvals count once
        result = await self._store.call(
            lambda: self._memberships_collection.update_one(
                {
                    "circleId": circle_oid,
                    "userId": target_user_id,
                    "status": MembershipStatus.PENDING.value,
                },
                {"$set": {"status": MembershipStatus.ACTIVE.value}},
            ),
            "approve membership",
        )
        if result.modified_count == 0:
            return LedgerResult.failure(Outcome.MEMBERSHIP_NOT_FOUND, "No pending request")

        try:
            await self._adjust_member_count(circle_oid, 1)
        except StoreUnavailable:
            await self._undo_approval(circle_oid, target_user_id)
            raise
        logger.info(f"Admin {acting_user_id} approved {target_user_id} in circle {circle_id}")
        return LedgerResult.success(True)

    async def reject_join(
        self, acting_user_id: Optional[str], circle_id: str, target_user_id: str
    ) -> LedgerResult[bool]:
        """Delete a pending request."""
        denial = await self._check_admin(acting_user_id, circle_id, "reject join")
        if denial is not None:
            return denial
        circle_oid = ObjectId(circle_id)

        result = await self._store.call(
            lambda: self._memberships_collection.delete_one(
                {
                    "circleId": circle_oid,
                    "userId": target_user_id,
                    "status": MembershipStatus.PENDING.value,
                }
            ),
            "reject membership",
        )
        if result.deleted_count == 0:
            return LedgerResult.failure(Outcome.MEMBERSHIP_NOT_FOUND, "No pending request")

        logger.info(f"Admin {acting_user_id} rejected {target_user_id} in circle {circle_id}")
        return LedgerResult.success(True)

    async def remove_member(
        self, acting_user_id: Optional[str], circle_id: str, target_user_id: str
    ) -> LedgerResult[bool]:
        """Remove another user's membership in any status."""
        denial = await self._check_admin(acting_user_id, circle_id, "remove member")
        if denial is not None:
            return denial
        if target_user_id == acting_user_id:
            return LedgerResult.failure(Outcome.CANNOT_REMOVE_SELF)
        circle_oid = ObjectId(circle_id)

        removed = await self._store.call(
            lambda: self._memberships_collection.find_one_and_delete(
                {"circleId": circle_oid, "userId": target_user_id}
            ),
            "remove membership",
        )
        if not removed:
            return LedgerResult.failure(Outcome.MEMBERSHIP_NOT_FOUND)

        await self._release_membership(circle_oid, removed)

        logger.info(f"Admin {acting_user_id} removed {target_user_id} from circle {circle_id}")
        return LedgerResult.success(True)

    async def set_role(
        self,
        acting_user_id: Optional[str],
        circle_id: str,
        target_user_id: str,
        new_role: Any,
    ) -> LedgerResult[bool]:
        """Promote or demote an active member."""
        denial = await self._check_admin(acting_user_id, circle_id, "set role")
        if denial is not None:
            return denial

        try:
            role = Role(new_role)
        except ValueError:
            return LedgerResult.failure(Outcome.INVALID_INPUT, "Unknown role")

        if role == Role.MEMBER and target_user_id == acting_user_id:
            return LedgerResult.failure(Outcome.CANNOT_DEMOTE_SELF)
        circle_oid = ObjectId(circle_id)

        result = await self._store.call_idempotent(
            lambda: self._memberships_collection.update_one(
                {
                    "circleId": circle_oid,
                    "userId": target_user_id,
                    "status": MembershipStatus.ACTIVE.value,
                },
                {"$set": {"role": role.value}},
            ),
            "set member role",
        )
        if result.matched_count == 0:
            return LedgerResult.failure(Outcome.MEMBERSHIP_NOT_FOUND)

        logger.info(
            f"Admin {acting_user_id} set role of {target_user_id} in circle {circle_id} to {role.value}"
        )
        return LedgerResult.success(True)

    async def update_circle(
        self,
        acting_user_id: Optional[str],
        circle_id: str,
        fields: Dict[str, Any],
    ) -> LedgerResult[Circle]:
        """
        Update name, description, tags or visibility.

        Changing visibility leaves existing memberships untouched.

        Returns:
            LedgerResult carrying the updated Circle
        """
        denial = await self._check_admin(acting_user_id, circle_id, "update circle")
        if denial is not None:
            return denial

        unknown = sorted(set(fields) - set(UPDATABLE_CIRCLE_FIELDS))
        if unknown:
            return LedgerResult.failure(
                Outcome.INVALID_INPUT, f"Fields cannot be updated: {', '.join(unknown)}"
            )
        if not fields:
            return LedgerResult.failure(Outcome.INVALID_INPUT, "Nothing to update")

        updates: Dict[str, Any] = {}
        for key in ("name", "description"):
            if key in fields:
                value = (fields[key] or "").strip()
                if not value:
                    return LedgerResult.failure(Outcome.INVALID_INPUT, f"{key} cannot be empty")
                updates[key] = value
        if "tags" in fields:
            clean_tags = normalize_tags(fields["tags"])
            if clean_tags is None:
                return LedgerResult.failure(Outcome.INVALID_INPUT, "Tags must be strings")
            updates["tags"] = clean_tags
        if "visibility" in fields:
            visibility = _parse_visibility(fields["visibility"])
            if visibility is None:
                return LedgerResult.failure(Outcome.INVALID_INPUT, "Unknown visibility")
            updates["visibility"] = visibility.value
        updates["updatedAt"] = datetime.now(timezone.utc)

        circle_oid = ObjectId(circle_id)
        doc = await self._store.call_idempotent(
            lambda: self._circles_collection.find_one_and_update(
                {"_id": circle_oid, **VISIBLE_CIRCLE},
                {"$set": updates},
                return_document=ReturnDocument.AFTER,
            ),
            "update circle",
        )
        if not doc:
            return LedgerResult.failure(Outcome.CIRCLE_NOT_FOUND)

        logger.info(f"Admin {acting_user_id} updated circle {circle_id}: {sorted(fields)}")
        return LedgerResult.success(circle_from_document(doc))

    # ─────────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────────

    async def get_circle(self, circle_id: Any) -> Optional[Circle]:
        """Fetch a visible circle by id."""
        return await self._load_circle(circle_id)

    async def list_circles(self, limit: int = 100) -> List[Circle]:
        """List visible circles, newest first."""
        docs = await self._store.call_idempotent(
            lambda: self._circles_collection.find(VISIBLE_CIRCLE)
            .sort("createdAt", DESCENDING)
            .to_list(length=limit),
            "list circles",
        )
        return [circle_from_document(doc) for doc in docs]

    async def list_circles_for_user(self, user_id: str, limit: int = 100) -> List[Circle]:
        """List circles where the user holds an active membership."""
        memberships = await self._store.call_idempotent(
            lambda: self._memberships_collection.find(
                {"userId": user_id, "status": MembershipStatus.ACTIVE.value}
            ).to_list(length=limit),
            "list user memberships",
        )
        circle_ids = [m["circleId"] for m in memberships]
        if not circle_ids:
            return []

        docs = await self._store.call_idempotent(
            lambda: self._circles_collection.find(
                {"_id": {"$in": circle_ids}, **VISIBLE_CIRCLE}
            )
            .sort("createdAt", DESCENDING)
            .to_list(length=limit),
            "list joined circles",
        )
        return [circle_from_document(doc) for doc in docs]

    async def list_circles_created_by(self, user_id: str, limit: int = 100) -> List[Circle]:
        """List circles the user created."""
        docs = await self._store.call_idempotent(
            lambda: self._circles_collection.find({"createdBy": user_id, **VISIBLE_CIRCLE})
            .sort("createdAt", DESCENDING)
            .to_list(length=limit),
            "list created circles",
        )
        return [circle_from_document(doc) for doc in docs]

    async def list_members(
        self, viewer_id: Optional[str], circle_id: str, limit: int = 500
    ) -> LedgerResult[List[Membership]]:
        """Active memberships of a circle, oldest first."""
        circle = await self._load_circle(circle_id)
        if circle is None:
            return LedgerResult.failure(Outcome.CIRCLE_NOT_FOUND)
        if not await self.can_view_circle(viewer_id, circle):
            logger.info(f"User {viewer_id} denied member list of circle {circle_id}")
            return LedgerResult.failure(Outcome.NOT_AUTHORIZED)

        circle_oid = ObjectId(circle.id)
        docs = await self._store.call_idempotent(
            lambda: self._memberships_collection.find(
                {"circleId": circle_oid, "status": MembershipStatus.ACTIVE.value}
            )
            .sort("joinedAt", ASCENDING)
            .to_list(length=limit),
            "list members",
        )
        return LedgerResult.success([membership_from_document(doc) for doc in docs])

    async def list_pending_requests(
        self, acting_user_id: Optional[str], circle_id: str, limit: int = 500
    ) -> LedgerResult[List[Membership]]:
        """Pending join requests, oldest first. Admin only."""
        denial = await self._check_admin(acting_user_id, circle_id, "list requests")
        if denial is not None:
            return denial

        circle_oid = ObjectId(circle_id)
        docs = await self._store.call_idempotent(
            lambda: self._memberships_collection.find(
                {"circleId": circle_oid, "status": MembershipStatus.PENDING.value}
            )
            .sort("joinedAt", ASCENDING)
            .to_list(length=limit),
            "list pending requests",
        )
        return LedgerResult.success([membership_from_document(doc) for doc in docs])

    async def reconcile_member_count(self, circle_id: str) -> LedgerResult[int]:
        """Recompute memberCount from the active membership rows."""
        circle_oid = parse_object_id(circle_id)
        if circle_oid is None:
            return LedgerResult.failure(Outcome.CIRCLE_NOT_FOUND)

        active = await self._store.call_idempotent(
            lambda: self._memberships_collection.count_documents(
                {"circleId": circle_oid, "status": MembershipStatus.ACTIVE.value}
            ),
            "count active members",
        )
        result = await self._store.call_idempotent(
            lambda: self._circles_collection.update_one(
                {"_id": circle_oid}, {"$set": {"memberCount": active}}
            ),
            "reconcile member count",
        )
        if result.matched_count == 0:
            return LedgerResult.failure(Outcome.CIRCLE_NOT_FOUND)

        logger.info(f"Reconciled memberCount of circle {circle_id} to {active}")
        return LedgerResult.success(active)

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    async def _load_circle(self, circle_id: Any) -> Optional[Circle]:
        circle_oid = parse_object_id(circle_id)
        if circle_oid is None:
            return None
        doc = await self._store.call_idempotent(
            lambda: self._circles_collection.find_one({"_id": circle_oid, **VISIBLE_CIRCLE}),
            "find circle",
        )
        return circle_from_document(doc) if doc else None

    async def _find_membership_doc(
        self, circle_oid: ObjectId, user_id: str
    ) -> Optional[Dict[str, Any]]:
        return await self._store.call_idempotent(
            lambda: self._memberships_collection.find_one(
                {"circleId": circle_oid, "userId": user_id}
            ),
            "find membership",
        )

    async def _check_admin(
        self, acting_user_id: Optional[str], circle_id: str, action: str
    ) -> Optional[LedgerResult]:
        """Return a failure result unless the acting user administers the circle."""
        if not acting_user_id:
            return LedgerResult.failure(Outcome.UNAUTHENTICATED)
        circle_oid = parse_object_id(circle_id)
        if circle_oid is None:
            return LedgerResult.failure(Outcome.CIRCLE_NOT_FOUND)

        doc = await self._find_membership_doc(circle_oid, acting_user_id)
        if not doc or not membership_from_document(doc).is_admin:
            logger.info(f"User {acting_user_id} denied {action} in circle {circle_id}")
            return LedgerResult.failure(Outcome.NOT_AUTHORIZED)
        return None

    async def _adjust_member_count(self, circle_oid: ObjectId, delta: int) -> None:
        """Atomically move memberCount, never below zero."""
        query: Dict[str, Any] = {"_id": circle_oid}
        if delta < 0:
            query["memberCount"] = {"$gt": 0}
        result = await self._store.call(
            lambda: self._circles_collection.update_one(query, {"$inc": {"memberCount": delta}}),
            "adjust member count",
        )
        if delta < 0 and result.matched_count == 0:
            logger.warning(f"memberCount of circle {circle_oid} already at zero, decrement skipped")

    async def _undo_approval(self, circle_oid: ObjectId, user_id: str) -> None:
        """Return an approved row to pending after its increment failed."""
        try:
            await self._store.call_idempotent(
                lambda: self._memberships_collection.update_one(
                    {
                        "circleId": circle_oid,
                        "userId": user_id,
                        "status": MembershipStatus.ACTIVE.value,
                    },
                    {"$set": {"status": MembershipStatus.PENDING.value}},
                ),
                "undo approval",
            )
            logger.warning(f"Approval of {user_id} in circle {circle_oid} reverted to pending")
        except StoreUnavailable as e:
            logger.error(
                f"Could not revert approval of {user_id} in circle {circle_oid}, "
                f"memberCount needs reconciling: {e}"
            )

    async def _release_membership(self, circle_oid: ObjectId, removed: Dict[str, Any]) -> None:
        """
        Decrement memberCount for a deleted row if it was active.

        If the decrement fails the row is put back and the store error
        re-raised, so the caller sees nothing changed.
        """
        if removed.get("status") != MembershipStatus.ACTIVE.value:
            return
        try:
            await self._adjust_member_count(circle_oid, -1)
        except StoreUnavailable:
            await self._restore_membership(circle_oid, removed)
            raise

    async def _restore_membership(self, circle_oid: ObjectId, removed: Dict[str, Any]) -> None:
        user_id = removed.get("userId")
        try:
            await self._store.call(
                lambda: self._memberships_collection.insert_one(dict(removed)),
                "restore membership",
            )
            logger.warning(f"Restored membership of {user_id} in circle {circle_oid}")
        except DuplicateKeyError:
            # The user rejoined in between; only a recount can settle the counter
            try:
                await self.reconcile_member_count(str(circle_oid))
            except StoreUnavailable as e:
                logger.error(f"memberCount of circle {circle_oid} needs reconciling: {e}")
        except StoreUnavailable as e:
            logger.error(
                f"Could not restore membership of {user_id} in circle {circle_oid}, "
                f"memberCount needs reconciling: {e}"
            )
