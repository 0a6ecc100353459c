"""
FastAPI dependencies for MindBridge.

Provides dependency injection for all services.
"""

from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from common.auth import JWTAuth, create_auth_dependency, create_optional_auth_dependency
from common.database import StoreCaller
from mindbridge.config import settings
from mindbridge.services.circles.content_service import CircleContentService
from mindbridge.services.circles.membership_service import MembershipService
from mindbridge.services.friends.friendship_service import FriendshipService
from mindbridge.services.messages.direct_message_service import DirectMessageService
from mindbridge.services.wellbeing.journal_service import JournalService
from mindbridge.services.wellbeing.mood_service import MoodService


# ─────────────────────────────────────────────────────────────────
# Global service instances
# ─────────────────────────────────────────────────────────────────

# Auth
_jwt_auth: Optional[JWTAuth] = None

# Circles
_membership_service: Optional[MembershipService] = None
_content_service: Optional[CircleContentService] = None

# Friends
_friendship_service: Optional[FriendshipService] = None

# Messages
_direct_message_service: Optional[DirectMessageService] = None

# Wellbeing
_mood_service: Optional[MoodService] = None
_journal_service: Optional[JournalService] = None


# ─────────────────────────────────────────────────────────────────
# Initialization functions
# ─────────────────────────────────────────────────────────────────

def init_auth_services(
    secret: Optional[str] = None,
    algorithm: Optional[str] = None,
    expire_minutes: Optional[int] = None,
) -> None:
    """Initialize auth services."""
    global _jwt_auth

    _jwt_auth = JWTAuth(
        secret=secret or settings.JWT_SECRET,
        algorithm=algorithm or settings.JWT_ALGORITHM,
        access_token_expire_minutes=expire_minutes or settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
    )


def build_store_caller() -> StoreCaller:
    return StoreCaller(
        max_retries=settings.STORE_MAX_RETRIES,
        base_delay=settings.STORE_RETRY_BASE_DELAY,
        max_delay=settings.STORE_RETRY_MAX_DELAY,
    )


def init_circles_services(
    db: AsyncIOMotorDatabase, store: Optional[StoreCaller] = None
) -> None:
    """Initialize circles services."""
    global _membership_service, _content_service

    store = store or build_store_caller()
    _membership_service = MembershipService(
        db=db,
        store=store,
        private_content_members_only=settings.PRIVATE_CIRCLE_CONTENT_MEMBERS_ONLY,
    )
    _content_service = CircleContentService(
        db=db,
        membership_service=_membership_service,
        store=store,
        require_membership_to_post=settings.REQUIRE_MEMBERSHIP_TO_POST,
    )


def init_friend_services(
    db: AsyncIOMotorDatabase, store: Optional[StoreCaller] = None
) -> None:
    """Initialize friendship services."""
    global _friendship_service

    _friendship_service = FriendshipService(db=db, store=store or build_store_caller())


def init_message_services(
    db: AsyncIOMotorDatabase, store: Optional[StoreCaller] = None
) -> None:
    """
    Initialize direct message services.

    With REQUIRE_FRIENDSHIP_TO_MESSAGE on, friend services must be initialized first.
    """
    global _direct_message_service

    friendships = None
    if settings.REQUIRE_FRIENDSHIP_TO_MESSAGE:
        friendships = get_friendship_service()

    _direct_message_service = DirectMessageService(
        db=db,
        store=store or build_store_caller(),
        max_length=settings.MESSAGE_MAX_LENGTH,
        page_size=settings.CONVERSATION_PAGE_SIZE,
        friendships=friendships,
    )


def init_wellbeing_services(
    db: AsyncIOMotorDatabase, store: Optional[StoreCaller] = None
) -> None:
    """Initialize mood and journal services. Needs the circles services."""
    global _mood_service, _journal_service

    store = store or build_store_caller()
    _mood_service = MoodService(db=db, store=store)
    _journal_service = JournalService(
        db=db,
        membership_service=get_membership_service(),
        store=store,
    )


def init_all_services(db: AsyncIOMotorDatabase) -> None:
    """
    Initialize all services at application startup.

    Args:
        db: MongoDB database connection
    """
    store = build_store_caller()
    init_auth_services()
    init_circles_services(db, store)
    init_friend_services(db, store)
    init_message_services(db, store)
    init_wellbeing_services(db, store)


async def ensure_all_indexes() -> None:
    """Create the indexes every service relies on."""
    await get_membership_service().ensure_indexes()
    await get_content_service().ensure_indexes()
    await get_friendship_service().ensure_indexes()
    await get_direct_message_service().ensure_indexes()
    await get_mood_service().ensure_indexes()
    await get_journal_service().ensure_indexes()


# ─────────────────────────────────────────────────────────────────
# Getters
# ─────────────────────────────────────────────────────────────────

def get_jwt_auth() -> JWTAuth:
    """Get JWT auth provider."""
    if _jwt_auth is None:
        raise RuntimeError("Auth services not initialized.")
    return _jwt_auth


def get_membership_service() -> MembershipService:
    """Get membership service instance."""
    if _membership_service is None:
        raise RuntimeError("Circles services not initialized.")
    return _membership_service


def get_content_service() -> CircleContentService:
    """Get circle content service instance."""
    if _content_service is None:
        raise RuntimeError("Circles services not initialized.")
    return _content_service


def get_friendship_service() -> FriendshipService:
    """Get friendship service instance."""
    if _friendship_service is None:
        raise RuntimeError("Friend services not initialized.")
    return _friendship_service


def get_direct_message_service() -> DirectMessageService:
    """Get direct message service instance."""
    if _direct_message_service is None:
        raise RuntimeError("Message services not initialized.")
    return _direct_message_service


def get_mood_service() -> MoodService:
    """Get mood service instance."""
    if _mood_service is None:
        raise RuntimeError("Wellbeing services not initialized.")
    return _mood_service


def get_journal_service() -> JournalService:
    """Get journal service instance."""
    if _journal_service is None:
        raise RuntimeError("Wellbeing services not initialized.")
    return _journal_service


# Dependency that requires authentication; resolves to the user id.
require_auth = create_auth_dependency(get_jwt_auth)

# Dependency that optionally authenticates; resolves to the user id or None.
optional_auth = create_optional_auth_dependency(get_jwt_auth)
