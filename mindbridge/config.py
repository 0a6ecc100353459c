"""
MindBridge application settings.

Extends the base settings with circle, friendship and messaging configuration.
"""

from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """MindBridge-specific settings."""

    # ==========================================================================
    # Circle Settings
    # ==========================================================================
    # Only active members may create posts and comments
    REQUIRE_MEMBERSHIP_TO_POST: bool = True

    # Posts, comments and member lists of private circles are members-only
    PRIVATE_CIRCLE_CONTENT_MEMBERS_ONLY: bool = True

    # ==========================================================================
    # Direct Message Settings
    # ==========================================================================
    MESSAGE_MAX_LENGTH: int = 2000
    CONVERSATION_PAGE_SIZE: int = 100

    # Only accepted friends may message each other
    REQUIRE_FRIENDSHIP_TO_MESSAGE: bool = True

    # ==========================================================================
    # Store Retry Settings (reads and idempotent updates only)
    # ==========================================================================
    STORE_MAX_RETRIES: int = 2
    STORE_RETRY_BASE_DELAY: float = 0.1
    STORE_RETRY_MAX_DELAY: float = 2.0


# Global settings instance
settings = Settings()
