"""Friendship services."""

from mindbridge.services.friends.friendship_service import FriendshipService

__all__ = ["FriendshipService"]
