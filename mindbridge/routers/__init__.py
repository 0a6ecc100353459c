"""
MindBridge API Routers.

All FastAPI routers for the MindBridge application.
"""

from mindbridge.routers.circles import router as circles_router
from mindbridge.routers.posts import router as posts_router
from mindbridge.routers.friends import router as friends_router
from mindbridge.routers.messages import router as messages_router
from mindbridge.routers.moods import router as moods_router
from mindbridge.routers.journals import router as journals_router

__all__ = [
    "circles_router",
    "posts_router",
    "friends_router",
    "messages_router",
    "moods_router",
    "journals_router",
]
