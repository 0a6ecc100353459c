"""
MindBridge Services.

All service classes organized by feature.
"""

# Circle services
from mindbridge.services.circles.outcomes import LedgerResult, Outcome
from mindbridge.services.circles.membership_service import MembershipService
from mindbridge.services.circles.content_service import CircleContentService

# Friendship services
from mindbridge.services.friends.friendship_service import FriendshipService

# Message services
from mindbridge.services.messages.direct_message_service import DirectMessageService

# Wellbeing services
from mindbridge.services.wellbeing.journal_service import JournalService
from mindbridge.services.wellbeing.mood_service import MoodService

__all__ = [
    "LedgerResult",
    "Outcome",
    "MembershipService",
    "CircleContentService",
    "FriendshipService",
    "DirectMessageService",
    "JournalService",
    "MoodService",
]
