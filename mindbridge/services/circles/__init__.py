"""Circles services."""

from mindbridge.services.circles.outcomes import LedgerResult, Outcome, raise_for_outcome
from mindbridge.services.circles.membership_service import MembershipService
from mindbridge.services.circles.content_service import CircleContentService

__all__ = [
    "LedgerResult",
    "Outcome",
    "raise_for_outcome",
    "MembershipService",
    "CircleContentService",
]
