"""
Tagged results for membership and content operations.

Denials and precondition failures are ordinary results, not exceptions.
The HTTP layer turns a failed result into the matching APIException with
`raise_for_outcome`; store outages travel separately as StoreUnavailable.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

from common.utils.exceptions import (
    APIException,
    ConflictException,
    ForbiddenException,
    InternalServerException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)

T = TypeVar("T")


class Outcome(str, Enum):
    OK = "OK"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    ALREADY_MEMBER = "ALREADY_MEMBER"
    CIRCLE_NOT_FOUND = "CIRCLE_NOT_FOUND"
    MEMBERSHIP_NOT_FOUND = "MEMBERSHIP_NOT_FOUND"
    POST_NOT_FOUND = "POST_NOT_FOUND"
    COMMENT_NOT_FOUND = "COMMENT_NOT_FOUND"
    CANNOT_REMOVE_SELF = "CANNOT_REMOVE_SELF"
    CANNOT_DEMOTE_SELF = "CANNOT_DEMOTE_SELF"
    PARTIAL_CREATE_FAILURE = "PARTIAL_CREATE_FAILURE"
    INVALID_INPUT = "INVALID_INPUT"


OUTCOME_MESSAGES = {
    Outcome.UNAUTHENTICATED: "Sign in to continue",
    Outcome.NOT_AUTHORIZED: "You are not allowed to do that in this circle",
    Outcome.ALREADY_MEMBER: "You already belong to or have requested to join this circle",
    Outcome.CIRCLE_NOT_FOUND: "Circle not found",
    Outcome.MEMBERSHIP_NOT_FOUND: "Membership not found",
    Outcome.POST_NOT_FOUND: "Post not found",
    Outcome.COMMENT_NOT_FOUND: "Comment not found",
    Outcome.CANNOT_REMOVE_SELF: "Admins cannot remove themselves; leave the circle instead",
    Outcome.CANNOT_DEMOTE_SELF: "Admins cannot remove their own admin role",
    Outcome.PARTIAL_CREATE_FAILURE: "Circle creation failed, please try again",
    Outcome.INVALID_INPUT: "Invalid input",
}


@dataclass(frozen=True)
class LedgerResult(Generic[T]):
    """
    Outcome of a ledger or content operation.

    Truthy only on success, so callers that need a plain boolean can
    use the result directly.
    """
    outcome: Outcome
    value: Optional[T] = None
    detail: Optional[str] = None

    def __bool__(self) -> bool:
        return self.outcome is Outcome.OK

    @property
    def ok(self) -> bool:
        return self.outcome is Outcome.OK

    @classmethod
    def success(cls, value: Optional[T] = None) -> "LedgerResult[T]":
        return cls(Outcome.OK, value)

    @classmethod
    def failure(cls, outcome: Outcome, detail: Optional[str] = None) -> "LedgerResult[T]":
        if outcome is Outcome.OK:
            raise ValueError("failure() requires a non-OK outcome")
        return cls(outcome, None, detail)


def exception_for_outcome(result: LedgerResult) -> APIException:
    """Build the APIException matching a failed result."""
    outcome = result.outcome
    message = result.detail or OUTCOME_MESSAGES.get(outcome, outcome.value)
    code = outcome.value

    if outcome is Outcome.UNAUTHENTICATED:
        return UnauthorizedException(message=message, code=code)
    if outcome in (Outcome.NOT_AUTHORIZED, Outcome.CANNOT_REMOVE_SELF, Outcome.CANNOT_DEMOTE_SELF):
        return ForbiddenException(message=message, code=code)
    if outcome in (
        Outcome.CIRCLE_NOT_FOUND,
        Outcome.MEMBERSHIP_NOT_FOUND,
        Outcome.POST_NOT_FOUND,
        Outcome.COMMENT_NOT_FOUND,
    ):
        return NotFoundException(message=message, code=code)
    if outcome is Outcome.ALREADY_MEMBER:
        return ConflictException(message=message, code=code)
    if outcome is Outcome.INVALID_INPUT:
        return ValidationException(message=message, code=code)
    return InternalServerException(message=message, code=code)


def raise_for_outcome(result: LedgerResult[T]) -> Optional[T]:
    """Return the value of a successful result, raise its APIException otherwise."""
    if result.ok:
        return result.value
    raise exception_for_outcome(result)
