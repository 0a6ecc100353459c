"""Tests for LedgerResult and its mapping onto API errors."""

import pytest

from common.utils.exceptions import (
    ConflictException,
    ForbiddenException,
    InternalServerException,
    NotFoundException,
    UnauthorizedException,
    ValidationException,
)
from mindbridge.services.circles.outcomes import LedgerResult, Outcome, raise_for_outcome


class TestLedgerResult:
    def test_success_is_truthy(self):
        result = LedgerResult.success(5)

        assert result
        assert result.ok
        assert result.value == 5

    def test_failure_is_falsy(self):
        result = LedgerResult.failure(Outcome.NOT_AUTHORIZED)

        assert not result
        assert result.value is None

    def test_failure_requires_non_ok_outcome(self):
        with pytest.raises(ValueError):
            LedgerResult.failure(Outcome.OK)


class TestRaiseForOutcome:
    def test_returns_value_on_success(self):
        assert raise_for_outcome(LedgerResult.success("circle")) == "circle"

    @pytest.mark.parametrize(
        "outcome, exc_type, status",
        [
            (Outcome.UNAUTHENTICATED, UnauthorizedException, 401),
            (Outcome.NOT_AUTHORIZED, ForbiddenException, 403),
            (Outcome.CANNOT_REMOVE_SELF, ForbiddenException, 403),
            (Outcome.CANNOT_DEMOTE_SELF, ForbiddenException, 403),
            (Outcome.CIRCLE_NOT_FOUND, NotFoundException, 404),
            (Outcome.MEMBERSHIP_NOT_FOUND, NotFoundException, 404),
            (Outcome.ALREADY_MEMBER, ConflictException, 409),
            (Outcome.INVALID_INPUT, ValidationException, 422),
            (Outcome.PARTIAL_CREATE_FAILURE, InternalServerException, 500),
        ],
    )
    def test_maps_outcome_to_exception(self, outcome, exc_type, status):
        with pytest.raises(exc_type) as exc_info:
            raise_for_outcome(LedgerResult.failure(outcome))

        assert exc_info.value.status_code == status
        assert exc_info.value.code == outcome.value

    def test_detail_overrides_default_message(self):
        with pytest.raises(ValidationException) as exc_info:
            raise_for_outcome(LedgerResult.failure(Outcome.INVALID_INPUT, "Unknown visibility"))

        assert exc_info.value.message == "Unknown visibility"

    def test_error_envelope(self):
        with pytest.raises(ConflictException) as exc_info:
            raise_for_outcome(LedgerResult.failure(Outcome.ALREADY_MEMBER))

        body = exc_info.value.to_response()
        assert body["success"] is False
        assert body["error"]["code"] == "ALREADY_MEMBER"
        assert "details" not in body["error"]
