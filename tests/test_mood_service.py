"""Unit tests for MoodService."""

from datetime import date, datetime, timedelta, timezone

import pytest
from pymongo.errors import AutoReconnect, DuplicateKeyError

from common.utils.exceptions import ValidationException
from mindbridge.models import MoodValue, MoodVisibility
from mindbridge.services.wellbeing.mood_service import day_key

OWNER = "user-owner"
VIEWER = "user-viewer"


def days_ago(n):
    return datetime.now(timezone.utc).date() - timedelta(days=n)


class TestDayKey:
    def test_defaults_to_today_utc(self):
        assert day_key() == datetime.now(timezone.utc).date().isoformat()

    def test_accepts_date_datetime_and_string(self):
        assert day_key(date(2024, 3, 9)) == "2024-03-09"
        assert day_key(datetime(2024, 3, 9, 23, 59)) == "2024-03-09"
        assert day_key("2024-03-09") == "2024-03-09"

    def test_rejects_garbage(self):
        with pytest.raises(ValidationException) as exc_info:
            day_key("09/03/2024")

        assert exc_info.value.code == "INVALID_DATE"


class TestLogMood:
    @pytest.mark.asyncio
    async def test_first_log_of_the_day(self, mood_service):
        log = await mood_service.log_mood(OWNER, "good", note="  slept well  ")

        assert log.value is MoodValue.GOOD
        assert log.note == "slept well"
        assert log.visibility is MoodVisibility.PRIVATE
        assert log.date == day_key()

    @pytest.mark.asyncio
    async def test_second_log_replaces_first(self, mood_service, fake_db):
        first = await mood_service.log_mood(OWNER, MoodValue.BAD)

        second = await mood_service.log_mood(OWNER, MoodValue.NEUTRAL, visibility="public")

        assert len(fake_db["moodlogs"].docs) == 1
        assert second.id == first.id
        assert second.value is MoodValue.NEUTRAL
        assert second.visibility is MoodVisibility.PUBLIC
        assert second.created_at == first.created_at

    @pytest.mark.asyncio
    async def test_separate_days_are_separate_logs(self, mood_service, fake_db):
        await mood_service.log_mood(OWNER, "good", day=days_ago(1))
        await mood_service.log_mood(OWNER, "bad")

        assert len(fake_db["moodlogs"].docs) == 2

    @pytest.mark.asyncio
    async def test_unknown_value(self, mood_service):
        with pytest.raises(ValidationException) as exc_info:
            await mood_service.log_mood(OWNER, "ecstatic")

        assert exc_info.value.code == "INVALID_MOOD"

    @pytest.mark.asyncio
    async def test_note_limit(self, mood_service):
        with pytest.raises(ValidationException) as exc_info:
            await mood_service.log_mood(OWNER, "good", note="x" * 501)

        assert exc_info.value.code == "NOTE_TOO_LONG"

    @pytest.mark.asyncio
    async def test_concurrent_first_log_is_retried(self, mood_service, fake_db):
        fake_db["moodlogs"].fail_next("find_one_and_update", DuplicateKeyError("E11000"))

        log = await mood_service.log_mood(OWNER, "good")

        assert log.value is MoodValue.GOOD

    @pytest.mark.asyncio
    async def test_transient_error_is_retried(self, mood_service, fake_db):
        fake_db["moodlogs"].fail_next("find_one_and_update", AutoReconnect("blip"))

        await mood_service.log_mood(OWNER, "good")

        assert len(fake_db["moodlogs"].docs) == 1


class TestReadMoods:
    @pytest.mark.asyncio
    async def test_owner_sees_private_logs(self, mood_service):
        await mood_service.log_mood(OWNER, "bad")

        assert (await mood_service.get_mood(OWNER, OWNER)).value is MoodValue.BAD
        assert await mood_service.get_mood(VIEWER, OWNER) is None

    @pytest.mark.asyncio
    async def test_others_see_public_logs_only(self, mood_service):
        await mood_service.log_mood(OWNER, "good", visibility="public", day=days_ago(2))
        await mood_service.log_mood(OWNER, "bad", day=days_ago(1))
        await mood_service.log_mood(OWNER, "neutral", visibility="public")

        own = await mood_service.list_moods(OWNER, OWNER)
        shared = await mood_service.list_moods(VIEWER, OWNER)

        assert [log.value for log in own] == [MoodValue.NEUTRAL, MoodValue.BAD, MoodValue.GOOD]
        assert [log.value for log in shared] == [MoodValue.NEUTRAL, MoodValue.GOOD]

    @pytest.mark.asyncio
    async def test_list_respects_window(self, mood_service):
        await mood_service.log_mood(OWNER, "good", day=days_ago(10))
        await mood_service.log_mood(OWNER, "bad")

        logs = await mood_service.list_moods(OWNER, OWNER, days=7)

        assert [log.value for log in logs] == [MoodValue.BAD]

    @pytest.mark.asyncio
    async def test_summary_counts_values(self, mood_service):
        await mood_service.log_mood(OWNER, "good", day=days_ago(2))
        await mood_service.log_mood(OWNER, "good", day=days_ago(1))
        await mood_service.log_mood(OWNER, "bad")
        await mood_service.log_mood(OWNER, "bad", day=days_ago(30))

        summary = await mood_service.mood_summary(OWNER, days=7)

        assert summary["logged"] == 3
        assert summary["counts"] == {"good": 2, "neutral": 0, "bad": 1}
        assert summary["to"] == day_key()
        assert summary["from"] == days_ago(6).isoformat()

    @pytest.mark.asyncio
    async def test_summary_rejects_empty_window(self, mood_service):
        with pytest.raises(ValidationException):
            await mood_service.mood_summary(OWNER, days=0)


class TestDeleteMood:
    @pytest.mark.asyncio
    async def test_owner_deletes_log(self, mood_service, fake_db):
        await mood_service.log_mood(OWNER, "good")

        assert await mood_service.delete_mood(OWNER)
        assert fake_db["moodlogs"].docs == []

    @pytest.mark.asyncio
    async def test_missing_log(self, mood_service):
        assert not await mood_service.delete_mood(OWNER, days_ago(3))
