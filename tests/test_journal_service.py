"""Unit tests for JournalService."""

import pytest
from bson import ObjectId

from common.utils.exceptions import NotFoundException, ValidationException
from mindbridge.models import JournalVisibility, Visibility

AUTHOR = "user-author"
CIRCLE_MATE = "user-mate"
STRANGER = "user-stranger"


@pytest.fixture
def shared_circle(membership_service):
    """AUTHOR and CIRCLE_MATE are active members of one public circle."""

    async def create():
        result = await membership_service.create_circle(
            AUTHOR, "Journaling", "Write daily", [], Visibility.PUBLIC
        )
        circle = result.value
        await membership_service.request_join(CIRCLE_MATE, circle.id)
        return circle

    return create


class TestCreateEntry:
    @pytest.mark.asyncio
    async def test_creates_private_entry_by_default(self, journal_service):
        entry = await journal_service.create_entry(AUTHOR, " Monday ", "Felt calm")

        assert entry.title == "Monday"
        assert entry.visibility is JournalVisibility.PRIVATE
        assert entry.user_id == AUTHOR

    @pytest.mark.asyncio
    async def test_title_limits(self, journal_service):
        with pytest.raises(ValidationException):
            await journal_service.create_entry(AUTHOR, "   ", "Body")
        with pytest.raises(ValidationException):
            await journal_service.create_entry(AUTHOR, "x" * 101, "Body")

    @pytest.mark.asyncio
    async def test_unknown_visibility(self, journal_service, fake_db):
        with pytest.raises(ValidationException) as exc_info:
            await journal_service.create_entry(AUTHOR, "Title", "Body", visibility="friends")

        assert exc_info.value.code == "INVALID_VISIBILITY"
        assert fake_db["journalentries"].docs == []


class TestVisibility:
    @pytest.mark.asyncio
    async def test_private_entry_only_for_author(self, journal_service, shared_circle):
        await shared_circle()
        entry = await journal_service.create_entry(AUTHOR, "Secret", "Only me")

        assert (await journal_service.get_entry(AUTHOR, entry.id)).id == entry.id
        with pytest.raises(NotFoundException):
            await journal_service.get_entry(CIRCLE_MATE, entry.id)

    @pytest.mark.asyncio
    async def test_circle_entry_for_active_circle_mates(self, journal_service, shared_circle):
        await shared_circle()
        entry = await journal_service.create_entry(AUTHOR, "Week", "Busy", JournalVisibility.CIRCLE)

        assert (await journal_service.get_entry(CIRCLE_MATE, entry.id)).title == "Week"
        with pytest.raises(NotFoundException):
            await journal_service.get_entry(STRANGER, entry.id)
        with pytest.raises(NotFoundException):
            await journal_service.get_entry(None, entry.id)

    @pytest.mark.asyncio
    async def test_circle_entry_hidden_after_leaving(
        self, journal_service, membership_service, shared_circle
    ):
        circle = await shared_circle()
        entry = await journal_service.create_entry(AUTHOR, "Week", "Busy", "circle")

        await membership_service.leave(CIRCLE_MATE, circle.id)

        with pytest.raises(NotFoundException):
            await journal_service.get_entry(CIRCLE_MATE, entry.id)

    @pytest.mark.asyncio
    async def test_public_entry_for_everyone(self, journal_service):
        entry = await journal_service.create_entry(AUTHOR, "Hello", "World", "public")

        assert (await journal_service.get_entry(None, entry.id)).body == "World"

    @pytest.mark.asyncio
    async def test_list_filters_by_viewer(self, journal_service, shared_circle):
        await shared_circle()
        await journal_service.create_entry(AUTHOR, "One", "Private")
        await journal_service.create_entry(AUTHOR, "Two", "Circle", "circle")
        await journal_service.create_entry(AUTHOR, "Three", "Public", "public")

        own = await journal_service.list_entries(AUTHOR, AUTHOR)
        mate = await journal_service.list_entries(CIRCLE_MATE, AUTHOR)
        stranger = await journal_service.list_entries(STRANGER, AUTHOR)

        assert len(own) == 3
        assert sorted(e.title for e in mate) == ["Three", "Two"]
        assert [e.title for e in stranger] == ["Three"]


class TestModifyEntry:
    @pytest.mark.asyncio
    async def test_author_updates_fields(self, journal_service):
        entry = await journal_service.create_entry(AUTHOR, "Draft", "First pass")

        updated = await journal_service.update_entry(
            AUTHOR, entry.id, body="Second pass", visibility="public"
        )

        assert updated.title == "Draft"
        assert updated.body == "Second pass"
        assert updated.visibility is JournalVisibility.PUBLIC
        assert updated.created_at == entry.created_at

    @pytest.mark.asyncio
    async def test_other_user_cannot_update_or_delete(self, journal_service):
        entry = await journal_service.create_entry(AUTHOR, "Mine", "Hands off", "public")

        with pytest.raises(NotFoundException):
            await journal_service.update_entry(STRANGER, entry.id, title="Taken")
        with pytest.raises(NotFoundException):
            await journal_service.delete_entry(STRANGER, entry.id)

        assert (await journal_service.get_entry(AUTHOR, entry.id)).title == "Mine"

    @pytest.mark.asyncio
    async def test_update_needs_a_field(self, journal_service):
        entry = await journal_service.create_entry(AUTHOR, "Draft", "Body")

        with pytest.raises(ValidationException):
            await journal_service.update_entry(AUTHOR, entry.id)

    @pytest.mark.asyncio
    async def test_author_deletes(self, journal_service, fake_db):
        entry = await journal_service.create_entry(AUTHOR, "Gone", "Soon")

        await journal_service.delete_entry(AUTHOR, entry.id)

        assert fake_db["journalentries"].docs == []

    @pytest.mark.asyncio
    async def test_unknown_entry(self, journal_service):
        with pytest.raises(NotFoundException) as exc_info:
            await journal_service.delete_entry(AUTHOR, str(ObjectId()))

        assert exc_info.value.code == "ENTRY_NOT_FOUND"
