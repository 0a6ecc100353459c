"""
FastAPI router for journal entries.

Entries hidden from the caller answer 404, the same as missing ones.
"""

from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from common.utils import list_response, success_response
from mindbridge.dependencies import get_journal_service, optional_auth, require_auth
from mindbridge.models import JournalEntry
from mindbridge.schemas.wellbeing import CreateJournalEntryRequest, UpdateJournalEntryRequest
from mindbridge.services.wellbeing.journal_service import JournalService

router = APIRouter(prefix="/journals", tags=["journals"])


def format_entry(entry: JournalEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "userId": entry.user_id,
        "title": entry.title,
        "body": entry.body,
        "visibility": entry.visibility.value,
        "createdAt": entry.created_at.isoformat(),
        "updatedAt": entry.updated_at.isoformat(),
    }


@router.post("")
async def create_entry(
    body: CreateJournalEntryRequest,
    user_id: Annotated[str, Depends(require_auth)],
    journal_service: Annotated[JournalService, Depends(get_journal_service)],
):
    entry = await journal_service.create_entry(user_id, body.title, body.body, body.visibility)
    return success_response(format_entry(entry), message="Journal entry created")


@router.get("/users/{owner_id}")
async def list_entries(
    owner_id: str,
    user_id: Annotated[Optional[str], Depends(optional_auth)],
    journal_service: Annotated[JournalService, Depends(get_journal_service)],
    limit: int = Query(default=50, ge=1, le=200),
):
    """A user's entries the caller may read, newest first."""
    entries = await journal_service.list_entries(user_id, owner_id, limit=limit)
    return list_response([format_entry(e) for e in entries])


@router.get("/{entry_id}")
async def get_entry(
    entry_id: str,
    user_id: Annotated[Optional[str], Depends(optional_auth)],
    journal_service: Annotated[JournalService, Depends(get_journal_service)],
):
    entry = await journal_service.get_entry(user_id, entry_id)
    return success_response(format_entry(entry))


@router.patch("/{entry_id}")
async def update_entry(
    entry_id: str,
    body: UpdateJournalEntryRequest,
    user_id: Annotated[str, Depends(require_auth)],
    journal_service: Annotated[JournalService, Depends(get_journal_service)],
):
    entry = await journal_service.update_entry(
        user_id, entry_id, title=body.title, body=body.body, visibility=body.visibility
    )
    return success_response(format_entry(entry), message="Journal entry updated")


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    journal_service: Annotated[JournalService, Depends(get_journal_service)],
):
    await journal_service.delete_entry(user_id, entry_id)
    return success_response(message="Journal entry deleted")
