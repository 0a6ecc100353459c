"""FastAPI router for daily mood logs."""

from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from common.utils import NotFoundException, list_response, success_response
from mindbridge.dependencies import get_mood_service, require_auth
from mindbridge.models import MoodLog
from mindbridge.schemas.wellbeing import LogMoodRequest
from mindbridge.services.wellbeing.mood_service import MoodService

router = APIRouter(prefix="/moods", tags=["moods"])


def format_mood(log: MoodLog) -> Dict[str, Any]:
    return {
        "id": log.id,
        "userId": log.user_id,
        "date": log.date,
        "value": log.value.value,
        "note": log.note,
        "visibility": log.visibility.value,
        "createdAt": log.created_at.isoformat(),
        "updatedAt": log.updated_at.isoformat(),
    }


@router.put("")
async def log_mood(
    body: LogMoodRequest,
    user_id: Annotated[str, Depends(require_auth)],
    mood_service: Annotated[MoodService, Depends(get_mood_service)],
):
    """Record the mood for today, or for `day`, replacing any earlier log."""
    log = await mood_service.log_mood(
        user_id, body.value, note=body.note, visibility=body.visibility, day=body.day
    )
    return success_response(format_mood(log), message="Mood logged")


@router.get("")
async def list_moods(
    user_id: Annotated[str, Depends(require_auth)],
    mood_service: Annotated[MoodService, Depends(get_mood_service)],
    owner_id: Optional[str] = Query(default=None, alias="userId"),
    days: int = Query(default=30, ge=1, le=366),
):
    """Recent logs of a user (the caller by default). Others only see public logs."""
    logs = await mood_service.list_moods(user_id, owner_id or user_id, days=days)
    return list_response([format_mood(log) for log in logs])


@router.get("/summary")
async def get_mood_summary(
    user_id: Annotated[str, Depends(require_auth)],
    mood_service: Annotated[MoodService, Depends(get_mood_service)],
    days: int = Query(default=7, ge=1, le=366),
):
    """The caller's mood counts over the last `days` days."""
    summary = await mood_service.mood_summary(user_id, days=days)
    return success_response(summary)


@router.get("/{day}")
async def get_mood(
    day: str,
    user_id: Annotated[str, Depends(require_auth)],
    mood_service: Annotated[MoodService, Depends(get_mood_service)],
    owner_id: Optional[str] = Query(default=None, alias="userId"),
):
    log = await mood_service.get_mood(user_id, owner_id or user_id, day)
    if log is None:
        raise NotFoundException(message="No mood logged for that day", code="MOOD_NOT_FOUND")
    return success_response(format_mood(log))


@router.delete("/{day}")
async def delete_mood(
    day: str,
    user_id: Annotated[str, Depends(require_auth)],
    mood_service: Annotated[MoodService, Depends(get_mood_service)],
):
    if not await mood_service.delete_mood(user_id, day):
        raise NotFoundException(message="No mood logged for that day", code="MOOD_NOT_FOUND")
    return success_response(message="Mood log deleted")
