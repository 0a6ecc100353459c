"""
FastAPI router for direct message endpoints.

Includes a server-sent events feed of incoming messages.
"""

import asyncio
import json
import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse

from common.database import StoreUnavailable
from common.utils import NotFoundException, list_response, success_response
from mindbridge.dependencies import get_direct_message_service, require_auth
from mindbridge.models import DirectMessage
from mindbridge.schemas.messages import SendMessageRequest
from mindbridge.services.messages.direct_message_service import DirectMessageService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])

KEEPALIVE_SECONDS = 15


def format_message(message: DirectMessage) -> Dict[str, Any]:
    return {
        "id": message.id,
        "senderId": message.sender_id,
        "receiverId": message.receiver_id,
        "content": message.content,
        "isRead": message.is_read,
        "createdAt": message.created_at.isoformat(),
    }


@router.post("")
async def send_message(
    body: SendMessageRequest,
    user_id: Annotated[str, Depends(require_auth)],
    message_service: Annotated[DirectMessageService, Depends(get_direct_message_service)],
):
    """Send a direct message."""
    message = await message_service.send_message(user_id, body.receiverId, body.content)
    return success_response(format_message(message))


@router.get("/unread-count")
async def get_unread_count(
    user_id: Annotated[str, Depends(require_auth)],
    message_service: Annotated[DirectMessageService, Depends(get_direct_message_service)],
):
    """Number of unread messages for the current user."""
    count = await message_service.unread_count(user_id)
    return success_response({"count": count})


@router.get("/stream")
async def stream_incoming(
    user_id: Annotated[str, Depends(require_auth)],
    message_service: Annotated[DirectMessageService, Depends(get_direct_message_service)],
):
    """Stream newly received messages as server-sent events."""

    async def generate():
        stream = message_service.watch_incoming(user_id).__aiter__()
        pending_next: Optional[asyncio.Future] = None

        try:
            while True:
                if pending_next is None:
                    pending_next = asyncio.ensure_future(stream.__anext__())

                done, _ = await asyncio.wait({pending_next}, timeout=KEEPALIVE_SECONDS)

                if not done:
                    yield ": keepalive\n\n"
                    continue

                try:
                    message = pending_next.result()
                    pending_next = None
                except StopAsyncIteration:
                    break

                data = json.dumps({"type": "message", "content": format_message(message)})
                yield f"data: {data}\n\n"

        except StoreUnavailable as e:
            logger.warning(f"Message stream for {user_id} closed: {e}")
            data = json.dumps({"type": "error", "content": {"code": "STORE_UNAVAILABLE"}})
            yield f"data: {data}\n\n"
        finally:
            if pending_next is not None and not pending_next.done():
                pending_next.cancel()
            await stream.aclose()

    return StreamingResponse(
        generate(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache, no-transform",
            "X-Accel-Buffering": "no",
        },
    )


@router.get("/{other_user_id}")
async def get_conversation(
    other_user_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    message_service: Annotated[DirectMessageService, Depends(get_direct_message_service)],
    limit: Optional[int] = Query(default=None, ge=1, le=500),
):
    """Conversation with another user, oldest first."""
    messages = await message_service.get_conversation(user_id, other_user_id, limit=limit)
    return list_response([format_message(m) for m in messages])


@router.post("/{message_id}/read")
async def mark_message_read(
    message_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    message_service: Annotated[DirectMessageService, Depends(get_direct_message_service)],
):
    """Mark a received message as read."""
    updated = await message_service.mark_as_read(user_id, message_id)
    if not updated:
        raise NotFoundException(message="Message not found", code="MESSAGE_NOT_FOUND")
    return success_response(message="Message marked as read")
