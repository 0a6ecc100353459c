"""
FastAPI router for friendship endpoints.

Friend requests, the friend list and the relation between two users.
"""

import logging
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends

from common.utils import list_response, success_response
from mindbridge.dependencies import get_friendship_service, require_auth
from mindbridge.models import Friendship
from mindbridge.schemas.friends import FriendRequestRequest
from mindbridge.services.friends.friendship_service import FriendshipService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/friends", tags=["friends"])


def format_friendship(friendship: Friendship, user_id: str) -> Dict[str, Any]:
    return {
        "id": friendship.id,
        "friendId": friendship.other_party(user_id),
        "requesterId": friendship.requester_id,
        "addresseeId": friendship.addressee_id,
        "status": friendship.status.value,
        "createdAt": friendship.created_at.isoformat(),
        "updatedAt": friendship.updated_at.isoformat(),
    }


@router.get("")
async def list_friends(
    user_id: Annotated[str, Depends(require_auth)],
    friendship_service: Annotated[FriendshipService, Depends(get_friendship_service)],
):
    """Accepted friends of the current user."""
    friends = await friendship_service.list_friends(user_id)
    return list_response([format_friendship(f, user_id) for f in friends])


@router.get("/requests/incoming")
async def list_incoming_requests(
    user_id: Annotated[str, Depends(require_auth)],
    friendship_service: Annotated[FriendshipService, Depends(get_friendship_service)],
):
    requests = await friendship_service.list_incoming(user_id)
    return list_response([format_friendship(f, user_id) for f in requests])


@router.get("/requests/outgoing")
async def list_outgoing_requests(
    user_id: Annotated[str, Depends(require_auth)],
    friendship_service: Annotated[FriendshipService, Depends(get_friendship_service)],
):
    requests = await friendship_service.list_outgoing(user_id)
    return list_response([format_friendship(f, user_id) for f in requests])


@router.post("/requests")
async def send_friend_request(
    body: FriendRequestRequest,
    user_id: Annotated[str, Depends(require_auth)],
    friendship_service: Annotated[FriendshipService, Depends(get_friendship_service)],
):
    """Ask another user to be friends."""
    friendship = await friendship_service.send_request(user_id, body.userId)
    return success_response(format_friendship(friendship, user_id), message="Friend request sent")


@router.post("/requests/{request_id}/accept")
async def accept_friend_request(
    request_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    friendship_service: Annotated[FriendshipService, Depends(get_friendship_service)],
):
    friendship = await friendship_service.accept_request(user_id, request_id)
    return success_response(format_friendship(friendship, user_id), message="Friend request accepted")


@router.post("/requests/{request_id}/reject")
async def reject_friend_request(
    request_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    friendship_service: Annotated[FriendshipService, Depends(get_friendship_service)],
):
    await friendship_service.reject_request(user_id, request_id)
    return success_response(message="Friend request rejected")


@router.delete("/requests/{request_id}")
async def cancel_friend_request(
    request_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    friendship_service: Annotated[FriendshipService, Depends(get_friendship_service)],
):
    """Withdraw a request the current user sent."""
    await friendship_service.cancel_request(user_id, request_id)
    return success_response(message="Friend request cancelled")


@router.get("/status/{other_user_id}")
async def get_relation_status(
    other_user_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    friendship_service: Annotated[FriendshipService, Depends(get_friendship_service)],
):
    """One of none, pending_sent, pending_received or friends."""
    status = await friendship_service.relation_status(user_id, other_user_id)
    return success_response({"userId": other_user_id, "status": status.value})


@router.delete("/{friend_id}")
async def remove_friend(
    friend_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    friendship_service: Annotated[FriendshipService, Depends(get_friendship_service)],
):
    await friendship_service.remove_friend(user_id, friend_id)
    return success_response(message="Friend removed")
