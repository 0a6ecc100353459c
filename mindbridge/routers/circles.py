"""
FastAPI router for circle endpoints.

Provides endpoints for circles, membership, moderation and circle posts.
"""

import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, Query

from common.utils import ForbiddenException, NotFoundException, success_response
from mindbridge.dependencies import (
    get_content_service,
    get_membership_service,
    optional_auth,
    require_auth,
)
from mindbridge.models import Circle, Membership, Post
from mindbridge.schemas.circles import (
    CreateCircleRequest,
    CreatePostRequest,
    SetRoleRequest,
    UpdateCircleRequest,
)
from mindbridge.services.circles.content_service import CircleContentService
from mindbridge.services.circles.membership_service import MembershipService
from mindbridge.services.circles.outcomes import raise_for_outcome

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/circles", tags=["circles"])


# ─────────────────────────────────────────────────────────────────
# Formatting
# ─────────────────────────────────────────────────────────────────

def format_circle(circle: Circle) -> Dict[str, Any]:
    return {
        "id": circle.id,
        "name": circle.name,
        "description": circle.description,
        "tags": list(circle.tags),
        "visibility": circle.visibility.value,
        "createdBy": circle.created_by,
        "createdAt": circle.created_at.isoformat(),
        "memberCount": circle.member_count,
    }


def format_membership(membership: Membership) -> Dict[str, Any]:
    return {
        "circleId": membership.circle_id,
        "userId": membership.user_id,
        "role": membership.role.value,
        "status": membership.status.value,
        "joinedAt": membership.joined_at.isoformat(),
    }


def format_post(post: Post) -> Dict[str, Any]:
    return {
        "id": post.id,
        "circleId": post.circle_id,
        "authorId": post.author_id,
        "title": post.title,
        "body": post.body,
        "createdAt": post.created_at.isoformat(),
        "updatedAt": post.updated_at.isoformat(),
        "commentCount": post.comment_count,
    }


# ─────────────────────────────────────────────────────────────────
# Circles
# ─────────────────────────────────────────────────────────────────

@router.get("")
async def list_circles(
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
    limit: int = Query(default=100, ge=1, le=500),
):
    """List all circles, newest first."""
    circles = await membership_service.list_circles(limit=limit)
    return success_response({"circles": [format_circle(c) for c in circles]})


@router.post("")
async def create_circle(
    body: CreateCircleRequest,
    user_id: Annotated[str, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Create a circle; the creator becomes its admin."""
    result = await membership_service.create_circle(
        owner_id=user_id,
        name=body.name,
        description=body.description,
        tags=body.tags,
        visibility=body.visibility,
    )
    circle = raise_for_outcome(result)
    return success_response(format_circle(circle), message="Circle created")


@router.get("/mine")
async def list_my_circles(
    user_id: Annotated[str, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Circles created by the current user."""
    circles = await membership_service.list_circles_created_by(user_id)
    return success_response({"circles": [format_circle(c) for c in circles]})


@router.get("/joined")
async def list_joined_circles(
    user_id: Annotated[str, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Circles where the current user is an active member."""
    circles = await membership_service.list_circles_for_user(user_id)
    return success_response({"circles": [format_circle(c) for c in circles]})


@router.get("/{circle_id}")
async def get_circle(
    circle_id: str,
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Get circle by ID."""
    circle = await membership_service.get_circle(circle_id)
    if circle is None:
        raise NotFoundException(message="Circle not found", code="CIRCLE_NOT_FOUND")
    return success_response(format_circle(circle))


@router.patch("/{circle_id}")
async def update_circle(
    circle_id: str,
    body: UpdateCircleRequest,
    user_id: Annotated[str, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Update circle details. Admin only."""
    fields = body.model_dump(exclude_unset=True)
    result = await membership_service.update_circle(user_id, circle_id, fields)
    circle = raise_for_outcome(result)
    return success_response(format_circle(circle))


@router.post("/{circle_id}/reconcile")
async def reconcile_member_count(
    circle_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Recompute the cached member count. Admin only."""
    if not await membership_service.is_admin(user_id, circle_id):
        raise ForbiddenException(
            message="You are not allowed to do that in this circle",
            code="NOT_AUTHORIZED",
        )
    count = raise_for_outcome(await membership_service.reconcile_member_count(circle_id))
    return success_response({"memberCount": count})


# ─────────────────────────────────────────────────────────────────
# Membership
# ─────────────────────────────────────────────────────────────────

@router.post("/{circle_id}/join")
async def join_circle(
    circle_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Join a public circle or request to join a private one."""
    membership = raise_for_outcome(await membership_service.request_join(user_id, circle_id))
    message = "Joined circle" if membership.is_active else "Join request sent"
    return success_response(format_membership(membership), message=message)


@router.delete("/{circle_id}/membership")
async def leave_circle(
    circle_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Leave a circle or withdraw a pending request."""
    removed = raise_for_outcome(await membership_service.leave(user_id, circle_id))
    return success_response({"removed": removed})


@router.get("/{circle_id}/membership")
async def get_my_membership(
    circle_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Current user's membership state in a circle."""
    membership = await membership_service.get_membership(user_id, circle_id)
    return success_response({
        "membership": format_membership(membership) if membership else None,
        "isMember": bool(membership and membership.is_active),
        "isAdmin": bool(membership and membership.is_admin),
        "isPending": bool(membership and not membership.is_active),
    })


@router.get("/{circle_id}/members")
async def list_members(
    circle_id: str,
    viewer_id: Annotated[Optional[str], Depends(optional_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Active members of a circle."""
    members = raise_for_outcome(await membership_service.list_members(viewer_id, circle_id))
    return success_response({"members": [format_membership(m) for m in members]})


@router.get("/{circle_id}/requests")
async def list_pending_requests(
    circle_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Pending join requests. Admin only."""
    requests = raise_for_outcome(
        await membership_service.list_pending_requests(user_id, circle_id)
    )
    return success_response({"requests": [format_membership(m) for m in requests]})


@router.post("/{circle_id}/requests/{target_user_id}/approve")
async def approve_request(
    circle_id: str,
    target_user_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Approve a pending join request. Admin only."""
    raise_for_outcome(await membership_service.approve_join(user_id, circle_id, target_user_id))
    return success_response(message="Request approved")


@router.post("/{circle_id}/requests/{target_user_id}/reject")
async def reject_request(
    circle_id: str,
    target_user_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Reject a pending join request. Admin only."""
    raise_for_outcome(await membership_service.reject_join(user_id, circle_id, target_user_id))
    return success_response(message="Request rejected")


@router.delete("/{circle_id}/members/{target_user_id}")
async def remove_member(
    circle_id: str,
    target_user_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Remove a member from a circle. Admin only."""
    raise_for_outcome(await membership_service.remove_member(user_id, circle_id, target_user_id))
    return success_response(message="Member removed")


@router.put("/{circle_id}/members/{target_user_id}/role")
async def set_member_role(
    circle_id: str,
    target_user_id: str,
    body: SetRoleRequest,
    user_id: Annotated[str, Depends(require_auth)],
    membership_service: Annotated[MembershipService, Depends(get_membership_service)],
):
    """Promote or demote a member. Admin only."""
    raise_for_outcome(
        await membership_service.set_role(user_id, circle_id, target_user_id, body.role)
    )
    return success_response({"userId": target_user_id, "role": body.role.value})


# ─────────────────────────────────────────────────────────────────
# Circle posts
# ─────────────────────────────────────────────────────────────────

@router.get("/{circle_id}/posts")
async def list_posts(
    circle_id: str,
    viewer_id: Annotated[Optional[str], Depends(optional_auth)],
    content_service: Annotated[CircleContentService, Depends(get_content_service)],
    limit: int = Query(default=100, ge=1, le=500),
):
    """Posts of a circle, newest first."""
    posts = raise_for_outcome(await content_service.list_posts(viewer_id, circle_id, limit=limit))
    return success_response({"posts": [format_post(p) for p in posts]})


@router.post("/{circle_id}/posts")
async def create_post(
    circle_id: str,
    body: CreatePostRequest,
    user_id: Annotated[str, Depends(require_auth)],
    content_service: Annotated[CircleContentService, Depends(get_content_service)],
):
    """Create a post in a circle."""
    post = raise_for_outcome(
        await content_service.create_post(user_id, circle_id, body.title, body.body)
    )
    return success_response(format_post(post), message="Post created")
