"""
FastAPI router for post and comment endpoints.

Editing and deleting is open to the author and to admins of the post's circle.
"""

from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends

from common.utils import ValidationException, success_response
from mindbridge.dependencies import get_content_service, optional_auth, require_auth
from mindbridge.models import Comment
from mindbridge.routers.circles import format_post
from mindbridge.schemas.circles import (
    CreateCommentRequest,
    UpdateCommentRequest,
    UpdatePostRequest,
)
from mindbridge.services.circles.content_service import CircleContentService
from mindbridge.services.circles.outcomes import raise_for_outcome

router = APIRouter(tags=["posts"])


def format_comment(comment: Comment) -> Dict[str, Any]:
    return {
        "id": comment.id,
        "postId": comment.post_id,
        "circleId": comment.circle_id,
        "authorId": comment.author_id,
        "body": comment.body,
        "createdAt": comment.created_at.isoformat(),
        "updatedAt": comment.updated_at.isoformat(),
    }


# ─────────────────────────────────────────────────────────────────
# Posts
# ─────────────────────────────────────────────────────────────────

@router.patch("/posts/{post_id}")
async def edit_post(
    post_id: str,
    body: UpdatePostRequest,
    user_id: Annotated[str, Depends(require_auth)],
    content_service: Annotated[CircleContentService, Depends(get_content_service)],
):
    """Edit a post's title or body."""
    if body.title is None and body.body is None:
        raise ValidationException(message="Nothing to update", code="INVALID_INPUT")

    post = raise_for_outcome(
        await content_service.edit_post(user_id, post_id, title=body.title, body=body.body)
    )
    return success_response(format_post(post))


@router.delete("/posts/{post_id}")
async def delete_post(
    post_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    content_service: Annotated[CircleContentService, Depends(get_content_service)],
):
    """Delete a post and its comments."""
    raise_for_outcome(await content_service.delete_post(user_id, post_id))
    return success_response(message="Post deleted")


# ─────────────────────────────────────────────────────────────────
# Comments
# ─────────────────────────────────────────────────────────────────

@router.get("/posts/{post_id}/comments")
async def list_comments(
    post_id: str,
    viewer_id: Annotated[Optional[str], Depends(optional_auth)],
    content_service: Annotated[CircleContentService, Depends(get_content_service)],
):
    """Comments on a post, oldest first."""
    comments = raise_for_outcome(await content_service.list_comments(viewer_id, post_id))
    return success_response({"comments": [format_comment(c) for c in comments]})


@router.post("/posts/{post_id}/comments")
async def create_comment(
    post_id: str,
    body: CreateCommentRequest,
    user_id: Annotated[str, Depends(require_auth)],
    content_service: Annotated[CircleContentService, Depends(get_content_service)],
):
    """Comment on a post."""
    comment = raise_for_outcome(await content_service.create_comment(user_id, post_id, body.body))
    return success_response(format_comment(comment), message="Comment added")


@router.patch("/comments/{comment_id}")
async def edit_comment(
    comment_id: str,
    body: UpdateCommentRequest,
    user_id: Annotated[str, Depends(require_auth)],
    content_service: Annotated[CircleContentService, Depends(get_content_service)],
):
    """Edit a comment."""
    comment = raise_for_outcome(await content_service.edit_comment(user_id, comment_id, body.body))
    return success_response(format_comment(comment))


@router.delete("/comments/{comment_id}")
async def delete_comment(
    comment_id: str,
    user_id: Annotated[str, Depends(require_auth)],
    content_service: Annotated[CircleContentService, Depends(get_content_service)],
):
    """Delete a comment."""
    raise_for_outcome(await content_service.delete_comment(user_id, comment_id))
    return success_response(message="Comment deleted")
