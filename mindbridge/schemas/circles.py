"""
Pydantic models for circle request validation.

Defines schemas for circles, memberships, posts and comments.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

from mindbridge.models import Role, Visibility


class CreateCircleRequest(BaseModel):
    """Request body for creating a circle."""
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1, max_length=1000)
    tags: List[str] = Field(default_factory=list, max_length=20)
    visibility: Visibility = Visibility.PUBLIC


class UpdateCircleRequest(BaseModel):
    """Request body for updating a circle. Only sent fields change."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=1000)
    tags: Optional[List[str]] = Field(None, max_length=20)
    visibility: Optional[Visibility] = None


class SetRoleRequest(BaseModel):
    """Request body for promoting or demoting a member."""
    role: Role


class CreatePostRequest(BaseModel):
    """Request body for creating a post."""
    title: str = Field(..., min_length=1, max_length=200)
    body: str = Field(..., min_length=1, max_length=10000)


class UpdatePostRequest(BaseModel):
    """Request body for editing a post."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    body: Optional[str] = Field(None, min_length=1, max_length=10000)


class CreateCommentRequest(BaseModel):
    """Request body for commenting on a post."""
    body: str = Field(..., min_length=1, max_length=2000)


class UpdateCommentRequest(BaseModel):
    """Request body for editing a comment."""
    body: str = Field(..., min_length=1, max_length=2000)
