"""Post and comment Pydantic schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from forum_tally.models.vote import TargetKind


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    forum_id: int
    title: str = Field(..., max_length=300)
    body: str = Field(..., max_length=10000, description="Post body")


class PostUpdate(BaseModel):
    title: str = Field(..., max_length=300)
    body: str = Field(..., max_length=10000)


class CommentCreate(BaseModel):
    """Schema for creating a comment; replies name the comment they answer."""

    body: str = Field(..., max_length=5000)
    parent_comment_id: int | None = Field(None, description="Comment being replied to")


class CommentUpdate(BaseModel):
    body: str = Field(..., max_length=5000)


class ContentItemResponse(BaseModel):
    """Post or comment as returned by the API."""

    kind: TargetKind
    id: int
    author_id: uuid.UUID
    body: str
    created_at: datetime
    updated_at: datetime
    title: str | None = None
    forum_id: int | None = None
    post_id: int | None = None
    parent_comment_id: int | None = None

    model_config = ConfigDict(from_attributes=True)


class RankedItemResponse(BaseModel):
    """Content item with its tally and the caller's vote."""

    item: ContentItemResponse
    upvotes: int
    downvotes: int
    my_vote: int | None = None

    model_config = ConfigDict(from_attributes=True)
