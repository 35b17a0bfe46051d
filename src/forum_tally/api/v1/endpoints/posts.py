"""Post and comment endpoints for the forum tally API."""

import uuid

from fastapi import APIRouter, Query, Response, status

from forum_tally.schemas.post import (
    CommentCreate,
    CommentUpdate,
    ContentItemResponse,
    PostCreate,
    PostUpdate,
    RankedItemResponse,
)
from forum_tally.services.cache_keys import ContentFilter
from forum_tally.services.content import PostDraft
from forum_tally.services.ranking import ContentItem, RankedItem

from ..dependencies import (
    ContentServiceDep,
    CurrentVoterDep,
    ListingServiceDep,
    OptionalVoterDep,
)

router = APIRouter(prefix="/posts", tags=["posts"])
comments_router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("/", response_model=list[RankedItemResponse])
async def list_posts(
    voter: OptionalVoterDep,
    listing: ListingServiceDep,
    forum_id: int | None = Query(None, ge=1, description="Only posts in this forum"),
    user_id: uuid.UUID | None = Query(None, description="Only posts by this user"),
) -> list[RankedItem]:
    """List posts ranked by score, newest first among equal scores.

    Without filters this is the global feed.
    """
    if forum_id is not None:
        flt = ContentFilter.forum(forum_id)
    elif user_id is not None:
        flt = ContentFilter.user(user_id)
    else:
        flt = ContentFilter.global_feed()
    return listing.ranked(flt, voter)


@router.get("/{post_id}", response_model=RankedItemResponse)
async def get_post(
    post_id: int,
    voter: OptionalVoterDep,
    listing: ListingServiceDep,
) -> RankedItem:
    """Get a single post with its tally."""
    return listing.post(post_id, voter)


@router.get("/{post_id}/comments", response_model=list[RankedItemResponse])
async def get_post_comments(
    post_id: int,
    voter: OptionalVoterDep,
    listing: ListingServiceDep,
) -> list[RankedItem]:
    """List a post's comments ranked by score."""
    return listing.ranked(ContentFilter.comments(post_id), voter)


@router.post("/", response_model=ContentItemResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    current_voter: CurrentVoterDep,
    content: ContentServiceDep,
) -> ContentItem:
    draft = PostDraft(title=post_data.title, body=post_data.body)
    return content.create_post(current_voter, post_data.forum_id, draft)


@router.put("/{post_id}", response_model=ContentItemResponse)
async def update_post(
    post_id: int,
    post_data: PostUpdate,
    current_voter: CurrentVoterDep,
    content: ContentServiceDep,
) -> ContentItem:
    """Edit the title and body of the caller's own post."""
    draft = PostDraft(title=post_data.title, body=post_data.body)
    return content.update_post(current_voter, post_id, draft)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_post(
    post_id: int,
    current_voter: CurrentVoterDep,
    content: ContentServiceDep,
) -> Response:
    """Delete a post; allowed for its author and system admins."""
    content.delete_post(current_voter, post_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{post_id}/comments",
    response_model=ContentItemResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_comment(
    post_id: int,
    comment_data: CommentCreate,
    current_voter: CurrentVoterDep,
    content: ContentServiceDep,
) -> ContentItem:
    return content.create_comment(
        current_voter,
        post_id,
        comment_data.body,
        comment_data.parent_comment_id,
    )


@comments_router.put("/{comment_id}", response_model=ContentItemResponse)
async def update_comment(
    comment_id: int,
    comment_data: CommentUpdate,
    current_voter: CurrentVoterDep,
    content: ContentServiceDep,
) -> ContentItem:
    return content.update_comment(current_voter, comment_id, comment_data.body)


@comments_router.delete(
    "/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def delete_comment(
    comment_id: int,
    current_voter: CurrentVoterDep,
    content: ContentServiceDep,
) -> Response:
    """Delete a comment and its replies; allowed for its author and system admins."""
    content.delete_comment(current_voter, comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
