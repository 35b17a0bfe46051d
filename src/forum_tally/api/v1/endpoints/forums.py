"""Forum and category endpoints for the forum tally API."""

from fastapi import APIRouter, Response, status

from forum_tally.schemas.forum import CategoryResponse, ForumCreate, ForumResponse
from forum_tally.services.forums import CategoryView, ForumView

from ..dependencies import CurrentVoterDep, ForumServiceDep

router = APIRouter(prefix="/forums", tags=["forums"])
categories_router = APIRouter(prefix="/categories", tags=["forums"])


@categories_router.get("/", response_model=list[CategoryResponse])
async def list_categories(forums: ForumServiceDep) -> list[CategoryView]:
    """List forum categories."""
    return list(forums.list_categories())


@router.get("/", response_model=list[ForumResponse])
async def list_forums(forums: ForumServiceDep) -> list[ForumView]:
    """List all forums."""
    return list(forums.list_forums())


@router.get("/{forum_id}", response_model=ForumResponse)
async def get_forum(forum_id: int, forums: ForumServiceDep) -> ForumView:
    """Get a specific forum by ID."""
    return forums.get_forum(forum_id)


@router.post("/", response_model=ForumResponse, status_code=status.HTTP_201_CREATED)
async def create_forum(
    forum_data: ForumCreate,
    current_voter: CurrentVoterDep,
    forums: ForumServiceDep,
) -> ForumView:
    """Create a new forum administered by the caller."""
    return forums.create_forum(
        current_voter,
        forum_data.title,
        forum_data.description,
        forum_data.category_id,
    )


@router.put("/{forum_id}", response_model=ForumResponse)
async def update_forum(
    forum_id: int,
    forum_data: ForumCreate,
    current_voter: CurrentVoterDep,
    forums: ForumServiceDep,
) -> ForumView:
    return forums.update_forum(
        current_voter,
        forum_id,
        forum_data.title,
        forum_data.description,
        forum_data.category_id,
    )


@router.delete("/{forum_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response)
async def delete_forum(
    forum_id: int,
    current_voter: CurrentVoterDep,
    forums: ForumServiceDep,
) -> Response:
    """Delete a forum together with its posts."""
    forums.delete_forum(current_voter, forum_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
