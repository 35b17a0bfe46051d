"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .forum import CategoryResponse, ForumCreate, ForumResponse
from .post import (
    CommentCreate,
    CommentUpdate,
    ContentItemResponse,
    PostCreate,
    PostUpdate,
    RankedItemResponse,
)
from .vote import TallyResponse, VoteCast, VoteRemoved, VoteResult

__all__ = [
    "CategoryResponse", "ForumCreate", "ForumResponse",
    "CommentCreate", "CommentUpdate", "ContentItemResponse",
    "PostCreate", "PostUpdate", "RankedItemResponse",
    "TallyResponse", "VoteCast", "VoteRemoved", "VoteResult",
]
