"""API endpoint modules for version 1."""

from .forums import categories_router
from .forums import router as forums_router
from .posts import comments_router
from .posts import router as posts_router
from .votes import router as votes_router

__all__ = [
    "categories_router",
    "comments_router",
    "forums_router",
    "posts_router",
    "votes_router",
]
