"""Version 1 API endpoints."""

from .endpoints import (
    categories_router,
    comments_router,
    forums_router,
    posts_router,
    votes_router,
)

__all__ = [
    "categories_router",
    "comments_router",
    "forums_router",
    "posts_router",
    "votes_router",
]
