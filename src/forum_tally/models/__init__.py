"""SQLAlchemy models for the forum tally service."""

from .forum import Category, Forum, ForumMember
from .post import Comment, Post
from .user import User
from .vote import TargetKind, Vote

__all__ = [
    "Category", "Forum", "ForumMember",
    "Comment", "Post",
    "User",
    "TargetKind", "Vote",
]
