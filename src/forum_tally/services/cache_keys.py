"""Cache key schema.

Every cached query has exactly one key builder here. Keys are deterministic
functions of the query they answer:

- ``post_{id}``: single post with its tally
- ``posts_forum_{forum_id}``: ranked posts of a forum
- ``posts_user_{user_id}``: ranked posts written by a user
- ``posts_global``: ranked global feed
- ``comments_post_{post_id}``: ranked comments of a post
- ``tally_{kind}_{id}``: vote tally of a post or comment
- ``forums_all`` / ``forum_{id}`` / ``categories_all``: forum reference data
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

from forum_tally.core.settings import Settings, settings
from forum_tally.models.vote import TargetKind

__all__ = ["CacheKeys", "CacheTTL", "ContentFilter"]


@dataclass(frozen=True, slots=True)
class ContentFilter:
    """Shape of a ranked listing query.

    Post listings are scoped by forum, author, or neither (global feed).
    Comment listings are scoped by their parent post.
    """

    kind: TargetKind = TargetKind.POST
    forum_id: int | None = None
    author_id: uuid.UUID | None = None
    post_id: int | None = None

    @classmethod
    def global_feed(cls) -> ContentFilter:
        return cls()

    @classmethod
    def forum(cls, forum_id: int) -> ContentFilter:
        return cls(forum_id=forum_id)

    @classmethod
    def user(cls, author_id: uuid.UUID) -> ContentFilter:
        return cls(author_id=author_id)

    @classmethod
    def comments(cls, post_id: int) -> ContentFilter:
        return cls(kind=TargetKind.COMMENT, post_id=post_id)


class CacheKeys:
    """Cache key generator following a consistent naming convention."""

    GLOBAL_FEED = "posts_global"
    ALL_FORUMS = "forums_all"
    ALL_CATEGORIES = "categories_all"

    @classmethod
    def post(cls, post_id: int) -> str:
        return f"post_{post_id}"

    @classmethod
    def forum_posts(cls, forum_id: int) -> str:
        return f"posts_forum_{forum_id}"

    @classmethod
    def user_posts(cls, author_id: uuid.UUID) -> str:
        return f"posts_user_{author_id}"

    @classmethod
    def post_comments(cls, post_id: int) -> str:
        return f"comments_post_{post_id}"

    @classmethod
    def tally(cls, kind: TargetKind, target_id: int) -> str:
        return f"tally_{TargetKind(kind).value}_{target_id}"

    @classmethod
    def forum(cls, forum_id: int) -> str:
        return f"forum_{forum_id}"

    @classmethod
    def listing(cls, flt: ContentFilter) -> str:
        """Key for a ranked listing query."""
        if flt.kind is TargetKind.COMMENT:
            if flt.post_id is None:
                raise ValueError("comment listings require a post_id")
            return cls.post_comments(flt.post_id)
        if flt.forum_id is not None:
            return cls.forum_posts(flt.forum_id)
        if flt.author_id is not None:
            return cls.user_posts(flt.author_id)
        return cls.GLOBAL_FEED


@dataclass(frozen=True, slots=True)
class CacheTTL:
    """TTL tiers in seconds, from most to least volatile data."""

    tally: float
    item: float
    listing: float
    forums: float
    forum: float
    reference: float

    @classmethod
    def from_settings(cls, config: Settings = settings) -> CacheTTL:
        return cls(
            tally=config.cache_tally_ttl_seconds,
            item=config.cache_item_ttl_seconds,
            listing=config.cache_listing_ttl_seconds,
            forums=config.cache_forums_ttl_seconds,
            forum=config.cache_forum_ttl_seconds,
            reference=config.cache_reference_ttl_seconds,
        )
