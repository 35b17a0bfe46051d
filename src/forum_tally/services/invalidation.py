"""Mapping from mutations to the cache keys they make stale.

``keys_for`` is the single place that knows which cached projections depend
on which rows. Mutating operations describe what they changed with one of
the mutation records below and hand it to ``InvalidationCoordinator.apply``
after their commit, before they report success.
"""

from __future__ import annotations

import enum
import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass

from forum_tally.core.settings import settings
from forum_tally.models.vote import TargetKind
from forum_tally.services.cache import ReadThroughCache
from forum_tally.services.cache_keys import CacheKeys

__all__ = [
    "CommentChanged",
    "CommentVoteChanged",
    "ForumChanged",
    "InvalidationCoordinator",
    "Mutation",
    "MutationAction",
    "PostChanged",
    "PostVoteChanged",
    "keys_for",
]

logger = logging.getLogger(__name__)


class MutationAction(str, enum.Enum):
    """What happened to a content row."""

    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


@dataclass(frozen=True, slots=True)
class PostVoteChanged:
    """A vote on a post was inserted, flipped or removed."""

    post_id: int
    forum_id: int
    author_id: uuid.UUID


@dataclass(frozen=True, slots=True)
class CommentVoteChanged:
    """A vote on a comment was inserted, flipped or removed."""

    comment_id: int
    post_id: int


@dataclass(frozen=True, slots=True)
class PostChanged:
    """Post row mutation.

    Deleting a post removes its comments and their votes too, so a delete
    carries the ids of those comments.
    """

    action: MutationAction
    post_id: int
    forum_id: int
    author_id: uuid.UUID
    comment_ids: tuple[int, ...] = ()


@dataclass(frozen=True, slots=True)
class CommentChanged:
    action: MutationAction
    comment_id: int
    post_id: int


@dataclass(frozen=True, slots=True)
class ForumChanged:
    """Forum row mutation.

    Deleting a forum removes its posts and their comments too, so a delete
    carries the ids and authors of those posts and the ids of the comments.
    """

    action: MutationAction
    forum_id: int
    post_ids: tuple[int, ...] = ()
    author_ids: tuple[uuid.UUID, ...] = ()
    comment_ids: tuple[int, ...] = ()


Mutation = PostVoteChanged | CommentVoteChanged | PostChanged | CommentChanged | ForumChanged


def _post_listing_keys(forum_id: int, author_id: uuid.UUID) -> set[str]:
    return {
        CacheKeys.forum_posts(forum_id),
        CacheKeys.GLOBAL_FEED,
        CacheKeys.user_posts(author_id),
    }


def keys_for(mutation: Mutation, *, listings_ranked_by_score: bool = True) -> frozenset[str]:
    """Return every cache key whose value may depend on ``mutation``.

    Args:
        mutation: Description of the committed change.
        listings_ranked_by_score: Whether post listings embed vote totals. When
            they do, a post vote also makes the forum, user and global
            listings stale.
    """
    keys: set[str] = set()

    if isinstance(mutation, PostVoteChanged):
        keys.add(CacheKeys.post(mutation.post_id))
        keys.add(CacheKeys.tally(TargetKind.POST, mutation.post_id))
        if listings_ranked_by_score:
            keys |= _post_listing_keys(mutation.forum_id, mutation.author_id)

    elif isinstance(mutation, CommentVoteChanged):
        keys.add(CacheKeys.tally(TargetKind.COMMENT, mutation.comment_id))
        keys.add(CacheKeys.post_comments(mutation.post_id))

    elif isinstance(mutation, PostChanged):
        keys |= _post_listing_keys(mutation.forum_id, mutation.author_id)
        if mutation.action is not MutationAction.CREATED:
            keys.add(CacheKeys.post(mutation.post_id))
        if mutation.action is MutationAction.DELETED:
            keys.add(CacheKeys.tally(TargetKind.POST, mutation.post_id))
            keys.add(CacheKeys.post_comments(mutation.post_id))
            keys.update(
                CacheKeys.tally(TargetKind.COMMENT, comment_id) for comment_id in mutation.comment_ids
            )

    elif isinstance(mutation, CommentChanged):
        keys.add(CacheKeys.post_comments(mutation.post_id))
        if mutation.action is MutationAction.DELETED:
            keys.add(CacheKeys.tally(TargetKind.COMMENT, mutation.comment_id))

    elif isinstance(mutation, ForumChanged):
        keys.add(CacheKeys.ALL_FORUMS)
        if mutation.action is not MutationAction.CREATED:
            keys.add(CacheKeys.forum(mutation.forum_id))
        if mutation.action is MutationAction.DELETED:
            keys.add(CacheKeys.forum_posts(mutation.forum_id))
            keys.add(CacheKeys.GLOBAL_FEED)
            keys.update(CacheKeys.user_posts(author_id) for author_id in mutation.author_ids)
            for post_id in mutation.post_ids:
                keys.add(CacheKeys.post(post_id))
                keys.add(CacheKeys.tally(TargetKind.POST, post_id))
                keys.add(CacheKeys.post_comments(post_id))
            keys.update(
                CacheKeys.tally(TargetKind.COMMENT, comment_id) for comment_id in mutation.comment_ids
            )

    else:
        raise TypeError(f"Unsupported mutation: {mutation!r}")

    return frozenset(keys)


class InvalidationCoordinator:
    """Evicts cache entries synchronously on behalf of mutating operations.

    Eviction failures are logged and swallowed: the store is the source of
    truth, so a missed eviction costs at most one TTL window of staleness.
    """

    def __init__(
        self,
        cache: ReadThroughCache,
        *,
        listings_ranked_by_score: bool | None = None,
    ) -> None:
        self.cache = cache
        if listings_ranked_by_score is None:
            listings_ranked_by_score = settings.listings_ranked_by_score
        self.listings_ranked_by_score = listings_ranked_by_score

    def invalidate(self, *keys: str) -> int:
        """Delete each key, continuing past failures; return how many existed."""
        return self._delete_all(keys)

    def apply(self, mutation: Mutation) -> frozenset[str]:
        """Evict every key affected by ``mutation`` and return the key set."""
        keys = keys_for(mutation, listings_ranked_by_score=self.listings_ranked_by_score)
        removed = self._delete_all(sorted(keys))
        logger.debug(
            "Invalidated %d/%d cache keys for %s",
            removed,
            len(keys),
            type(mutation).__name__,
        )
        return keys

    def _delete_all(self, keys: Iterable[str]) -> int:
        removed = 0
        for key in keys:
            try:
                if self.cache.delete(key):
                    removed += 1
            except Exception as exc:
                logger.warning("Cache invalidation failed for %s: %s", key, exc)
        return removed
