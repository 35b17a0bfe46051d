"""Forum and category reads/mutations behind the read-through cache."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from forum_tally.core.errors import Forbidden, InvalidArgument, NotFound
from forum_tally.core.security import AuthenticatedVoter, require_voter
from forum_tally.db.session import commit_or_unavailable
from forum_tally.db.time import as_utc, utcnow
from forum_tally.models import Category, Comment, Forum, ForumMember, Post, Vote
from forum_tally.models.forum import FORUM_ROLE_ADMIN
from forum_tally.models.vote import TargetKind
from forum_tally.services.cache import ReadThroughCache
from forum_tally.services.cache_keys import CacheKeys, CacheTTL
from forum_tally.services.invalidation import ForumChanged, InvalidationCoordinator, MutationAction

__all__ = ["CategoryView", "ForumService", "ForumView"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ForumView:
    id: int
    title: str
    description: str
    category_id: int
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True, slots=True)
class CategoryView:
    id: int
    name: str


def _forum_view(forum: Forum) -> ForumView:
    return ForumView(
        id=forum.id,
        title=forum.title,
        description=forum.description,
        category_id=forum.category_id,
        created_at=as_utc(forum.created_at),
        updated_at=as_utc(forum.updated_at),
    )


def _require_fields(title: str, description: str) -> None:
    if not title.strip() or not description.strip():
        raise InvalidArgument("All fields are required")


class ForumService:
    """Cached forum listings plus forum create/update/delete."""

    def __init__(
        self,
        db: Session,
        cache: ReadThroughCache,
        coordinator: InvalidationCoordinator,
        ttl: CacheTTL | None = None,
    ) -> None:
        self.db = db
        self.cache = cache
        self.coordinator = coordinator
        self.ttl = ttl or CacheTTL.from_settings()

    def list_categories(self) -> tuple[CategoryView, ...]:
        return self.cache.get_or_compute(
            CacheKeys.ALL_CATEGORIES,
            lambda: tuple(
                CategoryView(id=c.id, name=c.name)
                for c in self.db.scalars(select(Category).order_by(Category.id))
            ),
            self.ttl.reference,
        )

    def list_forums(self) -> tuple[ForumView, ...]:
        return self.cache.get_or_compute(
            CacheKeys.ALL_FORUMS,
            lambda: tuple(
                _forum_view(f) for f in self.db.scalars(select(Forum).order_by(Forum.id))
            ),
            self.ttl.forums,
        )

    def get_forum(self, forum_id: int) -> ForumView:
        return self.cache.get_or_compute(
            CacheKeys.forum(forum_id),
            lambda: _forum_view(self._get_forum_row(forum_id)),
            self.ttl.forum,
        )

    def create_forum(
        self,
        voter: AuthenticatedVoter | None,
        title: str,
        description: str,
        category_id: int,
    ) -> ForumView:
        """Create a forum; its creator becomes the forum admin."""
        creator = require_voter(voter)
        _require_fields(title, description)
        if self.db.get(Category, category_id) is None:
            raise NotFound("Category not found")

        forum = Forum(title=title, description=description, category_id=category_id)
        self.db.add(forum)
        self.db.flush()
        self.db.add(ForumMember(forum_id=forum.id, user_id=creator.user_id, role=FORUM_ROLE_ADMIN))
        commit_or_unavailable(self.db)
        self.db.refresh(forum)

        self.coordinator.apply(ForumChanged(MutationAction.CREATED, forum.id))
        logger.info("Forum %s created by %s", forum.id, creator.user_id)
        return _forum_view(forum)

    def update_forum(
        self,
        voter: AuthenticatedVoter | None,
        forum_id: int,
        title: str,
        description: str,
        category_id: int,
    ) -> ForumView:
        actor = require_voter(voter)
        forum = self._get_forum_row(forum_id)
        self._require_forum_admin(actor, forum_id)
        _require_fields(title, description)
        if self.db.get(Category, category_id) is None:
            raise NotFound("Category not found")

        forum.title = title
        forum.description = description
        forum.category_id = category_id
        forum.updated_at = utcnow()
        commit_or_unavailable(self.db)
        self.db.refresh(forum)

        self.coordinator.apply(ForumChanged(MutationAction.UPDATED, forum_id))
        return _forum_view(forum)

    def delete_forum(self, voter: AuthenticatedVoter | None, forum_id: int) -> None:
        """Delete a forum with its posts, their comments and all related votes."""
        actor = require_voter(voter)
        forum = self._get_forum_row(forum_id)
        self._require_forum_admin(actor, forum_id)

        posts = self.db.execute(
            select(Post.id, Post.author_id).where(Post.forum_id == forum_id)
        ).all()
        post_ids = [post_id for post_id, _ in posts]
        author_ids = tuple(sorted({author_id for _, author_id in posts}, key=str))
        comment_ids: list[int] = []
        if post_ids:
            comment_ids = list(
                self.db.scalars(select(Comment.id).where(Comment.post_id.in_(post_ids)))
            )
            self.db.execute(
                delete(Vote).where(
                    Vote.target_kind == TargetKind.POST.value,
                    Vote.target_id.in_(post_ids),
                )
            )
            if comment_ids:
                self.db.execute(
                    delete(Vote).where(
                        Vote.target_kind == TargetKind.COMMENT.value,
                        Vote.target_id.in_(comment_ids),
                    )
                )
            self.db.execute(delete(Comment).where(Comment.post_id.in_(post_ids)))
            self.db.execute(delete(Post).where(Post.id.in_(post_ids)))
        self.db.execute(delete(ForumMember).where(ForumMember.forum_id == forum_id))
        self.db.delete(forum)
        commit_or_unavailable(self.db)

        self.coordinator.apply(
            ForumChanged(
                MutationAction.DELETED,
                forum_id,
                post_ids=tuple(post_ids),
                author_ids=author_ids,
                comment_ids=tuple(comment_ids),
            )
        )
        logger.info("Forum %s deleted with %d posts", forum_id, len(post_ids))

    def _get_forum_row(self, forum_id: int) -> Forum:
        forum = self.db.get(Forum, forum_id)
        if forum is None:
            raise NotFound("Forum not found")
        return forum

    def _require_forum_admin(self, actor: AuthenticatedVoter, forum_id: int) -> None:
        if actor.is_admin:
            return
        membership = self.db.get(ForumMember, (forum_id, actor.user_id))
        if membership is None or membership.role != FORUM_ROLE_ADMIN:
            raise Forbidden("Only forum admins can modify this forum")
