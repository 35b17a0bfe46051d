"""Post and comment storage: lookups, listings and mutations.

``ContentStore`` is the read side consumed by the vote ledger and the
ranking read path. ``ContentService`` performs post/comment mutations and
hands each committed change to the invalidation coordinator.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from forum_tally.core.errors import Forbidden, InvalidArgument, NotFound
from forum_tally.core.security import AuthenticatedVoter, require_voter
from forum_tally.db.session import commit_or_unavailable
from forum_tally.db.time import as_utc, utcnow
from forum_tally.models import Comment, Forum, Post, TargetKind, Vote
from forum_tally.services.cache_keys import ContentFilter
from forum_tally.services.invalidation import (
    CommentChanged,
    InvalidationCoordinator,
    MutationAction,
    PostChanged,
)
from forum_tally.services.ranking import ContentItem

__all__ = ["ContentService", "ContentStore", "PostDraft", "snapshot"]

logger = logging.getLogger(__name__)

ContentRow = Post | Comment


def snapshot(row: ContentRow) -> ContentItem:
    """Copy an ORM row into a detached, cacheable ``ContentItem``."""
    if isinstance(row, Post):
        return ContentItem(
            kind=TargetKind.POST,
            id=row.id,
            author_id=row.author_id,
            body=row.body,
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
            title=row.title,
            forum_id=row.forum_id,
        )
    return ContentItem(
        kind=TargetKind.COMMENT,
        id=row.id,
        author_id=row.author_id,
        body=row.body,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
        post_id=row.post_id,
        parent_comment_id=row.parent_comment_id,
    )


class ContentStore:
    """Read access to posts and comments."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def get_post(self, post_id: int) -> Post:
        post = self.db.get(Post, post_id)
        if post is None:
            raise NotFound("Post not found")
        return post

    def get_comment(self, comment_id: int) -> Comment:
        comment = self.db.get(Comment, comment_id)
        if comment is None:
            raise NotFound("Comment not found")
        return comment

    def get_content(self, kind: TargetKind, target_id: int) -> ContentRow:
        """Return the post or comment row, or raise ``NotFound``."""
        if TargetKind(kind) is TargetKind.POST:
            return self.get_post(target_id)
        return self.get_comment(target_id)

    def list_content(self, flt: ContentFilter) -> list[ContentRow]:
        """Return rows matching ``flt``, newest first.

        Raises:
            NotFound: If the filter names a forum or post that does not exist.
        """
        if flt.kind is TargetKind.COMMENT:
            if flt.post_id is None:
                raise InvalidArgument("Comment listings require a post id")
            self.get_post(flt.post_id)
            stmt = (
                select(Comment)
                .where(Comment.post_id == flt.post_id)
                .order_by(Comment.created_at.desc(), Comment.id.desc())
            )
            return list(self.db.scalars(stmt))

        stmt = select(Post)
        if flt.forum_id is not None:
            if self.db.get(Forum, flt.forum_id) is None:
                raise NotFound("Forum not found")
            stmt = stmt.where(Post.forum_id == flt.forum_id)
        if flt.author_id is not None:
            stmt = stmt.where(Post.author_id == flt.author_id)
        stmt = stmt.order_by(Post.created_at.desc(), Post.id.desc())
        return list(self.db.scalars(stmt))


@dataclass(frozen=True, slots=True)
class PostDraft:
    """Validated title/body pair for post creation or edit."""

    title: str
    body: str

    def __post_init__(self) -> None:
        if not self.title.strip() or not self.body.strip():
            raise InvalidArgument("All fields are required")


def _require_body(body: str) -> str:
    if not body.strip():
        raise InvalidArgument("Comment body is required")
    return body


class ContentService:
    """Post and comment mutations with synchronous cache invalidation."""

    def __init__(self, db: Session, coordinator: InvalidationCoordinator) -> None:
        self.db = db
        self.store = ContentStore(db)
        self.coordinator = coordinator

    # --- posts ---------------------------------------------------------------------
    def create_post(
        self,
        voter: AuthenticatedVoter | None,
        forum_id: int,
        draft: PostDraft,
    ) -> ContentItem:
        author = require_voter(voter)
        if self.db.get(Forum, forum_id) is None:
            raise NotFound("Forum not found")

        post = Post(forum_id=forum_id, author_id=author.user_id, title=draft.title, body=draft.body)
        self.db.add(post)
        commit_or_unavailable(self.db)
        self.db.refresh(post)

        self.coordinator.apply(
            PostChanged(MutationAction.CREATED, post.id, post.forum_id, post.author_id)
        )
        return snapshot(post)

    def update_post(
        self,
        voter: AuthenticatedVoter | None,
        post_id: int,
        draft: PostDraft,
    ) -> ContentItem:
        editor = require_voter(voter)
        post = self.store.get_post(post_id)
        if post.author_id != editor.user_id:
            raise Forbidden("You can only update your own posts")

        post.title = draft.title
        post.body = draft.body
        post.updated_at = utcnow()
        commit_or_unavailable(self.db)
        self.db.refresh(post)

        self.coordinator.apply(
            PostChanged(MutationAction.UPDATED, post.id, post.forum_id, post.author_id)
        )
        return snapshot(post)

    def delete_post(self, voter: AuthenticatedVoter | None, post_id: int) -> None:
        """Delete a post together with its comments and every vote on either."""
        actor = require_voter(voter)
        post = self.store.get_post(post_id)
        if post.author_id != actor.user_id and not actor.is_admin:
            raise Forbidden("You are not allowed to delete this post")

        comment_ids = list(self.db.scalars(select(Comment.id).where(Comment.post_id == post_id)))
        mutation = PostChanged(
            MutationAction.DELETED,
            post.id,
            post.forum_id,
            post.author_id,
            comment_ids=tuple(comment_ids),
        )
        self._delete_votes(TargetKind.POST, [post_id])
        self._delete_votes(TargetKind.COMMENT, comment_ids)
        self.db.execute(delete(Comment).where(Comment.post_id == post_id))
        self.db.delete(post)
        commit_or_unavailable(self.db)

        self.coordinator.apply(mutation)
        logger.info("Deleted post %s with %d comments", post_id, len(comment_ids))

    # --- comments ------------------------------------------------------------------
    def create_comment(
        self,
        voter: AuthenticatedVoter | None,
        post_id: int,
        body: str,
        parent_comment_id: int | None = None,
    ) -> ContentItem:
        """Add a comment; replies to replies attach to the top-level comment."""
        author = require_voter(voter)
        self.store.get_post(post_id)
        body = _require_body(body)

        if parent_comment_id is not None:
            parent = self.db.get(Comment, parent_comment_id)
            if parent is None or parent.post_id != post_id:
                raise InvalidArgument("Parent comment not found")
            if parent.parent_comment_id is not None:
                parent_comment_id = parent.parent_comment_id

        comment = Comment(
            post_id=post_id,
            author_id=author.user_id,
            parent_comment_id=parent_comment_id,
            body=body,
        )
        self.db.add(comment)
        commit_or_unavailable(self.db)
        self.db.refresh(comment)

        self.coordinator.apply(CommentChanged(MutationAction.CREATED, comment.id, post_id))
        return snapshot(comment)

    def update_comment(
        self,
        voter: AuthenticatedVoter | None,
        comment_id: int,
        body: str,
    ) -> ContentItem:
        editor = require_voter(voter)
        comment = self.store.get_comment(comment_id)
        if comment.author_id != editor.user_id:
            raise Forbidden("You can only update your own comments")

        comment.body = _require_body(body)
        comment.updated_at = utcnow()
        commit_or_unavailable(self.db)
        self.db.refresh(comment)

        self.coordinator.apply(
            CommentChanged(MutationAction.UPDATED, comment.id, comment.post_id)
        )
        return snapshot(comment)

    def delete_comment(self, voter: AuthenticatedVoter | None, comment_id: int) -> None:
        """Delete a comment, its direct replies, and the votes on all of them."""
        actor = require_voter(voter)
        comment = self.store.get_comment(comment_id)
        if comment.author_id != actor.user_id and not actor.is_admin:
            raise Forbidden("You are not allowed to delete this comment")

        post_id = comment.post_id
        reply_ids = list(
            self.db.scalars(select(Comment.id).where(Comment.parent_comment_id == comment_id))
        )
        self._delete_votes(TargetKind.COMMENT, [comment_id, *reply_ids])
        self.db.execute(
            delete(Comment).where(
                or_(Comment.id == comment_id, Comment.parent_comment_id == comment_id)
            )
        )
        commit_or_unavailable(self.db)

        self.coordinator.apply(CommentChanged(MutationAction.DELETED, comment_id, post_id))
        for reply_id in reply_ids:
            self.coordinator.apply(CommentChanged(MutationAction.DELETED, reply_id, post_id))

    def _delete_votes(self, kind: TargetKind, target_ids: list[int]) -> None:
        if not target_ids:
            return
        self.db.execute(
            delete(Vote).where(
                Vote.target_kind == kind.value,
                Vote.target_id.in_(target_ids),
            )
        )
