"""Models capturing voting interactions on posts and comments."""

from __future__ import annotations

import enum
import uuid

from sqlalchemy import CheckConstraint, ForeignKey, Index, Integer, SmallInteger, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from forum_tally.db.session import Base

UPVOTE = 1
DOWNVOTE = -1
VALID_VOTE_VALUES = (UPVOTE, DOWNVOTE)


class TargetKind(str, enum.Enum):
    """Kind of content a vote applies to."""

    POST = "post"
    COMMENT = "comment"


class Vote(Base):
    """Per-user vote on a post or comment.

    The absence of a row is "no vote"; a stored value is always +1 or -1.
    """

    __tablename__ = "vote"
    __table_args__ = (
        CheckConstraint("value IN (1, -1)", name="ck_vote_value"),
        CheckConstraint("target_kind IN ('post', 'comment')", name="ck_vote_target_kind"),
        Index("ix_vote_target", "target_kind", "target_id"),
    )

    # Composite primary key prevents duplicate votes from the same user.
    voter_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("app_user.uid", ondelete="CASCADE"),
        primary_key=True,
    )
    target_kind: Mapped[str] = mapped_column(String(16), primary_key=True)
    target_id: Mapped[int] = mapped_column(Integer, primary_key=True)

    # 1 = upvote, -1 = downvote.
    value: Mapped[int] = mapped_column(SmallInteger, nullable=False)
