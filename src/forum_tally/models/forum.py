"""SQLAlchemy models for forums, their categories and admin membership."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from forum_tally.db.session import Base
from forum_tally.db.time import utcnow

FORUM_ROLE_ADMIN = "admin"
FORUM_ROLE_MEMBER = "member"


class Category(Base):
    """Rarely-changing reference data used to group forums."""

    __tablename__ = "category"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, unique=True, nullable=False)


class Forum(Base):
    """A discussion forum that posts belong to."""

    __tablename__ = "forum"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("category.id"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )


class ForumMember(Base):
    """Join table mapping users into forums with a role."""

    __tablename__ = "forum_member"

    forum_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("forum.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("app_user.uid", ondelete="CASCADE"),
        primary_key=True,
    )
    role: Mapped[str] = mapped_column(Text, nullable=False, default=FORUM_ROLE_MEMBER)
