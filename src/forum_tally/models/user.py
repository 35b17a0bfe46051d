"""SQLAlchemy model for the identities session tokens resolve to."""

from __future__ import annotations

import uuid

from sqlalchemy import Boolean, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from forum_tally.db.session import Base


class User(Base):
    """Registered forum user.

    Credentials live with the identity provider; only what voting and
    authorization need is kept here.
    """

    __tablename__ = "app_user"

    uid: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    # System administrators may delete any post or comment.
    is_admin: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
