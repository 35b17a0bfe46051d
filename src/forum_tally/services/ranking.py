"""Ordering of content by vote score with a recency tie-break.

Ranking never touches the database: it is fed the batched output of the
tally engine, so the same tallies can be reused for several orderings.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import datetime

from forum_tally.models.vote import TargetKind

__all__ = ["ContentItem", "RankedItem", "Tally", "rank"]


@dataclass(frozen=True, slots=True)
class Tally:
    """Upvote and downvote counts for one target."""

    upvotes: int = 0
    downvotes: int = 0

    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes


ZERO_TALLY = Tally()


@dataclass(frozen=True, slots=True)
class ContentItem:
    """Detached snapshot of a post or comment row.

    Snapshots outlive the request session, which is what makes them safe to
    keep in the read-through cache.
    """

    kind: TargetKind
    id: int
    author_id: uuid.UUID
    body: str
    created_at: datetime
    updated_at: datetime
    title: str | None = None
    forum_id: int | None = None
    post_id: int | None = None
    parent_comment_id: int | None = None


@dataclass(frozen=True, slots=True)
class RankedItem:
    """A content item paired with its tally and the caller's own vote."""

    item: ContentItem
    upvotes: int
    downvotes: int
    my_vote: int | None = None

    @property
    def score(self) -> int:
        return self.upvotes - self.downvotes


def rank(
    items: Iterable[ContentItem],
    tallies: Mapping[int, Tally],
    my_votes: Mapping[int, int] | None = None,
) -> list[RankedItem]:
    """Order items by score descending, then ``created_at`` descending.

    Items without an entry in ``tallies`` score zero. Items that tie on both
    score and timestamp keep their input order.
    """
    my_votes = my_votes or {}
    ranked = [
        RankedItem(
            item=item,
            upvotes=tallies.get(item.id, ZERO_TALLY).upvotes,
            downvotes=tallies.get(item.id, ZERO_TALLY).downvotes,
            my_vote=my_votes.get(item.id),
        )
        for item in items
    ]
    # sorted() is stable under reverse=True, so full ties preserve input order.
    return sorted(ranked, key=lambda entry: (entry.score, entry.item.created_at), reverse=True)
