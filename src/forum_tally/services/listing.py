"""Read-through projections: ranked listings, single posts and tallies.

Cached values never contain a caller's own vote. The shared, caller-agnostic
part (items and tallies) is cached; ``my_vote`` is overlaid per request with
one batched lookup.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import replace

from sqlalchemy.orm import Session

from forum_tally.core.security import AuthenticatedVoter
from forum_tally.models.vote import TargetKind
from forum_tally.services.cache import ReadThroughCache
from forum_tally.services.cache_keys import CacheKeys, CacheTTL, ContentFilter
from forum_tally.services.content import ContentStore, snapshot
from forum_tally.services.ranking import RankedItem, Tally, rank
from forum_tally.services.tally import TallyEngine

__all__ = ["ListingService"]

logger = logging.getLogger(__name__)


class ListingService:
    """Serves ranked content and tallies through the read-through cache."""

    def __init__(self, db: Session, cache: ReadThroughCache, ttl: CacheTTL | None = None) -> None:
        self.store = ContentStore(db)
        self.tallies = TallyEngine(db)
        self.cache = cache
        self.ttl = ttl or CacheTTL.from_settings()

    def ranked(self, flt: ContentFilter, voter: AuthenticatedVoter | None) -> list[RankedItem]:
        """Return the listing for ``flt`` ranked by score, then recency."""
        entries: tuple[RankedItem, ...] = self.cache.get_or_compute(
            CacheKeys.listing(flt),
            lambda: self._compute_listing(flt),
            self.ttl.listing,
        )
        return self._with_my_votes(entries, flt.kind, voter)

    def post(self, post_id: int, voter: AuthenticatedVoter | None) -> RankedItem:
        """Return a single post with its tally."""
        entry: RankedItem = self.cache.get_or_compute(
            CacheKeys.post(post_id),
            lambda: self._compute_post(post_id),
            self.ttl.item,
        )
        return self._with_my_votes((entry,), TargetKind.POST, voter)[0]

    def tally(
        self,
        kind: TargetKind,
        target_id: int,
        voter: AuthenticatedVoter | None,
    ) -> tuple[Tally, int | None]:
        """Return the target's tally and the caller's own vote.

        Raises:
            NotFound: If the target does not exist.
        """
        kind = TargetKind(kind)
        self.store.get_content(kind, target_id)
        tally: Tally = self.cache.get_or_compute(
            CacheKeys.tally(kind, target_id),
            lambda: self.tallies.tally_one(kind, target_id),
            self.ttl.tally,
        )
        my_vote = self.tallies.my_votes(voter, kind, [target_id]).get(target_id)
        return tally, my_vote

    def _compute_listing(self, flt: ContentFilter) -> tuple[RankedItem, ...]:
        items = [snapshot(row) for row in self.store.list_content(flt)]
        tallies = self.tallies.tally_many(flt.kind, [item.id for item in items])
        logger.debug("Computed %s listing with %d items", CacheKeys.listing(flt), len(items))
        return tuple(rank(items, tallies))

    def _compute_post(self, post_id: int) -> RankedItem:
        item = snapshot(self.store.get_post(post_id))
        return rank([item], self.tallies.tally_many(TargetKind.POST, [post_id]))[0]

    def _with_my_votes(
        self,
        entries: Sequence[RankedItem],
        kind: TargetKind,
        voter: AuthenticatedVoter | None,
    ) -> list[RankedItem]:
        if voter is None:
            return list(entries)
        mine = self.tallies.my_votes(voter, kind, [entry.item.id for entry in entries])
        return [replace(entry, my_vote=mine.get(entry.item.id)) for entry in entries]
