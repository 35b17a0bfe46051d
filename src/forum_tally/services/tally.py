"""Aggregate vote counts computed from the vote ledger."""
from __future__ import annotations

from collections.abc import Collection

from sqlalchemy import case, func, select
from sqlalchemy.orm import Session

from forum_tally.core.security import AuthenticatedVoter
from forum_tally.models.vote import DOWNVOTE, UPVOTE, TargetKind, Vote
from forum_tally.services.ranking import Tally

__all__ = ["TallyEngine"]


class TallyEngine:
    """Counts upvotes/downvotes and looks up a caller's own votes.

    The batched methods issue a single query regardless of how many targets
    are requested; listings must use them rather than looping ``tally_one``.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    @staticmethod
    def _counts():
        return (
            func.coalesce(func.sum(case((Vote.value == UPVOTE, 1), else_=0)), 0),
            func.coalesce(func.sum(case((Vote.value == DOWNVOTE, 1), else_=0)), 0),
        )

    def tally_one(self, kind: TargetKind, target_id: int) -> Tally:
        """Return the tally for one target; zeros when nobody voted."""
        upvotes, downvotes = self._counts()
        row = self.db.execute(
            select(upvotes, downvotes).where(
                Vote.target_kind == TargetKind(kind).value,
                Vote.target_id == target_id,
            )
        ).one()
        return Tally(upvotes=int(row[0]), downvotes=int(row[1]))

    def tally_many(self, kind: TargetKind, target_ids: Collection[int]) -> dict[int, Tally]:
        """Return tallies keyed by target id.

        Targets without any vote are absent from the result.
        """
        if not target_ids:
            return {}
        upvotes, downvotes = self._counts()
        rows = self.db.execute(
            select(Vote.target_id, upvotes, downvotes)
            .where(
                Vote.target_kind == TargetKind(kind).value,
                Vote.target_id.in_(list(target_ids)),
            )
            .group_by(Vote.target_id)
        )
        return {
            int(target_id): Tally(upvotes=int(up), downvotes=int(down))
            for target_id, up, down in rows
        }

    def my_votes(
        self,
        voter: AuthenticatedVoter | None,
        kind: TargetKind,
        target_ids: Collection[int],
    ) -> dict[int, int]:
        """Return the caller's vote values keyed by target id.

        Anonymous callers have no votes.
        """
        if voter is None or not target_ids:
            return {}
        rows = self.db.execute(
            select(Vote.target_id, Vote.value).where(
                Vote.voter_id == voter.user_id,
                Vote.target_kind == TargetKind(kind).value,
                Vote.target_id.in_(list(target_ids)),
            )
        )
        return {int(target_id): int(value) for target_id, value in rows}
