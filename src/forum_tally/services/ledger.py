"""Authoritative per-(voter, target) vote storage.

A voter holds at most one vote per target; the composite primary key on
``vote`` enforces it. Casting inserts, flips or leaves the row alone, and
only a state change commits and invalidates dependent cache entries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from forum_tally.core.errors import Conflict, InvalidArgument, Unavailable
from forum_tally.core.security import AuthenticatedVoter, require_voter
from forum_tally.db.session import commit_or_unavailable
from forum_tally.models import Comment, Post, TargetKind, Vote
from forum_tally.models.vote import VALID_VOTE_VALUES
from forum_tally.services.content import ContentStore
from forum_tally.services.invalidation import (
    CommentVoteChanged,
    InvalidationCoordinator,
    Mutation,
    PostVoteChanged,
)

__all__ = ["VoteLedger", "VoteOutcome", "validate_vote_value"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VoteOutcome:
    """Result of a cast: the value now held and whether anything changed."""

    value: int
    changed: bool


def validate_vote_value(value: object) -> int:
    """Return ``value`` if it is +1 or -1.

    Zero is rejected: "no vote" is the absence of a row, never a stored 0.
    """
    if isinstance(value, bool) or not isinstance(value, int) or value not in VALID_VOTE_VALUES:
        raise InvalidArgument("Vote value must be 1 or -1")
    return value


def _mutation_for(target: Post | Comment) -> Mutation:
    if isinstance(target, Post):
        return PostVoteChanged(
            post_id=target.id,
            forum_id=target.forum_id,
            author_id=target.author_id,
        )
    return CommentVoteChanged(comment_id=target.id, post_id=target.post_id)


class VoteLedger:
    """Cast, remove and read individual votes."""

    def __init__(self, db: Session, coordinator: InvalidationCoordinator) -> None:
        self.db = db
        self.content = ContentStore(db)
        self.coordinator = coordinator

    def _find_vote(self, voter: AuthenticatedVoter, kind: TargetKind, target_id: int) -> Vote | None:
        return self.db.scalars(
            select(Vote).where(
                Vote.voter_id == voter.user_id,
                Vote.target_kind == kind.value,
                Vote.target_id == target_id,
            )
        ).first()

    def cast_vote(
        self,
        voter: AuthenticatedVoter | None,
        kind: TargetKind,
        target_id: int,
        value: object,
    ) -> VoteOutcome:
        """Record ``value`` as the voter's vote on the target.

        Raises:
            Unauthenticated: If ``voter`` is None.
            InvalidArgument: If ``value`` is not +1 or -1.
            NotFound: If the target row does not exist.
            Unavailable: If the store fails.
        """
        voter = require_voter(voter)
        vote_value = validate_vote_value(value)
        kind = TargetKind(kind)
        target = self.content.get_content(kind, target_id)

        try:
            changed = self._upsert(voter, kind, target_id, vote_value)
        except Conflict:
            self.db.rollback()
            raise
        except SQLAlchemyError as err:
            self.db.rollback()
            logger.error("Vote cast failed for %s %s: %s", kind.value, target_id, err)
            raise Unavailable() from err

        if not changed:
            return VoteOutcome(value=vote_value, changed=False)

        commit_or_unavailable(self.db)
        self.coordinator.apply(_mutation_for(target))
        logger.debug("Voter %s cast %+d on %s %s", voter.user_id, vote_value, kind.value, target_id)
        return VoteOutcome(value=vote_value, changed=True)

    def _upsert(self, voter: AuthenticatedVoter, kind: TargetKind, target_id: int, value: int) -> bool:
        existing = self._find_vote(voter, kind, target_id)
        if existing is None:
            try:
                with self.db.begin_nested():
                    self.db.add(
                        Vote(
                            voter_id=voter.user_id,
                            target_kind=kind.value,
                            target_id=target_id,
                            value=value,
                        )
                    )
                return True
            except IntegrityError as err:
                # A concurrent cast by the same voter inserted first.
                logger.debug("Vote insert conflict for %s %s, retrying as update", kind.value, target_id)
                existing = self._find_vote(voter, kind, target_id)
                if existing is None:
                    raise Conflict("Vote conflict could not be resolved") from err

        if existing.value == value:
            return False
        existing.value = value
        self.db.flush()
        return True

    def remove_vote(self, voter: AuthenticatedVoter | None, kind: TargetKind, target_id: int) -> bool:
        """Delete the voter's vote on the target; return whether a row existed.

        Removing a vote that does not exist succeeds without side effects.
        """
        voter = require_voter(voter)
        kind = TargetKind(kind)
        existing = self._find_vote(voter, kind, target_id)
        if existing is None:
            return False

        target = self.db.get(Post if kind is TargetKind.POST else Comment, target_id)
        try:
            result = self.db.execute(
                delete(Vote).where(
                    Vote.voter_id == voter.user_id,
                    Vote.target_kind == kind.value,
                    Vote.target_id == target_id,
                )
            )
        except SQLAlchemyError as err:
            self.db.rollback()
            raise Unavailable() from err
        commit_or_unavailable(self.db)

        if result.rowcount == 0:
            return False
        if target is not None:
            self.coordinator.apply(_mutation_for(target))
        logger.debug("Voter %s removed vote on %s %s", voter.user_id, kind.value, target_id)
        return True

    def get_voter_value(
        self,
        voter: AuthenticatedVoter | None,
        kind: TargetKind,
        target_id: int,
    ) -> int | None:
        """Return the voter's current value on the target, or None."""
        if voter is None:
            return None
        vote = self._find_vote(voter, TargetKind(kind), target_id)
        return None if vote is None else vote.value
