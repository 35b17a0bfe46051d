"""Tests for casting and removing votes through the ledger."""

import pytest
from sqlalchemy import func, select

from forum_tally.core.errors import InvalidArgument, NotFound, Unauthenticated
from forum_tally.core.security import AuthenticatedVoter
from forum_tally.models import TargetKind, Vote
from forum_tally.services.ledger import VoteLedger, validate_vote_value
from forum_tally.services.ranking import Tally
from forum_tally.services.tally import TallyEngine


class RecordingCoordinator:
    """Stands in for the invalidation coordinator and records every mutation."""

    def __init__(self) -> None:
        self.applied = []

    def apply(self, mutation):
        self.applied.append(mutation)
        return frozenset()


@pytest.fixture()
def recorder() -> RecordingCoordinator:
    return RecordingCoordinator()


@pytest.fixture()
def ledger(db_session, recorder) -> VoteLedger:
    return VoteLedger(db_session, recorder)


@pytest.fixture()
def tallies(db_session) -> TallyEngine:
    return TallyEngine(db_session)


def _vote_rows(db_session, voter, kind, target_id) -> list[Vote]:
    return list(
        db_session.scalars(
            select(Vote).where(
                Vote.voter_id == voter.user_id,
                Vote.target_kind == kind.value,
                Vote.target_id == target_id,
            )
        )
    )


def test_cast_repeat_flip_remove_scenario(ledger, tallies, voter, test_post) -> None:
    outcome = ledger.cast_vote(voter, TargetKind.POST, test_post.id, 1)
    assert (outcome.value, outcome.changed) == (1, True)
    assert tallies.tally_one(TargetKind.POST, test_post.id) == Tally(1, 0)

    outcome = ledger.cast_vote(voter, TargetKind.POST, test_post.id, 1)
    assert (outcome.value, outcome.changed) == (1, False)
    assert tallies.tally_one(TargetKind.POST, test_post.id) == Tally(1, 0)

    outcome = ledger.cast_vote(voter, TargetKind.POST, test_post.id, -1)
    assert (outcome.value, outcome.changed) == (-1, True)
    assert tallies.tally_one(TargetKind.POST, test_post.id) == Tally(0, 1)

    assert ledger.remove_vote(voter, TargetKind.POST, test_post.id) is True
    assert tallies.tally_one(TargetKind.POST, test_post.id) == Tally(0, 0)


def test_repeated_cast_does_not_invalidate(ledger, recorder, voter, test_post) -> None:
    ledger.cast_vote(voter, TargetKind.POST, test_post.id, -1)
    assert len(recorder.applied) == 1

    ledger.cast_vote(voter, TargetKind.POST, test_post.id, -1)

    assert len(recorder.applied) == 1


def test_toggle_keeps_a_single_row(ledger, db_session, voter, test_post) -> None:
    ledger.cast_vote(voter, TargetKind.POST, test_post.id, 1)
    ledger.cast_vote(voter, TargetKind.POST, test_post.id, -1)

    rows = _vote_rows(db_session, voter, TargetKind.POST, test_post.id)
    assert len(rows) == 1
    assert rows[0].value == -1


def test_post_vote_mutation_names_forum_and_author(ledger, recorder, voter, test_post) -> None:
    ledger.cast_vote(voter, TargetKind.POST, test_post.id, 1)

    (mutation,) = recorder.applied
    assert mutation.post_id == test_post.id
    assert mutation.forum_id == test_post.forum_id
    assert mutation.author_id == test_post.author_id


def test_comment_vote_mutation_names_post(ledger, recorder, voter, test_comment) -> None:
    ledger.cast_vote(voter, TargetKind.COMMENT, test_comment.id, 1)

    (mutation,) = recorder.applied
    assert mutation.comment_id == test_comment.id
    assert mutation.post_id == test_comment.post_id


def test_remove_without_vote_is_a_noop(ledger, recorder, tallies, voter, test_post) -> None:
    assert ledger.remove_vote(voter, TargetKind.POST, test_post.id) is False
    assert ledger.remove_vote(voter, TargetKind.POST, 424242) is False

    assert recorder.applied == []
    assert tallies.tally_one(TargetKind.POST, test_post.id) == Tally(0, 0)


def test_remove_decrements_by_exactly_one(
    ledger, tallies, voter, other_voter, test_comment
) -> None:
    ledger.cast_vote(voter, TargetKind.COMMENT, test_comment.id, 1)
    ledger.cast_vote(other_voter, TargetKind.COMMENT, test_comment.id, 1)

    ledger.remove_vote(voter, TargetKind.COMMENT, test_comment.id)

    assert tallies.tally_one(TargetKind.COMMENT, test_comment.id) == Tally(1, 0)


def test_vote_on_missing_target(ledger, voter) -> None:
    with pytest.raises(NotFound):
        ledger.cast_vote(voter, TargetKind.POST, 99999, 1)
    with pytest.raises(NotFound):
        ledger.cast_vote(voter, TargetKind.COMMENT, 99999, 1)


def test_anonymous_cannot_vote(ledger, test_post) -> None:
    with pytest.raises(Unauthenticated):
        ledger.cast_vote(None, TargetKind.POST, test_post.id, 1)
    with pytest.raises(Unauthenticated):
        ledger.remove_vote(None, TargetKind.POST, test_post.id)


@pytest.mark.parametrize("value", [0, 2, -2, True, 1.0, "1", None])
def test_invalid_vote_values(ledger, recorder, db_session, voter, test_post, value) -> None:
    with pytest.raises(InvalidArgument):
        ledger.cast_vote(voter, TargetKind.POST, test_post.id, value)

    assert recorder.applied == []
    assert db_session.scalar(select(func.count()).select_from(Vote)) == 0


def test_validate_vote_value_accepts_both_directions() -> None:
    assert validate_vote_value(1) == 1
    assert validate_vote_value(-1) == -1


def test_get_voter_value(ledger, voter, test_post) -> None:
    assert ledger.get_voter_value(voter, TargetKind.POST, test_post.id) is None
    assert ledger.get_voter_value(None, TargetKind.POST, test_post.id) is None

    ledger.cast_vote(voter, TargetKind.POST, test_post.id, -1)

    assert ledger.get_voter_value(voter, TargetKind.POST, test_post.id) == -1


def test_concurrent_first_cast_is_recovered(
    ledger, recorder, db_session, voter, test_post, monkeypatch
) -> None:
    """An insert that loses the race to another request becomes an update."""
    post_id = test_post.id
    db_session.add(Vote(voter_id=voter.user_id, target_kind="post", target_id=post_id, value=1))
    db_session.commit()
    db_session.expunge_all()

    original_find = VoteLedger._find_vote
    calls = {"count": 0}

    def find_after_race(self, *args):
        calls["count"] += 1
        if calls["count"] == 1:
            # The competing insert is not visible yet on the first lookup.
            return None
        return original_find(self, *args)

    monkeypatch.setattr(VoteLedger, "_find_vote", find_after_race)

    outcome = ledger.cast_vote(voter, TargetKind.POST, post_id, -1)

    assert (outcome.value, outcome.changed) == (-1, True)
    rows = _vote_rows(db_session, voter, TargetKind.POST, post_id)
    assert [row.value for row in rows] == [-1]
    assert len(recorder.applied) == 1


def test_votes_are_per_voter(ledger, tallies, test_post, test_user, other_user, admin_user) -> None:
    voters = [AuthenticatedVoter(user_id=u.uid) for u in (test_user, other_user, admin_user)]
    for value, v in zip((1, 1, -1), voters):
        ledger.cast_vote(v, TargetKind.POST, test_post.id, value)

    assert tallies.tally_one(TargetKind.POST, test_post.id) == Tally(2, 1)
