"""Vote-related endpoints for the forum tally API."""

from typing import Annotated

from fastapi import APIRouter, Path, status

from forum_tally.models.vote import TargetKind
from forum_tally.schemas.vote import TallyResponse, VoteCast, VoteRemoved, VoteResult

from ..dependencies import CurrentVoterDep, ListingServiceDep, OptionalVoterDep, VoteLedgerDep

router = APIRouter(prefix="/votes", tags=["votes"])

TargetIdPath = Annotated[int, Path(ge=1, description="Post or comment id")]


@router.put("/{target_kind}/{target_id}", response_model=VoteResult)
async def cast_vote(
    target_kind: TargetKind,
    target_id: TargetIdPath,
    vote_data: VoteCast,
    current_voter: CurrentVoterDep,
    ledger: VoteLedgerDep,
) -> VoteResult:
    """Cast or change the caller's vote on a post or comment.

    Repeating the same vote is a no-op and reports ``changed: false``.
    """
    outcome = ledger.cast_vote(current_voter, target_kind, target_id, vote_data.value)
    return VoteResult(value=outcome.value, changed=outcome.changed)


@router.delete("/{target_kind}/{target_id}", response_model=VoteRemoved, status_code=status.HTTP_200_OK)
async def remove_vote(
    target_kind: TargetKind,
    target_id: TargetIdPath,
    current_voter: CurrentVoterDep,
    ledger: VoteLedgerDep,
) -> VoteRemoved:
    """Remove the caller's vote; succeeds whether or not a vote existed."""
    removed = ledger.remove_vote(current_voter, target_kind, target_id)
    return VoteRemoved(removed=removed)


@router.get("/{target_kind}/{target_id}", response_model=TallyResponse)
async def get_tally(
    target_kind: TargetKind,
    target_id: TargetIdPath,
    voter: OptionalVoterDep,
    listing: ListingServiceDep,
) -> TallyResponse:
    """Get upvote/downvote counts and, for signed-in callers, their own vote."""
    tally, my_vote = listing.tally(target_kind, target_id, voter)
    return TallyResponse(
        target_kind=target_kind,
        target_id=target_id,
        upvotes=tally.upvotes,
        downvotes=tally.downvotes,
        my_vote=my_vote,
    )
