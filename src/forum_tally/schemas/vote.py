"""Vote-related Pydantic schemas."""

from pydantic import BaseModel, Field, StrictInt

from forum_tally.models.vote import TargetKind


class VoteCast(BaseModel):
    """Schema for casting a vote.

    The value is range-checked by the ledger so that a bad value is reported
    as an invalid argument rather than a schema mismatch.
    """

    value: StrictInt = Field(..., description="1 for upvote, -1 for downvote")


class VoteResult(BaseModel):
    """Vote value now held by the caller."""

    value: int
    changed: bool


class VoteRemoved(BaseModel):
    removed: bool


class TallyResponse(BaseModel):
    """Aggregate counts for a target plus the caller's own vote."""

    target_kind: TargetKind
    target_id: int
    upvotes: int
    downvotes: int
    my_vote: int | None = None
