"""Shared API dependencies for authentication, caching and services."""

from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from forum_tally.core.errors import Unauthenticated
from forum_tally.core.security import AuthenticatedVoter, decode_access_token, require_voter
from forum_tally.db.session import get_db
from forum_tally.models import User
from forum_tally.services.cache import ReadThroughCache
from forum_tally.services.content import ContentService
from forum_tally.services.forums import ForumService
from forum_tally.services.invalidation import InvalidationCoordinator
from forum_tally.services.ledger import VoteLedger
from forum_tally.services.listing import ListingService

# HTTP Bearer scheme; a missing header means an anonymous caller.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_cache(request: Request) -> ReadThroughCache:
    """Return the process-wide cache created at application startup."""
    return request.app.state.cache


CacheDep = Annotated[ReadThroughCache, Depends(get_cache)]


def get_coordinator(cache: CacheDep) -> InvalidationCoordinator:
    return InvalidationCoordinator(cache)


CoordinatorDep = Annotated[InvalidationCoordinator, Depends(get_coordinator)]


def get_optional_voter(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: SessionDep,
) -> AuthenticatedVoter | None:
    """Resolve the caller's identity, or None for anonymous requests.

    A token that is present but invalid is rejected rather than treated as
    anonymous.

    Raises:
        Unauthenticated: If the token cannot be verified or the user is gone.
    """
    if credentials is None:
        return None
    user_id = decode_access_token(credentials.credentials)
    user = db.get(User, user_id)
    if user is None:
        raise Unauthenticated("User not found")
    return AuthenticatedVoter(user_id=user.uid, is_admin=user.is_admin)


OptionalVoterDep = Annotated[AuthenticatedVoter | None, Depends(get_optional_voter)]


def get_current_voter(voter: OptionalVoterDep) -> AuthenticatedVoter:
    """Resolve the caller's identity, rejecting anonymous requests."""
    return require_voter(voter)


CurrentVoterDep = Annotated[AuthenticatedVoter, Depends(get_current_voter)]


def get_vote_ledger(db: SessionDep, coordinator: CoordinatorDep) -> VoteLedger:
    return VoteLedger(db, coordinator)


def get_listing_service(db: SessionDep, cache: CacheDep) -> ListingService:
    return ListingService(db, cache)


def get_content_service(db: SessionDep, coordinator: CoordinatorDep) -> ContentService:
    return ContentService(db, coordinator)


def get_forum_service(
    db: SessionDep,
    cache: CacheDep,
    coordinator: CoordinatorDep,
) -> ForumService:
    return ForumService(db, cache, coordinator)


VoteLedgerDep = Annotated[VoteLedger, Depends(get_vote_ledger)]
ListingServiceDep = Annotated[ListingService, Depends(get_listing_service)]
ContentServiceDep = Annotated[ContentService, Depends(get_content_service)]
ForumServiceDep = Annotated[ForumService, Depends(get_forum_service)]
