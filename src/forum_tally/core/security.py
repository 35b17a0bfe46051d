"""Session token helpers and the authenticated voter identity."""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from forum_tally.core.errors import Unauthenticated
from forum_tally.core.settings import settings


@dataclass(frozen=True, slots=True)
class AuthenticatedVoter:
    """Verified caller identity produced once per request.

    Anonymous callers are represented by ``None`` wherever a
    ``AuthenticatedVoter | None`` is accepted.
    """

    user_id: uuid.UUID
    is_admin: bool = False


def create_access_token(user_id: uuid.UUID, extra_claims: dict[str, str] | None = None) -> str:
    """Create a JWT access token whose subject is the user's UUID."""
    to_encode: dict[str, object] = {"sub": str(user_id)}
    if extra_claims:
        to_encode.update(extra_claims)
    expire = datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)
    to_encode["exp"] = expire
    encoded_jwt: str = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str) -> uuid.UUID:
    """Verify a token and return the user id in its subject.

    Raises:
        Unauthenticated: If the signature, expiry or subject is invalid.
    """
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError as err:
        raise Unauthenticated() from err

    subject = payload.get("sub")
    if subject is None:
        raise Unauthenticated()
    try:
        return uuid.UUID(str(subject))
    except ValueError as err:
        raise Unauthenticated("Invalid user id in token") from err


def require_voter(voter: AuthenticatedVoter | None) -> AuthenticatedVoter:
    """Return the voter or raise ``Unauthenticated`` for anonymous callers."""
    if voter is None:
        raise Unauthenticated("Unauthorized")
    return voter
