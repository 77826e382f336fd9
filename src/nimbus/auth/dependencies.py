"""FastAPI auth dependencies — the access guard.

Learn: get_current_user is used as Depends() on every protected route.
It runs the whole gate for each request, independently of any other:

1. Authorization: Bearer <token> must be present → else 401
2. Token must verify (signature + expiry)        → else 401
3. The identity must still exist                 → else 401
4. The identity (without password hash) is attached to request.state

Why a token failed (bad signature vs expired) goes to the log, never
into the response body.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import structlog
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from nimbus.auth.jwt import TokenIssuer, get_token_issuer
from nimbus.db.engine import get_db
from nimbus.db.store import IdentityStore
from nimbus.errors import TokenError

logger = structlog.get_logger()

NO_TOKEN = "Not authorized. No token provided."
INVALID_TOKEN = "Not authorized. Invalid token."
USER_NOT_FOUND = "User not found"
GUARD_FAILURE = "Server error during authentication"


@dataclass(frozen=True)
class CurrentUser:
    """The authenticated identity making the request. No password hash."""

    id: str
    username: str
    email: str
    created_at: Optional[datetime] = None

    def to_public(self) -> dict:
        return {"id": self.id, "username": self.username, "email": self.email}


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=401,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def extract_bearer(authorization: Optional[str]) -> Optional[str]:
    """Return the token from an 'Authorization: Bearer <token>' header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None
    return token.strip()


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: AsyncSession = Depends(get_db),
    tokens: TokenIssuer = Depends(get_token_issuer),
) -> CurrentUser:
    """Resolve the bearer token to a live identity, or reject with 401."""
    token = extract_bearer(authorization)
    if token is None:
        raise _unauthorized(NO_TOKEN)

    try:
        identity_id = uuid.UUID(tokens.verify(token))
    except (TokenError, ValueError) as e:
        logger.info("nimbus.guard.token_rejected", reason=str(e))
        raise _unauthorized(INVALID_TOKEN)

    try:
        identity = await IdentityStore(db).get(identity_id)
    except Exception as e:
        logger.exception("nimbus.guard.lookup_failed", error=str(e))
        raise HTTPException(status_code=500, detail=GUARD_FAILURE)

    if identity is None:
        logger.info("nimbus.guard.identity_missing", identity_id=str(identity_id))
        raise _unauthorized(USER_NOT_FOUND)

    user = CurrentUser(
        id=str(identity.id),
        username=identity.username,
        email=identity.email,
        created_at=identity.created_at,
    )
    request.state.user = user
    return user
