"""JWT token creation and verification.

Learn: JWT (JSON Web Token) provides stateless authentication.
One long-lived bearer token per login (30 days by default). There is
no refresh token and no revocation list: a token stays valid until
exp, and only a deleted identity makes it useless early.

Expiry is checked here against an explicit `now` rather than inside
PyJWT, so the boundary is exact (expired when now >= exp) and tests
can move the clock.
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Union

import jwt

from nimbus.config import settings
from nimbus.errors import ConfigurationError, ExpiredTokenError, InvalidTokenError


class TokenIssuer:
    """Mints and verifies signed, time-bound bearer tokens."""

    def __init__(
        self,
        secret: str,
        lifetime: timedelta = timedelta(days=30),
        algorithm: str = "HS256",
    ):
        self.secret = secret
        self.lifetime = lifetime
        self.algorithm = algorithm

    def _require_secret(self) -> str:
        if not self.secret:
            raise ConfigurationError()
        return self.secret

    def issue(
        self,
        identity_id: Union[str, uuid.UUID],
        now: Optional[datetime] = None,
    ) -> str:
        """Create a token for identity_id, valid for self.lifetime from now."""
        secret = self._require_secret()
        now = now or datetime.now(timezone.utc)
        payload = {
            "sub": str(identity_id),
            "iat": int(now.timestamp()),
            "exp": int((now + self.lifetime).timestamp()),
        }
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def verify(self, token: str, now: Optional[datetime] = None) -> str:
        """Verify a token and return the identity id it was issued for.

        Raises InvalidTokenError or ExpiredTokenError.
        """
        secret = self._require_secret()
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={
                    "require": ["sub", "exp"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        exp = payload["exp"]
        if not isinstance(exp, (int, float)):
            raise InvalidTokenError("Invalid token: exp is not a timestamp")

        now = now or datetime.now(timezone.utc)
        if now.timestamp() >= exp:
            raise ExpiredTokenError("Token has expired")
        return str(payload["sub"])


def get_token_issuer() -> TokenIssuer:
    """FastAPI dependency — issuer built from settings."""
    return TokenIssuer(
        secret=settings.jwt_secret,
        lifetime=timedelta(days=settings.token_expire_days),
        algorithm=settings.jwt_algorithm,
    )
