"""Credential service — business logic for registration and login.

Learn: Service layer separates business logic from HTTP routing.
API routes call services, services call the store, and the store
talks to the database. The service owns the transaction:

    register: validate → pre-check email, username → hash → flush
              → issue token → commit
              (issue fails → rollback, nothing persisted)

Login failures always carry the same message, whether the email is
unknown or the password is wrong, so callers can't probe for accounts.
"""

import uuid
from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from nimbus.auth.jwt import TokenIssuer
from nimbus.auth.password import hash_password, verify_password
from nimbus.db.models import Identity
from nimbus.db.store import EMAIL_TAKEN, USERNAME_TAKEN, IdentityStore
from nimbus.errors import (
    AuthenticationError,
    ConfigurationError,
    ConflictError,
    ValidationError,
)

logger = structlog.get_logger()

INVALID_CREDENTIALS = "Invalid email or password"


@dataclass(frozen=True)
class AuthGrant:
    """A freshly authenticated identity and the bearer token minted for it."""

    identity: Identity
    token: str


def _blank(*values) -> bool:
    return any(v is None or not str(v).strip() for v in values)


class CredentialService:
    """Register and log in identities."""

    def __init__(self, db: AsyncSession, tokens: TokenIssuer):
        self.db = db
        self.store = IdentityStore(db)
        self.tokens = tokens

    async def register(self, username: str, email: str, password: str) -> AuthGrant:
        """Create an identity and issue its first token."""
        if _blank(username, email) or not password:
            raise ValidationError("Please provide username, email, and password")

        username = username.strip()
        email = email.strip()

        if await self.store.get_by_email(email) is not None:
            raise ConflictError(EMAIL_TAKEN, field="email")
        if await self.store.get_by_username(username) is not None:
            raise ConflictError(USERNAME_TAKEN, field="username")

        identity = await self.store.add(username, email, hash_password(password))

        try:
            token = self.tokens.issue(identity.id)
        except ConfigurationError:
            logger.error("nimbus.auth.token_issue_failed", identity_id=str(identity.id))
            await self.db.rollback()
            raise

        await self.db.commit()
        logger.info("nimbus.auth.registered", identity_id=str(identity.id), username=username)
        return AuthGrant(identity=identity, token=token)

    async def login(self, email: str, password: str) -> AuthGrant:
        """Check credentials and issue a new token."""
        if _blank(email) or not password:
            raise ValidationError("Please provide email and password")

        identity = await self.store.get_by_email(email.strip())
        if identity is None or not verify_password(password, identity.password_hash):
            logger.info("nimbus.auth.login_rejected")
            raise AuthenticationError(INVALID_CREDENTIALS)

        token = self.tokens.issue(identity.id)
        logger.info("nimbus.auth.logged_in", identity_id=str(identity.id))
        return AuthGrant(identity=identity, token=token)

    async def get_identity(self, identity_id: uuid.UUID) -> Identity | None:
        return await self.store.get(identity_id)

    async def delete_identity(self, identity_id: uuid.UUID) -> bool:
        """Remove an identity. Tokens already issued to it stop resolving."""
        deleted = await self.store.delete(identity_id)
        await self.db.commit()
        if deleted:
            logger.info("nimbus.auth.identity_deleted", identity_id=str(identity_id))
        return deleted
