"""Identity store — durable record of registered accounts.

Learn: The store never commits. The credential service owns the
transaction so it can roll an identity back if a later step fails
(token issuance) and nothing half-created is left behind.

Uniqueness is the database's job. Pre-checks give friendly messages,
but the unique constraints are what actually stop two simultaneous
registrations with the same email from both succeeding.
"""

import uuid
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from nimbus.db.models import Identity
from nimbus.errors import ConflictError

EMAIL_TAKEN = "Email already exists"
USERNAME_TAKEN = "Username already exists"


class IdentityStore:
    """Identity persistence backed by SQLAlchemy."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def add(self, username: str, email: str, password_hash: str) -> Identity:
        """Insert an identity and flush it. Raises ConflictError on a duplicate."""
        identity = Identity(username=username, email=email, password_hash=password_hash)
        self.db.add(identity)
        try:
            await self.db.flush()
        except IntegrityError:
            # Lost a race with a concurrent registration.
            await self.db.rollback()
            if await self.get_by_email(email) is not None:
                raise ConflictError(EMAIL_TAKEN, field="email")
            raise ConflictError(USERNAME_TAKEN, field="username")
        return identity

    async def get(self, identity_id: uuid.UUID) -> Optional[Identity]:
        return await self.db.get(Identity, identity_id)

    async def get_by_email(self, email: str) -> Optional[Identity]:
        result = await self.db.execute(select(Identity).where(Identity.email == email))
        return result.scalars().first()

    async def get_by_username(self, username: str) -> Optional[Identity]:
        result = await self.db.execute(
            select(Identity).where(Identity.username == username)
        )
        return result.scalars().first()

    async def delete(self, identity_id: uuid.UUID) -> bool:
        """Delete an identity. Returns False if it did not exist."""
        identity = await self.get(identity_id)
        if identity is None:
            return False
        await self.db.delete(identity)
        await self.db.flush()
        return True

    async def count(self) -> int:
        result = await self.db.execute(select(func.count()).select_from(Identity))
        return result.scalar_one()
