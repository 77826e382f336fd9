"""SQLAlchemy ORM models — single source of truth for the database schema.

Learn: Declarative ORM mapping with SQLAlchemy 2.0 style (Mapped[] + mapped_column).
Uniqueness of username and email lives in named constraints, so two
concurrent registrations can never both commit, no matter how many
server processes are running.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, UniqueConstraint, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_uuid() -> uuid.UUID:
    return uuid.uuid4()


class Identity(Base):
    """A registered account. Logs in with email + password.

    Learn: password_hash is a bcrypt string. The plaintext never reaches
    this table, and to_public() is the only shape that leaves the server.
    """

    __tablename__ = "identities"
    __table_args__ = (
        UniqueConstraint("email", name="uq_identities_email"),
        UniqueConstraint("username", name="uq_identities_username"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=new_uuid
    )
    username: Mapped[str] = mapped_column(String(64), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    def to_public(self) -> dict:
        return {"id": str(self.id), "username": self.username, "email": self.email}

    def __repr__(self) -> str:
        return f"<Identity {self.username} ({self.id})>"
