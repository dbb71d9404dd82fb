"""
User model — the authentication identity.

Each User carries two credentials:

  - password_hash: an Argon2id hash of the password, used only by the
    login endpoint (never stored in plaintext)
  - api_key: a random bearer token sent as "Authorization: APIKEY <key>"
    on every other request

The role column is a plain string holding one of the Role values
(user, moderator, admin, owner). It is deliberately not a database enum:
authorization treats a role it does not recognise as "no permissions"
rather than failing to load the row.

Optional profile fields (age, gender) and an optional organization
membership round out the record.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskmanager.auth.credentials import generate_api_key
from taskmanager.auth.rbac import Role
from taskmanager.database import Base


class User(Base):
    __tablename__ = "users"

    # Primary key: UUID provides globally unique IDs without sequential guessing
    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Username is the login identifier — must be unique and indexed for fast lookups
    username: Mapped[str] = mapped_column(
        String(25),
        unique=True,
        nullable=False,
        index=True,
    )

    # Argon2id hash of the password (never store plaintext!)
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Bearer credential; looked up on every authenticated request
    api_key: Mapped[str] = mapped_column(
        String(128),
        unique=True,
        nullable=False,
        index=True,
        default=generate_api_key,
    )

    role: Mapped[str] = mapped_column(
        String(20),
        default=Role.USER.value,
        nullable=False,
    )

    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    gender: Mapped[str | None] = mapped_column(String(20), nullable=True)

    organization_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("organizations.id"),
        nullable=True,
        index=True,
    )

    # Audit timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # --- Relationships ---
    # lazy="joined" so organization_name is available without an async lazy load
    organization: Mapped["Organization"] = relationship(
        back_populates="members",
        lazy="joined",
    )

    tasks: Mapped[list["Task"]] = relationship(
        back_populates="user",
    )

    @property
    def organization_name(self) -> str | None:
        return self.organization.name if self.organization is not None else None
