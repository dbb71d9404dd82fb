"""
Organization model — a group of users.

A user belongs to at most one organization (users.organization_id). The
user who creates an organization joins it and is recorded in owner_id;
ownership is scoped to the organization and never changes the user's
role. Like tasks, organizations are soft-deleted.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from taskmanager.database import Base


class Organization(Base):
    __tablename__ = "organizations"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    description: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
    )

    # Not a foreign key; users.organization_id already links the two tables.
    owner_id: Mapped[uuid.UUID | None] = mapped_column(nullable=True, index=True)

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
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # --- Relationships ---
    members: Mapped[list["User"]] = relationship(
        back_populates="organization",
    )
