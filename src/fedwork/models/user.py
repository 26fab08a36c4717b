# src/fedwork/models/user.py
"""SQLAlchemy model for local user accounts and their federation identity."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from fedwork.db.session import Base
from fedwork.db.time import utcnow


class User(Base):
    """Local account provisioned from the external identity provider.

    The ``activity_pub_id``/``*_url`` columns stay empty until the actor is
    first resolved and are never rewritten afterwards.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    email: Mapped[str] = mapped_column(Text, unique=True, nullable=False)
    first_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    last_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    bio: Mapped[str | None] = mapped_column(Text, nullable=True)
    headline: Mapped[str | None] = mapped_column(Text, nullable=True)
    profile_image_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Federation identity, derived from (public base URL, id).
    activity_pub_id: Mapped[str | None] = mapped_column(Text, unique=True, nullable=True)
    actor_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    inbox_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    outbox_url: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    @property
    def display_name(self) -> str:
        """Return "first last" when both are set, otherwise the username."""
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.username
