# src/fedwork/models/activity.py
"""SQLAlchemy model for the append-only federation activity log."""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from fedwork.db.session import Base
from fedwork.db.time import utcnow
from fedwork.models.instance import JSONType

DIRECTION_INBOUND = "inbound"
DIRECTION_OUTBOUND = "outbound"


class ActivityRecord(Base):
    """One federation event, received or authored, scoped to an instance.

    Rows are only ever inserted. ``payload`` holds the message exactly as it
    was built or received; the other columns are denormalized from it.
    """

    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    instance_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("instances.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    direction: Mapped[str] = mapped_column(Text, nullable=False, default=DIRECTION_INBOUND)
    # Verbatim type string; unrecognised types are stored as received.
    type: Mapped[str] = mapped_column(Text, nullable=False)
    actor_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    actor_uri: Mapped[str | None] = mapped_column(Text, nullable=True)
    object_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    payload: Mapped[Any] = mapped_column(JSONType, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, index=True
    )
