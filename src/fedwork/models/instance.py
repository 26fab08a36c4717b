# src/fedwork/models/instance.py
"""SQLAlchemy models for hosted instances and the links between them."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fedwork.db.session import Base
from fedwork.db.time import utcnow

JSONType = JSON().with_variant(JSONB(), "postgresql")

FEDERATION_STATUS_PENDING = "pending"
FEDERATION_STATUS_APPROVED = "approved"
FEDERATION_STATUS_REJECTED = "rejected"
FEDERATION_STATUSES = (
    FEDERATION_STATUS_PENDING,
    FEDERATION_STATUS_APPROVED,
    FEDERATION_STATUS_REJECTED,
)


class Instance(Base):
    """A locally hosted community with its own policy configuration."""

    __tablename__ = "instances"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    admin_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    domain: Mapped[str | None] = mapped_column(Text, unique=True, nullable=True)
    logo: Mapped[str | None] = mapped_column(Text, nullable=True)
    # open / invite / admin
    registration_type: Mapped[str] = mapped_column(Text, nullable=False, default="open")
    content_moderation: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    federation_rules: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )


class FederationLink(Base):
    """Directed federation request from one instance to another."""

    __tablename__ = "federated_instances"
    __table_args__ = (
        UniqueConstraint("instance_id", "fed_with_instance_id", name="uq_federation_pair"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    instance_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("instances.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    fed_with_instance_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("instances.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        Text, nullable=False, default=FEDERATION_STATUS_PENDING
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    instance: Mapped[Instance] = relationship("Instance", foreign_keys=[instance_id])
    fed_with_instance: Mapped[Instance] = relationship(
        "Instance", foreign_keys=[fed_with_instance_id]
    )
