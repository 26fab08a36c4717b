# src/fedwork/schemas/activitypub.py
"""Wire documents exchanged with remote instances."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

ACTIVITY_STREAMS_CONTEXT = "https://www.w3.org/ns/activitystreams"
SECURITY_CONTEXT = "https://w3id.org/security/v1"
PUBLIC_COLLECTION = "https://www.w3.org/ns/activitystreams#Public"
ACTIVITY_JSON_MEDIA_TYPE = "application/activity+json"


class ActorIcon(BaseModel):
    """Profile image reference in an actor document."""

    type: str = "Image"
    media_type: str = Field("image/jpeg", alias="mediaType")
    url: str

    model_config = ConfigDict(populate_by_name=True)


class ActorDocument(BaseModel):
    """ActivityPub ``Person`` describing a local user."""

    context: list[str] = Field(
        default_factory=lambda: [ACTIVITY_STREAMS_CONTEXT, SECURITY_CONTEXT],
        alias="@context",
    )
    id: str
    type: str = "Person"
    preferred_username: str = Field(..., alias="preferredUsername")
    name: str
    summary: str | None = None
    inbox: str
    outbox: str
    icon: ActorIcon | None = None

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialise with the JSON-LD field names, dropping absent optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ActivityRecordResponse(BaseModel):
    """Activity log entry returned by the API."""

    id: int
    instance_id: int
    direction: str
    type: str
    actor_id: int | None
    actor_uri: str | None
    object_id: str | None
    target_id: str | None
    payload: Any
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InboxAcknowledgement(BaseModel):
    """Uniform response body of every inbox delivery."""

    message: str = "Activity accepted"
