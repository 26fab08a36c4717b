"""Activity codec and the append-only activity log.

The codec turns local events into activity messages and inbound JSON into
:class:`ParsedActivity`. The log persists both, scoped to one instance, with
the message kept exactly as it was built or received.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from sqlalchemy import desc
from sqlalchemy.orm import Session

from fedwork.core.settings import settings
from fedwork.db.time import isoformat_utc, utcnow
from fedwork.models import ActivityRecord, Post, User
from fedwork.models.activity import DIRECTION_INBOUND, DIRECTION_OUTBOUND
from fedwork.schemas.activitypub import ACTIVITY_STREAMS_CONTEXT, PUBLIC_COLLECTION
from fedwork.services.errors import ActorNotResolved, MalformedActivity

logger = logging.getLogger(__name__)

UNKNOWN_TYPE = "Unknown"


class ActivityType(str, Enum):
    """Activity kinds the service distinguishes.

    Any type string outside this set is ``UNSUPPORTED``; the original string
    is still kept on the parsed activity and in the stored payload.
    """

    FOLLOW = "Follow"
    CREATE = "Create"
    LIKE = "Like"
    UNSUPPORTED = "Unsupported"

    @classmethod
    def classify(cls, raw_type: object) -> ActivityType:
        for member in (cls.FOLLOW, cls.CREATE, cls.LIKE):
            if raw_type == member.value:
                return member
        return cls.UNSUPPORTED


class ActivityIdGenerator:
    """Time-based activity ids, strictly increasing within the process."""

    def __init__(self, base_url: str) -> None:
        self.base_url = base_url.rstrip("/")
        self._lock = threading.Lock()
        self._last = 0

    def next_sequence(self) -> int:
        with self._lock:
            now = time.time_ns() // 1_000_000
            self._last = max(now, self._last + 1)
            return self._last

    def next_id(self) -> str:
        return f"{self.base_url}/activitypub/activity/{self.next_sequence()}"


def _reference_id(value: Any) -> str | None:
    """Return the identifier of an object/target that is either a URI or an object."""
    if isinstance(value, str):
        return value or None
    if isinstance(value, Mapping):
        ref = value.get("id")
        return ref if isinstance(ref, str) and ref else None
    return None


@dataclass
class ParsedActivity:
    """Internal view of one activity message.

    ``payload`` is the message exactly as built or received; the remaining
    fields are extracted from it and may be None for malformed input.
    """

    kind: ActivityType
    type_name: str
    actor: str | None
    object: Any
    target: Any
    payload: Any
    malformed: str | None = None
    recipients: list[str] = field(default_factory=list)

    @property
    def object_id(self) -> str | None:
        return _reference_id(self.object)

    @property
    def target_id(self) -> str | None:
        return _reference_id(self.target)

    @property
    def activity_id(self) -> str | None:
        if isinstance(self.payload, Mapping):
            ref = self.payload.get("id")
            return ref if isinstance(ref, str) else None
        return None


class ActivityLog:
    """Append-only persistence for activities."""

    @staticmethod
    def append(
        db: Session,
        instance_id: int,
        activity: ParsedActivity,
        *,
        direction: str,
        actor_id: int | None = None,
    ) -> ActivityRecord:
        """Add ``activity`` to the log and flush it; the caller commits."""
        record = ActivityRecord(
            instance_id=instance_id,
            direction=direction,
            type=activity.type_name,
            actor_id=actor_id,
            actor_uri=activity.actor,
            object_id=activity.object_id,
            target_id=activity.target_id,
            payload=activity.payload,
            created_at=utcnow(),
        )
        db.add(record)
        db.flush()
        return record

    @staticmethod
    def list_for_instance(db: Session, instance_id: int) -> list[ActivityRecord]:
        """Return an instance's activities, newest first."""
        return (
            db.query(ActivityRecord)
            .filter(ActivityRecord.instance_id == instance_id)
            .order_by(desc(ActivityRecord.created_at), desc(ActivityRecord.id))
            .all()
        )

    @staticmethod
    def recent(db: Session, limit: int = 10) -> list[ActivityRecord]:
        """Return the most recent activities across all instances."""
        return (
            db.query(ActivityRecord)
            .order_by(desc(ActivityRecord.created_at), desc(ActivityRecord.id))
            .limit(limit)
            .all()
        )


class ActivityCodec:
    """Builds outbound activities and parses inbound ones."""

    def __init__(self, base_url: str, id_generator: ActivityIdGenerator | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.ids = id_generator or ActivityIdGenerator(self.base_url)

    def post_url(self, post_id: int) -> str:
        """Canonical URL of a post; used as the Note id."""
        return f"{self.base_url}/api/v1/posts/{post_id}"

    def note_for_post(self, post: Post, actor_url: str) -> dict[str, Any]:
        """Return the Note object describing ``post``."""
        note: dict[str, Any] = {
            "id": self.post_url(post.id),
            "type": "Note",
            "content": post.content,
            "attributedTo": actor_url,
            "published": isoformat_utc(post.created_at),
        }
        if post.media_url:
            note["attachment"] = [{"type": "Document", "url": post.media_url}]
        return note

    def build_activity(
        self,
        db: Session,
        activity_type: str | ActivityType,
        acting_user_id: int,
        obj: Any,
        recipients: Sequence[str] | None = None,
        *,
        instance_id: int | None = None,
        target: Any = None,
    ) -> ParsedActivity:
        """Build an activity authored by a local user.

        The activity is appended to the log only when ``instance_id`` is given;
        the entry is flushed and committing is left to the caller.

        Raises:
            ActorNotResolved: If the user is unknown or has no actor URL yet.
        """
        user = db.get(User, acting_user_id)
        if user is None or not user.actor_url:
            raise ActorNotResolved(
                f"User {acting_user_id} not found or has no federation identity"
            )

        type_name = activity_type.value if isinstance(activity_type, ActivityType) else activity_type
        to = list(recipients) if recipients is not None else [PUBLIC_COLLECTION]
        message: dict[str, Any] = {
            "@context": ACTIVITY_STREAMS_CONTEXT,
            "id": self.ids.next_id(),
            "type": type_name,
            "actor": user.actor_url,
            "object": obj,
            "to": to,
            "published": isoformat_utc(utcnow()),
        }
        if target is not None:
            message["target"] = target

        activity = ParsedActivity(
            kind=ActivityType.classify(type_name),
            type_name=type_name,
            actor=user.actor_url,
            object=obj,
            target=target,
            payload=message,
            recipients=to,
        )
        if instance_id is not None:
            ActivityLog.append(
                db,
                instance_id,
                activity,
                direction=DIRECTION_OUTBOUND,
                actor_id=user.id,
            )
            logger.info(
                "Logged outbound %s %s under instance %s",
                type_name,
                message["id"],
                instance_id,
            )
        return activity

    def parse_inbound(self, raw: Any) -> ParsedActivity:
        """Interpret an inbound message without ever rejecting it.

        Input without the minimal activity shape is always ``UNSUPPORTED``; its
        type string is kept when there is one.
        """
        try:
            message = _require_shape(raw)
        except MalformedActivity as exc:
            logger.info("Malformed inbound activity: %s", exc.detail)
            fields: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
            raw_type = fields.get("type")
            type_name = raw_type if isinstance(raw_type, str) and raw_type else UNKNOWN_TYPE
            actor = fields.get("actor")
            return ParsedActivity(
                kind=ActivityType.UNSUPPORTED,
                type_name=type_name,
                actor=actor if isinstance(actor, str) else _reference_id(actor),
                object=fields.get("object"),
                target=fields.get("target"),
                payload=raw,
                malformed=exc.detail,
            )

        to = message.get("to")
        return ParsedActivity(
            kind=ActivityType.classify(message["type"]),
            type_name=message["type"],
            actor=_reference_id(message["actor"]),
            object=message.get("object"),
            target=message.get("target"),
            payload=raw,
            recipients=[r for r in to if isinstance(r, str)] if isinstance(to, list) else [],
        )


def _require_shape(raw: Any) -> Mapping[str, Any]:
    """Return ``raw`` if it has the minimal activity shape (object, type, actor)."""
    if not isinstance(raw, Mapping):
        raise MalformedActivity(f"expected a JSON object, got {type(raw).__name__}")
    raw_type = raw.get("type")
    if not isinstance(raw_type, str) or not raw_type:
        raise MalformedActivity("missing or non-string 'type'")
    if _reference_id(raw.get("actor")) is None:
        raise MalformedActivity("missing 'actor'")
    return raw


class _ActivityCodecSingleton:
    """Singleton wrapper so every request shares one id generator."""

    _instance: ActivityCodec | None = None

    @classmethod
    def get_instance(cls) -> ActivityCodec:
        if cls._instance is None:
            cls._instance = ActivityCodec(settings.public_base_url)
        return cls._instance


def get_activity_codec() -> ActivityCodec:
    """Return the process-wide activity codec."""
    return _ActivityCodecSingleton.get_instance()


__all__ = [
    "get_activity_codec",
    "ActivityCodec",
    "ActivityIdGenerator",
    "ActivityLog",
    "ActivityType",
    "ParsedActivity",
    "DIRECTION_INBOUND",
    "DIRECTION_OUTBOUND",
]
