"""Inbox processing for activities delivered by remote instances.

Every message walks Received -> Logged -> Dispatched and ends in one of the
:class:`Outcome` states. Logging is committed before any handler runs, and
nothing raised while dispatching escapes :meth:`InboxProcessor.process`; the
HTTP layer acknowledges every delivery the same way.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any
from urllib.parse import urlparse

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fedwork.models import ActivityRecord, Instance
from fedwork.models.activity import DIRECTION_INBOUND
from fedwork.services.activities import (
    ActivityCodec,
    ActivityLog,
    ActivityType,
    ParsedActivity,
    get_activity_codec,
)
from fedwork.services.actors import ActorDirectory, get_actor_directory
from fedwork.services.federation import is_allowed

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    """Terminal state of one inbound message."""

    HANDLED = "handled"
    IGNORED = "ignored"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(frozen=True)
class HandlerResult:
    """What a type-specific handler reports back to the processor."""

    outcome: Outcome
    detail: str | None = None


@dataclass(frozen=True)
class InboxReceipt:
    """Internal record of how a delivery was processed."""

    instance_id: int
    activity_type: str
    outcome: Outcome
    record_id: int | None = None
    detail: str | None = None


class InboxProcessor:
    """Logs and dispatches inbound activities for one receiving instance."""

    # Handler method per recognised kind; looked up by name at dispatch time.
    _HANDLERS: dict[ActivityType, str] = {
        ActivityType.FOLLOW: "_handle_follow",
        ActivityType.CREATE: "_handle_create",
        ActivityType.LIKE: "_handle_like",
    }

    def __init__(self, codec: ActivityCodec, directory: ActorDirectory) -> None:
        self.codec = codec
        self.directory = directory

    def process(self, db: Session, raw: Any, instance: Instance) -> InboxReceipt:
        """Log ``raw`` under ``instance`` and dispatch it; never raises."""
        activity = self.codec.parse_inbound(raw)

        record = self._log(db, activity, instance)
        if record is None:
            return InboxReceipt(
                instance_id=instance.id,
                activity_type=activity.type_name,
                outcome=Outcome.FAILED,
                detail="activity could not be logged",
            )

        result = self._dispatch(db, activity, instance)
        log = logger.error if result.outcome is Outcome.FAILED else logger.info
        log(
            "Inbound %s (record %s) for instance %s: %s%s",
            activity.type_name,
            record.id,
            instance.id,
            result.outcome.value,
            f" ({result.detail})" if result.detail else "",
        )
        return InboxReceipt(
            instance_id=instance.id,
            activity_type=activity.type_name,
            outcome=result.outcome,
            record_id=record.id,
            detail=result.detail,
        )

    def _log(self, db: Session, activity: ParsedActivity, instance: Instance) -> ActivityRecord | None:
        """Commit ``activity`` to the log, falling back to a text payload.

        Each attempt runs in a savepoint so a refused payload leaves the
        session usable for the fallback.
        """
        actor_id = self.directory.local_user_id(activity.actor)
        for candidate in (activity, _as_text(activity)):
            try:
                with db.begin_nested():
                    record = ActivityLog.append(
                        db,
                        instance.id,
                        candidate,
                        direction=DIRECTION_INBOUND,
                        actor_id=actor_id,
                    )
            except SQLAlchemyError:
                logger.warning(
                    "Database refused inbound %s for instance %s",
                    activity.type_name,
                    instance.id,
                    exc_info=True,
                )
                continue

            try:
                db.commit()
            except SQLAlchemyError:
                db.rollback()
                break
            return record

        logger.error("Could not log inbound %s for instance %s", activity.type_name, instance.id)
        return None

    def _dispatch(self, db: Session, activity: ParsedActivity, instance: Instance) -> HandlerResult:
        try:
            if activity.actor and not is_allowed(instance, _host(activity.actor)):
                return HandlerResult(
                    Outcome.REJECTED,
                    f"{activity.actor} is outside federation scope",
                )

            handler_name = self._HANDLERS.get(activity.kind)
            if handler_name is None:
                return HandlerResult(
                    Outcome.IGNORED,
                    f"unsupported activity type {activity.type_name}",
                )

            return getattr(self, handler_name)(db, activity, instance)
        except Exception as exc:
            logger.exception("Dispatching %s failed", activity.type_name)
            return HandlerResult(Outcome.FAILED, f"{exc.__class__.__name__}: {exc}")

    # The recognised types are acknowledged without changing any state yet.

    def _handle_follow(self, db: Session, activity: ParsedActivity, instance: Instance) -> HandlerResult:
        logger.debug("Follow from %s targeting %s", activity.actor, activity.object_id)
        return HandlerResult(Outcome.HANDLED)

    def _handle_create(self, db: Session, activity: ParsedActivity, instance: Instance) -> HandlerResult:
        logger.debug("Create from %s for %s", activity.actor, activity.object_id)
        return HandlerResult(Outcome.HANDLED)

    def _handle_like(self, db: Session, activity: ParsedActivity, instance: Instance) -> HandlerResult:
        logger.debug("Like from %s on %s", activity.actor, activity.object_id)
        return HandlerResult(Outcome.HANDLED)


def _host(actor_uri: str) -> str | None:
    """Hostname of ``actor_uri``; None when it cannot be parsed."""
    try:
        return urlparse(actor_uri).hostname
    except ValueError:
        return None


def _scrub(value: str | None) -> str | None:
    return value.replace("\x00", "\\u0000") if value else value


def _as_text(activity: ParsedActivity) -> ParsedActivity:
    """Copy of ``activity`` whose payload is stored as escaped JSON text."""
    payload = activity.payload
    if isinstance(payload, str):
        text = _scrub(payload)
    else:
        text = json.dumps(payload, default=str)
    return replace(
        activity,
        actor=_scrub(activity.actor),
        object=_scrub(activity.object_id),
        target=_scrub(activity.target_id),
        payload=text,
    )


def get_inbox_processor() -> InboxProcessor:
    """Return an inbox processor wired to the shared codec and directory."""
    return InboxProcessor(get_activity_codec(), get_actor_directory())
