"""ActivityPub endpoints: actor documents, inboxes and outboxes.

These routes are mounted at the site root rather than under ``/api/v1`` so the
identifiers they serve match the actor URLs handed to remote instances.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import JSONResponse

from fedwork.models import Instance, User
from fedwork.schemas.activitypub import ACTIVITY_JSON_MEDIA_TYPE, InboxAcknowledgement
from fedwork.services.errors import FederationError
from fedwork.services.instances import InstanceService
from fedwork.services.outbox import build_outbox

from ..dependencies import CodecDep, DirectoryDep, InboxDep, SessionDep, raise_http

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/activitypub", tags=["activitypub"])


def _activity_json(content: dict[str, Any], status_code: int = status.HTTP_200_OK) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, media_type=ACTIVITY_JSON_MEDIA_TYPE)


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


async def _read_body(request: Request) -> Any:
    """Return the decoded JSON body, or its text when it is not strict JSON.

    NaN and Infinity are not JSON; bodies using them are kept as text.
    """
    body = await request.body()
    text = body.decode("utf-8", errors="replace")
    try:
        return json.loads(text, parse_constant=_reject_constant)
    except ValueError:
        return text


def _accepted() -> JSONResponse:
    return JSONResponse(
        content=InboxAcknowledgement().model_dump(),
        status_code=status.HTTP_202_ACCEPTED,
    )


@router.get("/actor/{user_id}")
async def get_actor(user_id: int, db: SessionDep, directory: DirectoryDep) -> JSONResponse:
    """Return the actor document for a local user."""
    try:
        actor = directory.resolve_actor(db, user_id)
    except FederationError as exc:
        raise_http(exc)
    return _activity_json(actor.to_wire())


@router.post("/actor/{user_id}/inbox", status_code=status.HTTP_202_ACCEPTED)
async def actor_inbox(
    user_id: int,
    request: Request,
    db: SessionDep,
    processor: InboxDep,
) -> JSONResponse:
    """Accept an activity delivered to a user's inbox.

    Every body is acknowledged once the receiving instance is known; how the
    delivery was processed is only visible in the activity log.
    """
    if db.get(User, user_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    instance = InstanceService.receiving_instance_for(db, user_id)
    if instance is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No instances found for user",
        )

    raw = await _read_body(request)
    processor.process(db, raw, instance)
    return _accepted()


@router.post("/instances/{instance_id}/inbox", status_code=status.HTTP_202_ACCEPTED)
async def instance_inbox(
    instance_id: int,
    request: Request,
    db: SessionDep,
    processor: InboxDep,
) -> JSONResponse:
    """Accept an activity delivered to an instance's shared inbox."""
    instance = db.get(Instance, instance_id)
    if instance is None or not instance.active:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Instance not found",
        )

    raw = await _read_body(request)
    processor.process(db, raw, instance)
    return _accepted()


@router.get("/actor/{user_id}/outbox")
async def actor_outbox(
    user_id: int,
    db: SessionDep,
    directory: DirectoryDep,
    codec: CodecDep,
) -> JSONResponse:
    """Return the user's authored posts as an ordered collection."""
    try:
        outbox = build_outbox(db, user_id, directory, codec)
    except FederationError as exc:
        raise_http(exc)
    return _activity_json(outbox)
