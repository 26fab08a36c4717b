"""Post endpoints.

Creating a post also builds its Create activity and logs it under one of the
author's instances, so the post shows up in that instance's activity log as
well as in the author's outbox.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from fedwork.models import Post
from fedwork.schemas.post import PostCreate, PostResponse
from fedwork.services.activities import ActivityType
from fedwork.services.errors import FederationError
from fedwork.services.instances import InstanceService

from ..dependencies import CodecDep, CurrentUserDep, DirectoryDep, SessionDep, raise_http

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("/", response_model=PostResponse, status_code=status.HTTP_201_CREATED)
async def create_post(
    post_data: PostCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
    directory: DirectoryDep,
    codec: CodecDep,
) -> Post:
    """Create a post and publish its Create activity."""
    try:
        instance = InstanceService.attribution_instance(db, current_user.id, post_data.instance_id)
        actor = directory.resolve_actor(db, current_user.id)
    except FederationError as exc:
        raise_http(exc)

    post = Post(
        user_id=current_user.id,
        content=post_data.content,
        media_url=post_data.media_url,
    )
    # The post and its logged activity are committed together or not at all.
    try:
        with db.begin_nested():
            db.add(post)
            db.flush()
            activity = codec.build_activity(
                db,
                ActivityType.CREATE,
                current_user.id,
                codec.note_for_post(post, actor.id),
                instance_id=instance.id if instance is not None else None,
            )
            post.activity_id = activity.activity_id
    except FederationError as exc:
        raise_http(exc)
    except SQLAlchemyError:
        logger.exception("Could not store post for user %s", current_user.id)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Post could not be published",
        )

    db.commit()
    db.refresh(post)
    if instance is None:
        logger.info("Post %s has no instance; Create activity was not logged", post.id)
    return post


@router.get("/{post_id}", response_model=PostResponse)
async def get_post(post_id: int, db: SessionDep) -> Post:
    """Get a specific post by ID."""
    post = db.get(Post, post_id)
    if post is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Post not found",
        )
    return post
