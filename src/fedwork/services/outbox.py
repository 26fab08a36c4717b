"""Outbox publisher: a user's authored posts as an ordered collection."""

from __future__ import annotations

from typing import Any

from sqlalchemy import desc
from sqlalchemy.orm import Session

from fedwork.db.time import isoformat_utc
from fedwork.models import Post
from fedwork.schemas.activitypub import ACTIVITY_STREAMS_CONTEXT
from fedwork.services.activities import ActivityCodec, ActivityType, get_activity_codec
from fedwork.services.actors import ActorDirectory


def build_outbox(
    db: Session,
    user_id: int,
    directory: ActorDirectory,
    codec: ActivityCodec | None = None,
) -> dict[str, Any]:
    """Return the outbox ``OrderedCollection`` for ``user_id``.

    Every post the user authored appears once, newest first, wrapped in a
    Create activity. The collection is not paginated.

    Raises:
        ActorNotFound: If no user has this id.
    """
    codec = codec or get_activity_codec()
    actor = directory.resolve_actor(db, user_id)

    posts = (
        db.query(Post)
        .filter(Post.user_id == user_id)
        .order_by(desc(Post.created_at), desc(Post.id))
        .all()
    )
    items = [
        {
            "id": f"{codec.post_url(post.id)}/activity",
            "type": ActivityType.CREATE.value,
            "actor": actor.id,
            "published": isoformat_utc(post.created_at),
            "object": codec.note_for_post(post, actor.id),
        }
        for post in posts
    ]
    return {
        "@context": ACTIVITY_STREAMS_CONTEXT,
        "id": actor.outbox,
        "type": "OrderedCollection",
        "totalItems": len(items),
        "orderedItems": items,
    }
