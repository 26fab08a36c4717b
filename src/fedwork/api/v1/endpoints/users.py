"""User-scoped listing endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status
from sqlalchemy import desc

from fedwork.models import Instance, Post, User
from fedwork.schemas.instance import InstanceResponse
from fedwork.schemas.post import PostResponse
from fedwork.services.instances import InstanceService

from ..dependencies import SessionDep

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}/instances", response_model=list[InstanceResponse])
async def list_user_instances(user_id: int, db: SessionDep) -> list[Instance]:
    """Instances the user administers."""
    return InstanceService.list_for_admin(db, user_id)


@router.get("/{user_id}/posts", response_model=list[PostResponse])
async def list_user_posts(user_id: int, db: SessionDep) -> list[Post]:
    """Posts the user authored, newest first."""
    if db.get(User, user_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return (
        db.query(Post)
        .filter(Post.user_id == user_id)
        .order_by(desc(Post.created_at), desc(Post.id))
        .all()
    )
