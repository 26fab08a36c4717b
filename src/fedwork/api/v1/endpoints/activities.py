"""Activity log endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query

from fedwork.models import ActivityRecord
from fedwork.schemas.activitypub import ActivityRecordResponse
from fedwork.services.activities import ActivityLog

from ..dependencies import SessionDep

router = APIRouter(prefix="/activities", tags=["activities"])


@router.get("/recent", response_model=list[ActivityRecordResponse])
async def recent_activities(
    db: SessionDep,
    limit: int = Query(10, ge=1, le=100),
) -> list[ActivityRecord]:
    """Most recent activities across all instances, newest first."""
    return ActivityLog.recent(db, limit)
