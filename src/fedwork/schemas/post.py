# src/fedwork/schemas/post.py
"""Post-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PostCreate(BaseModel):
    """Schema for creating a new post."""

    content: str = Field(..., min_length=1, max_length=5000, description="Post body")
    media_url: str | None = Field(None, description="Optional attached media URL")
    instance_id: int | None = Field(
        None,
        description="Instance the Create activity is logged under",
    )


class PostResponse(BaseModel):
    """Schema for post information returned by the API."""

    id: int
    user_id: int
    content: str
    media_url: str | None
    activity_id: str | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
