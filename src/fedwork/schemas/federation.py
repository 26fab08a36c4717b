# src/fedwork/schemas/federation.py
"""Federation link Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .instance import InstanceSummary


class FederationLinkCreate(BaseModel):
    """Request to federate the path instance with another instance."""

    fed_with_instance_id: int = Field(..., description="Target instance id")


class FederationStatusUpdate(BaseModel):
    """New status for a federation link.

    Kept as a plain string so out-of-range values reach the service and are
    reported as an invalid status rather than a schema error.
    """

    status: str


class FederationLinkResponse(BaseModel):
    """Schema for federation link information returned by the API."""

    id: int
    instance_id: int
    fed_with_instance_id: int
    status: str
    created_at: datetime
    fed_with_instance: InstanceSummary | None = None

    model_config = ConfigDict(from_attributes=True)


class FederationSummary(BaseModel):
    """Per-instance federation analytics."""

    total: int
    approved: int
    pending: int
    rejected: int
    recent: list[FederationLinkResponse]
