"""Instance, federation link and instance activity endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from fedwork.models import ActivityRecord, FederationLink, Instance
from fedwork.schemas.activitypub import ActivityRecordResponse
from fedwork.schemas.federation import (
    FederationLinkCreate,
    FederationLinkResponse,
    FederationSummary,
)
from fedwork.schemas.instance import InstanceCreate, InstanceResponse, InstanceUpdate
from fedwork.services.activities import ActivityLog
from fedwork.services.errors import FederationError
from fedwork.services.federation import FederationService
from fedwork.services.instances import InstanceService

from ..dependencies import CurrentUserDep, SessionDep, raise_http

router = APIRouter(prefix="/instances", tags=["instances"])


@router.post("/", response_model=InstanceResponse, status_code=status.HTTP_201_CREATED)
async def create_instance(
    instance_data: InstanceCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Instance:
    """Create an instance administered by the caller."""
    try:
        return InstanceService.create_instance(db, instance_data, current_user.id)
    except FederationError as exc:
        raise_http(exc)


@router.get("/{instance_id}", response_model=InstanceResponse)
async def get_instance(instance_id: int, db: SessionDep) -> Instance:
    """Get a specific instance by ID."""
    try:
        return InstanceService.get_instance(db, instance_id)
    except FederationError as exc:
        raise_http(exc)


@router.put("/{instance_id}", response_model=InstanceResponse)
async def update_instance(
    instance_id: int,
    instance_data: InstanceUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> Instance:
    """Partially update an instance; only its administrator may do so."""
    try:
        return InstanceService.update_instance(db, instance_id, instance_data, current_user.id)
    except FederationError as exc:
        raise_http(exc)


@router.post(
    "/{instance_id}/federations",
    response_model=FederationLinkResponse,
    status_code=status.HTTP_201_CREATED,
)
async def request_federation(
    instance_id: int,
    link_data: FederationLinkCreate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> FederationLink:
    """Ask to federate this instance with another one."""
    try:
        return FederationService.request_federation(
            db,
            instance_id,
            link_data.fed_with_instance_id,
            current_user.id,
        )
    except FederationError as exc:
        raise_http(exc)


@router.get("/{instance_id}/federations", response_model=list[FederationLinkResponse])
async def list_federations(instance_id: int, db: SessionDep) -> list[FederationLink]:
    """List the links this instance has requested."""
    try:
        return FederationService.list_links(db, instance_id)
    except FederationError as exc:
        raise_http(exc)


@router.get("/{instance_id}/activities", response_model=list[ActivityRecordResponse])
async def list_instance_activities(instance_id: int, db: SessionDep) -> list[ActivityRecord]:
    """The instance's activity log, newest first."""
    try:
        InstanceService.get_instance(db, instance_id)
    except FederationError as exc:
        raise_http(exc)
    return ActivityLog.list_for_instance(db, instance_id)


@router.get("/{instance_id}/analytics/federation", response_model=FederationSummary)
async def federation_analytics(
    instance_id: int,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> FederationSummary:
    """Federation link counts for the instance's administrator."""
    try:
        return FederationService.federation_summary(db, instance_id, current_user.id)
    except FederationError as exc:
        raise_http(exc)
