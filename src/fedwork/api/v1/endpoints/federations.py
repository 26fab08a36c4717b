"""Federation link status endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from fedwork.models import FederationLink
from fedwork.schemas.federation import FederationLinkResponse, FederationStatusUpdate
from fedwork.services.errors import FederationError
from fedwork.services.federation import FederationService

from ..dependencies import CurrentUserDep, SessionDep, raise_http

router = APIRouter(prefix="/federations", tags=["federation"])


@router.put("/{link_id}/status", response_model=FederationLinkResponse)
async def update_federation_status(
    link_id: int,
    payload: FederationStatusUpdate,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> FederationLink:
    """Approve, reject or reset a federation link."""
    try:
        return FederationService.update_status(db, link_id, payload.status, current_user.id)
    except FederationError as exc:
        raise_http(exc)
