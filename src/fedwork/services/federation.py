"""Federation relationship manager.

Links are directed: instance A asking to federate with instance B creates one
``pending`` row owned by A. Status changes are explicit administrator actions
and never create the reciprocal link.
"""

from __future__ import annotations

import logging
from collections import Counter

from sqlalchemy.orm import Session, joinedload

from fedwork.models import FederationLink, Instance
from fedwork.models.instance import (
    FEDERATION_STATUS_APPROVED,
    FEDERATION_STATUS_PENDING,
    FEDERATION_STATUS_REJECTED,
    FEDERATION_STATUSES,
)
from fedwork.schemas.federation import FederationLinkResponse, FederationSummary
from fedwork.schemas.instance import InstancePolicy
from fedwork.services.errors import (
    FederationConflict,
    FederationDenied,
    InvalidFederationTarget,
    InvalidStatusError,
    NotFoundError,
    UnauthorizedError,
)
from fedwork.services.instances import InstanceService

logger = logging.getLogger(__name__)

RECENT_LINKS_LIMIT = 5


def is_allowed(instance: Instance | InstancePolicy, candidate_domain: str | None) -> bool:
    """Return True if ``instance``'s federation scope trusts ``candidate_domain``.

    This is the single check made before a new federation link is accepted
    and before inbound content from a remote domain is dispatched.
    """
    if isinstance(instance, InstancePolicy):
        policy = instance
    else:
        policy = InstancePolicy.from_instance(instance)
    return policy.federation_rules.allows(candidate_domain)


class FederationService:
    """Create, list and transition federation links."""

    @staticmethod
    def request_federation(
        db: Session,
        source_instance_id: int,
        target_instance_id: int,
        requested_by: int,
    ) -> FederationLink:
        """Create a pending link from source to target.

        Raises:
            NotFoundError: If either instance does not exist.
            UnauthorizedError: If the requester does not administer the source.
            InvalidFederationTarget: If source and target are the same instance.
            FederationDenied: If the source's scope does not allow the target's domain.
            FederationConflict: If the link already exists.
        """
        source = InstanceService.get_instance(db, source_instance_id)
        InstanceService.require_admin(source, requested_by, "create federation")
        if target_instance_id == source_instance_id:
            raise InvalidFederationTarget("An instance cannot federate with itself")
        target = InstanceService.get_instance(db, target_instance_id)

        if not is_allowed(source, target.domain):
            raise FederationDenied(
                f"Federation with {target.domain or 'an instance without a domain'} "
                "is not allowed by this instance's federation rules"
            )

        existing = (
            db.query(FederationLink)
            .filter(
                FederationLink.instance_id == source.id,
                FederationLink.fed_with_instance_id == target.id,
            )
            .first()
        )
        if existing is not None:
            raise FederationConflict("Federation with this instance already exists")

        link = FederationLink(
            instance_id=source.id,
            fed_with_instance_id=target.id,
            status=FEDERATION_STATUS_PENDING,
        )
        db.add(link)
        db.commit()
        db.refresh(link)
        logger.info("Federation link %s requested: %s -> %s", link.id, source.id, target.id)
        return link

    @staticmethod
    def update_status(
        db: Session,
        link_id: int,
        new_status: str,
        requested_by: int,
    ) -> FederationLink:
        """Overwrite a link's status.

        Administrators of either end may change it; the last write wins.

        Raises:
            InvalidStatusError: If ``new_status`` is not pending, approved or rejected.
            NotFoundError: If the link does not exist.
            UnauthorizedError: If the requester administers neither instance.
        """
        if new_status not in FEDERATION_STATUSES:
            raise InvalidStatusError("Invalid status value")

        link = db.get(FederationLink, link_id)
        if link is None:
            raise NotFoundError("Federation not found")

        admins = {link.instance.admin_id, link.fed_with_instance.admin_id}
        if requested_by not in admins:
            raise UnauthorizedError("Not authorized to update this federation")

        previous = link.status
        link.status = new_status
        db.add(link)
        db.commit()
        db.refresh(link)
        logger.info("Federation link %s: %s -> %s by %s", link.id, previous, new_status, requested_by)
        return link

    @staticmethod
    def list_links(db: Session, instance_id: int) -> list[FederationLink]:
        """Return the links an instance has requested, oldest first."""
        InstanceService.get_instance(db, instance_id)
        return (
            db.query(FederationLink)
            .options(joinedload(FederationLink.fed_with_instance))
            .filter(FederationLink.instance_id == instance_id)
            .order_by(FederationLink.id)
            .all()
        )

    @staticmethod
    def federation_summary(db: Session, instance_id: int, requested_by: int) -> FederationSummary:
        """Count an instance's links by status; administrators only."""
        instance = InstanceService.get_instance(db, instance_id)
        InstanceService.require_admin(instance, requested_by, "view analytics")

        links = FederationService.list_links(db, instance_id)
        counts = Counter(link.status for link in links)
        recent = sorted(links, key=lambda link: link.id, reverse=True)
        return FederationSummary(
            total=len(links),
            approved=counts[FEDERATION_STATUS_APPROVED],
            pending=counts[FEDERATION_STATUS_PENDING],
            rejected=counts[FEDERATION_STATUS_REJECTED],
            recent=[
                FederationLinkResponse.model_validate(link)
                for link in recent[:RECENT_LINKS_LIMIT]
            ],
        )


__all__ = ["FederationService", "is_allowed"]
