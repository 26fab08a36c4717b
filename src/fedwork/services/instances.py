"""Instance management and policy lookups."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fedwork.models import Instance, User
from fedwork.schemas.instance import (
    ContentModeration,
    FederationRules,
    InstanceCreate,
    InstancePolicy,
    InstanceUpdate,
)
from fedwork.services.errors import (
    ConflictError,
    InstanceSelectionRequired,
    NotFoundError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)

# Columns that may be cleared with an explicit null in a partial update.
_NULLABLE_FIELDS = frozenset({"description", "domain", "logo"})
_POLICY_MODELS: dict[str, type[ContentModeration] | type[FederationRules]] = {
    "content_moderation": ContentModeration,
    "federation_rules": FederationRules,
}


class InstanceService:
    """Operations on locally hosted instances."""

    @staticmethod
    def get_instance(db: Session, instance_id: int) -> Instance:
        """Return an instance or raise ``NotFoundError``."""
        instance = db.get(Instance, instance_id)
        if instance is None:
            raise NotFoundError("Instance not found")
        return instance

    @staticmethod
    def require_admin(instance: Instance, user_id: int, action: str) -> None:
        """Raise ``UnauthorizedError`` unless ``user_id`` administers ``instance``."""
        if instance.admin_id != user_id:
            raise UnauthorizedError(f"Not authorized to {action} for this instance")

    @staticmethod
    def policy(instance: Instance) -> InstancePolicy:
        return InstancePolicy.from_instance(instance)

    @staticmethod
    def create_instance(db: Session, data: InstanceCreate, admin_id: int) -> Instance:
        """Create an instance administered by ``admin_id``.

        Raises:
            NotFoundError: If the administrator does not exist.
            ConflictError: If the domain is already claimed.
        """
        if db.get(User, admin_id) is None:
            raise NotFoundError("User not found")
        if data.domain:
            _ensure_domain_free(db, data.domain)

        instance = Instance(
            name=data.name,
            description=data.description,
            admin_id=admin_id,
            domain=data.domain,
            logo=data.logo,
            registration_type=data.registration_type.value,
            content_moderation=data.content_moderation.model_dump(mode="json"),
            federation_rules=data.federation_rules.model_dump(mode="json"),
            active=True,
        )
        db.add(instance)
        _commit_or_conflict(db)
        db.refresh(instance)
        logger.info("Created instance %s (%s) for admin %s", instance.id, instance.name, admin_id)
        return instance

    @staticmethod
    def list_for_admin(db: Session, admin_id: int) -> list[Instance]:
        """Return the instances ``admin_id`` administers, oldest first."""
        return (
            db.query(Instance)
            .filter(Instance.admin_id == admin_id)
            .order_by(Instance.id)
            .all()
        )

    @staticmethod
    def update_instance(
        db: Session,
        instance_id: int,
        data: InstanceUpdate,
        requested_by: int,
    ) -> Instance:
        """Apply a partial update; omitted fields and policy keys keep their values."""
        instance = InstanceService.get_instance(db, instance_id)
        InstanceService.require_admin(instance, requested_by, "update this instance")

        changes: dict[str, Any] = data.model_dump(exclude_unset=True, mode="json")
        for name, model in _POLICY_MODELS.items():
            patch = changes.pop(name, None)
            if not patch:
                continue
            merged = dict(getattr(instance, name) or {})
            merged.update({key: value for key, value in patch.items() if value is not None})
            setattr(instance, name, model.model_validate(merged).model_dump(mode="json"))

        domain = changes.get("domain")
        if domain and domain != instance.domain:
            _ensure_domain_free(db, domain)

        for key, value in changes.items():
            if value is None and key not in _NULLABLE_FIELDS:
                continue
            setattr(instance, key, value)

        db.add(instance)
        _commit_or_conflict(db)
        db.refresh(instance)
        return instance

    @staticmethod
    def receiving_instance_for(db: Session, user_id: int) -> Instance | None:
        """Return the instance whose log receives deliveries to a user's inbox.

        This is the lowest-id active instance the user administers.
        """
        return (
            db.query(Instance)
            .filter(Instance.admin_id == user_id, Instance.active.is_(True))
            .order_by(Instance.id)
            .first()
        )

    @staticmethod
    def attribution_instance(
        db: Session,
        user_id: int,
        instance_id: int | None,
    ) -> Instance | None:
        """Pick the instance an activity authored by ``user_id`` is logged under.

        An explicit ``instance_id`` must be administered by the user. Without
        one, the user's only instance is used; users with none get None and
        users with several must choose.
        """
        if instance_id is not None:
            instance = InstanceService.get_instance(db, instance_id)
            InstanceService.require_admin(instance, user_id, "publish activities")
            return instance

        administered = InstanceService.list_for_admin(db, user_id)
        if not administered:
            return None
        if len(administered) > 1:
            raise InstanceSelectionRequired(
                "instance_id is required when administering several instances"
            )
        return administered[0]


def _ensure_domain_free(db: Session, domain: str) -> None:
    if db.query(Instance).filter(Instance.domain == domain).first() is not None:
        raise ConflictError("Instance domain already exists")


def _commit_or_conflict(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Instance domain already exists") from exc
