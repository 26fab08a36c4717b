# mypy: ignore-errors
"""Tests for the federation relationship manager."""

import pytest

from fedwork.models.instance import FEDERATION_STATUS_APPROVED, FEDERATION_STATUS_PENDING
from fedwork.services.errors import (
    FederationConflict,
    FederationDenied,
    InvalidFederationTarget,
    InvalidStatusError,
    NotFoundError,
    UnauthorizedError,
)
from fedwork.services.federation import FederationService


def test_request_creates_pending_link(db_session, test_user, test_instance, other_instance) -> None:
    link = FederationService.request_federation(
        db_session, test_instance.id, other_instance.id, test_user.id
    )
    assert link.status == FEDERATION_STATUS_PENDING
    assert link.instance_id == test_instance.id
    assert link.fed_with_instance_id == other_instance.id
    # No reciprocal link is created
    assert FederationService.list_links(db_session, other_instance.id) == []


def test_request_requires_source_admin(db_session, other_user, test_instance, other_instance) -> None:
    with pytest.raises(UnauthorizedError):
        FederationService.request_federation(
            db_session, test_instance.id, other_instance.id, other_user.id
        )


def test_request_rejects_self_and_missing(db_session, test_user, test_instance) -> None:
    with pytest.raises(InvalidFederationTarget):
        FederationService.request_federation(
            db_session, test_instance.id, test_instance.id, test_user.id
        )
    with pytest.raises(NotFoundError):
        FederationService.request_federation(db_session, test_instance.id, 99999, test_user.id)
    with pytest.raises(NotFoundError):
        FederationService.request_federation(db_session, 99999, test_instance.id, test_user.id)


def test_request_rejects_duplicate(db_session, test_user, test_instance, other_instance) -> None:
    FederationService.request_federation(db_session, test_instance.id, other_instance.id, test_user.id)
    with pytest.raises(FederationConflict):
        FederationService.request_federation(
            db_session, test_instance.id, other_instance.id, test_user.id
        )


def test_request_respects_federation_scope(db_session, test_user, test_instance, other_instance) -> None:
    test_instance.federation_rules = {
        "federation_scope": "blocklist",
        "blocked_domains": [other_instance.domain],
    }
    db_session.flush()
    with pytest.raises(FederationDenied):
        FederationService.request_federation(
            db_session, test_instance.id, other_instance.id, test_user.id
        )


def test_update_status_by_either_admin(
    db_session, test_user, other_user, test_instance, other_instance
) -> None:
    link = FederationService.request_federation(
        db_session, test_instance.id, other_instance.id, test_user.id
    )
    updated = FederationService.update_status(
        db_session, link.id, FEDERATION_STATUS_APPROVED, other_user.id
    )
    assert updated.status == FEDERATION_STATUS_APPROVED

    updated = FederationService.update_status(db_session, link.id, "rejected", test_user.id)
    assert updated.status == "rejected"


def test_update_status_checks_value_first(db_session, test_user) -> None:
    with pytest.raises(InvalidStatusError):
        FederationService.update_status(db_session, 99999, "bogus", test_user.id)
    with pytest.raises(NotFoundError):
        FederationService.update_status(db_session, 99999, "approved", test_user.id)


def test_update_status_requires_an_admin(
    db_session, test_user, test_instance, other_instance, make_user
) -> None:
    stranger = make_user(username="mallory", email="mallory@example.com")
    link = FederationService.request_federation(
        db_session, test_instance.id, other_instance.id, test_user.id
    )
    with pytest.raises(UnauthorizedError):
        FederationService.update_status(db_session, link.id, "approved", stranger.id)


def test_federation_summary(
    db_session, test_user, test_instance, other_instance, make_instance, make_user
) -> None:
    third_admin = make_user(username="carol", email="carol@example.com")
    third = make_instance(third_admin, name="Third", domain="third.example")
    first = FederationService.request_federation(
        db_session, test_instance.id, other_instance.id, test_user.id
    )
    FederationService.request_federation(db_session, test_instance.id, third.id, test_user.id)
    FederationService.update_status(db_session, first.id, "approved", test_user.id)

    summary = FederationService.federation_summary(db_session, test_instance.id, test_user.id)
    assert summary.total == 2
    assert summary.approved == 1
    assert summary.pending == 1
    assert summary.rejected == 0
    assert [link.fed_with_instance_id for link in summary.recent] == [third.id, other_instance.id]
    assert summary.recent[1].fed_with_instance.domain == "build.example"

    with pytest.raises(UnauthorizedError):
        FederationService.federation_summary(db_session, test_instance.id, third_admin.id)
