"""Exceptions raised by the federation services.

Each error carries the HTTP status the API layer answers with, so endpoints
can translate any of them with :func:`fedwork.api.v1.dependencies.raise_http`.
"""

from __future__ import annotations


class FederationError(RuntimeError):
    """Base exception for federation service failures."""

    status_code: int = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class NotFoundError(FederationError):
    """A referenced user, instance, activity or link does not exist."""

    status_code = 404


class ActorNotFound(NotFoundError):
    """No local user backs the requested actor."""


class ActorNotResolved(NotFoundError):
    """The acting user has no federation identity yet."""


class UnauthorizedError(FederationError):
    """The caller does not administer the resource it tried to change."""

    status_code = 403


class FederationDenied(UnauthorizedError):
    """The instance's federation scope does not allow the other side."""


class InvalidStatusError(FederationError):
    """A federation link status outside the enumerated set."""

    status_code = 400


class InvalidFederationTarget(FederationError):
    """A federation request that can never be valid (e.g. an instance with itself)."""

    status_code = 400


class InstanceSelectionRequired(FederationError):
    """The caller administers several instances and must name one."""

    status_code = 422


class ConflictError(FederationError):
    """The entity already exists (duplicate link or domain)."""

    status_code = 409


class UpstreamFetchFailure(FederationError):
    """A remote actor document could not be fetched."""

    status_code = 502


class MalformedActivity(FederationError):
    """An inbound payload is missing the minimal activity shape.

    Inbound processing never raises this past the codec; it is recorded on the
    parsed activity and the message is logged as unsupported.
    """

    status_code = 400


class FederationConflict(ConflictError):
    """A link between the two instances already exists."""
