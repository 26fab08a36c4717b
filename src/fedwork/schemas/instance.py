# src/fedwork/schemas/instance.py
"""Instance and instance-policy Pydantic schemas.

The policy objects (:class:`ContentModeration`, :class:`FederationRules`) are
stored as JSON on the instance row and read back through
:class:`InstancePolicy`, which the rest of the service treats as a read-only
oracle.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RegistrationType(str, Enum):
    """How new members may join an instance."""

    OPEN = "open"
    INVITE = "invite"
    ADMIN = "admin"


class FederationScope(str, Enum):
    """Which remote domains an instance is willing to federate with."""

    ALL = "all"
    ALLOWLIST = "allowlist"
    BLOCKLIST = "blocklist"


def normalize_domain(value: str) -> str:
    """Lower-case a hostname and drop surrounding whitespace and a trailing dot."""
    return value.strip().lower().rstrip(".")


def _unique(values: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def _clean_keywords(values: list[str] | None) -> list[str] | None:
    if values is None:
        return None
    return _unique([value.strip() for value in values])


def _clean_domains(values: list[str] | None) -> list[str] | None:
    if values is None:
        return None
    return _unique([normalize_domain(value) for value in values])


class ContentModeration(BaseModel):
    """Keyword filter settings for an instance."""

    enabled: bool = True
    keywords: list[str] = Field(default_factory=list)

    @field_validator("keywords")
    @classmethod
    def _normalize_keywords(cls, value: list[str] | None) -> list[str] | None:
        return _clean_keywords(value)

    def matched_keywords(self, text: str) -> list[str]:
        """Return the configured keywords contained in ``text`` (case-insensitive)."""
        if not self.enabled or not text:
            return []
        haystack = text.lower()
        return [keyword for keyword in self.keywords if keyword.lower() in haystack]


class FederationRules(BaseModel):
    """Federation scope and sharing preferences for an instance."""

    auto_share: bool = True
    require_approval: bool = False
    federation_scope: FederationScope = FederationScope.ALL
    allowed_domains: list[str] = Field(default_factory=list)
    blocked_domains: list[str] = Field(default_factory=list)

    @field_validator("allowed_domains", "blocked_domains")
    @classmethod
    def _normalize_domains(cls, value: list[str] | None) -> list[str] | None:
        return _clean_domains(value)

    def allows(self, domain: str | None) -> bool:
        """Evaluate the federation scope for ``domain``.

        An instance without a domain can never appear on a list, so it is
        only allowed under ``all`` and ``blocklist``.
        """
        if self.federation_scope is FederationScope.ALL:
            return True
        candidate = normalize_domain(domain) if domain else None
        if self.federation_scope is FederationScope.ALLOWLIST:
            return candidate is not None and candidate in self.allowed_domains
        return candidate is None or candidate not in self.blocked_domains


class InstancePolicy(BaseModel):
    """Read-only view of everything an instance's policy says."""

    registration_type: RegistrationType = RegistrationType.OPEN
    content_moderation: ContentModeration = Field(default_factory=ContentModeration)
    federation_rules: FederationRules = Field(default_factory=FederationRules)

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_instance(cls, instance: Any) -> InstancePolicy:
        """Build the policy from an ``Instance`` row, filling unset JSON with defaults."""
        return cls(
            registration_type=instance.registration_type or RegistrationType.OPEN,
            content_moderation=ContentModeration.model_validate(
                instance.content_moderation or {}
            ),
            federation_rules=FederationRules.model_validate(instance.federation_rules or {}),
        )


class ContentModerationUpdate(BaseModel):
    """Partial update for :class:`ContentModeration`."""

    enabled: bool | None = None
    keywords: list[str] | None = None

    @field_validator("keywords")
    @classmethod
    def _normalize_keywords(cls, value: list[str] | None) -> list[str] | None:
        return _clean_keywords(value)


class FederationRulesUpdate(BaseModel):
    """Partial update for :class:`FederationRules`."""

    auto_share: bool | None = None
    require_approval: bool | None = None
    federation_scope: FederationScope | None = None
    allowed_domains: list[str] | None = None
    blocked_domains: list[str] | None = None

    @field_validator("allowed_domains", "blocked_domains")
    @classmethod
    def _normalize_domains(cls, value: list[str] | None) -> list[str] | None:
        return _clean_domains(value)


def _clean_optional_domain(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = normalize_domain(value)
    return cleaned or None


class InstanceCreate(BaseModel):
    """Schema for creating a new instance."""

    name: str = Field(..., min_length=1, max_length=200)
    description: str | None = None
    domain: str | None = None
    logo: str | None = None
    registration_type: RegistrationType = RegistrationType.OPEN
    content_moderation: ContentModeration = Field(default_factory=ContentModeration)
    federation_rules: FederationRules = Field(default_factory=FederationRules)

    @field_validator("domain")
    @classmethod
    def _normalize_domain(cls, value: str | None) -> str | None:
        return _clean_optional_domain(value)


class InstanceUpdate(BaseModel):
    """Partial update; fields left out keep their stored values."""

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = None
    domain: str | None = None
    logo: str | None = None
    registration_type: RegistrationType | None = None
    content_moderation: ContentModerationUpdate | None = None
    federation_rules: FederationRulesUpdate | None = None
    active: bool | None = None

    @field_validator("domain")
    @classmethod
    def _normalize_domain(cls, value: str | None) -> str | None:
        return _clean_optional_domain(value)


class InstanceResponse(BaseModel):
    """Schema for instance information returned by the API."""

    id: int
    name: str
    description: str | None
    admin_id: int
    domain: str | None
    logo: str | None
    registration_type: RegistrationType
    content_moderation: ContentModeration
    federation_rules: FederationRules
    active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_validator("content_moderation", "federation_rules", mode="before")
    @classmethod
    def _default_policy(cls, value: object) -> object:
        return {} if value is None else value


class InstanceSummary(BaseModel):
    """Compact instance reference embedded in other responses."""

    id: int
    name: str
    domain: str | None

    model_config = ConfigDict(from_attributes=True)
