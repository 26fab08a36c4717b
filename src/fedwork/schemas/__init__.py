# src/fedwork/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .activitypub import ActivityRecordResponse, ActorDocument, ActorIcon, InboxAcknowledgement
from .federation import (
    FederationLinkCreate,
    FederationLinkResponse,
    FederationStatusUpdate,
    FederationSummary,
)
from .instance import (
    ContentModeration,
    FederationRules,
    FederationScope,
    InstanceCreate,
    InstancePolicy,
    InstanceResponse,
    InstanceSummary,
    InstanceUpdate,
    RegistrationType,
)
from .post import PostCreate, PostResponse

__all__ = [
    "ActivityRecordResponse", "ActorDocument", "ActorIcon", "InboxAcknowledgement",
    "FederationLinkCreate", "FederationLinkResponse", "FederationStatusUpdate",
    "FederationSummary",
    "ContentModeration", "FederationRules", "FederationScope", "InstanceCreate",
    "InstancePolicy", "InstanceResponse", "InstanceSummary", "InstanceUpdate",
    "RegistrationType",
    "PostCreate", "PostResponse",
]
