"""Service layer for the federation subsystem."""

from fedwork.services.activities import (
    ActivityCodec,
    ActivityLog,
    ActivityType,
    ParsedActivity,
    get_activity_codec,
)
from fedwork.services.actors import ActorDirectory, get_actor_directory
from fedwork.services.federation import FederationService, is_allowed
from fedwork.services.inbox import InboxProcessor, Outcome, get_inbox_processor
from fedwork.services.instances import InstanceService
from fedwork.services.outbox import build_outbox

__all__ = [
    "ActivityCodec",
    "ActivityLog",
    "ActivityType",
    "ActorDirectory",
    "FederationService",
    "InboxProcessor",
    "InstanceService",
    "Outcome",
    "ParsedActivity",
    "build_outbox",
    "get_activity_codec",
    "get_actor_directory",
    "get_inbox_processor",
    "is_allowed",
]
