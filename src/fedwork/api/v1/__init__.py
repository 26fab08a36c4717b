# src/fedwork/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    activities_router,
    activitypub_router,
    federations_router,
    instances_router,
    posts_router,
    users_router,
)

__all__ = [
    "activitypub_router",
    "activities_router",
    "federations_router",
    "instances_router",
    "posts_router",
    "users_router",
]
