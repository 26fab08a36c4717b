# src/fedwork/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .activities import router as activities_router
from .activitypub import router as activitypub_router
from .federations import router as federations_router
from .instances import router as instances_router
from .posts import router as posts_router
from .users import router as users_router

__all__ = [
    "activitypub_router",
    "activities_router",
    "federations_router",
    "instances_router",
    "posts_router",
    "users_router",
]
