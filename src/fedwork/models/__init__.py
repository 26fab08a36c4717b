# src/fedwork/models/__init__.py
"""SQLAlchemy models for the Fedwork application."""

from .activity import ActivityRecord
from .instance import FederationLink, Instance
from .post import Post
from .user import User

__all__ = [
    "ActivityRecord",
    "FederationLink", "Instance",
    "Post",
    "User",
]
