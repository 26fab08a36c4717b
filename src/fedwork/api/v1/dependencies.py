"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated, NoReturn

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from fedwork.core.security import decode_access_token
from fedwork.db.session import get_db
from fedwork.models import User
from fedwork.services.activities import ActivityCodec, get_activity_codec
from fedwork.services.actors import ActorDirectory, get_actor_directory
from fedwork.services.errors import FederationError
from fedwork.services.inbox import InboxProcessor, get_inbox_processor

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP Bearer token credentials
        db: Database session

    Returns:
        User object for the authenticated user

    Raises:
        HTTPException: If token is invalid or user not found
    """
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )

    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    return user


def raise_http(exc: FederationError) -> NoReturn:
    """Re-raise a service error as the matching HTTP error."""
    raise HTTPException(status_code=exc.status_code, detail=exc.detail) from exc


# Type aliases for the dependencies endpoints share
CurrentUserDep = Annotated[User, Depends(get_current_user)]
DirectoryDep = Annotated[ActorDirectory, Depends(get_actor_directory)]
CodecDep = Annotated[ActivityCodec, Depends(get_activity_codec)]
InboxDep = Annotated[InboxProcessor, Depends(get_inbox_processor)]
