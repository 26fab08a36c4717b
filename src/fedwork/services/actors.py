"""Actor directory: federation identities for local users.

Every identifier is a pure function of the public base URL and the user id:

    https://<domain>/activitypub/actor/<id>          actor
    https://<domain>/activitypub/actor/<id>/inbox    inbox
    https://<domain>/activitypub/actor/<id>/outbox   outbox

The URLs are written onto the user row the first time the actor is resolved
and are never rewritten afterwards.
"""

from __future__ import annotations

import logging
import mimetypes
import re
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

import httpx
from sqlalchemy.orm import Session

from fedwork.core.settings import settings
from fedwork.models import User
from fedwork.schemas.activitypub import ACTIVITY_JSON_MEDIA_TYPE, ActorDocument, ActorIcon
from fedwork.services.errors import ActorNotFound, UpstreamFetchFailure

logger = logging.getLogger(__name__)

ACTOR_PATH_PREFIX = "/activitypub/actor/"
DEFAULT_ICON_MEDIA_TYPE = "image/jpeg"
HTTP_OK_RANGE = range(200, 300)

_ACTOR_PATH_RE = re.compile(r"^/activitypub/actor/(\d+)/?$")


@dataclass(frozen=True)
class ActorUrls:
    """Deterministic identifiers for one local actor."""

    path: str
    actor_url: str
    inbox_url: str
    outbox_url: str


def _icon_media_type(url: str) -> str:
    guessed, _ = mimetypes.guess_type(urlparse(url).path)
    if guessed and guessed.startswith("image/"):
        return guessed
    return DEFAULT_ICON_MEDIA_TYPE


class ActorDirectory:
    """Maps local users to their actor documents."""

    def __init__(self, base_url: str, *, fetch_timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.fetch_timeout = fetch_timeout

    def actor_urls(self, user_id: int) -> ActorUrls:
        """Return the identifiers for ``user_id``; no I/O."""
        path = f"{ACTOR_PATH_PREFIX}{user_id}"
        actor_url = f"{self.base_url}{path}"
        return ActorUrls(
            path=path,
            actor_url=actor_url,
            inbox_url=f"{actor_url}/inbox",
            outbox_url=f"{actor_url}/outbox",
        )

    def local_user_id(self, actor_uri: str | None) -> int | None:
        """Return the local user id behind ``actor_uri`` or None for remote actors.

        URIs that cannot be parsed are treated as remote.
        """
        if not actor_uri:
            return None
        try:
            parsed = urlparse(actor_uri)
        except ValueError:
            return None
        if f"{parsed.scheme}://{parsed.netloc}" != self.base_url:
            return None
        match = _ACTOR_PATH_RE.match(parsed.path)
        return int(match.group(1)) if match else None

    def ensure_identity(self, db: Session, user: User) -> ActorUrls:
        """Store the actor URLs on ``user`` unless they are already set.

        Stored values always win; a stored value that no longer matches the
        configured base URL is kept and reported.
        """
        computed = self.actor_urls(user.id)
        if user.actor_url is None:
            user.activity_pub_id = computed.path
            user.actor_url = computed.actor_url
            user.inbox_url = computed.inbox_url
            user.outbox_url = computed.outbox_url
            db.add(user)
            db.commit()
            logger.info("Assigned actor %s to user %s", computed.actor_url, user.id)
            return computed

        if user.actor_url != computed.actor_url:
            logger.warning(
                "Stored actor URL %s for user %s differs from %s; keeping stored value",
                user.actor_url,
                user.id,
                computed.actor_url,
            )
        return ActorUrls(
            path=user.activity_pub_id or computed.path,
            actor_url=user.actor_url,
            inbox_url=user.inbox_url or computed.inbox_url,
            outbox_url=user.outbox_url or computed.outbox_url,
        )

    def resolve_actor(self, db: Session, user_id: int) -> ActorDocument:
        """Return the actor document for ``user_id``, assigning its URLs on first use.

        Raises:
            ActorNotFound: If no user has this id.
        """
        user = db.get(User, user_id)
        if user is None:
            raise ActorNotFound(f"User {user_id} not found")

        urls = self.ensure_identity(db, user)
        icon = None
        if user.profile_image_url:
            icon = ActorIcon(
                media_type=_icon_media_type(user.profile_image_url),
                url=user.profile_image_url,
            )
        return ActorDocument(
            id=urls.actor_url,
            preferred_username=user.username,
            name=user.display_name,
            summary=user.bio or None,
            inbox=urls.inbox_url,
            outbox=urls.outbox_url,
            icon=icon,
        )

    async def fetch_remote_actor(
        self,
        actor_url: str,
        *,
        client: httpx.AsyncClient | None = None,
    ) -> dict[str, Any] | None:
        """Fetch a remote actor document.

        Any failure (network, timeout, non-2xx, non-object body) is logged and
        reported as None; nothing is retried.
        """
        try:
            return await self._fetch_actor_document(actor_url, client)
        except UpstreamFetchFailure as exc:
            logger.warning("Actor fetch failed: %s", exc.detail)
            return None

    async def _fetch_actor_document(
        self,
        actor_url: str,
        client: httpx.AsyncClient | None,
    ) -> dict[str, Any]:
        headers = {"Accept": ACTIVITY_JSON_MEDIA_TYPE}
        owns_client = client is None
        http = client or httpx.AsyncClient(timeout=httpx.Timeout(self.fetch_timeout))
        try:
            response = await http.get(actor_url, headers=headers)
        except httpx.HTTPError as exc:
            raise UpstreamFetchFailure(f"{actor_url}: {exc.__class__.__name__}: {exc}") from exc
        finally:
            if owns_client:
                await http.aclose()

        if response.status_code not in HTTP_OK_RANGE:
            raise UpstreamFetchFailure(f"{actor_url}: HTTP {response.status_code}")
        try:
            document = response.json()
        except ValueError as exc:
            raise UpstreamFetchFailure(f"{actor_url}: response is not JSON") from exc
        if not isinstance(document, dict):
            raise UpstreamFetchFailure(f"{actor_url}: actor document is not an object")
        return document


def get_actor_directory() -> ActorDirectory:
    """Build the directory from the configured public base URL."""
    return ActorDirectory(
        settings.public_base_url,
        fetch_timeout=settings.actor_fetch_timeout_seconds,
    )
