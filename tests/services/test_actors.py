# mypy: ignore-errors
"""Tests for the actor directory."""

import httpx
import pytest

from fedwork.models import User
from fedwork.services.actors import ActorDirectory
from fedwork.services.errors import ActorNotFound

BASE_URL = "https://fed.test"


def test_actor_urls_are_derived_from_base_url_and_id(directory) -> None:
    urls = directory.actor_urls(42)
    assert urls.path == "/activitypub/actor/42"
    assert urls.actor_url == f"{BASE_URL}/activitypub/actor/42"
    assert urls.inbox_url == f"{BASE_URL}/activitypub/actor/42/inbox"
    assert urls.outbox_url == f"{BASE_URL}/activitypub/actor/42/outbox"


def test_resolve_actor_builds_person_document(db_session, directory, test_user) -> None:
    actor = directory.resolve_actor(db_session, test_user.id)
    wire = actor.to_wire()

    assert wire["@context"] == [
        "https://www.w3.org/ns/activitystreams",
        "https://w3id.org/security/v1",
    ]
    assert wire["id"] == f"{BASE_URL}/activitypub/actor/{test_user.id}"
    assert wire["type"] == "Person"
    assert wire["preferredUsername"] == "alice"
    assert wire["name"] == "Alice Liddell"
    assert wire["summary"] == "Curious"
    assert wire["inbox"] == f"{wire['id']}/inbox"
    assert wire["outbox"] == f"{wire['id']}/outbox"
    assert wire["icon"] == {
        "type": "Image",
        "mediaType": "image/png",
        "url": "https://cdn.example.com/alice.png",
    }


def test_resolve_actor_without_profile_image_omits_icon(db_session, directory, other_user) -> None:
    wire = directory.resolve_actor(db_session, other_user.id).to_wire()
    assert "icon" not in wire
    assert "summary" not in wire
    assert wire["name"] == "bob"


def test_icon_media_type_defaults_to_jpeg(db_session, directory, make_user) -> None:
    user = make_user(
        username="carol",
        email="carol@example.com",
        profile_image_url="https://cdn.example.com/avatar",
    )
    wire = directory.resolve_actor(db_session, user.id).to_wire()
    assert wire["icon"]["mediaType"] == "image/jpeg"


def test_resolve_actor_persists_urls_once(db_session, directory, test_user) -> None:
    first = directory.resolve_actor(db_session, test_user.id)
    db_session.refresh(test_user)
    assert test_user.actor_url == first.id
    assert test_user.activity_pub_id == f"/activitypub/actor/{test_user.id}"

    second = directory.resolve_actor(db_session, test_user.id)
    assert second.to_wire() == first.to_wire()


def test_stored_actor_url_is_never_rewritten(db_session, test_user) -> None:
    old = ActorDirectory("https://old.example")
    old.resolve_actor(db_session, test_user.id)

    moved = ActorDirectory(BASE_URL)
    actor = moved.resolve_actor(db_session, test_user.id)

    db_session.refresh(test_user)
    assert actor.id == f"https://old.example/activitypub/actor/{test_user.id}"
    assert test_user.actor_url == actor.id


def test_resolve_unknown_actor_raises_not_found(db_session, directory) -> None:
    with pytest.raises(ActorNotFound):
        directory.resolve_actor(db_session, 99999)
    assert db_session.query(User).count() == 0


@pytest.mark.parametrize(
    ("uri", "expected"),
    [
        (f"{BASE_URL}/activitypub/actor/7", 7),
        (f"{BASE_URL}/activitypub/actor/7/", 7),
        (f"{BASE_URL}/activitypub/actor/7/inbox", None),
        ("https://remote.example/activitypub/actor/7", None),
        ("https://remote.example/users/bob", None),
        (None, None),
    ],
)
def test_local_user_id(directory, uri, expected) -> None:
    assert directory.local_user_id(uri) == expected


@pytest.mark.asyncio
async def test_fetch_remote_actor_returns_document(directory) -> None:
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["accept"] = request.headers["accept"]
        return httpx.Response(200, json={"id": str(request.url), "type": "Person"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        document = await directory.fetch_remote_actor(
            "https://remote.example/users/bob", client=client
        )

    assert document == {"id": "https://remote.example/users/bob", "type": "Person"}
    assert seen["accept"] == "application/activity+json"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(404, json={"error": "gone"}),
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json=["not", "an", "object"]),
    ],
)
async def test_fetch_remote_actor_failures_return_none(directory, response) -> None:
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda request: response)) as client:
        assert await directory.fetch_remote_actor("https://remote.example/u", client=client) is None


@pytest.mark.asyncio
async def test_fetch_remote_actor_network_error_returns_none(directory) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        assert await directory.fetch_remote_actor("https://down.example/u", client=client) is None
