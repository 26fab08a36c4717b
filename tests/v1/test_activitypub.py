# mypy: ignore-errors
"""Tests for the ActivityPub endpoints."""

from fastapi import status

from fedwork.models import ActivityRecord, Post

ACTIVITY_JSON = "application/activity+json"


def test_get_actor(client, test_user) -> None:
    response = client.get(f"/activitypub/actor/{test_user.id}")
    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"].startswith(ACTIVITY_JSON)
    data = response.json()
    assert data["id"] == f"https://fed.test/activitypub/actor/{test_user.id}"
    assert data["type"] == "Person"
    assert data["preferredUsername"] == "alice"
    assert data["inbox"] == f"{data['id']}/inbox"


def test_get_unknown_actor(client) -> None:
    response = client.get("/activitypub/actor/99999")
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_follow_delivered_to_admin_inbox(client, db_session, make_user, make_instance) -> None:
    admin = make_user(id=42, username="dinah", email="dinah@example.com")
    receiving = make_instance(admin, id=7, name="Cat House", domain="cats.example")
    follow = {
        "type": "Follow",
        "actor": "https://remote.example/u/1",
        "object": "https://fed.test/activitypub/actor/42",
    }

    response = client.post("/activitypub/actor/42/inbox", json=follow)

    assert response.status_code == status.HTTP_202_ACCEPTED
    assert response.json() == {"message": "Activity accepted"}
    records = db_session.query(ActivityRecord).filter_by(instance_id=receiving.id).all()
    assert len(records) == 1
    assert records[0].type == "Follow"
    assert records[0].payload == follow


def test_inbox_accepts_unsupported_and_malformed(client, db_session, test_user, test_instance) -> None:
    url = f"/activitypub/actor/{test_user.id}/inbox"
    announce = client.post(url, json={"type": "Announce", "actor": "https://r.example/u/2"})
    garbage = client.post(url, content=b"{not json", headers={"Content-Type": "application/json"})

    assert announce.status_code == status.HTTP_202_ACCEPTED
    assert garbage.status_code == status.HTTP_202_ACCEPTED
    types = sorted(record.type for record in db_session.query(ActivityRecord).all())
    assert types == ["Announce", "Unknown"]
    stored = db_session.query(ActivityRecord).filter_by(type="Unknown").one()
    assert stored.payload == "{not json"


def test_inbox_acknowledges_failing_handler(mocker, client, test_user, test_instance) -> None:
    mocker.patch(
        "fedwork.services.inbox.InboxProcessor._handle_like",
        side_effect=RuntimeError("handler exploded"),
    )
    response = client.post(
        f"/activitypub/actor/{test_user.id}/inbox",
        json={"type": "Like", "actor": "https://r.example/u/2", "object": "https://fed.test/x"},
    )
    assert response.status_code == status.HTTP_202_ACCEPTED


def test_inbox_for_unknown_user(client) -> None:
    response = client.post("/activitypub/actor/99999/inbox", json={"type": "Follow"})
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_inbox_for_user_without_instances(client, db_session, other_user) -> None:
    response = client.post(
        f"/activitypub/actor/{other_user.id}/inbox",
        json={"type": "Follow", "actor": "https://r.example/u/2"},
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert db_session.query(ActivityRecord).count() == 0


def test_instance_shared_inbox(client, db_session, test_instance) -> None:
    response = client.post(
        f"/activitypub/instances/{test_instance.id}/inbox",
        json={"type": "Like", "actor": "https://r.example/u/2", "object": "https://fed.test/x"},
    )
    assert response.status_code == status.HTTP_202_ACCEPTED
    assert db_session.query(ActivityRecord).filter_by(instance_id=test_instance.id).count() == 1


def test_instance_shared_inbox_inactive(client, db_session, test_instance) -> None:
    test_instance.active = False
    db_session.flush()
    response = client.post(
        f"/activitypub/instances/{test_instance.id}/inbox",
        json={"type": "Like", "actor": "https://r.example/u/2"},
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_outbox(client, db_session, test_user) -> None:
    db_session.add(Post(user_id=test_user.id, content="hello fediverse"))
    db_session.flush()

    response = client.get(f"/activitypub/actor/{test_user.id}/outbox")
    assert response.status_code == status.HTTP_200_OK
    assert response.headers["content-type"].startswith(ACTIVITY_JSON)
    data = response.json()
    assert data["type"] == "OrderedCollection"
    assert data["totalItems"] == 1
    assert data["orderedItems"][0]["object"]["content"] == "hello fediverse"


def test_outbox_unknown_user(client) -> None:
    assert client.get("/activitypub/actor/99999/outbox").status_code == status.HTTP_404_NOT_FOUND


def test_inbox_accepts_unparseable_actor(client, db_session, test_user, test_instance) -> None:
    follow = {
        "type": "Follow",
        "actor": "https://[remote.example/u/1",
        "object": f"https://fed.test/activitypub/actor/{test_user.id}",
    }

    response = client.post(f"/activitypub/actor/{test_user.id}/inbox", json=follow)

    assert response.status_code == status.HTTP_202_ACCEPTED
    record = db_session.query(ActivityRecord).filter_by(instance_id=test_instance.id).one()
    assert record.actor_uri == "https://[remote.example/u/1"
    assert record.actor_id is None


def test_inbox_keeps_nan_body_as_text(client, db_session, test_instance) -> None:
    body = '{"type": "Like", "actor": "https://remote.example/u/1", "object": "x", "score": NaN}'

    response = client.post(
        f"/activitypub/instances/{test_instance.id}/inbox",
        content=body,
        headers={"content-type": "application/activity+json"},
    )

    assert response.status_code == status.HTTP_202_ACCEPTED
    record = db_session.query(ActivityRecord).filter_by(instance_id=test_instance.id).one()
    assert record.type == "Unknown"
    assert record.payload == body
