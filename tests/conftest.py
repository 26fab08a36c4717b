# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["PUBLIC_DOMAIN"] = "fed.test"
os.environ["PUBLIC_SCHEME"] = "https"

from fedwork.core.security import create_access_token
from fedwork.db.session import Base
from fedwork.db.session import get_db as app_get_session
from fedwork.main import app as fastapi_app
from fedwork.models import Instance, Post, User
from fedwork.services.activities import ActivityCodec, ActivityIdGenerator
from fedwork.services.actors import ActorDirectory
from fedwork.services.inbox import InboxProcessor

TEST_DB_URL = "sqlite://"
BASE_URL = "https://fed.test"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def directory() -> ActorDirectory:
    """Actor directory bound to the test domain."""
    return ActorDirectory(BASE_URL, fetch_timeout=2.0)


@pytest.fixture()
def codec() -> ActivityCodec:
    """Codec with its own id generator so tests do not share sequence state."""
    return ActivityCodec(BASE_URL, ActivityIdGenerator(BASE_URL))


@pytest.fixture()
def inbox_processor(codec: ActivityCodec, directory: ActorDirectory) -> InboxProcessor:
    return InboxProcessor(codec, directory)


def _make_user(db_session: Session, **fields) -> User:
    user = User(**fields)
    db_session.add(user)
    db_session.flush()
    db_session.refresh(user)
    return user


def _make_instance(db_session: Session, admin: User, **fields) -> Instance:
    fields.setdefault("registration_type", "open")
    fields.setdefault("content_moderation", {"enabled": True, "keywords": []})
    fields.setdefault(
        "federation_rules",
        {
            "auto_share": True,
            "require_approval": False,
            "federation_scope": "all",
            "allowed_domains": [],
            "blocked_domains": [],
        },
    )
    instance = Instance(admin_id=admin.id, active=True, **fields)
    db_session.add(instance)
    db_session.flush()
    db_session.refresh(instance)
    return instance


@pytest.fixture()
def test_user(db_session: Session) -> Iterator[User]:
    """Create and return a persisted test user."""
    yield _make_user(
        db_session,
        username="alice",
        email="alice@example.com",
        first_name="Alice",
        last_name="Liddell",
        bio="Curious",
        profile_image_url="https://cdn.example.com/alice.png",
    )


@pytest.fixture()
def other_user(db_session: Session) -> Iterator[User]:
    """Create and return a second persisted user."""
    yield _make_user(db_session, username="bob", email="bob@example.com")


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    token = create_access_token(test_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    token = create_access_token(other_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def test_instance(db_session: Session, test_user: User) -> Iterator[Instance]:
    """An instance administered by the primary test user."""
    yield _make_instance(db_session, test_user, name="Wonderland", domain="wonder.example")


@pytest.fixture()
def other_instance(db_session: Session, other_user: User) -> Iterator[Instance]:
    """An instance administered by the secondary test user."""
    yield _make_instance(db_session, other_user, name="Builders", domain="build.example")


@pytest.fixture()
def make_instance(db_session: Session):
    """Factory for extra instances: ``make_instance(admin, name=..., domain=...)``."""

    def _factory(admin: User, **fields) -> Instance:
        fields.setdefault("name", "Extra")
        return _make_instance(db_session, admin, **fields)

    return _factory


@pytest.fixture()
def make_user(db_session: Session):
    """Factory for extra users with explicit ids."""

    def _factory(**fields) -> User:
        return _make_user(db_session, **fields)

    return _factory


@pytest.fixture()
def test_post(db_session: Session, test_user: User) -> Iterator[Post]:
    """Create a baseline post for tests."""
    post = Post(user_id=test_user.id, content="Test post content")
    db_session.add(post)
    db_session.flush()
    db_session.refresh(post)
    yield post
