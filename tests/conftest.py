# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")

from agora.core.security import create_access_token  # noqa: E402
from agora.db.session import Base  # noqa: E402
from agora.db.session import get_db as app_get_session  # noqa: E402
from agora.main import app as fastapi_app  # noqa: E402
from agora.models import Community, Post, User  # noqa: E402
from agora.services import CommentService, MembershipService, PostService  # noqa: E402

TEST_DB_URL = "sqlite://"

_USER_COUNTER = count(1)


@pytest.fixture()
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
def file_engine(tmp_path) -> Generator[Engine, None, None]:
    """File-backed SQLite engine whose connections are independent of each other."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'agora.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture()
def session_factory(file_engine: Engine) -> sessionmaker[Session]:
    """Open sessions on separate connections, like concurrent requests."""
    return sessionmaker(
        bind=file_engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    """Session shared by the test body and the API under test.

    Services commit their own units of work, so every test gets a fresh
    in-memory database instead of an outer rollback.
    """
    SessionLocal = sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


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
def make_user(db_session: Session) -> Callable[..., User]:
    """Return a factory persisting users with unique usernames."""

    def _make_user(username: str | None = None) -> User:
        user = User(
            username=username or f"user{next(_USER_COUNTER)}",
            password_hash="$2b$12$notarealhashnotarealhashnotarealhashnotarealhash",
        )
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture()
def test_user(make_user: Callable[..., User]) -> User:
    """Create and return the primary test user."""
    return make_user("alice")


@pytest.fixture()
def other_user(make_user: Callable[..., User]) -> User:
    """Create and return a second user."""
    return make_user("bob")


@pytest.fixture()
def third_user(make_user: Callable[..., User]) -> User:
    return make_user("carol")


def auth_headers(user: User) -> dict[str, str]:
    """Return bearer headers for ``user``."""
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def headers_for() -> Callable[[User], dict[str, str]]:
    """Return the bearer-header builder for ad-hoc users."""
    return auth_headers


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    return auth_headers(test_user)


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    return auth_headers(other_user)


@pytest.fixture()
def third_auth_token(third_user: User) -> dict[str, str]:
    return auth_headers(third_user)


@pytest.fixture()
def community(db_session: Session, test_user: User) -> Community:
    """Create a community owned and moderated by ``test_user``."""
    return MembershipService.create_community(
        db_session,
        actor_id=test_user.id,
        name="python",
        description="All things Python",
        rules=[{"title": "Be kind", "description": "No personal attacks"}],
    )


@pytest.fixture()
def test_post(db_session: Session, community: Community, other_user: User) -> Post:
    """Create a post by ``other_user`` in ``community``."""
    return PostService.create_post(
        db_session,
        actor_id=other_user.id,
        title="Hello forum",
        community_name=community.name,
        content="First post",
    )


@pytest.fixture()
def add_comment(db_session: Session) -> Callable[..., int]:
    """Return a helper adding a comment through the service and returning its id."""

    def _add(post: Post, author: User, content: str = "A comment", parent: int | None = None) -> int:
        comment = CommentService.add_comment(
            db_session,
            actor_id=author.id,
            post_id=post.id,
            content=content,
            parent_id=parent,
        )
        return comment.id

    return _add
