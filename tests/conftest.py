# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from datetime import UTC, datetime, timedelta
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

from forum_tally.api.v1.dependencies import get_cache as app_get_cache
from forum_tally.core.security import AuthenticatedVoter, create_access_token
from forum_tally.db.session import Base
from forum_tally.db.session import get_db as app_get_session
from forum_tally.main import app as fastapi_app
from forum_tally.models import Category, Comment, Forum, ForumMember, Post, User
from forum_tally.models.forum import FORUM_ROLE_ADMIN
from forum_tally.services.cache import ReadThroughCache
from forum_tally.services.invalidation import InvalidationCoordinator

TEST_DB_URL = "sqlite://"
BASE_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=UTC)

_USER_COUNTER = count(1)


class ManualClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


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
def db_session(engine: Engine) -> Iterator[Session]:
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture()
def cache(clock: ManualClock) -> ReadThroughCache:
    """Cache with a 15 minute default TTL driven by the manual clock."""
    return ReadThroughCache(15 * 60, clock=clock)


@pytest.fixture()
def coordinator(cache: ReadThroughCache) -> InvalidationCoordinator:
    return InvalidationCoordinator(cache, listings_ranked_by_score=True)


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_dependencies(
    app: FastAPI,
    db_session: Session,
    cache: ReadThroughCache,
) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[app_get_cache] = lambda: cache
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(app_get_cache, None)


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


def _make_user(db_session: Session, *, is_admin: bool = False) -> User:
    user = User(username=f"user{next(_USER_COUNTER)}", is_admin=is_admin)
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture()
def test_user(db_session: Session) -> User:
    """Create and return a persisted test user."""
    return _make_user(db_session)


@pytest.fixture()
def other_user(db_session: Session) -> User:
    """Create and return a second persisted user."""
    return _make_user(db_session)


@pytest.fixture()
def admin_user(db_session: Session) -> User:
    """Create and return a system administrator."""
    return _make_user(db_session, is_admin=True)


@pytest.fixture()
def voter(test_user: User) -> AuthenticatedVoter:
    return AuthenticatedVoter(user_id=test_user.uid)


@pytest.fixture()
def other_voter(other_user: User) -> AuthenticatedVoter:
    return AuthenticatedVoter(user_id=other_user.uid)


@pytest.fixture()
def auth_token(test_user: User) -> dict[str, str]:
    """Return authorization headers for the primary test user."""
    token = create_access_token(test_user.uid)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def other_auth_token(other_user: User) -> dict[str, str]:
    """Return authorization headers for the secondary test user."""
    token = create_access_token(other_user.uid)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def admin_auth_token(admin_user: User) -> dict[str, str]:
    token = create_access_token(admin_user.uid)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def category(db_session: Session) -> Category:
    category = Category(name="General")
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture()
def forum(db_session: Session, category: Category, test_user: User) -> Forum:
    """Create a forum administered by the primary test user."""
    forum = Forum(
        title="Test Forum",
        description="Test forum description",
        category_id=category.id,
        created_at=BASE_TIME,
        updated_at=BASE_TIME,
    )
    db_session.add(forum)
    db_session.flush()
    db_session.add(ForumMember(forum_id=forum.id, user_id=test_user.uid, role=FORUM_ROLE_ADMIN))
    db_session.commit()
    db_session.refresh(forum)
    return forum


@pytest.fixture()
def make_post(db_session: Session, forum: Forum, test_user: User) -> Callable[..., Post]:
    """Factory for posts; ``minutes`` offsets ``created_at`` from a fixed base time."""

    def _make_post(
        *,
        minutes: int = 0,
        title: str = "Test Post",
        author: User | None = None,
        forum_id: int | None = None,
    ) -> Post:
        created_at = BASE_TIME + timedelta(minutes=minutes)
        post = Post(
            forum_id=forum_id or forum.id,
            author_id=(author or test_user).uid,
            title=title,
            body=f"Body of {title}",
            created_at=created_at,
            updated_at=created_at,
        )
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post

    return _make_post


@pytest.fixture()
def test_post(make_post: Callable[..., Post]) -> Post:
    return make_post(title="Test Post")


@pytest.fixture()
def make_comment(db_session: Session, test_user: User) -> Callable[..., Comment]:
    def _make_comment(
        post: Post,
        *,
        minutes: int = 0,
        author: User | None = None,
        parent: Comment | None = None,
    ) -> Comment:
        created_at = BASE_TIME + timedelta(minutes=minutes)
        comment = Comment(
            post_id=post.id,
            author_id=(author or test_user).uid,
            parent_comment_id=parent.id if parent else None,
            body="Test comment",
            created_at=created_at,
            updated_at=created_at,
        )
        db_session.add(comment)
        db_session.commit()
        db_session.refresh(comment)
        return comment

    return _make_comment


@pytest.fixture()
def test_comment(test_post: Post, make_comment: Callable[..., Comment]) -> Comment:
    return make_comment(test_post)
