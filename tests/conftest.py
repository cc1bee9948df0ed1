# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Generator, Iterator
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")

from forum_stage.core.settings import Settings
from forum_stage.db.session import Base
from forum_stage.db.session import get_db as app_get_session
from forum_stage.main import app as fastapi_app
from forum_stage.models import (
    Category,
    CategoryModerator,
    CategoryReader,
    Post,
    Topic,
    User,
)
from forum_stage.services import HookBus, PostService, TopicService

TEST_DB_URL = "sqlite://"
BASE_TIMESTAMP = 1_700_000_000_000

_TEST_SETTINGS_INSTANCE = Settings(_env_file=None)


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
    )
    session = SessionLocal()
    session.begin_nested()

    @event.listens_for(session, "after_transaction_end")
    def restart_savepoint(sess: Session, trans) -> None:  # pragma: no cover - SQLAlchemy internals
        if trans.nested and not getattr(trans._parent, "nested", False):
            session.begin_nested()

    try:
        yield session
    finally:
        event.remove(session, "after_transaction_end", restart_savepoint)
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


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Provide a Settings instance that ignores any local .env file."""
    return _TEST_SETTINGS_INSTANCE


@pytest.fixture()
def hooks(app: FastAPI) -> Iterator[HookBus]:
    """Fresh hook bus, also installed on the app for API tests."""
    previous = getattr(app.state, "hooks", None)
    bus = HookBus()
    app.state.hooks = bus
    try:
        yield bus
    finally:
        app.state.hooks = previous


@pytest.fixture()
def client(app: FastAPI, hooks: HookBus) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture()
def topic_service(db_session: Session, hooks: HookBus, test_settings: Settings) -> TopicService:
    return TopicService.from_session(db_session, hooks, test_settings)


@pytest.fixture()
def post_service(db_session: Session, hooks: HookBus, test_settings: Settings) -> PostService:
    return PostService.from_session(db_session, hooks, test_settings)


class ForumFactory:
    """Creates persisted forum rows with sensible defaults."""

    def __init__(self, session: Session) -> None:
        self.session = session
        self._clock = count(1)

    def tick(self) -> int:
        """Return a timestamp later than every one handed out before."""
        return BASE_TIMESTAMP + next(self._clock) * 1000

    def user(self, username: str, **overrides: Any) -> User:
        user = User(
            username=username,
            userslug=username.lower(),
            picture=f"/uploads/{username.lower()}.png",
            **overrides,
        )
        self.session.add(user)
        self.session.flush()
        return user

    def category(self, name: str = "General", **overrides: Any) -> Category:
        category = Category(name=name, slug=name.lower(), **overrides)
        self.session.add(category)
        self.session.flush()
        return category

    def moderator(self, category: Category, user: User) -> None:
        self.session.add(CategoryModerator(cid=category.cid, uid=user.uid))
        self.session.flush()

    def reader(self, category: Category, user: User) -> None:
        self.session.add(CategoryReader(cid=category.cid, uid=user.uid))
        self.session.flush()

    def topic(
        self,
        category: Category,
        author: User | None = None,
        *,
        title: str = "A topic",
        private: int = 0,
        anonymous: int = 0,
        content: str = "Main post",
        handle: str | None = None,
        **overrides: Any,
    ) -> Topic:
        """Create a topic together with its main post."""
        timestamp = overrides.pop("timestamp", None) or self.tick()
        topic = Topic(
            uid=author.uid if author else 0,
            cid=category.cid,
            title=title,
            slug=title.lower().replace(" ", "-"),
            private=private,
            anonymous=anonymous,
            postcount=0,
            timestamp=timestamp,
            lastposttime=timestamp,
            **overrides,
        )
        self.session.add(topic)
        self.session.flush()
        main = self.post(topic, author, content=content, handle=handle, timestamp=timestamp)
        topic.main_pid = main.pid
        self.session.flush()
        return topic

    def post(
        self,
        topic: Topic,
        author: User | None = None,
        *,
        content: str = "A reply",
        anonymous: int | None = None,
        timestamp: int | None = None,
        **overrides: Any,
    ) -> Post:
        """Create a post; it inherits the topic's anonymous flag unless given."""
        timestamp = timestamp or self.tick()
        post = Post(
            tid=topic.tid,
            uid=author.uid if author else 0,
            content=content,
            timestamp=timestamp,
            anonymous=topic.anonymous if anonymous is None else anonymous,
            **overrides,
        )
        self.session.add(post)
        topic.postcount += 1
        topic.lastposttime = max(topic.lastposttime, timestamp)
        self.session.flush()
        return post


@pytest.fixture()
def forum(db_session: Session) -> ForumFactory:
    return ForumFactory(db_session)

