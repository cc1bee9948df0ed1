# tests/test_db_session.py
from sqlalchemy import text
from sqlalchemy.orm import Session

from forum_stage.core.settings import Settings
from forum_stage.db import session as db_session_module
from forum_stage.db.session import build_engine, engine_options, get_db


def test_sqlite_engine_is_shared_across_threads() -> None:
    config = Settings(_env_file=None, DATABASE_URL="sqlite:///./forum.db", SQL_DEBUG=True)
    options = engine_options(config)
    assert options == {"echo": True, "connect_args": {"check_same_thread": False}}


def test_server_engine_pings_pooled_connections() -> None:
    config = Settings(_env_file=None, DATABASE_URL="postgresql+psycopg://forum@db/forum")
    assert engine_options(config) == {"echo": False, "pool_pre_ping": True}


def test_testing_database_overrides_url() -> None:
    config = Settings(
        _env_file=None,
        DATABASE_URL="postgresql+psycopg://forum@db/forum",
        TEST_DATABASE_URL="sqlite://",
        USE_TEST_DATABASE=True,
    )
    engine = build_engine(config)
    try:
        assert str(engine.url) == "sqlite://"
        with engine.connect() as connection:
            assert connection.execute(text("select 1")).scalar() == 1
    finally:
        engine.dispose()


def test_get_db_closes_session(mocker) -> None:
    fake = mocker.MagicMock(spec=Session)
    mocker.patch.object(db_session_module, "SessionLocal", return_value=fake)

    dependency = get_db()
    assert next(dependency) is fake
    fake.close.assert_not_called()
    dependency.close()
    fake.close.assert_called_once_with()
