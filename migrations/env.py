"""Alembic environment for the forum schema."""
from __future__ import annotations

from alembic import context
from sqlalchemy import create_engine, pool

from forum_stage.core.settings import settings
from forum_stage.db.session import Base

config = context.config
target_metadata = Base.metadata


def database_url() -> str:
    """Return the URL handed over by ``build_config``, else the configured database."""
    return config.get_main_option("sqlalchemy.url") or settings.database_url_sync


def run_migrations_offline() -> None:
    """Emit the migration SQL without connecting."""
    context.configure(
        url=database_url(),
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply the migrations over a dedicated connection."""
    url = database_url()
    connectable = create_engine(url, poolclass=pool.NullPool)

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            # SQLite can only alter tables by copying them.
            render_as_batch=url.startswith("sqlite"),
        )

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
