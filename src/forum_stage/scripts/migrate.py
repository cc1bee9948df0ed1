# src/forum_stage/scripts/migrate.py
"""Apply the Alembic migrations to the configured database."""
from __future__ import annotations

import logging
import os

from alembic import command
from alembic.config import Config

from forum_stage.core.settings import settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..", "..", "migrations")
)


def build_config(database_url: str | None = None) -> Config:
    """Return an Alembic config pointing at the project's migrations folder."""
    cfg = Config()
    cfg.set_main_option("script_location", MIGRATIONS_DIR)
    cfg.set_main_option("sqlalchemy.url", database_url or settings.database_url_sync)
    return cfg


def run_upgrade_head(database_url: str | None = None) -> None:
    """Upgrade the database schema to the latest revision."""
    logger.info("Upgrading schema in %s", MIGRATIONS_DIR)
    command.upgrade(build_config(database_url), "head")


if __name__ == "__main__":
    logging.basicConfig(level=settings.log_level.upper())
    run_upgrade_head()
