# src/agora/scripts/migrate.py
"""Apply all pending Alembic migrations to the configured database."""
from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from agora.core.logging import configure_logging
from agora.core.settings import settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parents[3] / "migrations"


def build_config() -> Config:
    """Return an Alembic config pointed at the project's migrations folder."""
    cfg = Config(str(MIGRATIONS_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", settings.database_url_sync)
    return cfg


def run_upgrade_head() -> None:
    logger.info("Upgrading schema to head")
    command.upgrade(build_config(), "head")


if __name__ == "__main__":
    configure_logging()
    run_upgrade_head()
