# src/rideclub/scripts/migrate.py
"""Apply database migrations, or create tables directly for local development."""
from __future__ import annotations

import argparse
import os

from alembic import command
from alembic.config import Config

from rideclub.core.settings import settings
from rideclub.db.session import create_tables

MIGRATIONS_DIR = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..", "..", "migrations")
)


def alembic_config() -> Config:
    cfg = Config()
    cfg.set_main_option("script_location", MIGRATIONS_DIR)
    cfg.set_main_option("sqlalchemy.url", settings.database_url_sync)
    return cfg


def run_upgrade_head() -> None:
    command.upgrade(alembic_config(), "head")


def main() -> None:
    parser = argparse.ArgumentParser(description="Bring the configured database schema up to date")
    parser.add_argument(
        "--create-all",
        action="store_true",
        help="Create tables from the models instead of running Alembic (development only).",
    )
    args = parser.parse_args()
    if args.create_all:
        create_tables()
        print("[migrate] tables created")
    else:
        run_upgrade_head()
        print("[migrate] upgraded to head")


if __name__ == "__main__":
    main()
