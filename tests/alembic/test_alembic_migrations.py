"""Run the Alembic revisions against a throwaway SQLite database."""

from __future__ import annotations

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

from src import config as app_config

PROJECT_ROOT = Path(__file__).parent.parent.parent


@pytest.fixture
def alembic_config(tmp_path, monkeypatch):
    database_url = f"sqlite:///{tmp_path / 'migration.db'}"
    # env.py reads the URL from src.config
    monkeypatch.setattr(app_config, "DATABASE_URL", database_url)

    cfg = Config()
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg, database_url


def test_upgrade_head_creates_tables(alembic_config):
    cfg, database_url = alembic_config

    command.upgrade(cfg, "head")

    engine = create_engine(database_url)
    try:
        inspector = inspect(engine)
        tables = set(inspector.get_table_names())
        assert {"events", "sources", "domains", "alembic_version"} <= tables

        domain_columns = {col["name"] for col in inspector.get_columns("domains")}
        assert domain_columns == {
            "id",
            "normalized_domain",
            "total_sources",
            "avg_bias_rating",
            "usage_frequency",
            "first_seen",
            "last_used",
        }
    finally:
        engine.dispose()


def test_downgrade_base_drops_tables(alembic_config):
    cfg, database_url = alembic_config

    command.upgrade(cfg, "head")
    command.downgrade(cfg, "base")

    engine = create_engine(database_url)
    try:
        tables = set(inspect(engine).get_table_names())
        assert not {"events", "sources", "domains"} & tables
    finally:
        engine.dispose()
