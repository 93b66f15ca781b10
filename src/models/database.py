"""Database connection management."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy.orm import sessionmaker

from . import Base, create_database_engine

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages database connections and sessions."""

    def __init__(self, database_url: str | None = None):
        """
        Initialize DatabaseManager.

        Resolution order for the database URL:
        1. explicit ``database_url`` arg
        2. environment variable ``DATABASE_URL`` (allows runtime overrides)
        3. configured value from ``src.config``
        """
        if not database_url:
            database_url = os.getenv("DATABASE_URL")
        if not database_url:
            from src.config import DATABASE_URL as _cfg_db_url

            database_url = _cfg_db_url

        self.database_url = database_url
        self._ensure_sqlite_directory(database_url)

        self.engine = create_database_engine(database_url)
        Base.metadata.create_all(self.engine)
        self._session_factory = sessionmaker(bind=self.engine)

    @staticmethod
    def _ensure_sqlite_directory(database_url: str) -> None:
        prefix = "sqlite:///"
        if not database_url.startswith(prefix):
            return
        path = database_url[len(prefix):]
        if path and path != ":memory:":
            Path(path).parent.mkdir(parents=True, exist_ok=True)

    def get_session(self):
        """Context manager for getting a database session.

        Usage:
            with db_manager.get_session() as session:
                # Use session here
                pass
        """

        @contextmanager
        def session_context():
            session = self._session_factory()
            try:
                yield session
            finally:
                session.close()

        return session_context()

    def close(self):
        """Dispose of the engine and its pooled connections."""
        self.engine.dispose()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
