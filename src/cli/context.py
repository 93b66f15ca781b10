"""Shared utilities for CLI command modules."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from src import config
from src.models.database import DatabaseManager
from src.services.domain_intelligence import DomainIntelligenceService
from src.services.domain_repository import SqlAlchemyDomainRepository
from src.utils import logging_config


def setup_logging(log_level: str = "INFO") -> None:
    """Configure logging for CLI commands.

    Parameters
    ----------
    log_level:
        Logging level name (e.g., ``"INFO"``).
    """
    logging_config.setup_logging(
        level=log_level,
        force_json=config.LOG_FORMAT_JSON,
        service_name="accountability-cli",
    )


@contextmanager
def domain_service_session(
    database_url: str | None = None,
) -> Iterator[DomainIntelligenceService]:
    """Yield a domain intelligence service bound to a fresh session."""
    with DatabaseManager(database_url) as db:
        with db.get_session() as session:
            yield DomainIntelligenceService(SqlAlchemyDomainRepository(session))
