"""Pytest-wide fixtures and hooks for accountability tracker tests."""

from __future__ import annotations

import os
from datetime import datetime

import pytest
from sqlalchemy.orm import sessionmaker

# Force tests to use SQLite instead of PostgreSQL.
# Set BEFORE any imports of src.config to prevent loading production settings.
if "DATABASE_URL" not in os.environ:
    os.environ["DATABASE_URL"] = "sqlite:///:memory:"
for key in [
    "DATABASE_HOST",
    "DATABASE_PORT",
    "DATABASE_NAME",
    "DATABASE_USER",
    "DATABASE_PASSWORD",
    "DOMAIN_MATCH_STRATEGY",
]:
    os.environ.pop(key, None)

from src.models import Source, create_database_engine, create_tables  # noqa: E402
from src.services.domain_intelligence import DomainIntelligenceService  # noqa: E402
from src.services.domain_repository import SqlAlchemyDomainRepository  # noqa: E402
from src.services.event_service import EventService  # noqa: E402
from src.services.source_service import SourceService  # noqa: E402

FIXED_NOW = datetime(2025, 6, 1, 12, 0, 0)


@pytest.fixture
def engine():
    engine = create_database_engine("sqlite:///:memory:")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(engine):
    Session = sessionmaker(bind=engine)
    session = Session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def domain_repository(db_session):
    return SqlAlchemyDomainRepository(db_session)


@pytest.fixture
def domain_service(domain_repository):
    return DomainIntelligenceService(
        domain_repository,
        match_strategy="substring",
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def event_service(db_session):
    return EventService(db_session)


@pytest.fixture
def source_service(db_session, domain_service):
    return SourceService(db_session, domain_service)


@pytest.fixture
def store_source(db_session):
    """Insert a source row directly, bypassing domain tracking."""

    def _store(url: str, bias_rating: int, **extra) -> Source:
        source = Source(url=url, bias_rating=bias_rating, **extra)
        db_session.add(source)
        db_session.commit()
        return source

    return _store
