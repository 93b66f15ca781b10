"""SQLAlchemy database models for the accountability tracker."""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker

Base = declarative_base()

BIAS_RATING_MIN = -3
BIAS_RATING_MAX = 3


class Event(Base):
    """An accountability event (a catalogued political action)."""

    __tablename__ = "events"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    title = Column(String, nullable=False, index=True)
    description = Column(Text)
    start_date = Column(Date, nullable=False, index=True)
    end_date = Column(Date)
    # AdminPeriod value derived from start_date, never set directly by callers
    admin_period = Column(String, nullable=False, default="OTHER", index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(
        DateTime,
        nullable=False,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
    )

    sources = relationship(
        "Source",
        back_populates="event",
        cascade="all, delete-orphan",
    )


class Source(Base):
    """A news article attached to an event, with its perceived bias."""

    __tablename__ = "sources"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String, ForeignKey("events.id"), nullable=True, index=True)
    url = Column(String, nullable=False, index=True)
    article_title = Column(String)
    bias_rating = Column(Integer, nullable=False)
    date_accessed = Column(DateTime, nullable=False, default=datetime.utcnow)
    is_archived = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    event = relationship("Event", back_populates="sources")

    __table_args__ = (
        CheckConstraint(
            f"bias_rating BETWEEN {BIAS_RATING_MIN} AND {BIAS_RATING_MAX}",
            name="ck_sources_bias_rating_range",
        ),
    )


class Domain(Base):
    """Aggregated bias observations for one normalized domain.

    ``avg_bias_rating`` is NULL exactly when ``total_sources`` is zero.
    ``usage_frequency`` only ever increases; it is not recomputed.
    """

    __tablename__ = "domains"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    normalized_domain = Column(String, nullable=False, unique=True, index=True)
    total_sources = Column(Integer, nullable=False, default=0)
    avg_bias_rating = Column(Numeric(3, 2), nullable=True)
    usage_frequency = Column(Integer, nullable=False, default=0)
    first_seen = Column(DateTime, nullable=False, default=datetime.utcnow)
    last_used = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("total_sources >= 0", name="ck_domains_total_sources"),
        CheckConstraint(
            f"avg_bias_rating IS NULL OR avg_bias_rating BETWEEN "
            f"{BIAS_RATING_MIN} AND {BIAS_RATING_MAX}",
            name="ck_domains_avg_bias_range",
        ),
    )


def create_database_engine(database_url: str = "sqlite:///data/accountability.db"):
    """Create SQLAlchemy engine with proper configuration."""
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False, "timeout": 30},
            echo=False,
        )
    else:
        engine = create_engine(
            database_url,
            pool_size=10,
            max_overflow=20,
            pool_timeout=30,
            echo=False,
        )

    return engine


def create_tables(engine):
    """Create all tables in the database."""
    Base.metadata.create_all(engine)


def get_session(engine):
    """Get a database session."""
    Session = sessionmaker(bind=engine)
    return Session()
