from __future__ import annotations

from contextlib import contextmanager
from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy import select

from src.models import Domain, Event
from src.services.domain_intelligence import DomainIntelligenceService
from src.services.domain_repository import (
    DomainMatchStrategy,
    DomainStats,
    SqlAlchemyDomainRepository,
)


@pytest.fixture
def mixed_sources(store_source):
    store_source("https://example.com/a", 2)
    store_source("https://www.example.com/b", -2)
    store_source("https://blog.other.org/about/example.com", 3)
    store_source("https://notexample.com/c", 1)


def test_substring_strategy_counts_path_mentions(domain_repository, mixed_sources):
    total, average = domain_repository.aggregate_sources(
        "example.com", DomainMatchStrategy.SUBSTRING
    )

    assert total == 4
    assert average == pytest.approx(1.0)


def test_hostname_strategy_only_counts_matching_hosts(
    domain_repository, mixed_sources
):
    total, average = domain_repository.aggregate_sources(
        "example.com", DomainMatchStrategy.HOSTNAME
    )

    assert total == 2
    assert average == pytest.approx(0.0)


def test_aggregate_escapes_like_wildcards(domain_repository, store_source):
    store_source("https://my-site.example/a", 1)

    total, average = domain_repository.aggregate_sources(
        "my_site.example", DomainMatchStrategy.SUBSTRING
    )

    assert (total, average) == (0, None)


def test_create_update_delete_round(domain_repository):
    now = datetime(2025, 2, 2, 9, 30)
    with domain_repository.transaction():
        created = domain_repository.create(
            "example.com",
            total_sources=1,
            avg_bias_rating=Decimal("1.00"),
            usage_frequency=1,
            now=now,
        )
    assert created.first_seen == created.last_used == now

    later = datetime(2025, 2, 3, 9, 30)
    with domain_repository.transaction():
        updated = domain_repository.update(
            "example.com",
            total_sources=3,
            avg_bias_rating=Decimal("-0.33"),
            last_used=later,
            usage_increment=1,
        )
    assert updated.total_sources == 3
    assert updated.avg_bias_rating == pytest.approx(-0.33)
    assert updated.usage_frequency == 2
    assert updated.first_seen == now
    assert updated.last_used == later

    assert domain_repository.count() == 1
    assert domain_repository.list_domain_keys() == ["example.com"]

    with domain_repository.transaction():
        assert domain_repository.delete("example.com")
        assert not domain_repository.delete("example.com")
    assert domain_repository.get("example.com") is None


def test_update_unknown_domain_raises(domain_repository):
    with pytest.raises(LookupError):
        domain_repository.update(
            "missing.example",
            total_sources=0,
            avg_bias_rating=None,
            last_used=datetime(2025, 1, 1),
        )


def test_transaction_rolls_back_on_error(domain_repository):
    with pytest.raises(RuntimeError):
        with domain_repository.transaction():
            domain_repository.create(
                "example.com",
                total_sources=1,
                avg_bias_rating=Decimal("1.00"),
                usage_frequency=1,
                now=datetime(2025, 1, 1),
            )
            raise RuntimeError("abort")

    assert domain_repository.get("example.com") is None


def test_iter_source_urls_is_distinct(domain_repository, store_source):
    store_source("https://example.com/a", 1)
    store_source("https://example.com/a", 2)
    store_source("https://example.com/b", 2)

    assert sorted(domain_repository.iter_source_urls()) == [
        "https://example.com/a",
        "https://example.com/b",
    ]


def test_domain_stats_to_dict():
    stats = DomainStats(
        normalized_domain="example.com",
        total_sources=2,
        avg_bias_rating=0.5,
        usage_frequency=3,
        first_seen=datetime(2025, 1, 1),
        last_used=datetime(2025, 1, 2, 8, 0),
    )

    assert stats.to_dict() == {
        "normalizedDomain": "example.com",
        "totalSources": 2,
        "avgBiasRating": 0.5,
        "usageFrequency": 3,
        "firstSeen": "2025-01-01T00:00:00",
        "lastUsed": "2025-01-02T08:00:00",
    }


class InMemoryDomainRepository:
    """Dict-backed repository used to exercise the service without SQL."""

    def __init__(self, sources: list[tuple[str, int]] | None = None) -> None:
        self.rows: dict[str, DomainStats] = {}
        self.sources = list(sources or [])
        self.commits = 0

    @contextmanager
    def transaction(self):
        yield self
        self.commits += 1

    def get(self, domain):
        return self.rows.get(domain)

    def create(self, domain, *, total_sources, avg_bias_rating, usage_frequency, now):
        stats = DomainStats(
            normalized_domain=domain,
            total_sources=total_sources,
            avg_bias_rating=float(avg_bias_rating) if avg_bias_rating is not None else None,
            usage_frequency=usage_frequency,
            first_seen=now,
            last_used=now,
        )
        self.rows[domain] = stats
        return stats

    def update(
        self, domain, *, total_sources, avg_bias_rating, last_used, usage_increment=0
    ):
        stats = self.rows[domain]
        stats.total_sources = total_sources
        stats.avg_bias_rating = (
            float(avg_bias_rating) if avg_bias_rating is not None else None
        )
        stats.last_used = last_used
        stats.usage_frequency += usage_increment
        return stats

    def delete(self, domain):
        return self.rows.pop(domain, None) is not None

    def list_page(self, *, limit, offset, sort_by):
        return list(self.rows.values())[offset : offset + limit]

    def count(self):
        return len(self.rows)

    def list_domain_keys(self):
        return list(self.rows)

    def aggregate_sources(self, domain, strategy):
        ratings = [rating for url, rating in self.sources if domain in url]
        if not ratings:
            return 0, None
        return len(ratings), sum(ratings) / len(ratings)

    def iter_source_urls(self):
        return [url for url, _ in self.sources]


def test_service_works_against_any_repository():
    repository = InMemoryDomainRepository()
    service = DomainIntelligenceService(
        repository,
        match_strategy=DomainMatchStrategy.SUBSTRING,
        clock=lambda: datetime(2025, 4, 1),
    )

    for url, rating in [
        ("https://example.com/1", 3),
        ("https://example.com/2", 2),
        ("https://example.com/3", 2),
    ]:
        repository.sources.append((url, rating))
        service.record_observation(url, rating)

    suggestion = service.suggest_bias_rating("https://example.com/new")
    assert suggestion.suggested_bias == 2.3
    assert suggestion.confidence == 0.6
    assert repository.rows["example.com"].usage_frequency == 3
    assert repository.commits == 3

    repository.sources.clear()
    summary = service.recalculate_all()
    assert (summary.updated, summary.deleted) == (0, 1)
    assert repository.rows == {}


@pytest.mark.parametrize(
    "strategy", [DomainMatchStrategy.SUBSTRING, DomainMatchStrategy.HOSTNAME]
)
def test_aggregate_matches_both_idn_spellings(
    domain_repository, store_source, strategy
):
    store_source("https://bücher.de/a", 3)
    store_source("https://xn--bcher-kva.de/b", 1)

    total, average = domain_repository.aggregate_sources(
        "xn--bcher-kva.de", strategy
    )

    assert total == 2
    assert average == pytest.approx(2.0)


def test_transaction_leaves_caller_changes_uncommitted(db_session, domain_service):
    db_session.add(Event(title="Draft", start_date=date(2020, 1, 1)))
    db_session.flush()

    result = domain_service.record_observation("https://example.com/a", 1)
    assert result.recorded

    db_session.rollback()

    assert db_session.scalars(select(Event)).all() == []
    assert db_session.scalars(select(Domain)).all() == []


def test_transaction_commits_on_idle_session(db_session, domain_service):
    domain_service.record_observation("https://example.com/a", 1)

    db_session.rollback()

    domain = db_session.scalars(select(Domain)).one()
    assert domain.normalized_domain == "example.com"


def test_failed_unit_of_work_keeps_caller_transaction(db_session, domain_repository):
    db_session.add(Event(title="Draft", start_date=date(2020, 1, 1)))
    db_session.flush()

    with pytest.raises(RuntimeError):
        with domain_repository.transaction():
            domain_repository.create(
                "example.com",
                total_sources=1,
                avg_bias_rating=Decimal("1.00"),
                usage_frequency=1,
                now=datetime(2025, 1, 1),
            )
            raise RuntimeError("abort")

    assert domain_repository.get("example.com") is None
    assert [event.title for event in db_session.scalars(select(Event))] == ["Draft"]
