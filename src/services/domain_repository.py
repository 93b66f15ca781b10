"""Storage access for per-domain bias statistics.

The domain intelligence service never talks to SQLAlchemy directly; it is
handed a :class:`DomainRepository`. :class:`SqlAlchemyDomainRepository` is the
production implementation, tests may pass any object with the same shape.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from src.models import Domain, Source
from src.services.errors import InvalidDomainError
from src.utils.url_utils import extract_domain_from_url, to_unicode_domain


class DomainMatchStrategy(str, Enum):
    """How stored sources are attributed to a domain.

    ``SUBSTRING`` counts every source whose URL contains the domain text,
    which also catches URLs that mention the domain in their path.
    ``HOSTNAME`` only counts sources whose normalized host equals the domain.
    """

    SUBSTRING = "substring"
    HOSTNAME = "hostname"


SORT_COLUMNS = {
    "last_used": Domain.last_used,
    "total_sources": Domain.total_sources,
    "avg_bias": Domain.avg_bias_rating,
}


@dataclass
class DomainStats:
    """Snapshot of one ``domains`` row."""

    normalized_domain: str
    total_sources: int
    avg_bias_rating: float | None
    usage_frequency: int
    first_seen: datetime
    last_used: datetime

    @classmethod
    def from_row(cls, row: Domain) -> "DomainStats":
        avg = row.avg_bias_rating
        return cls(
            normalized_domain=row.normalized_domain,
            total_sources=row.total_sources,
            avg_bias_rating=float(avg) if avg is not None else None,
            usage_frequency=row.usage_frequency,
            first_seen=row.first_seen,
            last_used=row.last_used,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "normalizedDomain": self.normalized_domain,
            "totalSources": self.total_sources,
            "avgBiasRating": self.avg_bias_rating,
            "usageFrequency": self.usage_frequency,
            "firstSeen": self.first_seen.isoformat(),
            "lastUsed": self.last_used.isoformat(),
        }


class DomainRepository(Protocol):
    """Storage operations the domain intelligence service relies on."""

    def transaction(self) -> Any: ...

    def get(self, domain: str) -> DomainStats | None: ...

    def create(
        self,
        domain: str,
        *,
        total_sources: int,
        avg_bias_rating: Decimal | None,
        usage_frequency: int,
        now: datetime,
    ) -> DomainStats: ...

    def update(
        self,
        domain: str,
        *,
        total_sources: int,
        avg_bias_rating: Decimal | None,
        last_used: datetime,
        usage_increment: int = 0,
    ) -> DomainStats: ...

    def delete(self, domain: str) -> bool: ...

    def list_page(
        self,
        *,
        limit: int,
        offset: int,
        sort_by: str,
    ) -> list[DomainStats]: ...

    def count(self) -> int: ...

    def list_domain_keys(self) -> list[str]: ...

    def aggregate_sources(
        self,
        domain: str,
        strategy: DomainMatchStrategy,
    ) -> tuple[int, float | None]: ...

    def iter_source_urls(self) -> Iterable[str]: ...


def _mean(ratings: Sequence[int]) -> float | None:
    if not ratings:
        return None
    return sum(ratings) / len(ratings)


def _host_matches(url: str, domain: str) -> bool:
    try:
        return extract_domain_from_url(url) == domain
    except InvalidDomainError:
        return False


class SqlAlchemyDomainRepository:
    """DomainRepository backed by an ORM session."""

    def __init__(self, session: Session) -> None:
        self.session = session

    @contextmanager
    def transaction(self) -> Iterator["SqlAlchemyDomainRepository"]:
        """Run a unit of work, rolling it back and re-raising on failure.

        On an idle session the work is committed. When the caller already
        has a transaction open the work runs in a SAVEPOINT instead, so the
        caller's pending changes are neither committed nor lost here; they
        commit or roll back together with the caller's transaction.
        """
        if self.session.in_transaction():
            with self.session.begin_nested():
                yield self
        else:
            with self.session.begin():
                yield self

    def _get_row(self, domain: str) -> Domain | None:
        return self.session.scalars(
            select(Domain).where(Domain.normalized_domain == domain)
        ).first()

    def get(self, domain: str) -> DomainStats | None:
        row = self._get_row(domain)
        return DomainStats.from_row(row) if row is not None else None

    def create(
        self,
        domain: str,
        *,
        total_sources: int,
        avg_bias_rating: Decimal | None,
        usage_frequency: int,
        now: datetime,
    ) -> DomainStats:
        row = Domain(
            normalized_domain=domain,
            total_sources=total_sources,
            avg_bias_rating=avg_bias_rating,
            usage_frequency=usage_frequency,
            first_seen=now,
            last_used=now,
        )
        self.session.add(row)
        self.session.flush()
        return DomainStats.from_row(row)

    def update(
        self,
        domain: str,
        *,
        total_sources: int,
        avg_bias_rating: Decimal | None,
        last_used: datetime,
        usage_increment: int = 0,
    ) -> DomainStats:
        row = self._get_row(domain)
        if row is None:
            raise LookupError(f"Domain not tracked: {domain}")

        row.total_sources = total_sources
        row.avg_bias_rating = avg_bias_rating
        row.last_used = last_used
        if usage_increment:
            row.usage_frequency = Domain.usage_frequency + usage_increment
        self.session.flush()
        self.session.refresh(row)
        return DomainStats.from_row(row)

    def delete(self, domain: str) -> bool:
        row = self._get_row(domain)
        if row is None:
            return False
        self.session.delete(row)
        self.session.flush()
        return True

    def list_page(
        self,
        *,
        limit: int,
        offset: int,
        sort_by: str,
    ) -> list[DomainStats]:
        column = SORT_COLUMNS.get(sort_by, Domain.last_used)
        stmt = (
            select(Domain)
            .order_by(column.desc(), Domain.normalized_domain)
            .limit(limit)
            .offset(offset)
        )
        return [DomainStats.from_row(row) for row in self.session.scalars(stmt)]

    def count(self) -> int:
        return self.session.scalar(select(func.count(Domain.id))) or 0

    def list_domain_keys(self) -> list[str]:
        return list(self.session.scalars(select(Domain.normalized_domain)))

    def aggregate_sources(
        self,
        domain: str,
        strategy: DomainMatchStrategy,
    ) -> tuple[int, float | None]:
        """Return ``(count, mean bias)`` over sources matching ``domain``."""
        contains = Source.url.contains(domain, autoescape=True)
        # stored URLs keep whatever spelling the user pasted for IDN hosts
        unicode_domain = to_unicode_domain(domain)
        if unicode_domain != domain:
            contains = or_(
                contains, Source.url.contains(unicode_domain, autoescape=True)
            )

        if strategy is DomainMatchStrategy.SUBSTRING:
            total, average = self.session.execute(
                select(func.count(Source.id), func.avg(Source.bias_rating)).where(
                    contains
                )
            ).one()
            return int(total or 0), float(average) if average is not None else None

        # Host comparison happens in Python; the LIKE keeps the scan narrow.
        rows = self.session.execute(
            select(Source.url, Source.bias_rating).where(contains)
        ).all()
        ratings = [rating for url, rating in rows if _host_matches(url, domain)]
        return len(ratings), _mean(ratings)

    def iter_source_urls(self) -> Iterable[str]:
        return self.session.scalars(select(Source.url).distinct())
