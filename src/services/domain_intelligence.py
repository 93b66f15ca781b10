"""Domain intelligence: per-domain bias statistics and rating suggestions.

Every time a source is attached to an event the service is told about the
source's URL and bias rating, and keeps a ``domains`` row up to date. When a
new source is being entered it can suggest a bias rating for the URL based on
what has been recorded for that domain before.

Domain averages are always re-aggregated from the stored sources rather than
maintained as a running mean, so edits and deletions of individual sources
are reflected the next time the domain is touched.

This is enrichment data. None of the public methods raise: failures are
logged and reported through the returned value objects so the caller's
primary action (creating a source) is never blocked.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_FLOOR, ROUND_HALF_UP, Decimal

from src import config
from src.models import BIAS_RATING_MAX, BIAS_RATING_MIN
from src.services.domain_repository import (
    SORT_COLUMNS,
    DomainMatchStrategy,
    DomainRepository,
    DomainStats,
)
from src.services.errors import InvalidDomainError
from src.utils.confidence import confidence_for_sample_size
from src.utils.url_utils import extract_domain_from_url, normalize_domain

logger = logging.getLogger(__name__)

__all__ = [
    "BiasSuggestion",
    "DomainIntelligenceService",
    "DomainMatchStrategy",
    "DomainStats",
    "ObservationResult",
    "RecalculationSummary",
]


@dataclass(frozen=True)
class ObservationResult:
    """Outcome of :meth:`DomainIntelligenceService.record_observation`.

    ``recorded`` is False when the observation was skipped; ``reason`` then
    says why (``invalid_url``, ``invalid_rating`` or ``storage_error``).
    """

    recorded: bool
    domain: str | None = None
    created: bool = False
    stats: DomainStats | None = None
    reason: str | None = None


@dataclass(frozen=True)
class BiasSuggestion:
    suggested_bias: float | None
    confidence: float
    domain_stats: DomainStats | None

    @classmethod
    def empty(cls) -> "BiasSuggestion":
        return cls(suggested_bias=None, confidence=0.0, domain_stats=None)

    def to_dict(self) -> dict[str, object]:
        return {
            "suggestedBias": self.suggested_bias,
            "confidence": self.confidence,
            "domainStats": (
                self.domain_stats.to_dict() if self.domain_stats else None
            ),
        }


@dataclass(frozen=True)
class RecalculationSummary:
    updated: int = 0
    deleted: int = 0
    failed: bool = False


def _utcnow() -> datetime:
    return datetime.utcnow()


def round_average(value: float | None) -> Decimal | None:
    """Round a mean bias to the two decimals stored on the domain row."""
    if value is None:
        return None
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def round_suggestion(value: float) -> float:
    """Round to one decimal, halves going up (``-0.25`` -> ``-0.2``)."""
    scaled = Decimal(str(value)) * 10 + Decimal("0.5")
    return float(scaled.to_integral_value(rounding=ROUND_FLOOR) / 10)


def _is_valid_rating(value: object) -> bool:
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and BIAS_RATING_MIN <= value <= BIAS_RATING_MAX
    )


class DomainIntelligenceService:
    """Track source domains and suggest bias ratings for new sources."""

    def __init__(
        self,
        repository: DomainRepository,
        *,
        match_strategy: DomainMatchStrategy | str | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.repository = repository
        self.match_strategy = DomainMatchStrategy(
            match_strategy or config.DOMAIN_MATCH_STRATEGY
        )
        self.clock = clock

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def record_observation(self, url: str, bias_rating: int) -> ObservationResult:
        """Fold a newly stored source into its domain's statistics.

        Call this after the source row has been committed. A first sighting
        creates the domain with the given rating; later sightings recompute
        the count and average from all matching sources and bump the usage
        counter.
        """
        try:
            domain = extract_domain_from_url(url)
        except InvalidDomainError as exc:
            logger.debug("Skipping domain observation for %r: %s", url, exc)
            return ObservationResult(recorded=False, reason="invalid_url")

        if not _is_valid_rating(bias_rating):
            logger.warning(
                "Skipping domain observation for %s: bias rating %r out of range",
                domain,
                bias_rating,
            )
            return ObservationResult(
                recorded=False, domain=domain, reason="invalid_rating"
            )

        now = self.clock()
        try:
            with self.repository.transaction():
                if self.repository.get(domain) is None:
                    stats = self.repository.create(
                        domain,
                        total_sources=1,
                        avg_bias_rating=round_average(bias_rating),
                        usage_frequency=1,
                        now=now,
                    )
                    created = True
                else:
                    total, average = self.repository.aggregate_sources(
                        domain, self.match_strategy
                    )
                    stats = self.repository.update(
                        domain,
                        total_sources=total,
                        avg_bias_rating=round_average(average) if total else None,
                        last_used=now,
                        usage_increment=1,
                    )
                    created = False
        except Exception:
            logger.error(
                "Failed to record source addition for %s", domain, exc_info=True
            )
            return ObservationResult(
                recorded=False, domain=domain, reason="storage_error"
            )

        return ObservationResult(
            recorded=True, domain=domain, created=created, stats=stats
        )

    def recalculate(self, domain: str) -> DomainStats | None:
        """Rebuild one domain's statistics from the stored sources.

        Deletes the row and returns None when no sources match any more.
        """
        try:
            normalized = normalize_domain(domain)
        except InvalidDomainError as exc:
            logger.warning("Cannot recalculate %r: %s", domain, exc)
            return None

        try:
            with self.repository.transaction():
                return self._recalculate(normalized)
        except Exception:
            logger.error(
                "Failed to recalculate domain stats for %s",
                normalized,
                exc_info=True,
            )
            return None

    def _recalculate(self, domain: str) -> DomainStats | None:
        total, average = self.repository.aggregate_sources(
            domain, self.match_strategy
        )
        if total == 0:
            self.repository.delete(domain)
            return None

        now = self.clock()
        if self.repository.get(domain) is None:
            return self.repository.create(
                domain,
                total_sources=total,
                avg_bias_rating=round_average(average),
                usage_frequency=total,
                now=now,
            )
        return self.repository.update(
            domain,
            total_sources=total,
            avg_bias_rating=round_average(average),
            last_used=now,
        )

    def recalculate_all(self) -> RecalculationSummary:
        """Rebuild every domain referenced by a source and drop orphans.

        Scans the whole sources table; meant for maintenance runs after bulk
        edits, not for request handling.
        """
        updated = 0
        deleted = 0
        try:
            with self.repository.transaction():
                referenced: set[str] = set()
                for url in self.repository.iter_source_urls():
                    try:
                        referenced.add(extract_domain_from_url(url))
                    except InvalidDomainError:
                        continue

                for domain in sorted(referenced):
                    if self._recalculate(domain) is None:
                        deleted += 1
                    else:
                        updated += 1

                for domain in self.repository.list_domain_keys():
                    if domain not in referenced:
                        self.repository.delete(domain)
                        deleted += 1
        except Exception:
            logger.error("Failed to recalculate all domain stats", exc_info=True)
            return RecalculationSummary(failed=True)

        logger.info(
            "Recalculated domain stats: %d updated, %d deleted", updated, deleted
        )
        return RecalculationSummary(updated=updated, deleted=deleted)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_domain_stats(self, domain: str) -> DomainStats | None:
        try:
            return self.repository.get(normalize_domain(domain))
        except InvalidDomainError:
            return None
        except Exception:
            logger.error("Failed to get domain stats for %s", domain, exc_info=True)
            return None

    def get_domain_stats_from_url(self, url: str) -> DomainStats | None:
        try:
            domain = extract_domain_from_url(url)
        except InvalidDomainError:
            return None
        return self.get_domain_stats(domain)

    def suggest_bias_rating(self, url: str) -> BiasSuggestion:
        """Suggest a bias rating for ``url`` from its domain's history.

        Confidence grows with the number of sources behind the average:
        0.3 up to 2, 0.6 up to 5, 0.8 up to 10 and 0.95 beyond that.
        """
        stats = self.get_domain_stats_from_url(url)
        if stats is None or stats.avg_bias_rating is None:
            return BiasSuggestion.empty()

        return BiasSuggestion(
            suggested_bias=round_suggestion(stats.avg_bias_rating),
            confidence=confidence_for_sample_size(stats.total_sources),
            domain_stats=stats,
        )

    def list_domains(
        self,
        *,
        limit: int | None = None,
        offset: int = 0,
        sort_by: str = "last_used",
    ) -> tuple[list[DomainStats], int]:
        """Return a page of tracked domains and the total number tracked."""
        if sort_by not in SORT_COLUMNS:
            sort_by = "last_used"
        limit = config.DOMAIN_LIST_PAGE_SIZE if limit is None else limit

        try:
            total = self.repository.count()
            domains = self.repository.list_page(
                limit=limit, offset=offset, sort_by=sort_by
            )
        except Exception:
            logger.error("Failed to list domains", exc_info=True)
            return [], 0
        return domains, total
