"""Attach rated news sources to events."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from src.models import BIAS_RATING_MAX, BIAS_RATING_MIN, Event, Source
from src.services.domain_intelligence import (
    BiasSuggestion,
    DomainIntelligenceService,
)
from src.services.errors import NotFoundError, ValidationError
from src.utils.url_utils import is_valid_url

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {"url", "article_title", "bias_rating", "is_archived"}


def _validate_rating(bias_rating) -> None:
    if (
        not isinstance(bias_rating, int)
        or isinstance(bias_rating, bool)
        or not BIAS_RATING_MIN <= bias_rating <= BIAS_RATING_MAX
    ):
        raise ValidationError(
            "Invalid bias rating",
            details={
                "biasRating": [
                    f"Must be an integer between {BIAS_RATING_MIN} "
                    f"and {BIAS_RATING_MAX}"
                ]
            },
        )


def _validate_url(url: str) -> None:
    if not is_valid_url(url):
        raise ValidationError("Invalid URL", details={"url": ["Must be a valid URL"]})


class SourceService:
    """CRUD for sources; feeds domain intelligence after each insert."""

    def __init__(
        self,
        session: Session,
        domain_service: DomainIntelligenceService,
    ) -> None:
        self.session = session
        self.domain_service = domain_service

    def _get_event(self, event_id: str) -> Event:
        event = self.session.get(Event, event_id)
        if event is None:
            raise NotFoundError("Event", event_id)
        return event

    def _get_source(self, event_id: str, source_id: str) -> Source:
        self._get_event(event_id)
        source = self.session.scalars(
            select(Source).where(Source.id == source_id, Source.event_id == event_id)
        ).first()
        if source is None:
            raise NotFoundError("Source", source_id)
        return source

    def list_sources(self, event_id: str) -> list[Source]:
        self._get_event(event_id)
        stmt = (
            select(Source)
            .where(Source.event_id == event_id)
            .order_by(Source.created_at.desc())
        )
        return list(self.session.scalars(stmt))

    def add_source(
        self,
        event_id: str,
        url: str,
        bias_rating: int,
        *,
        article_title: str | None = None,
    ) -> Source:
        self._get_event(event_id)
        _validate_url(url)
        _validate_rating(bias_rating)

        cleaned_url = url.strip()
        source = Source(
            event_id=event_id,
            url=cleaned_url,
            article_title=article_title,
            bias_rating=bias_rating,
        )
        self.session.add(source)
        self.session.commit()

        # Read nothing from `source` here: a lazy refresh would reopen a
        # transaction and the domain update would only run in a savepoint.
        result = self.domain_service.record_observation(cleaned_url, bias_rating)
        if not result.recorded:
            logger.info(
                "Domain stats not updated for source %s: %s", source.id, result.reason
            )
        return source

    def update_source(self, event_id: str, source_id: str, **changes) -> Source:
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Unknown source fields: {', '.join(sorted(unknown))}"
            )

        source = self._get_source(event_id, source_id)

        if "url" in changes:
            _validate_url(changes["url"])
        if "bias_rating" in changes:
            _validate_rating(changes["bias_rating"])

        for name, value in changes.items():
            setattr(source, name, value)
        self.session.commit()
        return source

    def delete_source(self, event_id: str, source_id: str) -> None:
        source = self._get_source(event_id, source_id)
        self.session.delete(source)
        self.session.commit()

    def suggest_for_url(self, url: str) -> BiasSuggestion:
        return self.domain_service.suggest_bias_rating(url)
