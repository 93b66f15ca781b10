"""Create and update accountability events."""

from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy.orm import Session

from src.models import Event
from src.services.admin_period import classify_period, validate_event_date
from src.services.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {"title", "description", "start_date", "end_date"}


class EventService:
    """Persist events, keeping ``admin_period`` in step with ``start_date``."""

    def __init__(self, session: Session, *, clock=None) -> None:
        self.session = session
        # Overridable "now" for the future-date check
        self.clock = clock

    def _now(self) -> datetime | None:
        return self.clock() if self.clock else None

    def _check_dates(self, start_date: date | datetime, end_date: date | None) -> date:
        start = validate_event_date(start_date, now=self._now(), field="startDate")
        if end_date is not None and end_date < start:
            raise ValidationError(
                "End date cannot be before start date",
                details={"endDate": ["End date cannot be before start date"]},
            )
        return start

    def get_event(self, event_id: str) -> Event:
        event = self.session.get(Event, event_id)
        if event is None:
            raise NotFoundError("Event", event_id)
        return event

    def create_event(
        self,
        title: str,
        start_date: date | datetime,
        *,
        description: str | None = None,
        end_date: date | None = None,
    ) -> Event:
        if not title or not title.strip():
            raise ValidationError(
                "Title is required", details={"title": ["Title is required"]}
            )

        start = self._check_dates(start_date, end_date)
        event = Event(
            title=title.strip(),
            description=description,
            start_date=start,
            end_date=end_date,
            admin_period=classify_period(start).value,
        )
        self.session.add(event)
        self.session.commit()
        logger.info("Created event %s (%s)", event.id, event.admin_period)
        return event

    def update_event(self, event_id: str, **changes) -> Event:
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(
                f"Unknown event fields: {', '.join(sorted(unknown))}"
            )

        event = self.get_event(event_id)
        start = changes.get("start_date", event.start_date)
        end = changes.get("end_date", event.end_date)

        if "start_date" in changes or "end_date" in changes:
            start = self._check_dates(start, end)
            changes["start_date"] = start

        for name, value in changes.items():
            setattr(event, name, value)
        event.admin_period = classify_period(start).value

        self.session.commit()
        return event
