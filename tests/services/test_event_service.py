from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from src.services.admin_period import AdminPeriod
from src.services.errors import NotFoundError, ValidationError
from src.services.event_service import EventService


def test_create_event_classifies_period(event_service):
    event = event_service.create_event(
        "  Tariff announcement  ",
        date(2018, 3, 1),
        description="Steel and aluminium",
    )

    assert event.id
    assert event.title == "Tariff announcement"
    assert event.admin_period == AdminPeriod.PERIOD_A.value
    assert event_service.get_event(event.id) is event


@pytest.mark.parametrize(
    "start, expected",
    [
        (date(2021, 1, 19), "TRUMP_1"),
        (date(2021, 1, 20), "OTHER"),
        (date(2025, 1, 20), "TRUMP_2"),
        (datetime(2025, 1, 20, 2, 0, tzinfo=timezone.utc), "TRUMP_2"),
    ],
)
def test_create_event_period_boundaries(event_service, start, expected):
    event = event_service.create_event("Boundary", start)

    assert event.admin_period == expected
    assert isinstance(event.start_date, date)


def test_create_event_requires_title(event_service):
    with pytest.raises(ValidationError) as excinfo:
        event_service.create_event("   ", date(2020, 1, 1))

    assert excinfo.value.details == {"title": ["Title is required"]}


def test_create_event_rejects_future_start(db_session):
    service = EventService(
        db_session, clock=lambda: datetime(2025, 3, 10, 8, 0, tzinfo=timezone.utc)
    )

    assert service.create_event("Today", date(2025, 3, 10)).admin_period == "TRUMP_2"
    with pytest.raises(ValidationError) as excinfo:
        service.create_event("Tomorrow", date(2025, 3, 11))

    assert excinfo.value.details == {"startDate": ["Date cannot be in the future"]}


def test_create_event_rejects_end_before_start(event_service):
    with pytest.raises(ValidationError) as excinfo:
        event_service.create_event(
            "Backwards", date(2019, 5, 2), end_date=date(2019, 5, 1)
        )

    assert "endDate" in excinfo.value.details


def test_update_event_reclassifies_period(event_service):
    event = event_service.create_event("Moving", date(2019, 6, 1))

    updated = event_service.update_event(event.id, start_date=date(2023, 6, 1))

    assert updated.start_date == date(2023, 6, 1)
    assert updated.admin_period == AdminPeriod.OTHER.value


def test_update_event_title_keeps_period(event_service):
    event = event_service.create_event("Old title", date(2025, 2, 1))

    updated = event_service.update_event(event.id, title="New title")

    assert updated.title == "New title"
    assert updated.admin_period == "TRUMP_2"


def test_update_event_rejects_unknown_fields(event_service):
    event = event_service.create_event("Fixed", date(2019, 6, 1))

    with pytest.raises(ValidationError, match="admin_period"):
        event_service.update_event(event.id, admin_period="OTHER")


def test_update_event_checks_end_date(event_service):
    event = event_service.create_event("Ranged", date(2019, 6, 1))

    with pytest.raises(ValidationError):
        event_service.update_event(event.id, end_date=date(2019, 1, 1))


def test_missing_event_raises_not_found(event_service):
    with pytest.raises(NotFoundError) as excinfo:
        event_service.get_event("does-not-exist")

    assert excinfo.value.status_code == 404
    assert excinfo.value.to_dict() == {
        "success": False,
        "error": {
            "code": "NOT_FOUND",
            "message": "Event with id 'does-not-exist' not found",
        },
    }
