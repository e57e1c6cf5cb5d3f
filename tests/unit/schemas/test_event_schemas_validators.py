import pytest
from datetime import datetime, timezone, timedelta
from pydantic import ValidationError
from app.domain.events.models import EventStatus
from app.domain.events.schemas import EventCreateDTO, EventUpdateDTO, OrganizerEventsQueryDTO, EventScope

START = datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)


def create_payload(**override):
    data = {
        "name": "  Sample Conference ",
        "location": " Warsaw ",
        "startDate": START.isoformat(),
        "endDate": (START + timedelta(hours=8)).isoformat(),
    }
    data.update(override)
    return data


def test_event_create_passes_validation():
    dto = EventCreateDTO(**create_payload())

    assert dto.name == "Sample Conference"
    assert dto.location == "Warsaw"
    assert dto.status == EventStatus.UPCOMING


def test_event_create_end_not_after_start_raises():
    with pytest.raises(ValidationError) as e:
        EventCreateDTO(**create_payload(endDate=START.isoformat()))
    assert "endDate must be after startDate" in str(e.value)


def test_event_create_short_name_raises():
    with pytest.raises(ValidationError):
        EventCreateDTO(**create_payload(name="  ab  "))


def test_event_update_allows_partial_payload():
    dto = EventUpdateDTO(**{"status": "CANCELLED"})

    assert dto.model_dump(exclude_unset=True) == {"status": EventStatus.CANCELLED}


def test_organizer_query_parses_scope():
    assert OrganizerEventsQueryDTO(scope="ENDED").scope == EventScope.ENDED
