import pytest
import time_machine
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from app.services import event_service
from app.domain.events.models import EventStatus
from app.domain.events.schemas import EventUpdateDTO, PublicEventsQueryDTO, OrganizerEventsQueryDTO, \
    StaffEventsQueryDTO, EventCreateDTO
from app.domain.exceptions import NotFound, InvalidInput
from tests.helper import create_user, session_mock

START = datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)


def _event(mocker, *, event_id=10, organizer=None):
    event = mocker.Mock(
        id=event_id, start_date=START, end_date=START + timedelta(hours=8), location=None,
        cover_image=None, status=EventStatus.UPCOMING, organizer=organizer
    )
    event.name = "Sample Conference"
    return event


@pytest.mark.asyncio
async def test_get_event_missing_raises_not_found(mocker):
    mocker.patch("app.services.event_service.crud.get_event_by_id", new=mocker.AsyncMock(return_value=None))

    with pytest.raises(NotFound) as e:
        await event_service.get_event(mocker.Mock(), 1)

    assert str(e.value) == "Event not found"


@pytest.mark.asyncio
async def test_list_attendee_events_hides_cancelled_and_marks_registration(mocker):
    rows = [
        (_event(mocker, event_id=10), 100, 10, 0, 90, Decimal("19.99")),
        (_event(mocker, event_id=11), 5, 5, 0, 0, Decimal("5.00")),
    ]
    list_spy = mocker.patch(
        "app.services.event_service.crud.list_events_with_totals",
        new=mocker.AsyncMock(return_value=(rows, 2))
    )
    mocker.patch("app.services.event_service.crud.registered_event_ids", new=mocker.AsyncMock(return_value={11}))

    page = await event_service.list_attendee_events(mocker.Mock(), create_user(mocker), PublicEventsQueryDTO())

    assert list_spy.await_args.kwargs["exclude_statuses"] == {EventStatus.CANCELLED}
    first, second = page.items
    assert (first.is_registered, first.has_available_tickets) == (False, True)
    assert (second.is_registered, second.has_available_tickets) == (True, False)
    assert first.location == ""
    assert first.min_ticket_price == Decimal("19.99")


@time_machine.travel("2025-06-10 12:00:00", tick=False)
@pytest.mark.asyncio
@pytest.mark.parametrize("scope, after, before", [
    ("UPCOMING", True, False),
    ("ENDED", False, True),
    (None, False, False),
])
async def test_list_organizer_events_scope_filters(mocker, scope, after, before):
    list_spy = mocker.patch(
        "app.services.event_service.crud.list_events_with_totals",
        new=mocker.AsyncMock(return_value=([], 0))
    )
    user = create_user(mocker, user_id=3, role="ORGANIZER")

    await event_service.list_organizer_events(mocker.Mock(), user, OrganizerEventsQueryDTO(scope=scope))

    kwargs = list_spy.await_args.kwargs
    now = datetime(2025, 6, 10, 12, 0, tzinfo=timezone.utc)
    assert kwargs["organizer_id"] == 3
    assert kwargs["ending_after"] == (now if after else None)
    assert kwargs["ended_before"] == (now if before else None)


@pytest.mark.asyncio
async def test_list_staff_events_includes_organizer_name(mocker):
    organizer = mocker.Mock()
    organizer.name = "Olivia"
    mocker.patch(
        "app.services.event_service.crud.list_events_with_totals",
        new=mocker.AsyncMock(return_value=([(_event(mocker, organizer=organizer), 10, 4, 2, 6, Decimal("1"))], 1))
    )

    page = await event_service.list_staff_events(mocker.Mock(), StaffEventsQueryDTO())

    item = page.items[0]
    assert item.organizer_name == "Olivia"
    assert (item.total_tickets, item.sold_tickets, item.checked_in) == (10, 4, 2)


@pytest.mark.asyncio
async def test_create_event_sets_organizer(mocker, auditspan_stub):
    created = mocker.Mock(id=10)
    create_spy = mocker.patch("app.services.event_service.crud.create_event", new=mocker.AsyncMock(return_value=created))
    schema = EventCreateDTO(**{
        "name": "Sample Conference",
        "startDate": START.isoformat(),
        "endDate": (START + timedelta(hours=8)).isoformat(),
    })

    event = await event_service.create_event(session_mock(mocker), 3, schema)

    assert event is created
    assert create_spy.await_args.args[1]["organizer_id"] == 3
    assert auditspan_stub[0].event_id == 10


@pytest.mark.asyncio
async def test_update_event_end_before_existing_start_raises_invalid_input(mocker):
    update_spy = mocker.patch("app.services.event_service.crud.update_event", new=mocker.AsyncMock())
    schema = EventUpdateDTO(**{"endDate": (START - timedelta(hours=1)).isoformat()})

    with pytest.raises(InvalidInput) as e:
        await event_service.update_event(session_mock(mocker), schema, _event(mocker))

    assert str(e.value) == "endDate must be after startDate"
    update_spy.assert_not_awaited()
