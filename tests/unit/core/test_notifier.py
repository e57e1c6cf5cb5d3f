import pytest
from app.core.notifier import InMemoryEventPublisher, NoOpEventPublisher, RedisEventPublisher, build_publisher, \
    notify, TICKET_PURCHASED, TICKET_WAITLISTED


@pytest.mark.asyncio
async def test_in_memory_publisher_fans_out_to_every_subscriber():
    publisher = InMemoryEventPublisher(buffer_size=5)

    async with publisher.subscribe() as first, publisher.subscribe() as second:
        assert publisher.subscriber_count == 2
        await publisher.publish(TICKET_PURCHASED, {"ticketTypeId": 1, "ticketId": 7})

        expected = {"event": TICKET_PURCHASED, "payload": {"ticketTypeId": 1, "ticketId": 7}}
        assert first.receive_nowait() == expected
        assert second.receive_nowait() == expected

    assert publisher.subscriber_count == 0


@pytest.mark.asyncio
async def test_in_memory_publisher_drops_messages_for_full_subscriber():
    publisher = InMemoryEventPublisher(buffer_size=1)

    async with publisher.subscribe() as stream:
        await publisher.publish(TICKET_PURCHASED, {"ticketId": 1})
        await publisher.publish(TICKET_PURCHASED, {"ticketId": 2})

        assert stream.receive_nowait()["payload"] == {"ticketId": 1}
        assert stream.statistics().current_buffer_used == 0


@pytest.mark.asyncio
async def test_in_memory_publisher_without_subscribers_is_noop():
    publisher = InMemoryEventPublisher()

    await publisher.publish(TICKET_WAITLISTED, {"ticketId": 1})

    assert publisher.subscriber_count == 0


@pytest.mark.asyncio
async def test_noop_publisher_records_and_yields_nothing():
    publisher = NoOpEventPublisher()

    await publisher.publish(TICKET_WAITLISTED, {"ticketTypeId": 3, "ticketId": 9})

    assert publisher.published == [(TICKET_WAITLISTED, {"ticketTypeId": 3, "ticketId": 9})]
    async with publisher.subscribe() as stream:
        assert [m async for m in stream] == []


@pytest.mark.asyncio
async def test_redis_publisher_publishes_json_on_channel(mocker):
    redis_client = mocker.Mock()
    redis_client.publish = mocker.AsyncMock()
    publisher = RedisEventPublisher(redis_client, channel="tickets")

    await publisher.publish(TICKET_PURCHASED, {"ticketId": 4})

    redis_client.publish.assert_awaited_once_with("tickets", '{"event": "ticketPurchased", "payload": {"ticketId": 4}}')


@pytest.mark.parametrize(
    "backend, redis_client, expected",
    [
        ("memory", None, InMemoryEventPublisher),
        ("noop", None, NoOpEventPublisher),
        ("redis", None, InMemoryEventPublisher),
        ("redis", object(), RedisEventPublisher),
    ]
)
def test_build_publisher_picks_backend(backend, redis_client, expected):
    assert isinstance(build_publisher(backend, redis_client), expected)


@pytest.mark.asyncio
async def test_notify_swallows_publisher_failure(mocker):
    publisher = mocker.Mock()
    publisher.publish = mocker.AsyncMock(side_effect=RuntimeError("socket closed"))
    log_spy = mocker.patch("app.core.notifier.logger.exception")

    await notify(publisher, TICKET_PURCHASED, {"ticketId": 1})

    publisher.publish.assert_awaited_once()
    log_spy.assert_called_once()


@pytest.mark.asyncio
async def test_notify_without_publisher_does_nothing():
    await notify(None, TICKET_PURCHASED, {"ticketId": 1})
