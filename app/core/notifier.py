"""
Real-time ticket notifications.

Allocation services receive an ``EventPublisher`` and call ``notify`` after a purchase or
waitlist join. Messages are cache-invalidation hints for dashboards: listeners re-fetch
authoritative state from the query endpoints. Delivery is best-effort with no persistence.
"""
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping, Protocol
from anyio import WouldBlock, BrokenResourceError, ClosedResourceError, create_memory_object_stream
from anyio.streams.memory import MemoryObjectReceiveStream, MemoryObjectSendStream
from fastapi import Request, WebSocket
from app.core.config import NOTIFIER_BACKEND, NOTIFIER_CHANNEL, NOTIFIER_BUFFER_SIZE

logger = logging.getLogger(__name__)

TICKET_PURCHASED = "ticketPurchased"
TICKET_WAITLISTED = "ticketWaitlisted"


class EventPublisher(Protocol):
    async def publish(self, event: str, payload: Mapping[str, Any]) -> None:
        ...

    def subscribe(self) -> Any:
        """Async context manager yielding an async iterator of ``{"event", "payload"}`` messages."""
        ...

    async def aclose(self) -> None:
        ...


class InMemoryEventPublisher:
    """Single-process fan-out; each subscriber owns a bounded buffer and loses messages when it is full."""

    def __init__(self, buffer_size: int = NOTIFIER_BUFFER_SIZE):
        self._buffer_size = buffer_size
        self._subscribers: list[tuple[MemoryObjectSendStream[dict], MemoryObjectReceiveStream[dict]]] = []

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self, event: str, payload: Mapping[str, Any]) -> None:
        message = {"event": event, "payload": dict(payload)}
        delivered = dropped = 0
        for send_stream, _ in list(self._subscribers):
            try:
                send_stream.send_nowait(message)
                delivered += 1
            except WouldBlock:
                dropped += 1
            except (BrokenResourceError, ClosedResourceError):
                dropped += 1
        if dropped:
            logger.warning("Notification %s dropped for %d slow subscriber(s)", event, dropped)
        logger.debug("Notification %s delivered=%d dropped=%d", event, delivered, dropped)

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[MemoryObjectReceiveStream[dict]]:
        send_stream, receive_stream = create_memory_object_stream[dict](max_buffer_size=self._buffer_size)
        pair = (send_stream, receive_stream)
        self._subscribers.append(pair)
        try:
            yield receive_stream
        finally:
            self._subscribers.remove(pair)
            await send_stream.aclose()
            await receive_stream.aclose()

    async def aclose(self) -> None:
        for send_stream, _ in self._subscribers:
            await send_stream.aclose()
        self._subscribers.clear()


class RedisEventPublisher:
    """Cross-process fan-out over Redis pub/sub."""

    def __init__(self, redis_client, channel: str = NOTIFIER_CHANNEL):
        self._redis = redis_client
        self._channel = channel

    async def publish(self, event: str, payload: Mapping[str, Any]) -> None:
        message = json.dumps({"event": event, "payload": dict(payload)}, default=str)
        await self._redis.publish(self._channel, message)

    async def _listen(self, pubsub) -> AsyncIterator[dict]:
        async for raw in pubsub.listen():
            if raw.get("type") != "message":
                continue
            try:
                yield json.loads(raw["data"])
            except (TypeError, ValueError):
                logger.warning("Skipping malformed notification on %s", self._channel)

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[AsyncIterator[dict]]:
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self._channel)
        try:
            yield self._listen(pubsub)
        finally:
            await pubsub.unsubscribe(self._channel)
            await pubsub.aclose()

    async def aclose(self) -> None:
        return None


class NoOpEventPublisher:
    def __init__(self):
        self.published: list[tuple[str, dict]] = []

    async def publish(self, event: str, payload: Mapping[str, Any]) -> None:
        self.published.append((event, dict(payload)))

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[AsyncIterator[dict]]:
        async def _empty():
            return
            yield

        yield _empty()

    async def aclose(self) -> None:
        return None


def build_publisher(backend: str = NOTIFIER_BACKEND, redis_client=None) -> EventPublisher:
    if backend == "redis":
        if redis_client is None:
            logger.warning("NOTIFIER_BACKEND=redis but Redis is unavailable - using in-memory notifications")
            return InMemoryEventPublisher()
        return RedisEventPublisher(redis_client)
    if backend == "noop":
        return NoOpEventPublisher()
    return InMemoryEventPublisher()


async def notify(publisher: EventPublisher | None, event: str, payload: Mapping[str, Any]) -> None:
    """Publishes and swallows any failure; notifications never fail the operation that triggered them."""
    if publisher is None:
        return
    try:
        await publisher.publish(event, payload)
    except Exception:
        logger.exception("Failed to publish %s notification", event)


def get_publisher(request: Request) -> EventPublisher:
    return request.app.state.publisher


def get_ws_publisher(websocket: WebSocket) -> EventPublisher:
    return websocket.app.state.publisher
