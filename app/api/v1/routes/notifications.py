import logging
from typing import Annotated
import anyio
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from app.core.dependencies.auth import decode_access_token
from app.core.notifier import EventPublisher, get_ws_publisher
from app.domain.exceptions import Unauthorized

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.websocket("/ws")
async def notifications_ws(
        websocket: WebSocket,
        publisher: Annotated[EventPublisher, Depends(get_ws_publisher)],
        token: Annotated[str | None, Query()] = None
):
    """
    Streams ``{"event", "payload"}`` messages for ticket purchases and waitlist joins.
    Authenticate with ``?token=<access token>``; clients only listen.
    """
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Missing token")
        return
    try:
        payload = decode_access_token(token)
    except Unauthorized:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Invalid token")
        return

    await websocket.accept()
    logger.debug("Notification listener connected user=%s", payload.sub)

    async with publisher.subscribe() as stream, anyio.create_task_group() as tg:
        async def _forward() -> None:
            try:
                async for message in stream:
                    await websocket.send_json(message)
            except WebSocketDisconnect:
                logger.debug("Notification listener gone while sending user=%s", payload.sub)
            tg.cancel_scope.cancel()

        tg.start_soon(_forward)
        try:
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            logger.debug("Notification listener disconnected user=%s", payload.sub)
        finally:
            tg.cancel_scope.cancel()
