import logging
from fastapi import FastAPI
from app.api.exceptions import register_error_handler
from app.api.v1.routes import (auth, users, events, ticket_types, promos, purchases, waitlist, checkin, reports,
                               notifications)
from app.core.config import LOG_LEVEL, LOG_FORMAT, NOTIFIER_BACKEND
from app.core.middleware.request_context import RequestContextMiddleware
from app.core.notifier import build_publisher
from app.core.redis import create_redis

logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
logger = logging.getLogger("app")


async def lifespan(app: FastAPI):
    r = await create_redis()
    app.state.redis = r
    app.state.publisher = build_publisher(NOTIFIER_BACKEND, r)
    logger.info("Notifications backend: %s", type(app.state.publisher).__name__)
    try:
        yield
    finally:
        await app.state.publisher.aclose()
        if r is not None:
            await r.aclose()


app = FastAPI(lifespan=lifespan)
app.add_middleware(RequestContextMiddleware, header_name="X-Request-ID")
register_error_handler(app)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(events.router)
app.include_router(ticket_types.router)
app.include_router(promos.router)
app.include_router(purchases.router)
app.include_router(waitlist.router)
app.include_router(checkin.router)
app.include_router(reports.router)
app.include_router(notifications.router)
