import time
import uuid
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from app.core import ctx

logger = logging.getLogger("app.access")


def _client_ip(request: Request) -> str | None:
    xff = request.headers.get("x-forwarded-for")
    return xff.split(",")[0].strip() if xff else (request.client.host if request.client else None)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Binds request id, route, client ip and the redis client for audit spans, echoes the
    request id back in ``header_name`` and writes one access log line per request.
    """

    def __init__(self, app, header_name: str = "X-Request-ID"):
        super().__init__(app)
        self.header_name = header_name

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(self.header_name) or uuid.uuid4().hex
        tokens = ctx.bind_request(
            request_id=request_id,
            route=f"{request.method} {request.url.path}",
            client_ip=_client_ip(request),
            redis_client=getattr(request.app.state, "redis", None)
        )
        started = time.perf_counter()
        try:
            response = await call_next(request)
            response.headers.setdefault(self.header_name, request_id)
            logger.info(
                "%s %s -> %d (%.1f ms) rid=%s",
                request.method, request.url.path, response.status_code,
                (time.perf_counter() - started) * 1000, request_id
            )
            return response
        finally:
            ctx.reset(tokens)
