from contextvars import ContextVar, Token
from typing import Any

REQUEST_ID_CTX: ContextVar[str | None] = ContextVar("request_id", default=None)
ROUTE_CTX: ContextVar[str | None] = ContextVar("route", default=None)
CLIENT_IP_CTX: ContextVar[str | None] = ContextVar("client_ip", default=None)
REDIS_CTX: ContextVar[Any] = ContextVar("redis", default=None)
AUTH_USER_ID_CTX: ContextVar[int | None] = ContextVar("auth_user_id", default=None)
AUTH_ROLE_CTX: ContextVar[str | None] = ContextVar("auth_role", default=None)

ContextTokens = list[tuple[ContextVar, Token]]


def bind_request(
        *,
        request_id: str,
        route: str,
        client_ip: str | None,
        redis_client: Any = None
) -> ContextTokens:
    """Binds per-request audit context; hand the result to ``reset`` when the request ends."""
    tokens = [
        (REQUEST_ID_CTX, REQUEST_ID_CTX.set(request_id)),
        (ROUTE_CTX, ROUTE_CTX.set(route)),
        (CLIENT_IP_CTX, CLIENT_IP_CTX.set(client_ip)),
    ]
    if redis_client is not None:
        tokens.append((REDIS_CTX, REDIS_CTX.set(redis_client)))
    return tokens


def bind_actor(user_id: int, role: str | None) -> None:
    AUTH_USER_ID_CTX.set(user_id)
    AUTH_ROLE_CTX.set(role)


def reset(tokens: ContextTokens) -> None:
    for var, token in reversed(tokens):
        var.reset(token)


def get_request_id() -> str | None:
    return REQUEST_ID_CTX.get()


def get_route() -> str | None:
    return ROUTE_CTX.get()


def get_client_ip() -> str | None:
    return CLIENT_IP_CTX.get()


def get_redis() -> Any:
    return REDIS_CTX.get()


def get_actor_id() -> int | None:
    return AUTH_USER_ID_CTX.get()


def get_actor_role() -> str | None:
    return AUTH_ROLE_CTX.get()
