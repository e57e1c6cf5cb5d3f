import os

os.environ.setdefault("POSTGRES_USER", "ticketing")
os.environ.setdefault("db_password", "ticketing")
os.environ.setdefault("POSTGRES_DB", "ticketing_test")
os.environ.setdefault("DB_HOST", "localhost")
os.environ.setdefault("DB_PORT", "5432")
os.environ.setdefault("secret_key", "test-secret-key")

import pytest
import importlib


SERVICE_MODULES = [
    "app.services.auth_service",
    "app.services.checkin_service",
    "app.services.event_service",
    "app.services.promo_service",
    "app.services.purchase_service",
    "app.services.ticket_type_service",
    "app.services.waitlist_service"
]

class _StubSpan:
    def __init__(
        self,
        *,
        scope: str,
        action: str,
        object_type: str | None = None,
        object_id: int | None = None,
        event_id: int | None = None,
        ticket_type_id: int | None = None,
        ticket_id: int | None = None,
        promo_code_id: int | None = None,
        meta: dict | None = None,
        **_ignored
    ):
        self.scope = scope
        self.action = action
        self.object_type = object_type
        self.object_id = object_id
        self.event_id = event_id
        self.ticket_type_id = ticket_type_id
        self.ticket_id = ticket_id
        self.promo_code_id = promo_code_id
        self.meta = dict(meta or {})
        self.entered = False
        self.exited = False
        self.exit_args = None

    async def __aenter__(self):
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.exited = True
        self.exit_args = (exc_type, exc, tb)
        return False


@pytest.fixture(autouse=True)
def auditspan_stub(mocker, request):
    instances = []

    def factory(*a, **k):
        s = _StubSpan(*a, **k)
        instances.append(s)
        return s

    for mod in SERVICE_MODULES:
        importlib.import_module(mod)
        mocker.patch(f"{mod}.AuditSpan", side_effect=factory)

    return instances
