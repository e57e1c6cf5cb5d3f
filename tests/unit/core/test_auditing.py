import json
import pytest
from app.core import ctx
from app.core.auditing import AuditSpan, build_audit_payload
from app.domain.exceptions import NoTicketAvailable


@pytest.fixture
def fake_redis(mocker):
    r = mocker.Mock()
    r.xadd = mocker.AsyncMock(return_value="1-0")
    tokens = ctx.bind_request(request_id="rid-1", route="POST /purchase", client_ip="203.0.113.7", redis_client=r)
    yield r
    ctx.reset(tokens)


def _emitted(fake_redis) -> dict:
    fields = fake_redis.xadd.await_args.args[1]
    return json.loads(fields["json"])


@pytest.mark.asyncio
async def test_span_emits_success_with_ids_set_inside_block(fake_redis):
    async with AuditSpan(scope="PURCHASES", action="CREATE", ticket_type_id=5) as span:
        span.ticket_id = 42

    payload = _emitted(fake_redis)
    assert payload["status"] == "SUCCESS"
    assert payload["ticket_type_id"] == 5
    assert payload["ticket_id"] == 42
    assert payload["request_id"] == "rid-1"
    assert payload["route"] == "POST /purchase"
    assert "duration_ms" in payload["meta"]


@pytest.mark.asyncio
async def test_span_emits_fail_and_reraises(fake_redis):
    with pytest.raises(NoTicketAvailable):
        async with AuditSpan(scope="PURCHASES", action="CREATE", ticket_type_id=5):
            raise NoTicketAvailable(5)

    payload = _emitted(fake_redis)
    assert payload["status"] == "FAIL"
    assert payload["reason"] == "No available ticket"
    assert payload["meta"]["error"] == "NoTicketAvailable"
    assert payload["meta"]["error_ctx"] == {"ticket_type_id": 5}


@pytest.mark.asyncio
async def test_span_survives_redis_failure(fake_redis):
    fake_redis.xadd.side_effect = ConnectionError("down")

    async with AuditSpan(scope="EVENTS", action="DELETE", event_id=1):
        pass

    fake_redis.xadd.assert_awaited_once()


@pytest.mark.asyncio
async def test_span_without_redis_is_silent():
    async with AuditSpan(scope="EVENTS", action="DELETE", event_id=1) as span:
        pass

    assert span.meta["duration_ms"] >= 0


def test_build_audit_payload_fills_missing_targets_with_none():
    payload = build_audit_payload(scope="AUTH", action="LOGIN", status="SUCCESS", target={"object_id": 3})

    assert payload["object_id"] == 3
    assert payload["event_id"] is None
    assert payload["promo_code_id"] is None
