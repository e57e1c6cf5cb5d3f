import pytest
from datetime import datetime, timezone
from decimal import Decimal
from app.services.email_service import EmailService

START = datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc)


@pytest.mark.asyncio
async def test_send_email_without_smtp_host_is_skipped(mocker):
    mocker.patch("app.services.email_service.SMTP_HOST", None)
    send_spy = mocker.patch("app.services.email_service.aiosmtplib.send", new=mocker.AsyncMock())

    assert await EmailService.send_email("a@example.com", "Hi", "<p>x</p>") is False
    send_spy.assert_not_awaited()


@pytest.mark.asyncio
async def test_send_email_failure_returns_false(mocker):
    mocker.patch("app.services.email_service.SMTP_HOST", "smtp.example.com")
    mocker.patch(
        "app.services.email_service.aiosmtplib.send",
        new=mocker.AsyncMock(side_effect=OSError("connection refused"))
    )

    assert await EmailService.send_email("a@example.com", "Hi", "<p>x</p>") is False


@pytest.mark.asyncio
async def test_send_purchase_confirmation_includes_ticket_code(mocker):
    send_spy = mocker.patch.object(EmailService, "send_email", new=mocker.AsyncMock(return_value=True))

    ok = await EmailService.send_purchase_confirmation(
        to_email="user1@example.com",
        user_name="Ann <script>",
        event_name="Sample Conference",
        event_start=START,
        event_end=START,
        ticket_type_name="VIP",
        ticket_code="TICKET-abc123",
        final_price=Decimal("149.99")
    )

    assert ok is True
    to_email, subject, html = send_spy.await_args.args
    assert to_email == "user1@example.com"
    assert subject == "Your ticket for Sample Conference"
    assert "TICKET-abc123" in html
    assert "149.99" in html
    assert "Ann &lt;script&gt;" in html
