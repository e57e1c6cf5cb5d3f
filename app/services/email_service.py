import logging
from datetime import datetime
from decimal import Decimal
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
import aiosmtplib
from app.core.config import SMTP_HOST, SMTP_PORT, SMTP_USERNAME, SMTP_PASSWORD, SMTP_USE_TLS, MAIL_FROM

logger = logging.getLogger(__name__)


def _fmt(moment: datetime) -> str:
    return moment.strftime("%Y-%m-%d %H:%M %Z").strip()


class EmailService:
    @staticmethod
    async def send_email(to_email: str, subject: str, html_content: str) -> bool:
        """Sends one HTML email; returns False instead of raising when SMTP is missing or fails."""
        if not SMTP_HOST:
            logger.info("SMTP not configured, skipping email to %s", to_email)
            return False

        message = MIMEMultipart("alternative")
        message["From"] = MAIL_FROM
        message["To"] = to_email
        message["Subject"] = subject
        message.attach(MIMEText(html_content, "html"))

        try:
            await aiosmtplib.send(
                message,
                hostname=SMTP_HOST,
                port=SMTP_PORT,
                username=SMTP_USERNAME,
                password=SMTP_PASSWORD,
                start_tls=SMTP_USE_TLS
            )
            return True
        except Exception:
            logger.exception("Failed to send email to %s", to_email)
            return False

    @staticmethod
    async def send_waitlist_confirmation(
            to_email: str,
            user_name: str | None,
            event_name: str,
            event_start: datetime,
            event_end: datetime,
            ticket_type_name: str,
            waitlist_rank: int
    ) -> bool:
        html_content = f"""
        <html>
        <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <p>Hi {escape(user_name or "Attendee")},</p>
            <p>Thank you for joining the waitlist for <strong>{escape(event_name)}</strong>!</p>
            <p><strong>Event Time:</strong> {_fmt(event_start)} - {_fmt(event_end)}</p>
            <p><strong>Ticket Type:</strong> {escape(ticket_type_name)}</p>
            <p><strong>Waitlist Rank:</strong> {waitlist_rank}</p>
            <p>We will notify you as soon as a ticket becomes available. Stay tuned!</p>
        </body>
        </html>
        """
        return await EmailService.send_email(to_email, f"Waitlist for {event_name}", html_content)

    @staticmethod
    async def send_purchase_confirmation(
            to_email: str,
            user_name: str | None,
            event_name: str,
            event_start: datetime,
            event_end: datetime,
            ticket_type_name: str,
            ticket_code: str,
            final_price: Decimal
    ) -> bool:
        html_content = f"""
        <html>
        <body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
            <p>Hi {escape(user_name or "Attendee")},</p>
            <p>Your ticket for <strong>{escape(event_name)}</strong> is confirmed.</p>
            <p><strong>Event Time:</strong> {_fmt(event_start)} - {_fmt(event_end)}</p>
            <p><strong>Ticket Type:</strong> {escape(ticket_type_name)}</p>
            <p><strong>Price Paid:</strong> {final_price:.2f}</p>
            <p><strong>Ticket Code:</strong> {escape(ticket_code)}</p>
            <p>Show this code at the entrance to check in.</p>
        </body>
        </html>
        """
        return await EmailService.send_email(to_email, f"Your ticket for {event_name}", html_content)
