import logging
import smtplib
from email.header import Header
from email.mime.text import MIMEText
from typing import Optional

from app.config import settings
from app.models.booking import Booking
from app.utils.timezones import get_zone, to_local

logger = logging.getLogger(__name__)

STATUS_LABELS = {
    "approved": "approved",
    "rejected": "rejected",
    "completed": "marked as completed",
    "cancelled": "cancelled",
}


def build_status_email(booking: Booking, note: Optional[str] = None):
    """Render the message for the booking's current status as (recipient, subject, body)."""
    zone = get_zone(booking.room.timezone)
    start = to_local(booking.start_time, zone).strftime("%Y-%m-%d %H:%M")
    end = to_local(booking.end_time, zone).strftime("%Y-%m-%d %H:%M")
    label = STATUS_LABELS.get(booking.status, booking.status)

    subject = f"Booking {label}: {booking.activity_name}"
    lines = [
        f"Hello {booking.user.name or booking.user.username},",
        "",
        f"Your booking \"{booking.activity_name}\" for {booking.room.name} "
        f"({start} - {end}, {booking.room.timezone}) has been {label}.",
    ]
    if note:
        lines += ["", f"Note: {note}"]
    return booking.user.email, subject, "\n".join(lines)


def deliver_email(to_email: str, subject: str, body: str):
    msg = MIMEText(body, "plain", "utf-8")
    msg["From"] = settings.MAIL_FROM
    msg["To"] = to_email
    msg["Subject"] = Header(subject, "utf-8")
    server = smtplib.SMTP_SSL(settings.SMTP_SERVER, settings.SMTP_PORT)
    try:
        if settings.SMTP_USERNAME:
            server.login(settings.SMTP_USERNAME, settings.SMTP_PASSWORD)
        server.send_message(msg)
    finally:
        server.quit()


def send_status_notification(to_email: str, subject: str, body: str):
    """Background task; delivery problems are logged and never reach the caller."""
    if not settings.SMTP_ENABLED:
        logger.info(f"Email delivery disabled, skipping '{subject}' to {to_email}")
        return
    try:
        deliver_email(to_email, subject, body)
        logger.info(f"Sent '{subject}' to {to_email}")
    except Exception:
        logger.exception(f"Failed to send booking notification to {to_email}")
