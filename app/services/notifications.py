import asyncio
from email.message import EmailMessage

import aiosmtplib

from app.core.config import (
    SMTP_HOST,
    SMTP_PORT,
    SMTP_USERNAME,
    SMTP_PASSWORD,
    SMTP_FROM,
    CLIENT_URL,
)
from app.core.logging_config import get_logger

logger = get_logger()


# template -> (subject, body); bodies are str.format templates over the data dict
TEMPLATES = {
    "inquiry_received_owner": (
        "New inquiry for {venue_name}",
        "Hello {owner_name},\n\n{customer_name} sent an inquiry for {venue_name} "
        "on {event_date} ({guest_count} guests, {event_type}).\n"
        "Review it from your dashboard: {client_url}/venue-dashboard\n",
    ),
    "inquiry_received_admin": (
        "Inquiry #{booking_id} submitted for {venue_name}",
        "Customer {customer_name} <{customer_email}> requested {venue_name} "
        "on {event_date} for {guest_count} guests.\nEstimated total: INR {payment_amount}\n",
    ),
    "inquiry_accepted_customer": (
        "Your booking for {venue_name} was accepted",
        "Dear {customer_name},\n\n{venue_name} accepted your booking #{booking_id} "
        "for {event_date}. Please complete the payment of INR {payment_amount} "
        "before {payment_deadline}: {client_url}/user-dashboard\n",
    ),
    "inquiry_accepted_admin": (
        "Inquiry #{booking_id} accepted by {venue_name}",
        "Owner {owner_name} accepted booking #{booking_id} from {customer_name} "
        "for {event_date}. Payment due by {payment_deadline}.\n",
    ),
    "inquiry_rejected_customer": (
        "Update on your booking for {venue_name}",
        "Dear {customer_name},\n\nUnfortunately {venue_name} is unable to host your "
        "event on {event_date} (booking #{booking_id}).\n",
    ),
    "inquiry_rejected_admin": (
        "Inquiry #{booking_id} rejected by {venue_name}",
        "Owner {owner_name} rejected booking #{booking_id} from {customer_name} "
        "for {event_date}.\n",
    ),
    "payment_completed_customer": (
        "Payment received for {venue_name}",
        "Dear {customer_name},\n\nWe received INR {payment_amount} for booking "
        "#{booking_id} at {venue_name} on {event_date}. Payment id: {payment_id}\n",
    ),
    "payment_completed_admin": (
        "Payment completed for booking #{booking_id}",
        "Booking #{booking_id} at {venue_name} ({event_date}) was paid: "
        "INR {payment_amount}, payment id {payment_id}.\n",
    ),
    "payment_reminder": (
        "Payment reminder - please complete your booking payment",
        "Dear {customer_name},\n\nYour booking #{booking_id} for {venue_name} on "
        "{event_date} is awaiting payment of INR {payment_amount}. It will be "
        "cancelled automatically if unpaid by {payment_deadline}.\n"
        "Pay now: {client_url}/user-dashboard\n",
    ),
    "booking_auto_cancelled": (
        "Booking #{booking_id} cancelled - payment not completed",
        "Dear {customer_name},\n\nYour booking for {venue_name} on {event_date} "
        "was cancelled because the payment of INR {payment_amount} was not "
        "completed in time.\n",
    ),
}


class _SafeDict(dict):
    def __missing__(self, key):
        return "N/A"


def render(template: str, data: dict):
    if template not in TEMPLATES:
        raise KeyError(f"Unknown notification template: {template}")
    subject, body = TEMPLATES[template]
    values = _SafeDict(client_url=CLIENT_URL, **data)
    return subject.format_map(values), body.format_map(values)


async def _send_async(msg: EmailMessage) -> None:
    await aiosmtplib.send(
        msg,
        hostname=SMTP_HOST,
        port=SMTP_PORT,
        username=SMTP_USERNAME,
        password=SMTP_PASSWORD,
        start_tls=bool(SMTP_USERNAME),
    )


class Notifier:
    """Fire-and-forget email sender. `send` never raises."""

    def send(self, template: str, recipient: str | None, data: dict) -> bool:
        if not recipient:
            logger.warning(f"Notification {template} skipped: no recipient")
            return False

        try:
            subject, body = render(template, data)
        except KeyError as e:
            logger.error(str(e))
            return False

        if not SMTP_HOST:
            logger.info(f"SMTP not configured, dropping {template} for {recipient}")
            return False

        msg = EmailMessage()
        msg["From"] = SMTP_FROM
        msg["To"] = recipient
        msg["Subject"] = subject
        msg.set_content(body)

        try:
            asyncio.run(_send_async(msg))
            logger.info(f"Sent {template} email to {recipient}")
            return True
        except Exception as exc:
            logger.error(f"Failed to send {template} email to {recipient}: {exc}")
            return False


notifier = Notifier()


def get_notifier() -> Notifier:
    return notifier
