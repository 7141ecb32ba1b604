import asyncio
from datetime import datetime, timedelta

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.db.session import SessionLocal
from app.core.config import (
    BOOKING_SWEEP_INTERVAL_SECONDS,
    PAYMENT_REMINDER_INTERVAL_HOURS,
)
from app.core.logging_config import get_logger
from app.models.booking import Booking
from app.models.enums import BookingStatus, PaymentStatus
from app.services.booking_lifecycle import (
    expire_unpaid,
    is_awaiting_payment,
    notification_data,
    record_reminder,
)
from app.services.notifications import Notifier, get_notifier

logger = get_logger()
sweep_log = logger.bind(log_type="sweeper")


# =====================================================================
# EXPIRED PAYMENTS
# =====================================================================
def process_expired_payments(db: Session, notifier: Notifier, now: datetime | None = None) -> list[int]:
    """Cancel confirmed bookings whose payment deadline passed unpaid.

    Each booking is handled on its own; a failure on one is logged and the
    sweep moves on. Returns the ids that were cancelled by this run.
    """
    now = now or datetime.utcnow()

    candidates = (
        db.query(Booking.id)
        .filter(
            Booking.status == BookingStatus.CONFIRMED,
            Booking.payment_status == PaymentStatus.PENDING,
            Booking.payment_deadline < now,
        )
        .order_by(Booking.id)
        .all()
    )
    if not candidates:
        return []

    sweep_log.info(f"Found {len(candidates)} expired unpaid bookings")

    cancelled = []
    for (booking_id,) in candidates:
        try:
            # Lost the race to a payment callback: nothing to do
            if not expire_unpaid(db, booking_id, now):
                continue
            cancelled.append(booking_id)

            booking = db.get(Booking, booking_id)
            notifier.send(
                "booking_auto_cancelled",
                booking.customer_email,
                notification_data(booking),
            )
            sweep_log.info(f"Cancelled booking {booking_id} due to expired payment deadline")
        except Exception:
            db.rollback()
            sweep_log.exception(f"Error processing expired booking {booking_id}")

    return cancelled


# =====================================================================
# PERIODIC REMINDERS
# =====================================================================
def process_periodic_payment_reminders(db: Session, notifier: Notifier, now: datetime | None = None) -> list[int]:
    now = now or datetime.utcnow()
    cutoff = now - timedelta(hours=PAYMENT_REMINDER_INTERVAL_HOURS)

    due = (
        db.query(Booking)
        .filter(
            Booking.status == BookingStatus.CONFIRMED,
            Booking.payment_status == PaymentStatus.PENDING,
            Booking.payment_deadline > now,
            or_(
                Booking.last_payment_reminder_sent_at == None,  # noqa: E711
                Booking.last_payment_reminder_sent_at < cutoff,
            ),
        )
        .all()
    )
    if not due:
        return []

    sweep_log.info(f"Found {len(due)} bookings eligible for a periodic payment reminder")

    reminded = []
    for booking in due:
        booking_id = booking.id
        try:
            notifier.send(
                "payment_reminder",
                booking.customer_email,
                notification_data(booking, reminder_count=(booking.payment_reminder_count or 0) + 1),
            )
            record_reminder(db, booking_id, now)
            reminded.append(booking_id)
        except Exception:
            db.rollback()
            sweep_log.exception(f"Error processing periodic reminder for booking {booking_id}")

    return reminded


# =====================================================================
# ON-DEMAND REMINDER
# =====================================================================
def trigger_payment_reminder(db: Session, notifier: Notifier, booking: Booking, now: datetime | None = None) -> dict:
    """Send one reminder for a booking still inside its payment window.

    The reminder counter is recorded but does not throttle on-demand sends.
    """
    now = now or datetime.utcnow()

    if not is_awaiting_payment(booking, now):
        return {"success": False, "message": "Booking not eligible for payment reminder"}

    sent = notifier.send(
        "payment_reminder",
        booking.customer_email,
        notification_data(booking, reminder_count=(booking.payment_reminder_count or 0) + 1),
    )
    record_reminder(db, booking.id, now)

    sweep_log.info(f"On-demand payment reminder for booking {booking.id} (delivered={sent})")
    return {"success": True, "message": "Payment reminder sent"}


# =====================================================================
# JOB
# =====================================================================
def run_cleanup_cycle(notifier: Notifier | None = None, now: datetime | None = None) -> dict:
    notifier = notifier or get_notifier()
    with SessionLocal() as db:
        cancelled = process_expired_payments(db, notifier, now)
        reminded = process_periodic_payment_reminders(db, notifier, now)
    return {"cancelled": len(cancelled), "reminded": len(reminded)}


class BookingCleanupJob:
    """Recurring expiry sweep owned by the application lifespan."""

    def __init__(self, interval_seconds: float = BOOKING_SWEEP_INTERVAL_SECONDS, cycle=run_cleanup_cycle):
        self.interval_seconds = interval_seconds
        self._cycle = cycle
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self):
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        sweep_log.info(f"Booking cleanup job started (every {self.interval_seconds}s)")

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        sweep_log.info("Booking cleanup job stopped")

    async def _loop(self):
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                summary = await asyncio.to_thread(self._cycle)
                sweep_log.info(f"Cleanup cycle summary: {summary}")
            except Exception:
                sweep_log.exception("Error in booking cleanup job")
