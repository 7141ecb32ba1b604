"""Booking state machine.

``status`` is one of pending / confirmed / cancelled and ``payment_status``
one of not_required / pending / completed / failed. Every transition below is
a single conditional UPDATE guarded on the states it is allowed to leave, so
two racing writers (a payment callback and the expiry sweep, two owners'
clicks, ...) cannot both win. ``cancelled`` is terminal.
"""
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session, aliased

from app.core.config import PAYMENT_WINDOW_HOURS
from app.core.logging_config import get_logger
from app.models.booking import Booking
from app.models.venue import Venue
from app.models.enums import BookingStatus, PaymentStatus

logger = get_logger()

EXPIRED_CANCELLATION_REASON = "Payment not completed within 24 hours"
CUSTOMER_CANCELLATION_REASON = "Cancelled by customer"

PAYABLE_STATES = (PaymentStatus.PENDING, PaymentStatus.FAILED)


class TransitionError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def payment_deadline_from(now: datetime) -> datetime:
    return now + timedelta(hours=PAYMENT_WINDOW_HOURS)


def _compare_and_set(db: Session, booking_id: int, conditions, values: dict) -> bool:
    """UPDATE bookings SET values WHERE id = booking_id AND conditions; True if a row changed."""
    updated = (
        db.query(Booking)
        .filter(Booking.id == booking_id, *conditions)
        .update(values, synchronize_session=False)
    )
    return updated == 1


def date_taken_by_other(booking: Booking):
    """EXISTS clause: another confirmed booking holds this venue on this event date."""
    other = aliased(Booking)
    return (
        select(other.id)
        .where(
            other.venue_id == booking.venue_id,
            other.event_date == booking.event_date,
            other.status == BookingStatus.CONFIRMED,
            other.id != booking.id,
        )
        .exists()
    )


# ---------------------------------------------------------------------
# OWNER DECISION
# ---------------------------------------------------------------------
def apply_owner_decision(db: Session, booking: Booking, new_status: BookingStatus, now: datetime) -> bool:
    """Accept or reject a pending booking.

    Returns True when the booking actually left ``pending`` (the caller
    notifies only then) and False when ``new_status`` is already the current
    status.
    """
    if new_status == booking.status:
        return False

    if booking.status != BookingStatus.PENDING:
        raise TransitionError(f"Booking is already {booking.status.value}")

    if new_status == BookingStatus.CONFIRMED:
        values = {
            Booking.status: BookingStatus.CONFIRMED,
            Booking.payment_status: PaymentStatus.PENDING,
            Booking.payment_deadline: payment_deadline_from(now),
        }
    elif new_status == BookingStatus.CANCELLED:
        values = {
            Booking.status: BookingStatus.CANCELLED,
            Booking.payment_status: PaymentStatus.NOT_REQUIRED,
        }
    else:
        raise TransitionError("Invalid status transition")

    conditions = [Booking.status == BookingStatus.PENDING]
    if new_status == BookingStatus.CONFIRMED:
        conditions.append(~date_taken_by_other(booking))

    if not _compare_and_set(db, booking.id, conditions, values):
        db.rollback()
        if new_status == BookingStatus.CONFIRMED and db.query(date_taken_by_other(booking)).scalar():
            raise TransitionError("Venue is already booked on this date", status_code=409)
        raise TransitionError("Booking was updated concurrently, please retry", status_code=409)

    if new_status == BookingStatus.CONFIRMED:
        db.query(Venue).filter(Venue.id == booking.venue_id).update(
            {Venue.total_bookings: Venue.total_bookings + 1},
            synchronize_session=False,
        )

    db.commit()
    db.refresh(booking)

    logger.bind(log_type="booking").info(
        f"Booking {booking.id} -> {booking.status.value}/{booking.payment_status.value}"
    )
    return True


# ---------------------------------------------------------------------
# PAYMENT
# ---------------------------------------------------------------------
def start_payment(db: Session, booking: Booking, order_id: str, payment_amount: int, now: datetime):
    if booking.payment_status == PaymentStatus.COMPLETED:
        raise TransitionError("Payment already completed for this booking")

    ok = _compare_and_set(
        db,
        booking.id,
        [
            Booking.status == BookingStatus.CONFIRMED,
            Booking.payment_status.in_(PAYABLE_STATES),
        ],
        {
            Booking.payment_amount: payment_amount,
            Booking.razorpay_order_id: order_id,
            Booking.razorpay_payment_id: None,
            Booking.payment_status: PaymentStatus.PENDING,
            Booking.payment_initiated_at: now,
            Booking.payment_deadline: payment_deadline_from(now),
            Booking.payment_error_description: None,
        },
    )
    if not ok:
        db.rollback()
        raise TransitionError("Booking is no longer awaiting payment", status_code=409)

    db.commit()
    db.refresh(booking)

    logger.bind(log_type="payment").info(
        f"Order {order_id} created for booking {booking.id} | amount={payment_amount}"
    )


def complete_payment(db: Session, booking: Booking, order_id: str, payment_id: str, now: datetime):
    ok = _compare_and_set(
        db,
        booking.id,
        [
            Booking.status == BookingStatus.CONFIRMED,
            Booking.payment_status.in_(PAYABLE_STATES),
            Booking.razorpay_order_id == order_id,
        ],
        {
            Booking.payment_status: PaymentStatus.COMPLETED,
            Booking.status: BookingStatus.CONFIRMED,
            Booking.razorpay_payment_id: payment_id,
            Booking.payment_completed_at: now,
            Booking.payment_error_description: None,
        },
    )
    if not ok:
        db.rollback()
        raise TransitionError("Booking is no longer awaiting payment", status_code=409)

    db.commit()
    db.refresh(booking)

    logger.bind(log_type="payment").info(
        f"Payment {payment_id} completed for booking {booking.id}"
    )


def fail_payment(db: Session, booking: Booking, description: str | None):
    ok = _compare_and_set(
        db,
        booking.id,
        [
            Booking.status == BookingStatus.CONFIRMED,
            Booking.payment_status.in_(PAYABLE_STATES),
        ],
        {
            Booking.payment_status: PaymentStatus.FAILED,
            Booking.payment_error_description: description,
        },
    )
    if not ok:
        db.rollback()
        raise TransitionError("Booking is not awaiting payment")

    db.commit()
    db.refresh(booking)

    logger.bind(log_type="payment").warning(
        f"Payment failed for booking {booking.id}: {description}"
    )


# ---------------------------------------------------------------------
# EXPIRY / CANCELLATION
# ---------------------------------------------------------------------
def expire_unpaid(db: Session, booking_id: int, now: datetime) -> bool:
    """confirmed + payment pending + deadline passed -> cancelled/failed."""
    ok = _compare_and_set(
        db,
        booking_id,
        [
            Booking.status == BookingStatus.CONFIRMED,
            Booking.payment_status == PaymentStatus.PENDING,
            Booking.payment_deadline < now,
        ],
        {
            Booking.status: BookingStatus.CANCELLED,
            Booking.payment_status: PaymentStatus.FAILED,
            Booking.cancellation_reason: EXPIRED_CANCELLATION_REASON,
        },
    )
    db.commit()
    return ok


def cancel_by_customer(db: Session, booking: Booking, reason: str | None = None):
    if booking.status == BookingStatus.CANCELLED:
        raise TransitionError("Booking is already cancelled")
    if booking.payment_status == PaymentStatus.COMPLETED:
        raise TransitionError("Paid bookings cannot be cancelled online, please contact support")

    ok = _compare_and_set(
        db,
        booking.id,
        [
            Booking.status != BookingStatus.CANCELLED,
            Booking.payment_status != PaymentStatus.COMPLETED,
        ],
        {
            Booking.status: BookingStatus.CANCELLED,
            Booking.cancellation_reason: reason or CUSTOMER_CANCELLATION_REASON,
        },
    )
    if not ok:
        db.rollback()
        raise TransitionError("Booking was updated concurrently, please retry", status_code=409)

    db.commit()
    db.refresh(booking)

    logger.bind(log_type="booking").info(f"Booking {booking.id} cancelled by customer")


# ---------------------------------------------------------------------
# REMINDERS
# ---------------------------------------------------------------------
def is_awaiting_payment(booking: Booking, now: datetime) -> bool:
    return (
        booking.status == BookingStatus.CONFIRMED
        and booking.payment_status == PaymentStatus.PENDING
        and booking.payment_deadline is not None
        and booking.payment_deadline > now
    )


def record_reminder(db: Session, booking_id: int, now: datetime):
    db.query(Booking).filter(Booking.id == booking_id).update(
        {
            Booking.payment_reminder_count: Booking.payment_reminder_count + 1,
            Booking.last_payment_reminder_sent_at: now,
        },
        synchronize_session=False,
    )
    db.commit()


# ---------------------------------------------------------------------
# NOTIFICATION PAYLOAD
# ---------------------------------------------------------------------
def notification_data(booking: Booking, **extra) -> dict:
    venue = booking.venue
    owner = venue.owner if venue else None
    data = {
        "booking_id": booking.id,
        "customer_name": booking.customer_name,
        "customer_email": booking.customer_email,
        "customer_phone": booking.customer_phone or "Not provided",
        "venue_name": venue.name if venue else "Venue",
        "venue_location": venue.location if venue else "Location",
        "owner_name": owner.name if owner else "Venue Owner",
        "owner_email": owner.email if owner else None,
        "event_date": booking.event_date.isoformat() if booking.event_date else None,
        "event_type": booking.event_type or "Not specified",
        "guest_count": booking.guest_count,
        "amount": booking.amount,
        "payment_amount": booking.payment_amount or booking.amount,
        "payment_deadline": (
            booking.payment_deadline.strftime("%Y-%m-%d %H:%M UTC")
            if booking.payment_deadline else None
        ),
        "reminder_count": booking.payment_reminder_count or 0,
    }
    data.update(extra)
    return data
