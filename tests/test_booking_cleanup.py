import asyncio
from datetime import datetime, timedelta

from app.models.booking import Booking
from app.models.enums import BookingStatus, PaymentStatus
from app.services import booking_lifecycle
from app.services.booking_cleanup import (
    BookingCleanupJob,
    process_expired_payments,
    process_periodic_payment_reminders,
)
from app.services.booking_lifecycle import EXPIRED_CANCELLATION_REASON


ACCEPTED_AT = datetime(2026, 3, 1, 10, 0, 0)


def accepted(make_booking, **overrides):
    values = dict(
        status=BookingStatus.CONFIRMED,
        payment_status=PaymentStatus.PENDING,
        payment_deadline=ACCEPTED_AT + timedelta(hours=24),
    )
    values.update(overrides)
    return make_booking(**values)


# =====================================================================
# EXPIRY
# =====================================================================
def test_unpaid_booking_expires_after_deadline(make_booking, test_db, notifier):
    booking = accepted(make_booking)

    cancelled = process_expired_payments(test_db, notifier, ACCEPTED_AT + timedelta(hours=25))

    assert cancelled == [booking.id]
    test_db.expire_all()
    booking = test_db.get(Booking, booking.id)
    assert booking.status == BookingStatus.CANCELLED
    assert booking.payment_status == PaymentStatus.FAILED
    assert booking.cancellation_reason == EXPIRED_CANCELLATION_REASON
    assert notifier.templates() == ["booking_auto_cancelled"]
    assert notifier.sent[0][1] == booking.customer_email


def test_booking_inside_window_is_left_alone(make_booking, test_db, notifier):
    booking = accepted(make_booking)

    cancelled = process_expired_payments(test_db, notifier, ACCEPTED_AT + timedelta(hours=23))

    assert cancelled == []
    test_db.expire_all()
    assert test_db.get(Booking, booking.id).status == BookingStatus.CONFIRMED
    assert notifier.sent == []


def test_second_sweep_changes_nothing(make_booking, test_db, notifier):
    accepted(make_booking)
    now = ACCEPTED_AT + timedelta(hours=25)

    first = process_expired_payments(test_db, notifier, now)
    second = process_expired_payments(test_db, notifier, now)

    assert len(first) == 1
    assert second == []
    assert notifier.templates() == ["booking_auto_cancelled"]


def test_paid_and_pending_bookings_are_not_expired(make_booking, test_db, notifier):
    paid = accepted(make_booking, payment_status=PaymentStatus.COMPLETED)
    unaccepted = make_booking(payment_deadline=ACCEPTED_AT)

    cancelled = process_expired_payments(test_db, notifier, ACCEPTED_AT + timedelta(hours=48))

    assert cancelled == []
    test_db.expire_all()
    assert test_db.get(Booking, paid.id).status == BookingStatus.CONFIRMED
    assert test_db.get(Booking, unaccepted.id).status == BookingStatus.PENDING


def test_failed_payment_is_left_for_retry(make_booking, test_db, notifier):
    failed = accepted(make_booking, payment_status=PaymentStatus.FAILED)

    cancelled = process_expired_payments(test_db, notifier, ACCEPTED_AT + timedelta(hours=48))

    assert cancelled == []
    test_db.expire_all()
    booking = test_db.get(Booking, failed.id)
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.payment_status == PaymentStatus.FAILED
    assert notifier.sent == []


def test_one_failing_booking_does_not_stop_the_sweep(make_booking, test_db, notifier, monkeypatch):
    first_id = accepted(make_booking).id
    second_id = accepted(make_booking).id

    original = booking_lifecycle.expire_unpaid

    def flaky_expire(db, booking_id, now):
        if booking_id == first_id:
            raise RuntimeError("database hiccup")
        return original(db, booking_id, now)

    monkeypatch.setattr("app.services.booking_cleanup.expire_unpaid", flaky_expire)

    cancelled = process_expired_payments(test_db, notifier, ACCEPTED_AT + timedelta(hours=25))

    assert cancelled == [second_id]
    test_db.expire_all()
    assert test_db.get(Booking, first_id).status == BookingStatus.CONFIRMED
    assert test_db.get(Booking, second_id).status == BookingStatus.CANCELLED


# =====================================================================
# PERIODIC REMINDERS
# =====================================================================
def test_periodic_reminder_respects_interval(make_booking, test_db, notifier):
    booking = accepted(make_booking)
    now = ACCEPTED_AT + timedelta(hours=2)

    assert process_periodic_payment_reminders(test_db, notifier, now) == [booking.id]
    # Within the six hour interval nothing is resent
    assert process_periodic_payment_reminders(test_db, notifier, now + timedelta(hours=3)) == []
    assert process_periodic_payment_reminders(test_db, notifier, now + timedelta(hours=7)) == [booking.id]

    test_db.expire_all()
    assert test_db.get(Booking, booking.id).payment_reminder_count == 2
    assert notifier.templates() == ["payment_reminder", "payment_reminder"]


def test_no_reminder_after_deadline(make_booking, test_db, notifier):
    accepted(make_booking)

    reminded = process_periodic_payment_reminders(test_db, notifier, ACCEPTED_AT + timedelta(hours=30))

    assert reminded == []
    assert notifier.sent == []


# =====================================================================
# JOB
# =====================================================================
def test_cleanup_job_runs_and_stops():
    calls = []

    def cycle():
        calls.append(datetime.utcnow())
        return {"cancelled": 0, "reminded": 0}

    async def scenario():
        job = BookingCleanupJob(interval_seconds=0.01, cycle=cycle)
        job.start()
        assert job.running
        await asyncio.sleep(0.1)
        await job.stop()
        assert not job.running

    asyncio.run(scenario())

    assert len(calls) >= 1


def test_cleanup_job_survives_failing_cycle():
    calls = []

    def cycle():
        calls.append(1)
        raise RuntimeError("boom")

    async def scenario():
        job = BookingCleanupJob(interval_seconds=0.01, cycle=cycle)
        job.start()
        await asyncio.sleep(0.1)
        still_running = job.running
        await job.stop()
        return still_running

    assert asyncio.run(scenario()) is True
    assert len(calls) >= 2
