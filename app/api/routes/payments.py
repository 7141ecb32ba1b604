import time
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.booking import Booking
from app.models.user import User
from app.models.enums import BookingStatus, PaymentStatus
from app.schemas.payment import (
    CreateOrderRequest,
    VerifyPaymentRequest,
    PaymentFailedRequest,
    PaymentStatusOut,
)
from app.core.config import ADMIN_EMAIL, PAYMENT_CURRENCY, RAZORPAY_KEY_ID
from app.core.dependencies import require_customer
from app.core.logging_config import get_logger
from app.services.booking_lifecycle import (
    TransitionError,
    complete_payment,
    fail_payment,
    notification_data,
    start_payment,
)
from app.services.notifications import Notifier, get_notifier
from app.utils.pricing import calculate_fees, resolve_day_count, to_minor_units
from app.utils.razorpay_client import (
    build_receipt,
    gateway_error_message,
    get_payment_gateway,
    is_valid_signature,
)

router = APIRouter(prefix="/payments", tags=["Payments"])
logger = get_logger()
payment_log = logger.bind(log_type="payment")


# ---------------------------------------------------------------------
# CREATE ORDER
# ---------------------------------------------------------------------
@router.post("/create-order")
def create_order(
    data: CreateOrderRequest,
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
    gateway=Depends(get_payment_gateway),
):
    booking = db.query(Booking).filter(
        Booking.id == data.booking_id,
        Booking.customer_id == customer.id,
        Booking.status == BookingStatus.CONFIRMED,
    ).first()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found or not confirmed")

    if booking.payment_status == PaymentStatus.COMPLETED:
        raise HTTPException(status_code=400, detail="Payment already completed for this booking")

    venue = booking.venue
    price_per_day = venue.price_per_day if venue else 0
    if not price_per_day or price_per_day <= 0:
        raise HTTPException(status_code=400, detail="Invalid venue price")

    # The charge is always recomputed from the venue price, never taken from
    # the client or from the stored estimate.
    day_count = resolve_day_count(booking.dates_timings, booking.number_of_days)
    fees = calculate_fees(price_per_day, day_count)

    if fees.total <= 0:
        raise HTTPException(status_code=400, detail="Invalid payment amount for booking")

    amount_paise = to_minor_units(fees.total)
    if amount_paise < 100:
        raise HTTPException(status_code=400, detail="Payment amount must be at least INR 1.00")

    payment_log.info(
        f"Creating order | Booking={booking.id} | Days={day_count} | "
        f"PricePerDay={price_per_day} | Venue={fees.venue_amount} | "
        f"Fee={fees.platform_fee} | GST={fees.gst} | Total={fees.total}"
    )

    order_options = {
        "amount": amount_paise,
        "currency": PAYMENT_CURRENCY,
        "receipt": build_receipt(booking.id, int(time.time() * 1000)),
        "notes": {
            "booking_id": str(booking.id),
            "venue_name": venue.name[:60],
            "customer_id": str(customer.id),
            "event_date": booking.event_date.isoformat(),
            "display_amount": str(booking.amount),
            "payment_amount": str(fees.total),
        },
    }

    try:
        order = gateway.order.create(order_options)
    except Exception as e:
        payment_log.error(f"Razorpay order create error | Booking={booking.id} | {e}")
        raise HTTPException(
            status_code=502,
            detail=gateway_error_message(e, "Payment gateway order creation failed")
        )

    try:
        start_payment(db, booking, order["id"], fees.total, datetime.utcnow())
    except TransitionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return {
        "success": True,
        "order": {
            "id": order["id"],
            "amount": order["amount"],
            "currency": order["currency"],
            "booking_id": booking.id,
            "venue_name": venue.name,
        },
        "key_id": RAZORPAY_KEY_ID,
    }


# ---------------------------------------------------------------------
# VERIFY PAYMENT
# ---------------------------------------------------------------------
@router.post("/verify-payment")
def verify_payment(
    data: VerifyPaymentRequest,
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
    gateway=Depends(get_payment_gateway),
    notifier: Notifier = Depends(get_notifier),
):
    booking = db.query(Booking).filter(
        Booking.id == data.booking_id,
        Booking.customer_id == customer.id,
        Booking.razorpay_order_id == data.razorpay_order_id,
    ).first()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")

    if not is_valid_signature(
        gateway,
        data.razorpay_order_id,
        data.razorpay_payment_id,
        data.razorpay_signature,
    ):
        payment_log.warning(
            f"Invalid signature | Booking={booking.id} | Order={data.razorpay_order_id}"
        )
        raise HTTPException(status_code=400, detail="Invalid payment signature")

    # IDEMPOTENCY CHECK
    if (
        booking.payment_status == PaymentStatus.COMPLETED
        and booking.razorpay_payment_id == data.razorpay_payment_id
    ):
        return {
            "success": True,
            "message": "Payment already verified",
            "payment_id": data.razorpay_payment_id,
        }

    try:
        complete_payment(
            db,
            booking,
            data.razorpay_order_id,
            data.razorpay_payment_id,
            datetime.utcnow(),
        )
    except TransitionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    # Payment is final from here on; notifications are best effort
    payload = notification_data(booking, payment_id=data.razorpay_payment_id)
    notifier.send("payment_completed_customer", booking.customer_email, payload)
    notifier.send("payment_completed_admin", ADMIN_EMAIL, payload)

    return {
        "success": True,
        "message": "Payment verified successfully",
        "payment_id": data.razorpay_payment_id,
    }


# ---------------------------------------------------------------------
# PAYMENT STATUS
# ---------------------------------------------------------------------
@router.get("/status/{booking_id}", response_model=PaymentStatusOut)
def payment_status(
    booking_id: int,
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    booking = db.query(Booking).filter(
        Booking.id == booking_id,
        Booking.customer_id == customer.id
    ).first()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")

    return PaymentStatusOut(
        booking_id=booking.id,
        status=booking.status,
        payment_status=booking.payment_status,
        razorpay_order_id=booking.razorpay_order_id,
        razorpay_payment_id=booking.razorpay_payment_id,
        amount=booking.amount,
        payment_amount=booking.payment_amount,
        payment_deadline=booking.payment_deadline,
        payment_completed_at=booking.payment_completed_at,
    )


# ---------------------------------------------------------------------
# PAYMENT FAILURE
# ---------------------------------------------------------------------
@router.post("/payment-failed")
def payment_failed(
    data: PaymentFailedRequest,
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    booking = db.query(Booking).filter(
        Booking.id == data.booking_id,
        Booking.customer_id == customer.id
    ).first()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")

    try:
        fail_payment(db, booking, data.error_description)
    except TransitionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return {"success": True, "message": "Payment failure recorded"}
