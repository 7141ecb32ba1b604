from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from datetime import datetime, timedelta

from app.db.session import get_db
from app.models.booking import Booking, BookingDateTiming
from app.models.user import User
from app.models.venue import Venue
from app.models.enums import BookingStatus, PaymentStatus, VenueStatus
from app.schemas.booking import (
    BookingCreate,
    InquiryCreate,
    BookingStatusUpdate,
    BookingCancel,
    BookingOut,
    BookingCreated,
)
from app.core.config import ADMIN_EMAIL, PAYMENT_CURRENCY
from app.core.dependencies import require_customer, require_venue_owner
from app.core.logging_config import get_logger
from app.services.booking_lifecycle import (
    TransitionError,
    apply_owner_decision,
    cancel_by_customer,
    notification_data,
)
from app.services.booking_cleanup import trigger_payment_reminder
from app.services.notifications import Notifier, get_notifier
from app.utils.pricing import calculate_fees, decompose_total, resolve_day_count

router = APIRouter(prefix="/bookings", tags=["Bookings"])
logger = get_logger()
booking_log = logger.bind(log_type="booking")


# ---------------------------------------------------------------------
# SAME-DATE AVAILABILITY CHECK
# ---------------------------------------------------------------------
def has_confirmed_booking(db: Session, venue_id: int, event_date) -> bool:
    # Exact event date only; overlapping multi-day ranges are not compared
    clash = db.query(Booking.id).filter(
        Booking.venue_id == venue_id,
        Booking.event_date == event_date,
        Booking.status == BookingStatus.CONFIRMED,
    ).first()
    return clash is not None


# ---------------------------------------------------------------------
# SHARED CREATE
# ---------------------------------------------------------------------
def _create_booking(
    db: Session,
    notifier: Notifier,
    customer: User,
    *,
    venue_id: int,
    event_date,
    guest_count: int,
    event_type,
    special_requirements,
    dates_timings,
    number_of_days,
    customer_name: str,
    customer_email: str,
    customer_phone,
    payment_status: PaymentStatus,
    check_availability: bool,
) -> Booking:
    venue = db.query(Venue).filter(
        Venue.id == venue_id,
        Venue.status == VenueStatus.ACTIVE,
    ).first()
    if not venue:
        raise HTTPException(status_code=404, detail="Venue not found or inactive")

    if guest_count > venue.capacity:
        raise HTTPException(
            status_code=400,
            detail=f"Guest count exceeds venue capacity ({venue.capacity})"
        )

    if check_availability and has_confirmed_booking(db, venue.id, event_date):
        raise HTTPException(status_code=400, detail="Venue is not available on this date")

    day_count = resolve_day_count(dates_timings, number_of_days)
    fees = calculate_fees(venue.price_per_day, day_count)

    booking = Booking(
        venue_id=venue.id,
        customer_id=customer.id,
        customer_name=customer_name,
        customer_email=customer_email,
        customer_phone=customer_phone,
        event_date=event_date,
        event_type=event_type,
        guest_count=guest_count,
        number_of_days=number_of_days,
        special_requirements=special_requirements,
        amount=fees.venue_amount,
        payment_amount=fees.total,
        status=BookingStatus.PENDING,
        payment_status=payment_status,
        dates_timings=[
            BookingDateTiming(date=d.date, start_time=d.start_time, end_time=d.end_time)
            for d in dates_timings
        ],
    )

    db.add(booking)
    db.commit()
    db.refresh(booking)

    booking_log.info(
        f"Booking Created | Customer={customer.email} | Venue={venue.id} | "
        f"Booking={booking.id} | Days={day_count} | Total={fees.total}"
    )

    data = notification_data(booking)
    notifier.send("inquiry_received_owner", data["owner_email"], data)
    notifier.send("inquiry_received_admin", ADMIN_EMAIL, data)

    return booking


def _created_response(booking: Booking, message: str) -> BookingCreated:
    fees = calculate_fees(booking.amount, 1)
    return BookingCreated(
        message=message,
        booking_id=booking.id,
        status=booking.status,
        payment_status=booking.payment_status,
        amount=booking.amount,
        platform_fee=fees.platform_fee,
        gst=fees.gst,
        payment_amount=booking.payment_amount,
    )


# =====================================================================
# CREATE BOOKING
# =====================================================================
@router.post("/", response_model=BookingCreated, status_code=201)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
    notifier: Notifier = Depends(get_notifier),
):
    booking = _create_booking(
        db,
        notifier,
        customer,
        venue_id=data.venue_id,
        event_date=data.event_date,
        guest_count=data.guest_count,
        event_type=data.event_type,
        special_requirements=data.special_requirements,
        dates_timings=data.dates_timings,
        number_of_days=data.number_of_days,
        customer_name=data.customer_name,
        customer_email=data.customer_email,
        customer_phone=data.customer_phone,
        payment_status=PaymentStatus.PENDING,
        check_availability=True,
    )
    return _created_response(booking, "Booking created successfully")


# =====================================================================
# CREATE INQUIRY
# =====================================================================
@router.post("/inquiry", response_model=BookingCreated, status_code=201)
def create_inquiry(
    data: InquiryCreate,
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
    notifier: Notifier = Depends(get_notifier),
):
    details = data.user_details
    booking = _create_booking(
        db,
        notifier,
        customer,
        venue_id=data.venue_id,
        event_date=data.event_date,
        guest_count=details.guest_count,
        event_type=details.event_type,
        special_requirements=details.special_requests,
        dates_timings=data.dates_timings,
        number_of_days=data.number_of_days,
        customer_name=details.full_name,
        customer_email=details.email,
        customer_phone=details.phone,
        payment_status=PaymentStatus.NOT_REQUIRED,
        check_availability=False,
    )
    return _created_response(
        booking,
        "Inquiry sent successfully! The venue owner and our team have been notified."
    )


# =====================================================================
# OWNER: ACCEPT / REJECT
# =====================================================================
@router.put("/{booking_id}/status")
def update_booking_status(
    booking_id: int,
    data: BookingStatusUpdate,
    db: Session = Depends(get_db),
    owner: User = Depends(require_venue_owner),
    notifier: Notifier = Depends(get_notifier),
):
    try:
        new_status = BookingStatus(data.status)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid status")

    booking = (
        db.query(Booking)
        .join(Venue, Venue.id == Booking.venue_id)
        .filter(Booking.id == booking_id, Venue.owner_id == owner.id)
        .first()
    )
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found or access denied")

    try:
        changed = apply_owner_decision(db, booking, new_status, datetime.utcnow())
    except TransitionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    if changed:
        payload = notification_data(booking)
        if new_status == BookingStatus.CONFIRMED:
            notifier.send("inquiry_accepted_admin", ADMIN_EMAIL, payload)
            notifier.send("inquiry_accepted_customer", booking.customer_email, payload)
        else:
            notifier.send("inquiry_rejected_admin", ADMIN_EMAIL, payload)
            notifier.send("inquiry_rejected_customer", booking.customer_email, payload)

    return {
        "message": "Booking status updated successfully",
        "emailSent": changed,
        "booking": BookingOut.model_validate(booking),
    }


# =====================================================================
# CUSTOMER: CANCEL
# =====================================================================
@router.post("/{booking_id}/cancel", response_model=BookingOut)
def cancel_booking(
    booking_id: int,
    data: BookingCancel | None = None,
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    booking = db.query(Booking).filter(
        Booking.id == booking_id,
        Booking.customer_id == customer.id
    ).first()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")

    try:
        cancel_by_customer(db, booking, data.reason if data else None)
    except TransitionError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)

    return booking


# =====================================================================
# CUSTOMER: ON-DEMAND PAYMENT REMINDER
# =====================================================================
@router.post("/{booking_id}/send-payment-reminder")
def send_payment_reminder(
    booking_id: int,
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
    notifier: Notifier = Depends(get_notifier),
):
    booking = db.query(Booking).filter(
        Booking.id == booking_id,
        Booking.customer_id == customer.id
    ).first()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")

    result = trigger_payment_reminder(db, notifier, booking)
    if not result["success"]:
        raise HTTPException(status_code=400, detail="Booking is not eligible for payment reminder")

    return result


# =====================================================================
# LISTINGS
# =====================================================================
@router.get("/customer", response_model=list[BookingOut])
def customer_bookings(
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    return (
        db.query(Booking)
        .filter(Booking.customer_id == customer.id)
        .order_by(Booking.created_at.desc())
        .all()
    )


@router.get("/owner", response_model=list[BookingOut])
def owner_bookings(
    status: str | None = None,
    db: Session = Depends(get_db),
    owner: User = Depends(require_venue_owner),
):
    query = _owner_bookings_query(db, owner)
    if status:
        try:
            query = query.filter(Booking.status == BookingStatus(status))
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid status")

    return query.order_by(Booking.created_at.desc()).all()


def _owner_bookings_query(db: Session, owner: User):
    return (
        db.query(Booking)
        .join(Venue, Venue.id == Booking.venue_id)
        .filter(Venue.owner_id == owner.id)
    )


def _with_venue(booking: Booking) -> dict:
    item = BookingOut.model_validate(booking).model_dump(mode="json")
    item["venue_name"] = booking.venue.name
    item["venue_location"] = booking.venue.location
    return item


@router.get("/owner/recent")
def owner_recent_bookings(
    limit: int = 5,
    db: Session = Depends(get_db),
    owner: User = Depends(require_venue_owner),
):
    bookings = (
        _owner_bookings_query(db, owner)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .limit(max(limit, 1))
        .all()
    )
    return [_with_venue(b) for b in bookings]


@router.get("/owner/inquiries")
def owner_inquiries(
    limit: int = 20,
    db: Session = Depends(get_db),
    owner: User = Depends(require_venue_owner),
):
    inquiries = (
        _owner_bookings_query(db, owner)
        .filter(Booking.status == BookingStatus.PENDING)
        .order_by(Booking.created_at.desc(), Booking.id.desc())
        .limit(max(limit, 1))
        .all()
    )
    return [_with_venue(b) for b in inquiries]


@router.get("/owner/inquiry-count")
def owner_inquiry_count(
    db: Session = Depends(get_db),
    owner: User = Depends(require_venue_owner),
):
    count = _owner_bookings_query(db, owner).filter(Booking.status == BookingStatus.PENDING).count()
    return {"inquiryCount": count, "pendingBookings": count}


# =====================================================================
# DASHBOARD NOTIFICATIONS
# =====================================================================
FEED_WINDOW_DAYS = 30
UNREAD_WINDOW_DAYS = 7


def _customer_message(booking: Booking) -> str:
    venue_name = booking.venue.name
    if booking.status == BookingStatus.CONFIRMED:
        if booking.payment_status == PaymentStatus.COMPLETED:
            return f"Your booking for {venue_name} is confirmed and paid."
        return f"Your inquiry for {venue_name} has been accepted! Complete the payment to keep the date."
    if booking.status == BookingStatus.CANCELLED:
        return f"Your inquiry for {venue_name} has been declined."
    return f"Your inquiry for {venue_name} is pending review."


def _owner_message(booking: Booking):
    event_day = booking.event_date.strftime("%d %b %Y")
    if booking.status == BookingStatus.CONFIRMED and booking.payment_status == PaymentStatus.COMPLETED:
        return "payment_completed", (
            f"Payment received! {booking.customer_name} has paid for {booking.guest_count} guests "
            f"on {event_day}."
        )
    if booking.status == BookingStatus.CONFIRMED:
        return "booking_confirmed", (
            f"Booking confirmed for {booking.customer_name} ({booking.guest_count} guests) "
            f"on {event_day}. Payment is pending."
        )
    if booking.status == BookingStatus.CANCELLED:
        return "booking_cancelled", (
            f"Booking cancelled. {booking.customer_name}'s inquiry for {event_day} "
            f"({booking.guest_count} guests) is closed."
        )
    return "booking_inquiry", (
        f"New inquiry! {booking.customer_name} wants your venue for {booking.guest_count} guests "
        f"on {event_day}. Please review and respond."
    )


@router.get("/customer/notifications")
def customer_notifications(
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    since = datetime.utcnow() - timedelta(days=FEED_WINDOW_DAYS)
    bookings = (
        db.query(Booking)
        .filter(Booking.customer_id == customer.id, Booking.updated_at > since)
        .order_by(Booking.updated_at.desc(), Booking.id.desc())
        .limit(10)
        .all()
    )

    return [
        {
            "id": b.id,
            "venue_id": b.venue_id,
            "venue_name": b.venue.name,
            "event_date": b.event_date,
            "guest_count": b.guest_count,
            "amount": b.payment_amount or b.amount,
            "status": b.status.value,
            "payment_status": b.payment_status.value,
            "updated_at": b.updated_at,
            "notification_type": "inquiry_status",
            "message": _customer_message(b),
        }
        for b in bookings
    ]


@router.get("/customer/notification-count")
def customer_notification_count(
    db: Session = Depends(get_db),
    customer: User = Depends(require_customer),
):
    since = datetime.utcnow() - timedelta(days=UNREAD_WINDOW_DAYS)
    unread = db.query(Booking).filter(
        Booking.customer_id == customer.id,
        Booking.status.in_([BookingStatus.CONFIRMED, BookingStatus.CANCELLED]),
        Booking.updated_at > since,
    ).count()
    return {"unreadCount": unread}


@router.get("/owner/notifications")
def owner_notifications(
    db: Session = Depends(get_db),
    owner: User = Depends(require_venue_owner),
):
    since = datetime.utcnow() - timedelta(days=FEED_WINDOW_DAYS)
    bookings = (
        _owner_bookings_query(db, owner)
        .filter(Booking.updated_at > since)
        .order_by(Booking.updated_at.desc(), Booking.id.desc())
        .limit(20)
        .all()
    )

    feed = []
    for b in bookings:
        notification_type, message = _owner_message(b)
        feed.append({
            "id": b.id,
            "venue_id": b.venue_id,
            "venue_name": b.venue.name,
            "event_date": b.event_date,
            "guest_count": b.guest_count,
            "amount": b.amount,
            "payment_amount": b.payment_amount,
            "status": b.status.value,
            "payment_status": b.payment_status.value,
            "updated_at": b.updated_at,
            "payment_completed_at": b.payment_completed_at,
            "customer_name": b.customer_name,
            "customer_email": b.customer_email,
            "notification_type": notification_type,
            "message": message,
        })
    return feed


# =====================================================================
# OWNER: REVENUE
# =====================================================================
def _paid_bookings(db: Session, venue_ids):
    return db.query(Booking).filter(
        Booking.venue_id.in_(venue_ids),
        Booking.status == BookingStatus.CONFIRMED,
        Booking.payment_status == PaymentStatus.COMPLETED,
    ).all()


def _revenue_summary(bookings) -> dict:
    total_revenue = 0
    base_price = 0.0
    platform_fee = 0.0
    gst = 0.0

    for b in bookings:
        parts = decompose_total(b.payment_amount or b.amount)
        total_revenue += parts.total
        base_price += parts.venue_amount
        platform_fee += parts.platform_fee
        gst += parts.gst

    return {
        "totalRevenue": total_revenue,
        "basePrice": round(base_price, 2),
        "platformFee": round(platform_fee, 2),
        "gstAmount": round(gst, 2),
        "totalBookings": len(bookings),
        "currency": PAYMENT_CURRENCY,
    }


@router.get("/owner/revenue")
def owner_revenue(
    db: Session = Depends(get_db),
    owner: User = Depends(require_venue_owner),
):
    venue_ids = [v.id for v in db.query(Venue.id).filter(Venue.owner_id == owner.id).all()]
    return _revenue_summary(_paid_bookings(db, venue_ids))


@router.get("/owner/revenue-by-venue")
def owner_revenue_by_venue(
    db: Session = Depends(get_db),
    owner: User = Depends(require_venue_owner),
):
    venues = db.query(Venue).filter(Venue.owner_id == owner.id).all()

    response = []
    for venue in venues:
        summary = _revenue_summary(_paid_bookings(db, [venue.id]))
        response.append({
            "venue_id": venue.id,
            "venue_name": venue.name,
            "venue_location": venue.location,
            **summary,
        })

    return response


@router.get("/owner/revenue-summary")
def owner_revenue_summary(
    period: int = 30,
    db: Session = Depends(get_db),
    owner: User = Depends(require_venue_owner),
):
    days_back = period if period > 0 else 30
    now = datetime.utcnow()
    start = now - timedelta(days=days_back)
    venue_ids = [v.id for v in db.query(Venue.id).filter(Venue.owner_id == owner.id).all()]

    paid = (
        db.query(Booking)
        .filter(
            Booking.venue_id.in_(venue_ids),
            Booking.status == BookingStatus.CONFIRMED,
            Booking.payment_status == PaymentStatus.COMPLETED,
            Booking.payment_completed_at >= start,
        )
        .order_by(Booking.payment_completed_at.desc())
        .all()
    )
    # Accepted bookings whose payment window is still open
    awaiting = db.query(Booking).filter(
        Booking.venue_id.in_(venue_ids),
        Booking.status == BookingStatus.CONFIRMED,
        Booking.payment_status.in_([PaymentStatus.PENDING, PaymentStatus.FAILED]),
        Booking.payment_deadline >= now,
    ).all()

    totals = _revenue_summary(paid)

    monthly = {}
    for b in paid:
        month = b.payment_completed_at.strftime("%Y-%m")
        monthly[month] = monthly.get(month, 0) + (b.payment_amount or b.amount)

    return {
        "summary": {
            "totalRevenue": totals["totalRevenue"],
            "pendingAmount": sum(b.payment_amount or b.amount for b in awaiting),
            "basePrice": totals["basePrice"],
            "platformFee": totals["platformFee"],
            "gstAmount": totals["gstAmount"],
            "confirmedBookings": len(paid),
            "pendingBookings": len(awaiting),
            "period": f"{days_back} days",
            "currency": PAYMENT_CURRENCY,
        },
        "monthlyData": monthly,
        "recentBookings": [
            {
                "id": b.id,
                "venue_id": b.venue_id,
                "customer_name": b.customer_name,
                "event_date": b.event_date,
                "amount": b.payment_amount or b.amount,
                "payment_completed_at": b.payment_completed_at,
            }
            for b in paid[:10]
        ],
    }
