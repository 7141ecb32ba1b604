from datetime import date, timedelta

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.booking import Booking
from app.models.rating import Rating
from app.models.user import User
from app.models.venue import Venue
from app.models.enums import PaymentStatus
from app.schemas.rating import RatingCreate, RatingOut
from app.core.dependencies import require_customer
from app.core.logging_config import get_logger
from app.core.redis import get_cache, set_cache, delete_cache, venue_ratings_key

router = APIRouter(prefix="/ratings", tags=["Ratings"])
logger = get_logger()


def _owned_booking(db: Session, booking_id: int, user: User) -> Booking:
    booking = db.query(Booking).filter(
        Booking.id == booking_id,
        Booking.customer_id == user.id
    ).first()
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


def can_rate(booking: Booking, today: date | None = None) -> bool:
    today = today or date.today()
    return (
        today > booking.event_date
        and booking.payment_status == PaymentStatus.COMPLETED
    )


# =====================================================================
# VENUE RATINGS (Public)
# =====================================================================
@router.get("/venue/{venue_id}")
def venue_ratings(venue_id: int, db: Session = Depends(get_db)):
    cached = get_cache(venue_ratings_key(venue_id))
    if cached is not None:
        return cached

    ratings = (
        db.query(Rating)
        .filter(Rating.venue_id == venue_id)
        .order_by(Rating.created_at.desc())
        .all()
    )

    response = {
        "venue_id": venue_id,
        "averageRating": round(sum(r.rating for r in ratings) / len(ratings), 1) if ratings else 0,
        "totalRatings": len(ratings),
        "ratings": [RatingOut.model_validate(r).model_dump(mode="json") for r in ratings],
    }

    set_cache(venue_ratings_key(venue_id), response, ttl=300)
    return response


# =====================================================================
# CHECK ELIGIBILITY
# =====================================================================
@router.get("/check/{booking_id}")
def check_rating(
    booking_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_customer),
):
    booking = _owned_booking(db, booking_id, user)

    existing = db.query(Rating).filter(
        Rating.booking_id == booking_id,
        Rating.user_id == user.id
    ).first()

    return {
        "canRate": can_rate(booking),
        "hasRated": existing is not None,
        "eventDate": booking.event_date,
        "nextRatingDate": booking.event_date + timedelta(days=1),
        "existingRating": RatingOut.model_validate(existing) if existing else None,
    }


# =====================================================================
# SUBMIT / UPDATE RATING
# =====================================================================
@router.post("/", status_code=201)
def submit_rating(
    data: RatingCreate,
    db: Session = Depends(get_db),
    user: User = Depends(require_customer),
):
    booking = _owned_booking(db, data.booking_id, user)

    if booking.venue_id != data.venue_id:
        raise HTTPException(status_code=400, detail="Booking does not belong to this venue")

    if date.today() <= booking.event_date:
        raise HTTPException(status_code=400, detail="You can only rate after your event date")

    if booking.payment_status != PaymentStatus.COMPLETED:
        raise HTTPException(status_code=400, detail="Only paid bookings can be rated")

    rating = db.query(Rating).filter(
        Rating.venue_id == data.venue_id,
        Rating.user_id == user.id,
        Rating.booking_id == data.booking_id,
    ).first()

    if rating:
        rating.rating = data.rating
        rating.feedback = data.feedback or ""
        rating.user_name = data.user_name or ""
    else:
        rating = Rating(
            venue_id=data.venue_id,
            user_id=user.id,
            booking_id=data.booking_id,
            rating=data.rating,
            feedback=data.feedback or "",
            user_name=data.user_name or "",
        )
        db.add(rating)
    db.flush()

    average, total = db.query(func.avg(Rating.rating), func.count(Rating.id)).filter(
        Rating.venue_id == data.venue_id
    ).one()
    average = round(float(average or 0), 1)

    db.query(Venue).filter(Venue.id == data.venue_id).update(
        {Venue.rating: average}, synchronize_session=False
    )
    db.commit()
    db.refresh(rating)

    delete_cache(venue_ratings_key(data.venue_id))
    logger.info(f"Rating saved | Venue={data.venue_id} | Booking={data.booking_id} | Avg={average}")

    return {
        "message": "Rating submitted successfully",
        "ratingId": rating.id,
        "averageRating": average,
        "totalRatings": total,
    }


# =====================================================================
# CUSTOMER RATING FOR A BOOKING
# =====================================================================
@router.get("/booking/{booking_id}")
def booking_rating(
    booking_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_customer),
):
    _owned_booking(db, booking_id, user)

    rating = db.query(Rating).filter(
        Rating.booking_id == booking_id,
        Rating.user_id == user.id
    ).first()

    return {
        "hasRating": rating is not None,
        "rating": RatingOut.model_validate(rating) if rating else None,
    }
