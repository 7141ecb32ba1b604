from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.models.user import User
from app.models.venue import Venue
from app.models.enums import VenueStatus
from app.schemas.venue import VenueCreate, VenueUpdate, VenueOut
from app.core.dependencies import require_venue_owner
from app.core.logging_config import get_logger
from app.core.redis import delete_cache, venue_ratings_key

router = APIRouter(prefix="/venues", tags=["Venues"])
logger = get_logger()


# =====================================================================
# CREATE VENUE (Owner Only)
# =====================================================================
@router.post("/", response_model=VenueOut, status_code=201)
def create_venue(
    data: VenueCreate,
    db: Session = Depends(get_db),
    owner: User = Depends(require_venue_owner),
):
    venue = Venue(
        owner_id=owner.id,
        name=data.name,
        description=data.description,
        location=data.location,
        capacity=data.capacity,
        price_per_day=data.price_per_day,
        status=VenueStatus.ACTIVE,
    )

    db.add(venue)
    db.commit()
    db.refresh(venue)

    logger.info(f"Venue Created | Owner={owner.email} | Venue={venue.id}")
    return venue


# =====================================================================
# VENUE DETAILS
# =====================================================================
@router.get("/{venue_id}", response_model=VenueOut)
def get_venue(venue_id: int, db: Session = Depends(get_db)):
    venue = db.query(Venue).filter(Venue.id == venue_id).first()
    if not venue:
        raise HTTPException(status_code=404, detail="Venue not found")
    return venue


# =====================================================================
# TOGGLE ACTIVE (Owner Only + Ownership Check)
# =====================================================================
@router.put("/{venue_id}/toggle-active", response_model=VenueOut)
def toggle_active(
    venue_id: int,
    db: Session = Depends(get_db),
    owner: User = Depends(require_venue_owner),
):
    venue = db.query(Venue).filter(
        Venue.id == venue_id,
        Venue.owner_id == owner.id
    ).first()
    if not venue:
        raise HTTPException(status_code=404, detail="Venue not found")

    venue.status = (
        VenueStatus.INACTIVE if venue.status == VenueStatus.ACTIVE else VenueStatus.ACTIVE
    )
    db.commit()
    db.refresh(venue)

    logger.info(f"Venue {venue.id} is now {venue.status.value}")
    return venue


def _owned_venue(db: Session, venue_id: int, owner: User) -> Venue:
    venue = db.query(Venue).filter(
        Venue.id == venue_id,
        Venue.owner_id == owner.id
    ).first()
    if not venue:
        raise HTTPException(status_code=404, detail="Venue not found or access denied")
    return venue


# =====================================================================
# UPDATE VENUE (Owner Only)
# =====================================================================
@router.put("/{venue_id}")
def update_venue(
    venue_id: int,
    data: VenueUpdate,
    db: Session = Depends(get_db),
    owner: User = Depends(require_venue_owner),
):
    venue = _owned_venue(db, venue_id, owner)

    # Only the fields sent are changed; bookings keep their stored amounts
    # and pick up a new price at payment order creation
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(venue, field, value)

    db.commit()
    db.refresh(venue)

    logger.info(f"Venue Updated | Owner={owner.email} | Venue={venue.id}")
    return {
        "message": "Venue updated successfully",
        "venue": VenueOut.model_validate(venue),
    }


# =====================================================================
# DELETE VENUE (Owner Only)
# =====================================================================
@router.delete("/{venue_id}")
def delete_venue(
    venue_id: int,
    db: Session = Depends(get_db),
    owner: User = Depends(require_venue_owner),
):
    venue = _owned_venue(db, venue_id, owner)
    booking_count = len(venue.bookings)

    # Bookings (with their date timings) and ratings go with the venue
    db.delete(venue)
    db.commit()
    delete_cache(venue_ratings_key(venue_id))

    logger.info(
        f"Venue Deleted | Owner={owner.email} | Venue={venue_id} | Bookings={booking_count}"
    )
    return {"message": "Venue deleted successfully"}
