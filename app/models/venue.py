from sqlalchemy import Column, Integer, String, Float, ForeignKey, Enum
from sqlalchemy.orm import relationship
from app.db.session import Base
from app.models.enums import VenueStatus


class Venue(Base):
    __tablename__ = "venues"

    id = Column(Integer, primary_key=True, index=True)

    # Ownership
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    name = Column(String, nullable=False)
    description = Column(String)
    location = Column(String, nullable=False)
    capacity = Column(Integer, nullable=False)

    # Pricing
    price_per_day = Column(Float, nullable=False, default=0.0)

    status = Column(Enum(VenueStatus), nullable=False, default=VenueStatus.ACTIVE)

    # Aggregates
    total_bookings = Column(Integer, nullable=False, default=0)
    rating = Column(Float, nullable=False, default=0.0)

    # RELATIONSHIPS -------------------------------------

    owner = relationship("User", back_populates="venues")

    bookings = relationship("Booking", back_populates="venue", cascade="all, delete")

    ratings = relationship("Rating", back_populates="venue", cascade="all, delete")
