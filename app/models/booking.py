from datetime import datetime

from sqlalchemy import (
    Column, Integer, String, Date, Time, DateTime, Float, ForeignKey, Enum, Index
)
from sqlalchemy.orm import relationship
from app.db.session import Base
from app.models.enums import BookingStatus, PaymentStatus


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    venue_id = Column(Integer, ForeignKey("venues.id", ondelete="CASCADE"), nullable=False)
    customer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    # Customer contact snapshot (as submitted)
    customer_name = Column(String, nullable=False)
    customer_email = Column(String, nullable=False)
    customer_phone = Column(String, nullable=True)

    # EVENT
    event_date = Column(Date, nullable=False, index=True)
    event_type = Column(String, nullable=True)
    guest_count = Column(Integer, nullable=False)
    number_of_days = Column(Integer, nullable=True)
    special_requirements = Column(String, nullable=True)

    # COMMERCIAL
    amount = Column(Float, nullable=False)            # venue price for the stay
    payment_amount = Column(Integer, nullable=True)   # total the customer owes (INR)

    # LIFECYCLE
    status = Column(Enum(BookingStatus), nullable=False, default=BookingStatus.PENDING)
    payment_status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    cancellation_reason = Column(String, nullable=True)

    payment_deadline = Column(DateTime, nullable=True)
    payment_initiated_at = Column(DateTime, nullable=True)
    payment_completed_at = Column(DateTime, nullable=True)
    payment_error_description = Column(String, nullable=True)

    razorpay_order_id = Column(String, nullable=True, index=True)
    razorpay_payment_id = Column(String, nullable=True)

    # REMINDERS
    payment_reminder_count = Column(Integer, nullable=False, default=0)
    last_payment_reminder_sent_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    venue = relationship("Venue", back_populates="bookings")
    customer = relationship("User", back_populates="bookings")
    dates_timings = relationship(
        "BookingDateTiming",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingDateTiming.date",
    )
    ratings = relationship("Rating", back_populates="booking", cascade="all, delete")

    __table_args__ = (
        Index("ix_bookings_deadline_status", "payment_deadline", "status"),
        Index(
            "ix_bookings_status_payment_reminder",
            "status", "payment_status", "last_payment_reminder_sent_at",
        ),
    )


class BookingDateTiming(Base):
    __tablename__ = "booking_date_timings"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False)

    date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=True)
    end_time = Column(Time, nullable=True)

    booking = relationship("Booking", back_populates="dates_timings")
