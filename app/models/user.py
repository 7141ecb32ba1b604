from sqlalchemy import Column, Integer, String, Enum
from sqlalchemy.orm import relationship
from app.db.session import Base
from app.models.enums import UserRole


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    phone = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.CUSTOMER)

    # User → Venues they own
    venues = relationship(
        "Venue",
        back_populates="owner",
        cascade="all, delete"
    )

    # User → Bookings they made as a customer
    bookings = relationship(
        "Booking",
        back_populates="customer",
        cascade="all, delete"
    )

    ratings = relationship(
        "Rating",
        back_populates="user",
        cascade="all, delete"
    )
