from pydantic import BaseModel, Field
from typing import Optional

from app.models.enums import VenueStatus


class VenueBase(BaseModel):
    name: str
    description: Optional[str] = None
    location: str
    capacity: int = Field(gt=0)
    price_per_day: float = Field(gt=0)


class VenueCreate(VenueBase):
    pass


class VenueUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    capacity: Optional[int] = Field(default=None, gt=0)
    price_per_day: Optional[float] = Field(default=None, gt=0)


class VenueOut(VenueBase):
    id: int
    owner_id: int
    status: VenueStatus
    total_bookings: int
    rating: float

    model_config = {"from_attributes": True}
