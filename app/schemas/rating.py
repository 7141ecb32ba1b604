from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional


class RatingCreate(BaseModel):
    venue_id: int
    booking_id: int
    rating: int = Field(ge=1, le=5)
    feedback: Optional[str] = ""
    user_name: Optional[str] = ""


class RatingOut(BaseModel):
    id: int
    venue_id: int
    booking_id: int
    rating: int
    feedback: str
    user_name: str
    created_at: datetime

    model_config = {"from_attributes": True}
