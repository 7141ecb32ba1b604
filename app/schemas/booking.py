from pydantic import BaseModel, EmailStr, Field, model_validator
from datetime import date, time, datetime
from typing import List, Optional

from app.models.enums import BookingStatus, PaymentStatus


class DateTiming(BaseModel):
    date: date
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    @model_validator(mode="after")
    def check_range(self):
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self

    model_config = {"from_attributes": True}


class BookingBase(BaseModel):
    venue_id: int
    event_date: date
    event_type: Optional[str] = None
    guest_count: int = Field(gt=0)
    special_requirements: Optional[str] = None
    dates_timings: List[DateTiming] = []
    number_of_days: Optional[int] = Field(default=None, gt=0)


class BookingCreate(BookingBase):
    customer_name: str
    customer_email: EmailStr
    customer_phone: Optional[str] = None


class InquiryUserDetails(BaseModel):
    full_name: str
    email: EmailStr
    phone: str
    event_type: str
    guest_count: int = Field(gt=0)
    special_requests: Optional[str] = None


class InquiryCreate(BaseModel):
    venue_id: int
    event_date: date
    user_details: InquiryUserDetails
    dates_timings: List[DateTiming] = []
    number_of_days: Optional[int] = Field(default=None, gt=0)


class BookingStatusUpdate(BaseModel):
    status: str


class BookingCancel(BaseModel):
    reason: Optional[str] = None


class BookingOut(BaseModel):
    id: int
    venue_id: int
    customer_id: int
    customer_name: str
    customer_email: str
    event_date: date
    event_type: Optional[str] = None
    guest_count: int
    dates_timings: List[DateTiming] = []

    amount: float
    payment_amount: Optional[int] = None

    status: BookingStatus
    payment_status: PaymentStatus
    payment_deadline: Optional[datetime] = None
    payment_completed_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None

    model_config = {"from_attributes": True}


class BookingCreated(BaseModel):
    message: str
    booking_id: int
    status: BookingStatus
    payment_status: PaymentStatus
    amount: float
    platform_fee: float
    gst: float
    payment_amount: int
