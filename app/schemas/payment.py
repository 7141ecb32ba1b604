from pydantic import BaseModel
from datetime import datetime
from typing import Optional

from app.models.enums import BookingStatus, PaymentStatus


class CreateOrderRequest(BaseModel):
    booking_id: int


class VerifyPaymentRequest(BaseModel):
    booking_id: int
    razorpay_order_id: str
    razorpay_payment_id: str
    razorpay_signature: str


class PaymentFailedRequest(BaseModel):
    booking_id: int
    error_description: Optional[str] = None


class PaymentStatusOut(BaseModel):
    booking_id: int
    status: BookingStatus
    payment_status: PaymentStatus
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    amount: float
    payment_amount: Optional[int] = None
    payment_deadline: Optional[datetime] = None
    payment_completed_at: Optional[datetime] = None
