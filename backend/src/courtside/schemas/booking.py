"""
Booking Pydantic Schemas
Request and response models for Booking endpoints
"""

from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from courtside.models.booking import BookingStatus, PaymentMethod

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class BookingCreate(BaseModel):
    """Schema for creating a new booking"""

    model_config = ConfigDict(extra="forbid")

    court_id: UUID
    booking_date: date
    start_time: str = Field(..., pattern=HHMM_PATTERN, description="Slot start, HH:MM facility-local")
    end_time: Optional[str] = Field(None, pattern=HHMM_PATTERN, description="Slot end, HH:MM facility-local")
    duration_hours: Optional[float] = Field(None, gt=0, le=24)

    payment_method: PaymentMethod
    payment_intent_id: Optional[str] = Field(None, max_length=255)
    coupon_code: Optional[str] = Field(None, max_length=50)
    use_reward_points: bool = False

    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("coupon_code")
    @classmethod
    def normalize_coupon_code(cls, v):
        """Coupon codes are case-insensitive"""
        if v is None:
            return v
        v = v.strip().upper()
        return v or None


class TransitionRequest(BaseModel):
    """Optional reason attached to a status change"""

    reason: Optional[str] = Field(None, max_length=500)


# Response Booking schema
class BookingResponse(BaseModel):
    """Schema for Booking responses"""

    id: UUID
    user_id: UUID
    court_id: UUID
    coupon_id: Optional[UUID] = None

    booking_date: date
    start_time: str
    end_time: str

    total_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal

    status: BookingStatus
    payment_method: PaymentMethod
    payment_intent_id: Optional[str] = None

    reward_points_earned: int
    reward_points_redeemed: int
    notes: Optional[str] = None

    status_changed_by: Optional[UUID] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[str] = None

    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


# List response
class BookingList(BaseModel):
    """Schema for list of bookings"""

    bookings: List[BookingResponse]
    total: int
    page: int = 1
    page_size: int = 50


class BookedSlot(BaseModel):
    """An occupied interval on a court"""

    booking_id: UUID
    start_time: str
    end_time: str
    status: BookingStatus


class AvailabilityResponse(BaseModel):
    """Result of an availability check"""

    available: bool
    court_id: UUID
    booking_date: date
    start_time: str
    end_time: str
    message: str
