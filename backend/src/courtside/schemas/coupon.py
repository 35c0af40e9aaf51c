"""
Coupon Schemas
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from courtside.models.coupon import DiscountType


class CouponResponse(BaseModel):
    id: UUID
    facility_id: Optional[UUID] = None
    code: str
    name: str
    description: Optional[str] = None
    discount_type: DiscountType
    discount_value: Decimal
    min_amount: Optional[Decimal] = None
    max_discount: Optional[Decimal] = None
    valid_from: datetime
    valid_until: datetime

    class Config:
        from_attributes = True


class CouponValidateRequest(BaseModel):
    """Check a coupon against an order amount"""

    code: str = Field(..., min_length=1, max_length=50)
    amount: Decimal = Field(..., ge=0)
    facility_id: Optional[UUID] = None


class CouponValidateResponse(BaseModel):
    valid: bool
    code: str
    discount_amount: Decimal
    final_amount: Decimal
    coupon: Optional[CouponResponse] = None
