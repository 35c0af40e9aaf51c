"""
Coupon Model
Discount rules redeemable on bookings
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from courtside.database import Base


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Coupon(Base):
    """
    Coupon Model
    facility_id scopes the coupon to one facility; NULL means platform-wide
    """

    __tablename__ = "coupons"
    __table_args__ = (
        CheckConstraint("discount_value > 0", name="ck_coupons_discount_value_positive"),
        CheckConstraint("used_count >= 0", name="ck_coupons_used_count_non_negative"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    facility_id = Column(Uuid, ForeignKey("facilities.id"), nullable=True, index=True)

    code = Column(String(50), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text)

    discount_type = Column(
        SQLEnum(DiscountType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    discount_value = Column(Numeric(8, 2), nullable=False)
    min_amount = Column(Numeric(8, 2))
    max_discount = Column(Numeric(8, 2))

    valid_from = Column(DateTime, nullable=False)
    valid_until = Column(DateTime, nullable=False)

    usage_limit = Column(Integer)  # NULL = unlimited
    used_count = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    facility = relationship("Facility", back_populates="coupons")

    def __repr__(self):
        return f"<Coupon(code='{self.code}', type='{self.discount_type}', value={self.discount_value})>"
