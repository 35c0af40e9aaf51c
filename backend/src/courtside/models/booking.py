"""
Booking Model
Reservations of a court for a time window, plus the slot claims guarding them
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Integer, Numeric, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from courtside.database import Base


class BookingStatus(str, enum.Enum):
    """Status of booking"""

    PENDING = "pending"  # Awaiting owner/admin confirmation
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"  # Cancelled by the customer
    COMPLETED = "completed"  # Session took place
    REJECTED = "rejected"  # Declined by owner/admin


ACTIVE_STATUSES = (BookingStatus.PENDING, BookingStatus.CONFIRMED)
TERMINAL_STATUSES = (BookingStatus.CANCELLED, BookingStatus.COMPLETED, BookingStatus.REJECTED)


class PaymentMethod(str, enum.Enum):
    WALLET = "wallet"
    STRIPE = "stripe"
    UPI = "upi"


class Booking(Base):
    """
    Booking Model
    start_time/end_time are facility-local "HH:MM" strings on booking_date
    """

    __tablename__ = "bookings"
    __table_args__ = (
        CheckConstraint("discount_amount >= 0", name="ck_bookings_discount_non_negative"),
        CheckConstraint("final_amount >= 0", name="ck_bookings_final_non_negative"),
        CheckConstraint("start_time < end_time", name="ck_bookings_time_order"),
    )

    # Primary Key
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Associations
    user_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    court_id = Column(Uuid, ForeignKey("courts.id"), nullable=False, index=True)
    coupon_id = Column(Uuid, ForeignKey("coupons.id"), nullable=True)

    # When
    booking_date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)

    # Pricing
    total_amount = Column(Numeric(8, 2), nullable=False)
    discount_amount = Column(Numeric(8, 2), nullable=False, default=0)
    final_amount = Column(Numeric(8, 2), nullable=False)

    status = Column(
        SQLEnum(BookingStatus, values_callable=lambda x: [e.value for e in x]),
        default=BookingStatus.PENDING,
        nullable=False,
        index=True,
    )

    # Payment
    payment_method = Column(
        SQLEnum(PaymentMethod, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        default=PaymentMethod.WALLET,
    )
    payment_intent_id = Column(String(255), unique=True)  # external reference for stripe/upi, one booking each

    # Rewards
    reward_points_earned = Column(Integer, default=0, nullable=False)
    reward_points_redeemed = Column(Integer, default=0, nullable=False)

    notes = Column(Text)

    # Status changes
    status_changed_by = Column(Uuid)
    cancellation_reason = Column(Text)
    cancelled_at = Column(DateTime)
    cancelled_by = Column(String(20))  # user, admin

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    user = relationship("User", back_populates="bookings")
    court = relationship("Court", back_populates="bookings")
    coupon = relationship("Coupon")
    slot_claims = relationship("CourtSlotClaim", back_populates="booking", cascade="all, delete-orphan")

    def __repr__(self):
        return (
            f"<Booking(id='{self.id}', court='{self.court_id}', date='{self.booking_date}', "
            f"time='{self.start_time}-{self.end_time}', status='{self.status}')>"
        )


class CourtSlotClaim(Base):
    """
    One row per slot granule held by an active booking.
    The unique constraint rejects a second active booking over the same granule
    at commit time, whatever the interleaving of concurrent admissions.
    """

    __tablename__ = "court_slot_claims"
    __table_args__ = (UniqueConstraint("court_id", "slot_date", "slot_start", name="uq_court_slot_claim"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    booking_id = Column(Uuid, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    court_id = Column(Uuid, ForeignKey("courts.id"), nullable=False)
    slot_date = Column(Date, nullable=False)
    slot_start = Column(String(5), nullable=False)

    booking = relationship("Booking", back_populates="slot_claims")

    def __repr__(self):
        return f"<CourtSlotClaim(court='{self.court_id}', date='{self.slot_date}', start='{self.slot_start}')>"
