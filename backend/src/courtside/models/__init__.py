"""
Database Models Package
Exports all SQLAlchemy models
"""

from courtside.models.booking import Booking, BookingStatus, CourtSlotClaim, PaymentMethod
from courtside.models.coupon import Coupon, DiscountType
from courtside.models.facility import Court, Facility, SportType
from courtside.models.notification import Notification
from courtside.models.user import User, UserRole
from courtside.models.wallet import TransactionType, WalletTransaction

__all__ = [
    "User",
    "UserRole",
    "Facility",
    "Court",
    "SportType",
    "Booking",
    "BookingStatus",
    "CourtSlotClaim",
    "PaymentMethod",
    "Coupon",
    "DiscountType",
    "WalletTransaction",
    "TransactionType",
    "Notification",
]
