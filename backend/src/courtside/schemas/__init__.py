"""
Pydantic Schemas Package
Exports all request/response schemas
"""

from courtside.schemas.booking import (
    AvailabilityResponse,
    BookedSlot,
    BookingCreate,
    BookingList,
    BookingResponse,
    TransitionRequest,
)
from courtside.schemas.coupon import CouponResponse, CouponValidateRequest, CouponValidateResponse
from courtside.schemas.user import LoginRequest, Token, UserCreate, UserResponse
from courtside.schemas.wallet import AddFundsRequest, WalletResponse, WalletTransactionResponse

__all__ = [
    "BookingCreate",
    "BookingResponse",
    "BookingList",
    "BookedSlot",
    "AvailabilityResponse",
    "TransitionRequest",
    "CouponResponse",
    "CouponValidateRequest",
    "CouponValidateResponse",
    "Token",
    "LoginRequest",
    "UserCreate",
    "UserResponse",
    "AddFundsRequest",
    "WalletResponse",
    "WalletTransactionResponse",
]
