"""
Domain Exceptions
Error taxonomy of the booking admission and settlement core.

Every exception carries a machine-readable ``error_code``, a human readable
``message``, optional structured ``details`` and the HTTP status the API
layer renders it with.
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from fastapi import status


class CourtsideError(Exception):
    """Base class for all domain errors"""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_message: str = "Request could not be processed"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.error_code = self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"detail": self.message, "error_code": self.error_code, "details": self.details}


# Admission errors
class ValidationError(CourtsideError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Please check your input"


class CouponInvalid(CourtsideError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Coupon invalid or expired"


class InsufficientWalletBalance(CourtsideError):
    """Wallet cannot cover the booking; details let the client offer a top-up"""

    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_message = "Insufficient wallet balance"

    def __init__(self, wallet_balance: Decimal, required_amount: Decimal):
        self.wallet_balance = wallet_balance
        self.required_amount = required_amount
        self.shortfall = required_amount - wallet_balance
        super().__init__(
            details={
                "wallet_balance": str(wallet_balance),
                "required_amount": str(required_amount),
                "shortfall": str(self.shortfall),
            }
        )


class SlotConflict(CourtsideError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "The selected time slot is no longer available, please pick another time"


class PaymentReferenceMissing(CourtsideError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "A payment reference is required for this payment method"


class PaymentVerificationFailed(CourtsideError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_message = "Payment could not be verified"


class InternalError(CourtsideError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error occurred"


# Wallet ledger errors
class InvalidAmount(CourtsideError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_message = "Amount must be greater than zero"


class InsufficientFunds(CourtsideError):
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    default_message = "Insufficient funds"


# Lifecycle errors
class NotFound(CourtsideError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class Unauthorized(CourtsideError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Not authorized to perform this action"


class InvalidTransition(CourtsideError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Booking cannot move to the requested status"


class CancellationWindowExpired(CourtsideError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bookings can only be cancelled at least 2 hours in advance"
