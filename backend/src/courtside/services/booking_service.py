"""
Booking Admission Service
Validates, prices, settles and commits booking requests
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from courtside.config import settings
from courtside.errors import (
    CourtsideError,
    InsufficientFunds,
    InsufficientWalletBalance,
    InternalError,
    PaymentReferenceMissing,
    PaymentVerificationFailed,
    SlotConflict,
    ValidationError,
)
from courtside.models.booking import Booking, BookingStatus, CourtSlotClaim, PaymentMethod
from courtside.models.facility import Court
from courtside.models.user import User
from courtside.services.availability_service import find_conflicts
from courtside.services.coupon_service import CouponCatalog
from courtside.services.court_service import get_court, is_bookable
from courtside.services.payment_service import PaymentConfirmation
from courtside.services.pricing_service import PriceBreakdown, compute_final_amount
from courtside.services.wallet_service import ZERO, WalletService
from courtside.utils.timeslots import (
    add_hours,
    facility_now,
    is_aligned,
    minutes_of,
    parse_hhmm,
    slot_datetime,
    slot_granules,
    utcnow,
)

logger = logging.getLogger(__name__)


@dataclass
class BookingQuote:
    """A validated slot with its price, before anything is written"""

    court: Court
    booking_date: date
    start_time: str
    end_time: str
    duration_hours: Decimal
    pricing: PriceBreakdown


class BookingAdmissionService:
    """
    Admission controller.

    submit_booking runs: validate -> price -> payment preconditions -> (one
    transaction: lock court, re-check availability, insert booking and slot
    claims, redeem coupon and points, debit wallet, accrue points) -> commit.
    """

    def __init__(self, db: Session, coupon_catalog=None):
        self.db = db
        self.coupon_catalog = coupon_catalog or CouponCatalog(db)

    def quote_booking(
        self,
        user_id: UUID,
        court_id: UUID,
        booking_date: date,
        start_time: str,
        end_time: Optional[str] = None,
        duration_hours: Optional[float] = None,
        coupon_code: Optional[str] = None,
        use_reward_points: bool = False,
        now: Optional[datetime] = None,
    ) -> BookingQuote:
        """
        Validate a request and price it without side effects.

        Raises:
            ValidationError: malformed request, unknown court, slot outside hours or in the past
            CouponInvalid: the coupon code does not validate
        """
        now = now or facility_now()
        court, start, end = self._validate_slot(court_id, booking_date, start_time, end_time, duration_hours, now)

        user = self.db.query(User).filter(User.id == user_id).first()
        if user is None or not user.is_active:
            raise ValidationError("User not found or inactive")

        duration = Decimal(minutes_of(end) - minutes_of(start)) / Decimal(60)
        pricing = compute_final_amount(
            base_price=court.price_per_hour,
            duration_hours=duration,
            reward_points_requested=use_reward_points,
            user_reward_points=user.reward_points or 0,
            coupon_code=coupon_code,
            coupon_catalog=self.coupon_catalog,
            facility_id=court.facility_id,
            now=utcnow(),
        )
        return BookingQuote(
            court=court,
            booking_date=booking_date,
            start_time=start,
            end_time=end,
            duration_hours=duration,
            pricing=pricing,
        )

    def submit_booking(
        self,
        user_id: UUID,
        court_id: UUID,
        booking_date: date,
        start_time: str,
        end_time: Optional[str],
        payment_method: PaymentMethod,
        payment_intent_id: Optional[str] = None,
        coupon_code: Optional[str] = None,
        use_reward_points: bool = False,
        duration_hours: Optional[float] = None,
        notes: Optional[str] = None,
        verified_payment: Optional[PaymentConfirmation] = None,
        now: Optional[datetime] = None,
    ) -> Booking:
        """
        Admit a booking request

        Args:
            user_id: Booking customer
            court_id: Court to book
            booking_date: Calendar date of the slot
            start_time: "HH:MM" slot start
            end_time: "HH:MM" slot end (or derived from duration_hours)
            payment_method: wallet, stripe or upi
            payment_intent_id: External payment reference (stripe/upi)
            coupon_code: Optional coupon
            use_reward_points: Redeem reward points for a discount
            duration_hours: Slot length; must agree with end_time when both are given
            notes: Free text from the customer
            verified_payment: Processor confirmation obtained before this call
            now: Facility-local time used for the "not in the past" check

        Returns:
            Booking: The committed booking with reward_points_earned set

        Raises:
            ValidationError, CouponInvalid, InsufficientWalletBalance,
            PaymentReferenceMissing, PaymentVerificationFailed, SlotConflict, InternalError
        """
        try:
            method = PaymentMethod(payment_method)
        except ValueError:
            raise ValidationError(f"Unsupported payment method: {payment_method}")

        quote = self.quote_booking(
            user_id=user_id,
            court_id=court_id,
            booking_date=booking_date,
            start_time=start_time,
            end_time=end_time,
            duration_hours=duration_hours,
            coupon_code=coupon_code,
            use_reward_points=use_reward_points,
            now=now,
        )
        final_amount = quote.pricing.final_amount

        # Payment preconditions, checked before any write
        reference = None
        if method == PaymentMethod.WALLET:
            balance = WalletService.get_balance(self.db, user_id)
            if balance < final_amount:
                logger.warning(f"Booking refused for user {user_id}: wallet {balance} < {final_amount}")
                raise InsufficientWalletBalance(wallet_balance=balance, required_amount=final_amount)
        else:
            reference = (payment_intent_id or "").strip()
            if not reference:
                raise PaymentReferenceMissing()
            if verified_payment is not None and verified_payment.amount < final_amount:
                raise PaymentVerificationFailed(
                    "Paid amount is lower than the booking amount",
                    details={"paid_amount": str(verified_payment.amount), "required_amount": str(final_amount)},
                )
            if self.db.query(Booking.id).filter(Booking.payment_intent_id == reference).first():
                raise PaymentVerificationFailed(
                    "Payment reference has already been used", details={"payment_intent_id": reference}
                )

        try:
            booking = self._admit(user_id, quote, method, reference, notes)
            self.db.commit()
        except CourtsideError:
            self.db.rollback()
            raise
        except IntegrityError as e:
            self.db.rollback()
            message = str(e.orig)
            if "court_slot_claim" in message:
                logger.warning(f"Slot claim collision on court {court_id} {booking_date} {quote.start_time}")
                raise SlotConflict(details=self._slot_details(quote)) from e
            if "payment_intent_id" in message:
                raise PaymentVerificationFailed("Payment reference has already been used") from e
            logger.error(f"Booking admission failed: {message}", exc_info=True)
            raise InternalError() from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Booking admission failed: {str(e)}", exc_info=True)
            raise InternalError() from e

        self.db.refresh(booking)
        logger.info(
            f"Booking {booking.id} admitted: court {court_id} {booking_date} {booking.start_time}-{booking.end_time}, "
            f"{method.value} {booking.final_amount} {settings.CURRENCY}, status {booking.status.value}"
        )
        return booking

    def _admit(
        self,
        user_id: UUID,
        quote: BookingQuote,
        method: PaymentMethod,
        reference: Optional[str],
        notes: Optional[str],
    ) -> Booking:
        """Everything that must commit or roll back as one unit"""
        court = quote.court
        pricing = quote.pricing

        # Serialize admissions for this court, then re-check with the lock held
        self.db.execute(select(Court.id).where(Court.id == court.id).with_for_update())
        conflicts = find_conflicts(self.db, court.id, quote.booking_date, quote.start_time, quote.end_time)
        if conflicts:
            logger.warning(f"Slot conflict on court {court.id} {quote.booking_date} {quote.start_time}-{quote.end_time}")
            raise SlotConflict(details=self._slot_details(quote))

        booking = Booking(
            id=uuid4(),
            user_id=user_id,
            court_id=court.id,
            coupon_id=pricing.coupon.id if pricing.coupon else None,
            booking_date=quote.booking_date,
            start_time=quote.start_time,
            end_time=quote.end_time,
            total_amount=pricing.total_amount,
            discount_amount=pricing.discount_amount,
            final_amount=pricing.final_amount,
            # Wallet payments settle immediately; external ones await owner/admin confirmation
            status=BookingStatus.CONFIRMED if method == PaymentMethod.WALLET else BookingStatus.PENDING,
            payment_method=method,
            payment_intent_id=reference,
            reward_points_redeemed=pricing.reward_points_redeemed,
            notes=notes,
        )
        self.db.add(booking)
        for slot_start in slot_granules(quote.start_time, quote.end_time):
            self.db.add(
                CourtSlotClaim(
                    booking_id=booking.id,
                    court_id=court.id,
                    slot_date=quote.booking_date,
                    slot_start=slot_start,
                )
            )
        self.db.flush()

        if pricing.coupon is not None:
            self.coupon_catalog.redeem(pricing.coupon)

        if pricing.reward_points_redeemed:
            self._spend_reward_points(user_id, pricing.reward_points_redeemed)

        if method == PaymentMethod.WALLET and pricing.final_amount > ZERO:
            try:
                WalletService.debit(
                    self.db,
                    user_id,
                    pricing.final_amount,
                    description=f"Booking {court.name} on {quote.booking_date} {quote.start_time}-{quote.end_time}",
                    reference_id=str(booking.id),
                )
            except InsufficientFunds:
                balance = WalletService.get_balance(self.db, user_id)
                raise InsufficientWalletBalance(wallet_balance=balance, required_amount=pricing.final_amount)

        points = int(pricing.final_amount // settings.REWARD_ACCRUAL_DIVISOR)
        if points:
            self.db.execute(
                update(User)
                .where(User.id == user_id)
                .values(reward_points=User.reward_points + points)
                .execution_options(synchronize_session=False)
            )
        booking.reward_points_earned = points
        self.db.flush()
        return booking

    def _spend_reward_points(self, user_id: UUID, points: int) -> None:
        result = self.db.execute(
            update(User)
            .where(User.id == user_id, User.reward_points >= points)
            .values(reward_points=User.reward_points - points)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ValidationError("Not enough reward points to redeem")

    def _validate_slot(
        self,
        court_id: UUID,
        booking_date: date,
        start_time: str,
        end_time: Optional[str],
        duration_hours: Optional[float],
        now: datetime,
    ):
        if not court_id or not booking_date or not start_time:
            raise ValidationError("court_id, booking_date and start_time are required")

        court = get_court(self.db, court_id)
        if not is_bookable(court):
            raise ValidationError("Court not found or not available for booking")

        try:
            parse_hhmm(start_time)
            if duration_hours is not None:
                if duration_hours <= 0:
                    raise ValueError("Duration must be positive")
                computed_end = add_hours(start_time, duration_hours)
                if end_time and end_time != computed_end:
                    raise ValueError(f"end_time {end_time} does not match start_time plus duration ({computed_end})")
                end_time = computed_end
            if not end_time:
                raise ValueError("Either end_time or duration_hours is required")
            parse_hhmm(end_time)
        except ValueError as e:
            raise ValidationError(str(e))

        if start_time >= end_time:
            raise ValidationError("start_time must be before end_time")

        if not (is_aligned(start_time) and is_aligned(end_time)):
            raise ValidationError(f"Slots must start and end on {settings.SLOT_GRANULARITY_MINUTES}-minute boundaries")

        if start_time < court.operating_hours_start or end_time > court.operating_hours_end:
            raise ValidationError(
                f"Court is open from {court.operating_hours_start} to {court.operating_hours_end}",
            )

        if slot_datetime(booking_date, start_time) <= now:
            raise ValidationError("Cannot book a slot in the past")

        return court, start_time, end_time

    @staticmethod
    def _slot_details(quote: BookingQuote) -> dict:
        return {
            "court_id": str(quote.court.id),
            "booking_date": quote.booking_date.isoformat(),
            "start_time": quote.start_time,
            "end_time": quote.end_time,
        }
