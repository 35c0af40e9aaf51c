"""
Tests for Booking Admission: validation, pricing, settlement and concurrency
"""

import threading
from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from courtside import database
from courtside.errors import (
    CouponInvalid,
    InsufficientWalletBalance,
    InternalError,
    PaymentReferenceMissing,
    PaymentVerificationFailed,
    SlotConflict,
    ValidationError,
)
from courtside.models.booking import Booking, BookingStatus, CourtSlotClaim, PaymentMethod
from courtside.models.coupon import Coupon, DiscountType
from courtside.models.facility import Court
from courtside.models.user import User
from courtside.models.wallet import TransactionType, WalletTransaction
from courtside.services.booking_service import BookingAdmissionService
from courtside.services.payment_service import PaymentConfirmation
from courtside.services.wallet_service import WalletService


def submit(db: Session, user: User, court: Court, booking_date: date, start="10:00", end="12:00", **kwargs):
    kwargs.setdefault("payment_method", PaymentMethod.WALLET)
    return BookingAdmissionService(db).submit_booking(
        user_id=user.id,
        court_id=court.id,
        booking_date=booking_date,
        start_time=start,
        end_time=end,
        **kwargs,
    )


class TestWalletAdmission:
    """Bookings paid from the wallet"""

    def test_two_hour_booking_debits_wallet_and_accrues_points(
        self, db: Session, customer: User, court: Court, booking_date: date
    ):
        """500/hr for 2h with 2000 in the wallet"""
        WalletService.top_up(db, customer.id, 2000)

        booking = submit(db, customer, court, booking_date)

        assert booking.total_amount == Decimal("1000.00")
        assert booking.discount_amount == Decimal("0.00")
        assert booking.final_amount == Decimal("1000.00")
        assert booking.status == BookingStatus.CONFIRMED
        assert booking.reward_points_earned == 100

        db.refresh(customer)
        assert customer.wallet_balance == Decimal("1000.00")
        assert customer.reward_points == 100

        debit = (
            db.query(WalletTransaction)
            .filter(WalletTransaction.user_id == customer.id, WalletTransaction.type == TransactionType.DEBIT)
            .one()
        )
        assert debit.amount == Decimal("1000.00")
        assert debit.balance_after == Decimal("1000.00")
        assert debit.reference_id == str(booking.id)

        claims = db.query(CourtSlotClaim).filter(CourtSlotClaim.booking_id == booking.id).all()
        assert sorted(c.slot_start for c in claims) == ["10:00", "10:30", "11:00", "11:30"]

    def test_insufficient_balance_creates_nothing(
        self, db: Session, customer: User, court: Court, booking_date: date
    ):
        WalletService.top_up(db, customer.id, 500)

        with pytest.raises(InsufficientWalletBalance) as exc_info:
            submit(db, customer, court, booking_date)

        error = exc_info.value
        assert error.shortfall == Decimal("500.00")
        assert error.details == {
            "wallet_balance": "500.00",
            "required_amount": "1000.00",
            "shortfall": "500.00",
        }
        assert db.query(Booking).count() == 0
        assert db.query(CourtSlotClaim).count() == 0
        assert WalletService.get_balance(db, customer.id) == Decimal("500.00")

    def test_coupon_applied_and_counted_once(
        self, db: Session, customer: User, court: Court, coupon: Coupon, booking_date: date
    ):
        WalletService.top_up(db, customer.id, 2000)

        booking = submit(db, customer, court, booking_date, coupon_code="SAVE10")

        assert booking.discount_amount == Decimal("100.00")
        assert booking.final_amount == Decimal("900.00")
        assert booking.coupon_id == coupon.id
        assert booking.reward_points_earned == 90

        db.refresh(coupon)
        assert coupon.used_count == 1
        assert WalletService.get_balance(db, customer.id) == Decimal("1100.00")

    def test_invalid_coupon_is_rejected_without_side_effects(
        self, db: Session, customer: User, court: Court, booking_date: date
    ):
        WalletService.top_up(db, customer.id, 2000)

        with pytest.raises(CouponInvalid):
            submit(db, customer, court, booking_date, coupon_code="NOPE")

        assert db.query(Booking).count() == 0
        assert WalletService.get_balance(db, customer.id) == Decimal("2000.00")

    def test_exhausted_coupon_rejected(
        self, db: Session, customer: User, court: Court, coupon: Coupon, booking_date: date
    ):
        coupon.usage_limit = 1
        coupon.used_count = 1
        db.commit()
        WalletService.top_up(db, customer.id, 2000)

        with pytest.raises(CouponInvalid):
            submit(db, customer, court, booking_date, coupon_code="SAVE10")

    def test_reward_points_redeemed(self, db: Session, customer: User, court: Court, booking_date: date):
        customer.reward_points = 200
        db.commit()
        WalletService.top_up(db, customer.id, 2000)

        booking = submit(db, customer, court, booking_date, use_reward_points=True)

        assert booking.discount_amount == Decimal("20.00")
        assert booking.final_amount == Decimal("980.00")
        assert booking.reward_points_redeemed == 200
        assert booking.reward_points_earned == 98

        db.refresh(customer)
        assert customer.reward_points == 98

    def test_fully_discounted_booking_needs_no_funds(
        self, db: Session, customer: User, court: Court, coupon: Coupon, booking_date: date
    ):
        coupon.discount_type = DiscountType.FIXED
        coupon.discount_value = Decimal("5000")
        coupon.min_amount = None
        db.commit()

        booking = submit(db, customer, court, booking_date, coupon_code="SAVE10")

        assert booking.final_amount == Decimal("0.00")
        assert booking.reward_points_earned == 0
        assert db.query(WalletTransaction).count() == 0

    def test_failure_after_debit_rolls_everything_back(
        self, db: Session, customer: User, court: Court, coupon: Coupon, booking_date: date, mocker
    ):
        """A booking exists if and only if its payment does"""
        WalletService.top_up(db, customer.id, 2000)
        real_debit = WalletService.debit

        def debit_then_fail(*args, **kwargs):
            real_debit(*args, **kwargs)
            raise OperationalError("UPDATE users", {}, Exception("disk I/O error"))

        mocker.patch.object(WalletService, "debit", side_effect=debit_then_fail)

        with pytest.raises(InternalError):
            submit(db, customer, court, booking_date, coupon_code="SAVE10")

        assert db.query(Booking).count() == 0
        assert db.query(CourtSlotClaim).count() == 0
        assert db.query(WalletTransaction).filter(WalletTransaction.type == TransactionType.DEBIT).count() == 0
        assert WalletService.get_balance(db, customer.id) == Decimal("2000.00")
        db.refresh(coupon)
        assert coupon.used_count == 0


class TestExternalPaymentAdmission:
    """Stripe and UPI bookings"""

    def test_stripe_booking_is_pending(self, db: Session, customer: User, court: Court, booking_date: date):
        booking = submit(
            db, customer, court, booking_date, payment_method=PaymentMethod.STRIPE, payment_intent_id="pi_123"
        )

        assert booking.status == BookingStatus.PENDING
        assert booking.payment_intent_id == "pi_123"
        assert booking.reward_points_earned == 100
        assert db.query(WalletTransaction).count() == 0

    def test_missing_reference(self, db: Session, customer: User, court: Court, booking_date: date):
        for reference in [None, "", "   "]:
            with pytest.raises(PaymentReferenceMissing):
                submit(db, customer, court, booking_date, payment_method="upi", payment_intent_id=reference)

        assert db.query(Booking).count() == 0

    def test_reference_cannot_pay_twice(self, db: Session, customer: User, court: Court, booking_date: date):
        submit(db, customer, court, booking_date, "10:00", "11:00", payment_method="upi", payment_intent_id="UPI-1")

        with pytest.raises(PaymentVerificationFailed):
            submit(db, customer, court, booking_date, "12:00", "13:00", payment_method="upi", payment_intent_id="UPI-1")

    def test_verified_amount_too_low(self, db: Session, customer: User, court: Court, booking_date: date):
        confirmation = PaymentConfirmation(reference="pi_1", amount=Decimal("999.99"), currency="INR", status="succeeded")

        with pytest.raises(PaymentVerificationFailed):
            submit(
                db,
                customer,
                court,
                booking_date,
                payment_method=PaymentMethod.STRIPE,
                payment_intent_id="pi_1",
                verified_payment=confirmation,
            )

    def test_unknown_payment_method(self, db: Session, customer: User, court: Court, booking_date: date):
        with pytest.raises(ValidationError):
            submit(db, customer, court, booking_date, payment_method="cash")


class TestSlotValidation:
    """Request validation before any write"""

    def test_duration_derives_end_time(self, db: Session, customer: User, court: Court, booking_date: date):
        WalletService.top_up(db, customer.id, 2000)

        booking = submit(db, customer, court, booking_date, "18:00", None, duration_hours=1.5)

        assert booking.end_time == "19:30"
        assert booking.final_amount == Decimal("750.00")

    def test_duration_must_match_end_time(self, db: Session, customer: User, court: Court, booking_date: date):
        with pytest.raises(ValidationError):
            submit(db, customer, court, booking_date, "10:00", "12:00", duration_hours=1)

    @pytest.mark.parametrize(
        "start,end",
        [
            ("12:00", "11:00"),  # inverted
            ("12:00", "12:00"),  # empty
            ("10:15", "11:15"),  # not on a slot boundary
            ("05:00", "07:00"),  # before opening
            ("21:00", "23:00"),  # after closing
            ("9:00", "10:00"),  # malformed
        ],
    )
    def test_invalid_slots(self, db: Session, customer: User, court: Court, booking_date: date, start, end):
        with pytest.raises(ValidationError):
            submit(db, customer, court, booking_date, start, end)

        assert db.query(Booking).count() == 0

    def test_missing_end_and_duration(self, db: Session, customer: User, court: Court, booking_date: date):
        with pytest.raises(ValidationError):
            submit(db, customer, court, booking_date, "10:00", None)

    def test_slot_in_the_past(self, db: Session, customer: User, court: Court, booking_date: date):
        now = datetime.combine(booking_date, datetime.min.time()) + timedelta(hours=11)

        with pytest.raises(ValidationError):
            submit(db, customer, court, booking_date, "10:00", "12:00", now=now)

    def test_inactive_court(self, db: Session, customer: User, court: Court, booking_date: date):
        court.is_active = False
        db.commit()

        with pytest.raises(ValidationError):
            submit(db, customer, court, booking_date)


class TestDoubleBooking:
    """No two active bookings may overlap on a court"""

    def test_overlapping_request_conflicts(
        self, db: Session, customer: User, other_customer: User, court: Court, booking_date: date
    ):
        WalletService.top_up(db, customer.id, 2000)
        WalletService.top_up(db, other_customer.id, 2000)
        submit(db, customer, court, booking_date, "14:00", "15:00")

        with pytest.raises(SlotConflict) as exc_info:
            submit(db, other_customer, court, booking_date, "14:30", "15:30")

        assert exc_info.value.status_code == 409
        assert WalletService.get_balance(db, other_customer.id) == Decimal("2000.00")

    def test_adjacent_requests_both_succeed(
        self, db: Session, customer: User, court: Court, booking_date: date
    ):
        WalletService.top_up(db, customer.id, 2000)

        submit(db, customer, court, booking_date, "14:00", "15:00")
        submit(db, customer, court, booking_date, "15:00", "16:00")

        assert db.query(Booking).count() == 2

    def test_slot_claim_collision_maps_to_slot_conflict(
        self, db: Session, customer: User, court: Court, booking_date: date, mocker
    ):
        """The unique claim constraint catches what the pre-check misses"""
        WalletService.top_up(db, customer.id, 2000)
        submit(db, customer, court, booking_date, "14:00", "15:00")
        mocker.patch("courtside.services.booking_service.find_conflicts", return_value=[])

        with pytest.raises(SlotConflict):
            submit(db, customer, court, booking_date, "14:00", "15:00")

        assert db.query(Booking).count() == 1
        assert WalletService.get_balance(db, customer.id) == Decimal("1500.00")

    @pytest.mark.slow
    def test_concurrent_admissions_exactly_one_wins(
        self, db: Session, customer: User, other_customer: User, court: Court, booking_date: date
    ):
        """Two simultaneous requests for the same court, date and 14:00-15:00"""
        WalletService.top_up(db, customer.id, 2000)
        WalletService.top_up(db, other_customer.id, 2000)
        user_ids = [customer.id, other_customer.id]
        court_id = court.id

        barrier = threading.Barrier(len(user_ids))
        outcomes = []
        lock = threading.Lock()

        def attempt(user_id):
            session = database.get_session_local()()
            try:
                barrier.wait()
                BookingAdmissionService(session).submit_booking(
                    user_id=user_id,
                    court_id=court_id,
                    booking_date=booking_date,
                    start_time="14:00",
                    end_time="15:00",
                    payment_method=PaymentMethod.WALLET,
                )
                result = "created"
            except SlotConflict:
                result = "conflict"
            except Exception as e:  # surfaced through the assertion below
                result = f"error: {e!r}"
            finally:
                session.close()
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=attempt, args=(user_id,)) for user_id in user_ids]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=60)

        assert sorted(outcomes) == ["conflict", "created"], outcomes
        db.expire_all()
        active = db.query(Booking).filter(Booking.status.in_([BookingStatus.PENDING, BookingStatus.CONFIRMED])).all()
        assert len(active) == 1
        balances = sorted(WalletService.get_balance(db, user_id) for user_id in user_ids)
        assert balances == [Decimal("1500.00"), Decimal("2000.00")]
