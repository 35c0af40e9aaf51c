"""
Booking Lifecycle Service
Authorized, time-constrained status transitions of bookings
"""

import logging
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from sqlalchemy import case, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from courtside.config import settings
from courtside.database import get_session_local
from courtside.dependencies.auth import AuthContext
from courtside.errors import (
    CancellationWindowExpired,
    CourtsideError,
    InternalError,
    InvalidTransition,
    NotFound,
    Unauthorized,
    ValidationError,
)
from courtside.models.booking import TERMINAL_STATUSES, Booking, BookingStatus, CourtSlotClaim, PaymentMethod
from courtside.models.user import User, UserRole
from courtside.services.court_service import facility_owner_id
from courtside.services.wallet_service import ZERO, WalletService
from courtside.utils.timeslots import facility_now, slot_datetime, utcnow

logger = logging.getLogger(__name__)

# Allowed source status for each target status
ALLOWED_SOURCES = {
    BookingStatus.CONFIRMED: BookingStatus.PENDING,
    BookingStatus.REJECTED: BookingStatus.PENDING,
    BookingStatus.CANCELLED: BookingStatus.CONFIRMED,
    BookingStatus.COMPLETED: BookingStatus.CONFIRMED,
}


class BookingLifecycleService:
    """Moves bookings through pending -> confirmed|rejected, confirmed -> cancelled|completed"""

    def __init__(self, db: Session):
        self.db = db

    def transition(
        self,
        booking_id: UUID,
        target_status: BookingStatus,
        actor: AuthContext,
        reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Booking:
        """
        Apply a status transition

        Args:
            booking_id: Booking to transition
            target_status: Requested status
            actor: Who performs the transition
            reason: Optional cancellation/rejection reason
            now: Facility-local time, read once for the whole operation

        Returns:
            Booking: The booking in its new (or unchanged, on retry) status

        Raises:
            NotFound, Unauthorized, InvalidTransition, CancellationWindowExpired, InternalError
        """
        now = now or facility_now()
        try:
            target = BookingStatus(target_status)
        except ValueError:
            raise ValidationError(f"Unknown booking status: {target_status}")

        try:
            booking = self.db.execute(
                select(Booking).where(Booking.id == booking_id).with_for_update()
            ).scalar_one_or_none()
            if booking is None:
                raise NotFound(f"Booking with ID {booking_id} not found")

            self._authorize(booking, target, actor)

            # Retrying the same transition is a no-op success
            if booking.status == target:
                self.db.rollback()
                return booking

            if booking.status in TERMINAL_STATUSES:
                raise InvalidTransition(
                    f"Booking is already {booking.status.value}",
                    details={"current_status": booking.status.value, "target_status": target.value},
                )

            expected = ALLOWED_SOURCES.get(target)
            if expected is None or booking.status != expected:
                raise InvalidTransition(
                    f"Cannot move a {booking.status.value} booking to {target.value}",
                    details={"current_status": booking.status.value, "target_status": target.value},
                )

            if target == BookingStatus.CANCELLED:
                self._check_cancellation_window(booking, now)
            if target == BookingStatus.COMPLETED and slot_datetime(booking.booking_date, booking.end_time) > now:
                raise InvalidTransition("Booking has not ended yet")

            self._apply(booking, target, actor, reason)
            self.db.commit()
        except CourtsideError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Transition of booking {booking_id} to {target.value} failed: {str(e)}", exc_info=True)
            raise InternalError() from e

        self.db.refresh(booking)
        logger.info(f"Booking {booking.id} -> {target.value} by {actor.role} {actor.user_id or ''}".rstrip())
        return booking

    def complete_elapsed_bookings(self, now: Optional[datetime] = None) -> int:
        """Mark confirmed bookings whose end time has passed as completed. Returns the count."""
        now = now or facility_now()
        candidates = (
            self.db.query(Booking.id, Booking.booking_date, Booking.end_time)
            .filter(Booking.status == BookingStatus.CONFIRMED, Booking.booking_date <= now.date())
            .all()
        )
        system = AuthContext.system()
        completed = 0
        for booking_id, booking_date, end_time in candidates:
            if slot_datetime(booking_date, end_time) > now:
                continue
            try:
                self.transition(booking_id, BookingStatus.COMPLETED, system, now=now)
                completed += 1
            except (InvalidTransition, NotFound):
                # Moved on concurrently (e.g. cancelled) since the query
                continue
        if completed:
            logger.info(f"Completion sweep marked {completed} booking(s) completed")
        return completed

    def _authorize(self, booking: Booking, target: BookingStatus, actor: AuthContext) -> None:
        if target in (BookingStatus.CONFIRMED, BookingStatus.REJECTED):
            if actor.is_admin:
                return
            if actor.role == UserRole.OWNER.value and actor.user_id is not None:
                if facility_owner_id(self.db, booking.court_id) == actor.user_id:
                    return
            raise Unauthorized("Only an admin or the facility owner can confirm or reject bookings")

        if target == BookingStatus.CANCELLED:
            if actor.is_admin or (actor.user_id is not None and actor.user_id == booking.user_id):
                return
            raise Unauthorized("Not authorized to cancel this booking")

        if target == BookingStatus.COMPLETED:
            if actor.is_system:
                return
            raise Unauthorized("Bookings are completed automatically once they have ended")

        raise InvalidTransition(f"Bookings cannot be moved to {target.value}")

    @staticmethod
    def _check_cancellation_window(booking: Booking, now: datetime) -> None:
        starts_at = slot_datetime(booking.booking_date, booking.start_time)
        deadline = starts_at - timedelta(hours=settings.CANCELLATION_WINDOW_HOURS)
        if not now < deadline:
            raise CancellationWindowExpired(
                f"Bookings can only be cancelled at least {settings.CANCELLATION_WINDOW_HOURS} hours in advance",
                details={"starts_at": starts_at.isoformat(), "cancellable_until": deadline.isoformat()},
            )

    def _apply(self, booking: Booking, target: BookingStatus, actor: AuthContext, reason: Optional[str]) -> None:
        booking.status = target
        booking.status_changed_by = actor.user_id

        if target == BookingStatus.CANCELLED:
            booking.cancelled_at = utcnow()
            booking.cancelled_by = "admin" if actor.is_admin and actor.user_id != booking.user_id else "user"
            booking.cancellation_reason = reason
        elif target == BookingStatus.REJECTED:
            booking.cancellation_reason = reason

        if target in TERMINAL_STATUSES:
            # Free the slot for new admissions
            self.db.query(CourtSlotClaim).filter(CourtSlotClaim.booking_id == booking.id).delete(
                synchronize_session=False
            )

        if target in (BookingStatus.CANCELLED, BookingStatus.REJECTED):
            self._refund(booking, target)
            self._reverse_reward_points(booking)

        self.db.flush()

    def _reverse_reward_points(self, booking: Booking) -> None:
        """Take back points earned by the booking and return points it redeemed"""
        earned = booking.reward_points_earned or 0
        redeemed = booking.reward_points_redeemed or 0
        if not earned and not redeemed:
            return

        # Earned points may already be spent elsewhere; the balance floors at 0
        new_points = User.reward_points - earned + redeemed
        self.db.execute(
            update(User)
            .where(User.id == booking.user_id)
            .values(reward_points=case((new_points < 0, 0), else_=new_points))
            .execution_options(synchronize_session=False)
        )
        logger.info(f"Booking {booking.id}: reversed {earned} earned and restored {redeemed} redeemed reward points")

    def _refund(self, booking: Booking, target: BookingStatus) -> None:
        if booking.payment_method != PaymentMethod.WALLET:
            logger.info(
                f"Booking {booking.id} {target.value}: {booking.payment_method.value} refund "
                f"of {booking.final_amount} is handled by the payment processor"
            )
            return
        if booking.final_amount is None or booking.final_amount <= ZERO:
            return
        WalletService.credit(
            self.db,
            booking.user_id,
            booking.final_amount,
            description=f"Refund for {target.value} booking on {booking.booking_date} {booking.start_time}",
            reference_id=str(booking.id),
        )


def run_completion_sweep() -> int:
    """Run one completion sweep in its own session (background job entry point)"""
    SessionLocal = get_session_local()
    db = SessionLocal()
    try:
        return BookingLifecycleService(db).complete_elapsed_bookings()
    finally:
        db.close()
