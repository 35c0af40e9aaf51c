"""
Booking API Routes
Endpoints for admitting bookings and moving them through their lifecycle
"""

import logging
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from courtside.database import get_db
from courtside.dependencies.auth import AuthContext, get_current_user, require_role
from courtside.models.booking import Booking, BookingStatus, PaymentMethod
from courtside.models.facility import Court, Facility
from courtside.models.notification import NotificationType
from courtside.models.user import User, UserRole
from courtside.schemas.booking import (
    AvailabilityResponse,
    BookedSlot,
    BookingCreate,
    BookingList,
    BookingResponse,
    TransitionRequest,
)
from courtside.services.availability_service import is_available, list_booked_slots
from courtside.services.booking_service import BookingAdmissionService
from courtside.services.court_service import facility_owner_id
from courtside.services.lifecycle_service import BookingLifecycleService
from courtside.services.notification_service import NotificationService
from courtside.services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def send_booking_notification(
    db: Session, booking_id: UUID, notification_type: NotificationType, reason: Optional[str] = None
) -> None:
    """Notify after commit; a failed message never undoes a booking change"""
    try:
        NotificationService().notify_booking(db, booking_id, notification_type, reason=reason)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Could not record notification for booking {booking_id}: {str(e)}")


def _paginate(query, skip: int, limit: int) -> dict:
    total = query.count()
    bookings = query.order_by(Booking.booking_date.desc(), Booking.start_time.desc()).offset(skip).limit(limit).all()
    return {
        "bookings": bookings,
        "total": total,
        "page": (skip // limit) + 1,
        "page_size": limit,
    }


@router.post("/", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    booking_data: BookingCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Book a court slot

    - **payment_method**: wallet bookings are confirmed immediately; stripe/upi
      bookings need a **payment_intent_id** and stay pending until the facility confirms
    - **coupon_code** / **use_reward_points**: optional discounts
    """
    service = BookingAdmissionService(db)

    # Price first so the processor check compares against the amount we will charge
    quote = service.quote_booking(
        user_id=current_user.id,
        court_id=booking_data.court_id,
        booking_date=booking_data.booking_date,
        start_time=booking_data.start_time,
        end_time=booking_data.end_time,
        duration_hours=booking_data.duration_hours,
        coupon_code=booking_data.coupon_code,
        use_reward_points=booking_data.use_reward_points,
    )
    confirmation = await PaymentService().verify_payment(
        booking_data.payment_method,
        booking_data.payment_intent_id,
        quote.pricing.final_amount,
    )

    booking = service.submit_booking(
        user_id=current_user.id,
        court_id=booking_data.court_id,
        booking_date=booking_data.booking_date,
        start_time=booking_data.start_time,
        end_time=booking_data.end_time,
        duration_hours=booking_data.duration_hours,
        payment_method=booking_data.payment_method,
        payment_intent_id=booking_data.payment_intent_id,
        coupon_code=booking_data.coupon_code,
        use_reward_points=booking_data.use_reward_points,
        notes=booking_data.notes,
        verified_payment=confirmation,
    )

    notification_type = (
        NotificationType.BOOKING_CONFIRMATION
        if booking.payment_method == PaymentMethod.WALLET
        else NotificationType.BOOKING_PENDING
    )
    send_booking_notification(db, booking.id, notification_type)
    db.refresh(booking)

    return booking


@router.get("/", response_model=BookingList)
def list_my_bookings(
    status: Optional[BookingStatus] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List the current user's bookings"""
    query = db.query(Booking).filter(Booking.user_id == current_user.id)

    if status:
        query = query.filter(Booking.status == status)

    return _paginate(query, skip, limit)


@router.get("/manage/", response_model=BookingList)
def list_managed_bookings(
    status: Optional[BookingStatus] = None,
    court_id: Optional[UUID] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(require_role(UserRole.OWNER, UserRole.ADMIN)),
    db: Session = Depends(get_db),
):
    """Bookings an owner or admin can act on: all for admins, own facilities for owners"""
    query = db.query(Booking)

    if current_user.role != UserRole.ADMIN:
        owned_courts = db.query(Court.id).join(Facility).filter(Facility.owner_id == current_user.id)
        query = query.filter(Booking.court_id.in_(owned_courts))

    if status:
        query = query.filter(Booking.status == status)

    if court_id:
        query = query.filter(Booking.court_id == court_id)

    if from_date:
        query = query.filter(Booking.booking_date >= from_date)

    if to_date:
        query = query.filter(Booking.booking_date <= to_date)

    return _paginate(query, skip, limit)


@router.get("/check-availability/", response_model=AvailabilityResponse)
def check_availability(
    court_id: UUID = Query(..., description="Court ID"),
    booking_date: date = Query(..., description="Date of the booking"),
    start_time: str = Query(..., description="Start time, HH:MM"),
    end_time: str = Query(..., description="End time, HH:MM"),
    db: Session = Depends(get_db),
):
    """Check if a court slot is free"""
    available = is_available(db, court_id, booking_date, start_time, end_time)

    return {
        "available": available,
        "court_id": court_id,
        "booking_date": booking_date,
        "start_time": start_time,
        "end_time": end_time,
        "message": "Slot is available" if available else "Slot is already booked",
    }


@router.get("/courts/{court_id}/booked-slots", response_model=List[BookedSlot])
def get_booked_slots(
    court_id: UUID,
    booking_date: date = Query(..., description="Date to inspect"),
    db: Session = Depends(get_db),
):
    """Occupied slots of a court on one day"""
    return [
        {
            "booking_id": booking.id,
            "start_time": booking.start_time,
            "end_time": booking.end_time,
            "status": booking.status,
        }
        for booking in list_booked_slots(db, court_id, booking_date)
    ]


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get a specific booking"""
    booking = db.query(Booking).filter(Booking.id == booking_id).first()

    if not booking:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Booking with ID {booking_id} not found",
        )

    allowed = (
        booking.user_id == current_user.id
        or current_user.role == UserRole.ADMIN
        or facility_owner_id(db, booking.court_id) == current_user.id
    )
    if not allowed:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to view this booking")

    return booking


def _transition(
    db: Session,
    booking_id: UUID,
    target: BookingStatus,
    current_user: User,
    payload: Optional[TransitionRequest],
    notification_type: NotificationType,
) -> Booking:
    reason = payload.reason if payload else None
    previous = db.query(Booking.status).filter(Booking.id == booking_id).scalar()

    booking = BookingLifecycleService(db).transition(
        booking_id, target, AuthContext.for_user(current_user), reason=reason
    )

    if previous != target:
        send_booking_notification(db, booking.id, notification_type, reason=reason)
        db.refresh(booking)
    return booking


@router.post("/{booking_id}/confirm", response_model=BookingResponse)
def confirm_booking(
    booking_id: UUID,
    payload: Optional[TransitionRequest] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Confirm a pending booking (facility owner or admin)"""
    return _transition(
        db, booking_id, BookingStatus.CONFIRMED, current_user, payload, NotificationType.BOOKING_CONFIRMATION
    )


@router.post("/{booking_id}/reject", response_model=BookingResponse)
def reject_booking(
    booking_id: UUID,
    payload: Optional[TransitionRequest] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Reject a pending booking (facility owner or admin)"""
    return _transition(db, booking_id, BookingStatus.REJECTED, current_user, payload, NotificationType.BOOKING_REJECTED)


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: UUID,
    payload: Optional[TransitionRequest] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Cancel a confirmed booking, at least CANCELLATION_WINDOW_HOURS before it starts"""
    return _transition(
        db, booking_id, BookingStatus.CANCELLED, current_user, payload, NotificationType.BOOKING_CANCELLATION
    )
