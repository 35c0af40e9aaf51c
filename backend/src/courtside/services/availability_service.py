"""
Slot Availability
Overlap checks between a requested slot and the active bookings of a court
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from courtside.errors import ValidationError
from courtside.models.booking import ACTIVE_STATUSES, Booking
from courtside.utils.timeslots import parse_hhmm


def _check_interval(start_time: str, end_time: str) -> None:
    try:
        parse_hhmm(start_time)
        parse_hhmm(end_time)
    except ValueError as e:
        raise ValidationError(str(e))
    if start_time >= end_time:
        raise ValidationError("start_time must be before end_time")


def find_conflicts(
    db: Session,
    court_id: UUID,
    booking_date: date,
    start_time: str,
    end_time: str,
    exclude_booking_id: Optional[UUID] = None,
) -> List[Booking]:
    """
    Active bookings on the court and date whose [start, end) overlaps the request.

    Times are zero-padded "HH:MM", so string order equals time order and the
    overlap test runs in SQL: existing.start < requested.end AND existing.end > requested.start.
    """
    _check_interval(start_time, end_time)

    query = db.query(Booking).filter(
        Booking.court_id == court_id,
        Booking.booking_date == booking_date,
        Booking.status.in_(ACTIVE_STATUSES),
        Booking.start_time < end_time,
        Booking.end_time > start_time,
    )

    if exclude_booking_id:
        query = query.filter(Booking.id != exclude_booking_id)

    return query.order_by(Booking.start_time).all()


def is_available(db: Session, court_id: UUID, booking_date: date, start_time: str, end_time: str) -> bool:
    """True when no pending or confirmed booking overlaps the requested slot"""
    return not find_conflicts(db, court_id, booking_date, start_time, end_time)


def list_booked_slots(db: Session, court_id: UUID, booking_date: date) -> List[Booking]:
    """Active bookings of a court on one day, ordered by start time"""
    return (
        db.query(Booking)
        .filter(
            Booking.court_id == court_id,
            Booking.booking_date == booking_date,
            Booking.status.in_(ACTIVE_STATUSES),
        )
        .order_by(Booking.start_time)
        .all()
    )
