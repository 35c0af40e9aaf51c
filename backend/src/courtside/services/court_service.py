"""
Court Directory
Read-only lookup of courts and their owning facility
"""

from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from courtside.models.facility import Court, Facility


def get_court(db: Session, court_id: UUID) -> Optional[Court]:
    """Return the court, or None when it does not exist"""
    return db.query(Court).filter(Court.id == court_id).first()


def is_bookable(court: Optional[Court]) -> bool:
    """A court takes bookings only while both it and its facility are active"""
    if court is None or not court.is_active:
        return False
    facility = court.facility
    return facility is None or bool(facility.is_active)


def facility_owner_id(db: Session, court_id: UUID) -> Optional[UUID]:
    return (
        db.query(Facility.owner_id)
        .join(Court, Court.facility_id == Facility.id)
        .filter(Court.id == court_id)
        .scalar()
    )
