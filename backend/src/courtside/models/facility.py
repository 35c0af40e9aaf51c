"""
Facility and Court Models
Venues and their bookable courts. Managed outside the booking core, read-only here.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from courtside.database import Base


class SportType(str, enum.Enum):
    BASKETBALL = "basketball"
    FOOTBALL = "football"
    TENNIS = "tennis"
    VOLLEYBALL = "volleyball"
    BADMINTON = "badminton"
    SWIMMING = "swimming"
    CRICKET = "cricket"
    TABLE_TENNIS = "table_tennis"


class Facility(Base):
    """
    Facility Model
    A venue owned by a user with the owner role
    """

    __tablename__ = "facilities"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text)
    address = Column(Text)
    city = Column(String(100))

    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", back_populates="facilities")
    courts = relationship("Court", back_populates="facility", cascade="all, delete-orphan")
    coupons = relationship("Coupon", back_populates="facility")

    def __repr__(self):
        return f"<Facility(name='{self.name}', city='{self.city}')>"


class Court(Base):
    """
    Court Model
    A bookable resource priced per hour with daily operating hours ("HH:MM")
    """

    __tablename__ = "courts"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    facility_id = Column(Uuid, ForeignKey("facilities.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    sport_type = Column(
        SQLEnum(SportType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    price_per_hour = Column(Numeric(8, 2), nullable=False)
    operating_hours_start = Column(String(5), nullable=False, default="06:00")
    operating_hours_end = Column(String(5), nullable=False, default="22:00")

    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    facility = relationship("Facility", back_populates="courts")
    bookings = relationship("Booking", back_populates="court")

    def __repr__(self):
        return f"<Court(name='{self.name}', sport='{self.sport_type}', price={self.price_per_hour})>"
