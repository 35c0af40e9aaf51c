"""
User Model
One identity table for customers, facility owners and platform admins
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import Integer, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from courtside.database import Base


class UserRole(str, enum.Enum):
    """User roles in the system"""

    USER = "user"  # Customer booking courts
    OWNER = "owner"  # Owns one or more facilities
    ADMIN = "admin"  # Platform admin, full access


class User(Base):
    """
    User Model
    Holds the wallet state (balance + reward points) that the ledger locks
    """

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("wallet_balance >= 0", name="ck_users_wallet_balance_non_negative"),
        CheckConstraint("reward_points >= 0", name="ck_users_reward_points_non_negative"),
    )

    # Primary Key
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    # Authentication
    email = Column(String(255), unique=True, nullable=False, index=True)
    username = Column(String(100), unique=True, nullable=False, index=True)
    hashed_password = Column(String(255), nullable=False)

    # User Details
    full_name = Column(String(255), nullable=False)
    phone_number = Column(String(20))

    # Role
    role = Column(
        SQLEnum(UserRole, values_callable=lambda x: [e.value for e in x]),
        default=UserRole.USER,
        nullable=False,
        index=True,
    )
    is_active = Column(Boolean, default=True, nullable=False)

    # Wallet
    wallet_balance = Column(Numeric(10, 2), default=0, nullable=False)
    reward_points = Column(Integer, default=0, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    bookings = relationship("Booking", back_populates="user")
    wallet_transactions = relationship("WalletTransaction", back_populates="user")
    facilities = relationship("Facility", back_populates="owner")

    def __repr__(self):
        return f"<User(username='{self.username}', email='{self.email}', role='{self.role}')>"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @property
    def is_owner(self) -> bool:
        return self.role == UserRole.OWNER
