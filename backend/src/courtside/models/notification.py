"""
Notification Model
Tracks WhatsApp/SMS messages sent about bookings
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime
from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, String, Text, Uuid
from sqlalchemy.orm import relationship

from courtside.database import Base


class NotificationType(str, enum.Enum):
    """Type of notification"""

    BOOKING_CONFIRMATION = "booking_confirmation"
    BOOKING_PENDING = "booking_pending"
    BOOKING_REJECTED = "booking_rejected"
    BOOKING_CANCELLATION = "booking_cancellation"


class NotificationStatus(str, enum.Enum):
    """Status of notification"""

    PENDING = "pending"
    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"  # provider not configured or no phone number


class NotificationChannel(str, enum.Enum):
    """Channel used for notification"""

    WHATSAPP = "whatsapp"
    SMS = "sms"


class Notification(Base):
    """
    Notification Model
    One row per outbound message attempt
    """

    __tablename__ = "notifications"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    booking_id = Column(Uuid, ForeignKey("bookings.id"), index=True)
    user_id = Column(Uuid, ForeignKey("users.id"), index=True)

    notification_type = Column(
        SQLEnum(NotificationType, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
        index=True,
    )
    channel = Column(
        SQLEnum(NotificationChannel, values_callable=lambda x: [e.value for e in x]),
        nullable=False,
    )
    status = Column(
        SQLEnum(NotificationStatus, values_callable=lambda x: [e.value for e in x]),
        default=NotificationStatus.PENDING,
        index=True,
    )

    recipient_phone = Column(String(30))
    message = Column(Text, nullable=False)

    provider = Column(String(50))  # twilio
    provider_message_id = Column(String(100))
    error_message = Column(Text)

    sent_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)

    booking = relationship("Booking")

    def __repr__(self):
        return f"<Notification(type='{self.notification_type}', status='{self.status}')>"
