"""
Notification Service
Booking status messages to customers via Twilio WhatsApp
"""

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session
from twilio.rest import Client

from courtside.config import settings
from courtside.models.booking import Booking, PaymentMethod
from courtside.models.notification import (
    Notification,
    NotificationChannel,
    NotificationStatus,
    NotificationType,
)
from courtside.models.user import User
from courtside.utils.timeslots import utcnow

logger = logging.getLogger(__name__)

MESSAGE_TEMPLATES = {
    NotificationType.BOOKING_CONFIRMATION: (
        "✅ Booking Confirmed - {facility}\n\n"
        "Court: {court}\n"
        "Date: {date}\n"
        "Time: {start} - {end}\n"
        "Amount: {amount} {currency}\n\n"
        "See you on the court!"
    ),
    NotificationType.BOOKING_PENDING: (
        "⏳ Booking Received - {facility}\n\n"
        "Court: {court}\n"
        "Date: {date}\n"
        "Time: {start} - {end}\n\n"
        "We will message you once the facility confirms your payment."
    ),
    NotificationType.BOOKING_REJECTED: (
        "❌ Booking Rejected - {facility}\n\n"
        "Your booking for {court} on {date} at {start} could not be accepted.\n"
        "{reason}"
    ),
    NotificationType.BOOKING_CANCELLATION: (
        "Booking Cancelled - {facility}\n\n"
        "Court: {court}\n"
        "Date: {date}\n"
        "Time: {start} - {end}\n"
        "{refund}"
    ),
}


def format_whatsapp_number(phone: str) -> str:
    """
    Normalize a phone number to Twilio's WhatsApp address format

    10-digit numbers are treated as Indian mobile numbers.
    """
    digits = "".join(ch for ch in phone if ch.isdigit())
    if len(digits) == 10:
        digits = f"91{digits}"
    return f"whatsapp:+{digits}"


class NotificationService:
    """Service for sending booking notifications"""

    def __init__(self):
        self.from_number = settings.TWILIO_WHATSAPP_FROM
        self.twilio_client = None
        if settings.NOTIFICATIONS_ENABLED and settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN:
            self.twilio_client = Client(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)

    @property
    def configured(self) -> bool:
        return self.twilio_client is not None and bool(self.from_number)

    def send_whatsapp(self, to_phone: str, message: str) -> Dict[str, Any]:
        """
        Send a WhatsApp message via Twilio

        Args:
            to_phone: Recipient phone number
            message: Message content

        Returns:
            Result dictionary with status
        """
        to = format_whatsapp_number(to_phone)
        try:
            twilio_message = self.twilio_client.messages.create(
                body=message,
                from_=format_whatsapp_number(self.from_number),
                to=to,
            )

            return {
                "success": True,
                "message_id": twilio_message.sid,
                "status": twilio_message.status,
                "to": to,
                "sent_at": utcnow(),
            }

        except Exception as e:
            logger.error(f"Failed to send WhatsApp message to {to}: {str(e)}")
            return {"success": False, "error": str(e), "to": to}

    def notify_booking(
        self,
        db: Session,
        booking_id: UUID,
        notification_type: NotificationType,
        reason: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Message the booking's customer about a status change and log the attempt

        Args:
            db: Database session
            booking_id: Booking UUID
            notification_type: Which message to send
            reason: Optional rejection reason

        Returns:
            Result dictionary
        """
        booking = db.query(Booking).filter(Booking.id == booking_id).first()
        if not booking:
            return {"success": False, "error": "Booking not found"}

        user = db.query(User).filter(User.id == booking.user_id).first()
        message = self._render(booking, notification_type, reason)
        phone = user.phone_number if user else None

        if not phone:
            result = {"success": False, "skipped": True, "error": "No phone number on file"}
        elif not self.configured:
            result = {"success": False, "skipped": True, "error": "WhatsApp notifications not configured"}
        else:
            result = self.send_whatsapp(phone, message)

        if result.get("skipped"):
            notification_status = NotificationStatus.SKIPPED
        elif result.get("success"):
            notification_status = NotificationStatus.SENT
        else:
            notification_status = NotificationStatus.FAILED

        notification = Notification(
            booking_id=booking.id,
            user_id=booking.user_id,
            notification_type=notification_type,
            channel=NotificationChannel.WHATSAPP,
            status=notification_status,
            recipient_phone=phone,
            message=message,
            provider="twilio",
            provider_message_id=result.get("message_id"),
            sent_at=result.get("sent_at"),
            error_message=result.get("error"),
        )
        db.add(notification)
        db.commit()

        logger.info(f"Notification {notification_type.value} for booking {booking.id}: {notification_status.value}")
        return result

    @staticmethod
    def _render(booking: Booking, notification_type: NotificationType, reason: Optional[str]) -> str:
        court = booking.court
        refund = ""
        if notification_type == NotificationType.BOOKING_CANCELLATION:
            if booking.payment_method == PaymentMethod.WALLET and booking.final_amount:
                refund = f"{booking.final_amount} {settings.CURRENCY} has been refunded to your wallet."
            else:
                refund = "Any refund will be processed to your original payment method."

        return MESSAGE_TEMPLATES[notification_type].format(
            facility=court.facility.name if court and court.facility else "Courtside",
            court=court.name if court else "",
            date=booking.booking_date.strftime("%Y-%m-%d"),
            start=booking.start_time,
            end=booking.end_time,
            amount=booking.final_amount,
            currency=settings.CURRENCY,
            reason=f"Reason: {reason}" if reason else "Please contact the facility for details.",
            refund=refund,
        ).strip()
