"""
SMS Service using Twilio
"""
import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo
from catering.config import settings
from twilio.rest import Client

logger = logging.getLogger(__name__)

DATE_FORMAT = "%A %d %B %Y at %I:%M %p"


def format_event_date(value: datetime) -> str:
    """Render a stored naive-UTC timestamp in the business timezone"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(ZoneInfo(settings.timezone)).strftime(DATE_FORMAT)


class TwilioService:
    """Service to send booking SMS using Twilio"""

    def __init__(self):
        self.account_sid = settings.twilio_account_sid
        self.auth_token = settings.twilio_auth_token
        self.phone_number = settings.twilio_phone_number
        self.client = None
        self._init_client()

    def _init_client(self):
        """Initialize Twilio client"""
        try:
            if self.account_sid and self.auth_token:
                self.client = Client(self.account_sid, self.auth_token)
        except Exception as e:
            logger.warning(f"Failed to initialize Twilio: {e}")

    def send_sms(self, to_number: str, message: str) -> dict:
        """
        Send SMS using Twilio.

        Args:
            to_number: Recipient phone number
            message: Message to send

        Returns:
            dict with SMS status
        """
        if not to_number:
            return {"status": "error", "message": "No recipient phone number"}

        try:
            if not self.client:
                return {
                    "status": "success",
                    "to": to_number,
                    "message": message,
                    "note": "Twilio not configured - running in test mode"
                }

            sms = self.client.messages.create(
                body=message,
                from_=self.phone_number,
                to=to_number
            )

            return {
                "status": "success",
                "to": to_number,
                "message": message,
                "sid": sms.sid
            }

        except Exception as e:
            logger.error(f"Error sending SMS to {to_number}: {e}")
            return {
                "status": "error",
                "message": f"Error sending SMS: {str(e)}"
            }

    def send_booking_confirmation(self, booking) -> dict:
        """
        Send booking confirmation to the customer.

        Args:
            booking: Booking just created

        Returns:
            dict with SMS status
        """
        message = (
            f"Hi {booking.customer_name}, thanks for your booking {booking.booking_reference} "
            f"for {format_event_date(booking.delivery_date)}. "
            f"Total: ${booking.pricing_total:.2f}. We will be in touch to confirm."
        )
        return self.send_sms(booking.customer_phone, message)

    def send_admin_booking_alert(self, booking) -> dict:
        """Notify the admin phone about a new booking"""
        kind = "Custom order" if booking.is_custom_order else "Booking"
        message = (
            f"[New {kind}] {booking.booking_reference} - {booking.customer_name} "
            f"({booking.customer_phone}), {booking.people_count} people, "
            f"{booking.delivery_type} on {format_event_date(booking.delivery_date)}"
        )
        return self.send_sms(settings.admin_phone_number, message)

    def send_event_reminder(self, booking) -> dict:
        """
        Send reminder SMS ahead of the event.

        Args:
            booking: Booking with an upcoming delivery date

        Returns:
            dict with SMS status
        """
        message = (
            f"Reminder: your catering booking {booking.booking_reference} is scheduled for "
            f"{format_event_date(booking.delivery_date)}. Reply to this message with any changes."
        )
        return self.send_sms(booking.customer_phone, message)


# Global instance
_twilio_service = None


def get_twilio_service() -> TwilioService:
    """Get or create Twilio service instance"""
    global _twilio_service
    if _twilio_service is None:
        _twilio_service = TwilioService()
    return _twilio_service


def send_sms(to_number: str, message: str) -> dict:
    """Send SMS - convenience function"""
    return get_twilio_service().send_sms(to_number, message)


def send_booking_confirmation(booking) -> dict:
    """Send customer confirmation - convenience function"""
    return get_twilio_service().send_booking_confirmation(booking)


def send_admin_booking_alert(booking) -> dict:
    """Send admin alert - convenience function"""
    return get_twilio_service().send_admin_booking_alert(booking)


def send_event_reminder(booking) -> dict:
    """Send event reminder - convenience function"""
    return get_twilio_service().send_event_reminder(booking)
