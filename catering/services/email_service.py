"""
Email Service using SMTP
Booking confirmation for the customer and new-booking notice for the admin
"""
import logging
import smtplib
from email.message import EmailMessage
from email.utils import formataddr
from catering.config import settings
from catering.services.sms_service import format_event_date

logger = logging.getLogger(__name__)


def _format_address(booking) -> str:
    parts = [booking.street, booking.suburb]
    parts.append(" ".join(p for p in (booking.state, booking.postcode) if p))
    return ", ".join(p for p in parts if p)


def _format_items(booking) -> str:
    lines = []
    for item in booking.selected_items:
        line = f"  - {item.name}"
        if item.quantity and item.quantity > 1:
            line += f" x{item.quantity}"
        if item.category:
            line += f" ({item.category})"
        lines.append(line)
    return "\n".join(lines)


class EmailService:
    """Service to send booking emails over SMTP"""

    def __init__(self):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_username
        self.password = settings.smtp_password
        self.use_ssl = settings.smtp_use_ssl
        self.sender = formataddr((settings.company_name, settings.mail_from or settings.smtp_username))

        if not self.host:
            logger.warning("SMTP not configured - emails run in test mode")

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=30)
        smtp = smtplib.SMTP(self.host, self.port, timeout=30)
        smtp.starttls()
        return smtp

    def send_email(self, to_address: str, subject: str, body: str) -> dict:
        """
        Send a plain-text email.

        Args:
            to_address: Recipient email address
            subject: Subject line
            body: Message body

        Returns:
            dict with email status
        """
        if not to_address:
            return {"status": "error", "message": "No recipient email address"}

        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = to_address
        message["Subject"] = subject
        message.set_content(body)

        if not self.host:
            return {
                "status": "success",
                "to": to_address,
                "subject": subject,
                "message": body,
                "note": "SMTP not configured - running in test mode"
            }

        try:
            with self._connect() as smtp:
                if self.username:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)

            return {"status": "success", "to": to_address, "subject": subject, "message": body}

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Error sending email to {to_address}: {e}")
            return {
                "status": "error",
                "message": f"Error sending email: {str(e)}"
            }

    def send_customer_confirmation(self, booking) -> dict:
        """
        Email the customer a summary of the booking they just placed.

        Args:
            booking: Booking just created

        Returns:
            dict with email status
        """
        kind = "custom order" if booking.is_custom_order else "booking"
        lines = [
            f"Hi {booking.customer_name},",
            "",
            f"Thank you for your {kind} with {settings.company_name}.",
            "",
            f"Reference: {booking.booking_reference}",
            f"Event: {format_event_date(booking.delivery_date)}",
            f"Guests: {booking.people_count}",
            f"{booking.delivery_type}: {_format_address(booking) or booking.location_name or '-'}",
            "",
            "Your selection:",
            _format_items(booking),
            "",
            f"Total: ${booking.pricing_total:.2f}",
            "",
            "We will be in touch to confirm the details.",
        ]
        subject = f"Booking Confirmation - {booking.booking_reference}"
        return self.send_email(booking.customer_email, subject, "\n".join(lines))

    def send_admin_notification(self, booking) -> dict:
        """Notify the admin inbox about a new booking"""
        kind = "Custom Order" if booking.is_custom_order else "Booking"
        lines = [
            f"Reference: {booking.booking_reference}",
            f"Customer: {booking.customer_name} <{booking.customer_email}> {booking.customer_phone}",
            f"Source: {booking.source_name} ({booking.location_name})",
            f"Event: {format_event_date(booking.delivery_date)}",
            f"Guests: {booking.people_count}",
            f"{booking.delivery_type}: {_format_address(booking) or '-'}",
            f"Dietary: {', '.join(booking.dietary_requirements or []) or 'none'}",
            f"Spice level: {booking.spice_level or '-'}",
            f"Special instructions: {booking.special_instructions or '-'}",
            "",
            "Items:",
            _format_items(booking),
            "",
            f"Total: ${booking.pricing_total:.2f}",
        ]
        subject = f"New {kind}: {booking.customer_name} - {booking.booking_reference}"
        return self.send_email(settings.admin_email, subject, "\n".join(lines))


# Global instance
_email_service = None


def get_email_service() -> EmailService:
    """Get or create email service instance"""
    global _email_service
    if _email_service is None:
        _email_service = EmailService()
    return _email_service


def send_customer_confirmation_email(booking) -> dict:
    """Send customer confirmation email - convenience function"""
    return get_email_service().send_customer_confirmation(booking)


def send_admin_notification_email(booking) -> dict:
    """Send admin notification email - convenience function"""
    return get_email_service().send_admin_notification(booking)
