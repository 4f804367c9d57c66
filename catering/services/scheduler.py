"""
APScheduler Service
Sends event reminders for upcoming catering bookings
"""
import logging
from datetime import datetime, timedelta, timezone
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger
from sqlalchemy.orm import Session
from catering.config import settings
from catering.database import SessionLocal
from catering.models import Booking
from catering.services.sms_service import send_event_reminder

logger = logging.getLogger(__name__)


def due_reminders(db: Session, now: datetime, lead_hours: int) -> list:
    """
    Bookings whose event falls within the next lead_hours and still need a reminder.

    Args:
        db: Database session
        now: Current naive UTC time
        lead_hours: How far ahead to look

    Returns:
        List of bookings
    """
    return db.query(Booking).filter(
        Booking.delivery_date > now,
        Booking.delivery_date <= now + timedelta(hours=lead_hours),
        Booking.status != "cancelled",
        Booking.is_deleted == False,
        Booking.reminder_sent == False  # Only send once
    ).all()


def send_booking_reminders(db: Session, now: datetime | None = None) -> int:
    """
    Send reminder SMS for due bookings and mark them as reminded.

    Returns:
        Number of reminders sent
    """
    now = now or datetime.now(timezone.utc).replace(tzinfo=None)
    sent = 0
    for booking in due_reminders(db, now, settings.reminder_lead_hours):
        try:
            result = send_event_reminder(booking)
            if result.get("status") == "success":
                booking.reminder_sent = True
                db.commit()
                sent += 1
                logger.info(f"Reminder sent for booking {booking.booking_reference}")
        except Exception as e:
            db.rollback()
            logger.error(f"Error sending reminder for booking {booking.id}: {e}")
    return sent


class SchedulerService:
    """Service to manage background scheduler tasks"""

    def __init__(self):
        self.scheduler = BackgroundScheduler()
        self._setup_jobs()

    def _setup_jobs(self):
        """Setup all background jobs"""
        # Check for reminders every 5 minutes
        self.scheduler.add_job(
            self._send_booking_reminders,
            IntervalTrigger(minutes=5),
            id="booking_reminders",
            name="Send booking reminders",
            replace_existing=True
        )

    def _send_booking_reminders(self):
        """Run the reminder sweep in its own session"""
        try:
            db = SessionLocal()
            try:
                send_booking_reminders(db)
            finally:
                db.close()
        except Exception as e:
            logger.error(f"Error in booking reminders job: {e}")

    def start(self):
        """Start the scheduler"""
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info("Scheduler started")

    def stop(self):
        """Stop the scheduler"""
        if self.scheduler.running:
            self.scheduler.shutdown()
            logger.info("Scheduler stopped")


# Global scheduler instance
_scheduler_service = None


def get_scheduler() -> SchedulerService:
    """Get or create scheduler instance"""
    global _scheduler_service
    if _scheduler_service is None:
        _scheduler_service = SchedulerService()
    return _scheduler_service


def start_scheduler():
    """Start the background scheduler"""
    scheduler = get_scheduler()
    scheduler.start()


def stop_scheduler():
    """Stop the background scheduler"""
    scheduler = get_scheduler()
    scheduler.stop()
