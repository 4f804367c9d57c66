import os
from dotenv import load_dotenv
from pydantic_settings import BaseSettings

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application configuration from environment variables"""

    # App
    app_name: str = "Catering Bookings"
    debug: bool = os.getenv("DEBUG", "True").lower() == "true"

    # Database
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./catering.db")

    # Business calendar
    timezone: str = os.getenv("BUSINESS_TIMEZONE", "Australia/Sydney")
    page_size: int = int(os.getenv("BOOKINGS_PAGE_SIZE", "10"))

    # Twilio
    twilio_account_sid: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    twilio_auth_token: str = os.getenv("TWILIO_AUTH_TOKEN", "")
    twilio_phone_number: str = os.getenv("TWILIO_PHONE_NUMBER", "")
    admin_phone_number: str = os.getenv("ADMIN_PHONE_NUMBER", "")

    # Email (SMTP)
    smtp_host: str = os.getenv("SMTP_HOST", "")
    smtp_port: int = int(os.getenv("SMTP_PORT", "465"))
    smtp_username: str = os.getenv("SMTP_USERNAME", "")
    smtp_password: str = os.getenv("SMTP_PASSWORD", "")
    smtp_use_ssl: bool = os.getenv("SMTP_USE_SSL", "True").lower() == "true"
    mail_from: str = os.getenv("MAIL_FROM", "")
    company_name: str = os.getenv("COMPANY_NAME", "Catering Bookings")
    admin_email: str = os.getenv("ADMIN_EMAIL", "")

    # Scheduler
    scheduler_enabled: bool = os.getenv("SCHEDULER_ENABLED", "True").lower() == "true"
    reminder_lead_hours: int = int(os.getenv("REMINDER_LEAD_HOURS", "24"))

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
