"""
Application Configuration
Handles all environment variables and settings
"""

from decimal import Decimal
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "Courtside Booking API"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Database
    DATABASE_URL: str = ""

    # JWT & Authentication
    JWT_SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Booking rules
    CURRENCY: str = "INR"
    FACILITY_UTC_OFFSET_MINUTES: int = 330  # booking times are facility-local (IST)
    SLOT_GRANULARITY_MINUTES: int = 30
    CANCELLATION_WINDOW_HOURS: int = 2

    # Rewards
    REWARD_POINT_VALUE: Decimal = Decimal("0.1")  # currency units per point
    REWARD_REDEMPTION_CAP: Decimal = Decimal("0.1")  # share of total amount
    REWARD_ACCRUAL_DIVISOR: int = 10  # one point per 10 currency units paid

    # Background sweep marking finished bookings as completed (0 disables)
    COMPLETION_SWEEP_INTERVAL_SECONDS: int = 300

    # Stripe (payment intent verification - optional)
    STRIPE_SECRET_KEY: str = ""
    STRIPE_API_BASE: str = "https://api.stripe.com"

    # Twilio (WhatsApp / SMS notifications - optional)
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_WHATSAPP_FROM: str = ""
    NOTIFICATIONS_ENABLED: bool = True

    # CORS
    ALLOWED_ORIGINS: str = "http://localhost:5173"

    @property
    def allowed_origins_list(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    @property
    def payment_verification_enabled(self) -> bool:
        return bool(self.STRIPE_SECRET_KEY)

    class Config:
        env_file = BASE_DIR / ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"


# Global settings instance
settings = Settings()
