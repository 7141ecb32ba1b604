import os
from dotenv import load_dotenv

load_dotenv()


def _get_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


# -------- DATABASE --------
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./data/venue_booking.db")

# -------- AUTH --------
JWT_SECRET = os.getenv("JWT_SECRET", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))

# -------- RAZORPAY --------
RAZORPAY_KEY_ID = os.getenv("RAZORPAY_KEY_ID")
RAZORPAY_KEY_SECRET = os.getenv("RAZORPAY_KEY_SECRET")
PAYMENT_CURRENCY = "INR"

# -------- EMAIL --------
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
SMTP_USERNAME = os.getenv("SMTP_USERNAME")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
SMTP_FROM = os.getenv("SMTP_FROM", SMTP_USERNAME or "no-reply@localhost")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", SMTP_USERNAME)
CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:8080")

# -------- BOOKING LIFECYCLE --------
PAYMENT_WINDOW_HOURS = int(os.getenv("PAYMENT_WINDOW_HOURS", 24))
PAYMENT_REMINDER_INTERVAL_HOURS = int(os.getenv("PAYMENT_REMINDER_INTERVAL_HOURS", 6))
BOOKING_SWEEP_INTERVAL_SECONDS = int(os.getenv("BOOKING_SWEEP_INTERVAL_SECONDS", 3600))
BOOKING_SWEEPER_ENABLED = _get_bool("BOOKING_SWEEPER_ENABLED", True)

# -------- CACHE / LOGS --------
REDIS_URL = os.getenv("REDIS_URL")
LOG_DIR = os.getenv("LOG_DIR", "logs")
