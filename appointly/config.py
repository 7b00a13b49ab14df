import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./appointly.db")

# Every blocking database call made from an async handler is bounded by this timeout
DB_IO_TIMEOUT_SECONDS = float(os.getenv("DB_IO_TIMEOUT_SECONDS", "10"))

# Scheduling grid
SLOT_MINUTES = int(os.getenv("SLOT_MINUTES", "30"))
DEFAULT_SERVICE_DURATION_MINUTES = int(os.getenv("DEFAULT_SERVICE_DURATION_MINUTES", "30"))

# Security - CRITICAL: No default secret key in production
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "INSECURE-DEV-KEY-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only

ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "720"))

# Frontend base URL used in email links
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Resend Email Configuration
RESEND_API_KEY = os.getenv("RESEND_API_KEY")
EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS", "Appointly <noreply@appointly.app>")
NOTIFICATIONS_ENABLED = os.getenv("NOTIFICATIONS_ENABLED", "true").lower() == "true"
NOTIFICATION_TIMEOUT_SECONDS = float(os.getenv("NOTIFICATION_TIMEOUT_SECONDS", "15"))

# Shop details rendered into customer emails
SHOP_NAME = os.getenv("SHOP_NAME", "Appointly")
SHOP_ADDRESS = os.getenv("SHOP_ADDRESS", "")
SHOP_PHONE = os.getenv("SHOP_PHONE", "")
SHOP_EMAIL = os.getenv("SHOP_EMAIL", "hello@appointly.app")

# Public booking rate limit (per client IP)
BOOKING_RATE_LIMIT = int(os.getenv("BOOKING_RATE_LIMIT", "20"))
BOOKING_RATE_WINDOW_SECONDS = int(os.getenv("BOOKING_RATE_WINDOW_SECONDS", "60"))
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"

# Redis for the shared rate-limit counters; unset means per-process memory only
REDIS_URL = os.getenv("REDIS_URL")

# CORS origins for the dashboard and booking frontend
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
