# clinic_booking/config.py

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# SQLite file by default; any SQLAlchemy URL works
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic.db")

# Tokens are issued by the identity provider and only verified here
SECRET_KEY = os.getenv("SECRET_KEY")
if not SECRET_KEY:
    import warnings

    warnings.warn(
        "SECRET_KEY not set! Using insecure default - DO NOT USE IN PRODUCTION", RuntimeWarning, stacklevel=2
    )
    SECRET_KEY = "change-me-later"  # noqa: S105 - Dev fallback only
ALGORITHM = os.getenv("ALGORITHM", "HS256")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
# set LOG_JSON=false for readable console output in development
LOG_JSON = os.getenv("LOG_JSON", "true").lower() not in ("0", "false", "no")

# "now" for same-day bookings is evaluated in the clinic's local time
CLINIC_TIMEZONE = os.getenv("CLINIC_TIMEZONE", "Asia/Gaza")

# Category limit used when a category record has no bookingLimit
DEFAULT_BOOKING_LIMIT = int(os.getenv("DEFAULT_BOOKING_LIMIT", "999"))


def policy_defaults():
    """Build the scheduling defaults injected into the policy resolver."""
    from .scheduling.policy import PolicyDefaults

    return PolicyDefaults(booking_limit=DEFAULT_BOOKING_LIMIT)
