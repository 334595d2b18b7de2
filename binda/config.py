import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./binda.db")

# Auth provider configuration
# Tokens are HS256 JWTs signed with the provider's project secret
AUTH_JWT_SECRET = os.getenv("AUTH_JWT_SECRET")
if not AUTH_JWT_SECRET:
    import warnings

    warnings.warn(
        "AUTH_JWT_SECRET not set! Using insecure default - DO NOT USE IN PRODUCTION",
        RuntimeWarning,
        stacklevel=2,
    )
    AUTH_JWT_SECRET = "INSECURE-DEV-JWT-SECRET-CHANGE-IN-PRODUCTION"  # noqa: S105 - Dev fallback only
AUTH_JWT_AUDIENCE = os.getenv("AUTH_JWT_AUDIENCE", "authenticated")
AUTH_JWT_ALGORITHM = "HS256"

# Service-role key bypasses tenant isolation. Server-side only, never serialized into a response.
SERVICE_ROLE_KEY = os.getenv("SERVICE_ROLE_KEY")

# Shared secret presented by the scheduler that calls /api/cron/* endpoints
CRON_SECRET = os.getenv("CRON_SECRET")

# Paystack Configuration
PAYSTACK_SECRET_KEY = os.getenv("PAYSTACK_SECRET_KEY")
PAYSTACK_BASE_URL = os.getenv("PAYSTACK_BASE_URL", "https://api.paystack.co")

# Host routing
# Requests to app.<APP_DOMAIN> are served from the /app/* tree
APP_DOMAIN = os.getenv("APP_DOMAIN", "binda.app")
APP_URL = os.getenv("APP_URL", "http://localhost:3000")

# Booking flow
SLOT_LOCK_TTL_MINUTES = int(os.getenv("SLOT_LOCK_TTL_MINUTES", "10"))
SLOT_INTERVAL_MINUTES = int(os.getenv("SLOT_INTERVAL_MINUTES", "30"))
SLOT_LOCK_RATE_LIMIT = int(os.getenv("SLOT_LOCK_RATE_LIMIT", "30"))  # per IP per minute

# Appointment listing cache TTL (seconds)
APPOINTMENTS_CACHE_TTL = int(os.getenv("APPOINTMENTS_CACHE_TTL", "300"))
# Seconds the cache stops trying Redis after a failed connection
CACHE_RETRY_COOLDOWN = int(os.getenv("CACHE_RETRY_COOLDOWN", "30"))
