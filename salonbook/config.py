import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./salonbook.db")

# Hosted auth backend (issues the JWTs the API accepts)
SUPABASE_JWT_SECRET = os.getenv("SUPABASE_JWT_SECRET")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "authenticated")

# Tenancy - single-tenant deployments fall back to this id
DEFAULT_TENANT_ID = os.getenv("DEFAULT_TENANT_ID", "00000000-0000-0000-0000-000000000001")
TENANT_HEADER = os.getenv("TENANT_HEADER", "X-Tenant-ID")

# Frontend base URL (CORS)
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

# Booking drafts live in Redis for 60 minutes
BOOKING_DRAFT_TTL_SECONDS = int(os.getenv("BOOKING_DRAFT_TTL_SECONDS", "3600"))
WORK_SETTINGS_CACHE_TTL = int(os.getenv("WORK_SETTINGS_CACHE_TTL", "300"))

# Rate limits (requests per window)
COUPON_VALIDATE_RATE_LIMIT = int(os.getenv("COUPON_VALIDATE_RATE_LIMIT", "20"))
COUPON_VALIDATE_RATE_WINDOW = int(os.getenv("COUPON_VALIDATE_RATE_WINDOW", "60"))
BOOKING_RATE_LIMIT = int(os.getenv("BOOKING_RATE_LIMIT", "10"))
BOOKING_RATE_WINDOW = int(os.getenv("BOOKING_RATE_WINDOW", "60"))

SECURITY_HEADERS_ENABLED = os.getenv("SECURITY_HEADERS_ENABLED", "true").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
