"""Runtime configuration read from the environment"""
import os
from decimal import Decimal

SERVICE_NAME = os.getenv("SERVICE_NAME", "booking-engine")

# Auth
SECRET_KEY = os.getenv("SECRET_KEY", "your-secret-key-keep-it-secret")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

# Pricing fallbacks for resources without a daily rate or currency
DEFAULT_DAILY_RATE = Decimal(os.getenv("DEFAULT_DAILY_RATE", "15000"))
DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "LKR")

# Guides without a configured group size accept this many participants
DEFAULT_GUIDE_CAPACITY = int(os.getenv("DEFAULT_GUIDE_CAPACITY", "20"))

# Age after which the pending-booking sweep cancels an unconfirmed booking
PENDING_BOOKING_TTL_HOURS = int(os.getenv("PENDING_BOOKING_TTL_HOURS", "48"))

# Paging
DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", "10"))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", "100"))
