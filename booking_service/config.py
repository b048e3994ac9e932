import os
from decimal import Decimal

BOOKING_DB = os.getenv("BOOKING_DB")  # e.g. postgresql+asyncpg://...
RABBIT_URL = os.getenv("RABBIT_URL")  # optional in dev, required if you want events

EXCHANGE_NAME = "domain_events"

# Platform cut applied to new bookings; persisted per booking at creation.
COMMISSION_RATE = Decimal(os.getenv("BOOKING_COMMISSION_RATE") or "0.15")

CANCEL_CUTOFF_HOURS = float(os.getenv("BOOKING_CANCEL_CUTOFF_HOURS") or "2")

# When off, can_cancel() is advisory only and update_status() lets cancellations through.
ENFORCE_CANCEL_POLICY = (os.getenv("BOOKING_ENFORCE_CANCEL_POLICY") or "").strip().lower() in ("1", "true", "yes")

URGENT_AFTER_HOURS = float(os.getenv("BOOKING_URGENT_AFTER_HOURS") or "48")
