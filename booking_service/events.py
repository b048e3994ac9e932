import json
import uuid
from datetime import datetime, timezone

from .engine import StatusChange
from .models import Booking

BOOKING_CREATED = "booking.created"
STATUS_CHANGED = "booking.status_changed"
PAYMENT_STATUS_CHANGED = "booking.payment_status_changed"


def build_event(event_type: str, data: dict) -> dict:
    return {
        "event_id": str(uuid.uuid4()),
        "event_type": event_type,
        "occurred_at": datetime.now(timezone.utc).isoformat(),
        "data": data,
    }


def booking_created_event(booking: Booking) -> dict:
    return build_event(
        BOOKING_CREATED,
        {
            "booking_id": booking.id,
            "job_id": booking.job_id,
            "worker_id": booking.worker_id,
            "client_id": booking.client_id,
            "final_amount": str(booking.final_amount),
        },
    )


def status_changed_event(booking: Booking, change: StatusChange) -> dict:
    event_type = PAYMENT_STATUS_CHANGED if change.field == "payment_status" else STATUS_CHANGED
    return build_event(
        event_type,
        {
            "booking_id": change.booking_id,
            "job_id": booking.job_id,
            "worker_id": booking.worker_id,
            "client_id": booking.client_id,
            "from": change.old_status,
            "to": change.new_status,
            "changed_at": change.changed_at.isoformat(),
        },
    )


def to_json(event: dict) -> str:
    return json.dumps(event, separators=(",", ":"), ensure_ascii=False)
