"""
Booking lifecycle engine.

Every mutation of a Booking goes through the functions in this module. They
validate first and only then write fields, so a rejected call leaves the
booking exactly as it was. Persistence and notification are the caller's job
(see service.py).
"""
import uuid
from collections.abc import Mapping
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import NamedTuple, Optional

from .config import CANCEL_CUTOFF_HOURS, COMMISSION_RATE, ENFORCE_CANCEL_POLICY
from .errors import InvalidTransition, ValidationError
from .log import logger
from .models import Booking, utc_now
from .payments import CENTS, calculate_payments, to_decimal
from .status import (
    PAYMENT_TRANSITIONS,
    STATUS_INFO,
    BookingStatus,
    PaymentStatus,
    is_allowed,
)

MIN_RATE = Decimal("50")
MAX_RATE = Decimal("50000")
MIN_HOURS = 1
MAX_HOURS = 2000
MIN_FINAL_AMOUNT = Decimal("50")
# largest computed total; fits the Numeric(12, 2) amount columns
MAX_FINAL_AMOUNT = MAX_RATE * MAX_HOURS
MAX_TEXT_LENGTH = 2000

# status -> lifecycle timestamp set when that status is first reached
STATUS_TIMESTAMPS = {
    BookingStatus.ACCEPTED: "accepted_at",
    BookingStatus.IN_PROGRESS: "started_at",
    BookingStatus.COMPLETED: "completed_at",
    BookingStatus.APPROVED: "reviewed_at",
}

TIMELINE_STAGES = (
    ("applied_at", "Application", "Worker applied for job"),
    ("accepted_at", "Accepted", "Client accepted application"),
    ("started_at", "Started", "Work started"),
    ("completed_at", "Completed", "Work completed"),
    ("reviewed_at", "Approved", "Work approved by client"),
)

RATABLE_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.APPROVED, BookingStatus.PAID})


class StatusChange(NamedTuple):
    booking_id: str
    old_status: str
    new_status: str
    changed_at: datetime
    field: str = "status"


class CancellationCheck(NamedTuple):
    can_cancel: bool
    reason: Optional[str] = None


def as_utc(dt: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything we store is UTC.
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def _check_text(value, field: str) -> None:
    if value is not None and len(value) > MAX_TEXT_LENGTH:
        raise ValidationError(f"{field} cannot exceed {MAX_TEXT_LENGTH} characters", field=field)


def _check_final_amount(value) -> Decimal:
    amount = to_decimal(value, "final_amount")
    if amount < MIN_FINAL_AMOUNT:
        raise ValidationError(f"Final amount must be at least {MIN_FINAL_AMOUNT}", field="final_amount")
    if amount > MAX_FINAL_AMOUNT:
        raise ValidationError(f"Final amount cannot exceed {MAX_FINAL_AMOUNT}", field="final_amount")
    return amount


def create_booking(
    job_id: str,
    worker_id: str,
    client_id: str,
    proposed_rate,
    estimated_hours,
    application_message: str | None = None,
    questions_responses: dict | None = None,
    final_amount=None,
    commission_rate=None,
    now: datetime | None = None,
) -> Booking:
    """
    Build a new pending booking for a worker's application to a job.

    final_amount defaults to proposed_rate * estimated_hours; commission and
    worker payout are computed immediately from it.
    """
    for field, value in (("job_id", job_id), ("worker_id", worker_id), ("client_id", client_id)):
        if not value:
            raise ValidationError(f"{field} is required", field=field)

    rate = to_decimal(proposed_rate, "proposed_rate").quantize(CENTS, rounding=ROUND_HALF_UP)
    if rate < MIN_RATE or rate > MAX_RATE:
        raise ValidationError(
            f"Proposed rate must be between {MIN_RATE} and {MAX_RATE}", field="proposed_rate"
        )

    hours = to_decimal(estimated_hours, "estimated_hours")
    if hours != hours.to_integral_value():
        raise ValidationError("Estimated hours must be a whole number", field="estimated_hours")
    if hours < MIN_HOURS or hours > MAX_HOURS:
        raise ValidationError(
            f"Estimated hours must be between {MIN_HOURS} and {MAX_HOURS}", field="estimated_hours"
        )

    _check_text(application_message, "application_message")
    if questions_responses is not None and not isinstance(questions_responses, Mapping):
        raise ValidationError("Questions responses must be an object", field="questions_responses")

    total = rate * hours if final_amount is None else _check_final_amount(final_amount)
    payments = calculate_payments(total, COMMISSION_RATE if commission_rate is None else commission_rate)

    now = as_utc(now) or utc_now()
    booking = Booking(
        id=str(uuid.uuid4()),
        job_id=job_id,
        worker_id=worker_id,
        client_id=client_id,
        application_message=application_message,
        proposed_rate=rate,
        estimated_hours=int(hours),
        questions_responses=dict(questions_responses) if questions_responses is not None else None,
        status=BookingStatus.PENDING,
        payment_status=PaymentStatus.PENDING,
        applied_at=now,
        final_amount=payments.total_amount,
        commission_rate=payments.commission_rate,
        commission_amount=payments.commission,
        worker_payout=payments.worker_payout,
        issues_reported=False,
        created_at=now,
        updated_at=now,
    )
    logger.info(
        f"Booking {booking.id} created: job={job_id} worker={worker_id} "
        f"amount={payments.total_amount} commission={payments.commission}"
    )
    return booking


def can_cancel(booking: Booking, now: datetime | None = None) -> CancellationCheck:
    if booking.status in BookingStatus.STARTED:
        return CancellationCheck(False, "Cannot cancel: work already started")

    if booking.status in BookingStatus.TERMINAL:
        return CancellationCheck(False, f"Cannot cancel: booking is already {booking.status}")

    if booking.scheduled_start is not None:
        now = as_utc(now) or utc_now()
        hours_until_start = (as_utc(booking.scheduled_start) - now).total_seconds() / 3600
        if hours_until_start < CANCEL_CUTOFF_HOURS:
            return CancellationCheck(
                False,
                f"Cannot cancel: too close to start (less than {CANCEL_CUTOFF_HOURS:g} hours before scheduled start)",
            )

    return CancellationCheck(True)


def _append_note(existing: str | None, line: str) -> str:
    return f"{existing}\n{line}" if existing else line


def update_status(
    booking: Booking,
    new_status: str,
    notes: str | None = None,
    now: datetime | None = None,
    enforce_cancel_policy: bool | None = None,
) -> StatusChange:
    """
    Move a booking to new_status along the transition graph.

    Raises InvalidTransition for any edge not in the graph, including
    re-applying the current status. Lifecycle timestamps are written once,
    when their status is first reached. With notes, a timestamped line is
    appended to admin_notes.
    """
    if new_status not in BookingStatus.ALL:
        raise ValidationError(f"Unknown booking status: {new_status}", field="status")

    old_status = booking.status
    if not is_allowed(old_status, new_status):
        raise InvalidTransition(old_status, new_status)

    now = as_utc(now) or utc_now()

    if enforce_cancel_policy is None:
        enforce_cancel_policy = ENFORCE_CANCEL_POLICY
    if new_status == BookingStatus.CANCELLED and enforce_cancel_policy:
        check = can_cancel(booking, now)
        if not check.can_cancel:
            raise InvalidTransition(old_status, new_status, check.reason)

    if new_status == BookingStatus.PAID and booking.payment_status in PaymentStatus.FINAL:
        raise InvalidTransition(
            old_status, new_status, f"Cannot mark booking paid while payment is {booking.payment_status}"
        )

    changes = {"status": new_status}

    ts_field = STATUS_TIMESTAMPS.get(new_status)
    if ts_field and getattr(booking, ts_field) is None:
        changes[ts_field] = now

    if new_status == BookingStatus.IN_PROGRESS and booking.actual_start is None:
        changes["actual_start"] = now
    elif new_status == BookingStatus.COMPLETED and booking.actual_end is None:
        changes["actual_end"] = now
    elif new_status == BookingStatus.PAID:
        changes["payment_status"] = PaymentStatus.RELEASED
    elif new_status == BookingStatus.DISPUTED:
        changes["issues_reported"] = True

    if notes:
        line = f"[{now.isoformat()}] Status changed from {old_status} to {new_status}: {notes}"
        changes["admin_notes"] = _append_note(booking.admin_notes, line)

    for field, value in changes.items():
        setattr(booking, field, value)

    logger.info(f"Booking {booking.id} status changed {old_status} -> {new_status}")
    return StatusChange(booking.id, old_status, new_status, now)


def update_payment_status(booking: Booking, new_payment_status: str, now: datetime | None = None) -> StatusChange:
    if new_payment_status not in PaymentStatus.ALL:
        raise ValidationError(f"Unknown payment status: {new_payment_status}", field="payment_status")

    old = booking.payment_status
    if new_payment_status == PaymentStatus.RELEASED and booking.status != BookingStatus.PAID:
        raise InvalidTransition(old, new_payment_status, "Payment can only be released once the booking is paid")
    if new_payment_status not in PAYMENT_TRANSITIONS[old]:
        raise InvalidTransition(old, new_payment_status, f"Invalid payment transition: {old} -> {new_payment_status}")

    booking.payment_status = new_payment_status
    logger.info(f"Booking {booking.id} payment status changed {old} -> {new_payment_status}")
    return StatusChange(booking.id, old, new_payment_status, as_utc(now) or utc_now(), field="payment_status")


def set_final_amount(booking: Booking, amount) -> Booking:
    """Override the agreed amount and recompute commission and payout."""
    if booking.payment_status == PaymentStatus.RELEASED:
        raise ValidationError("Final amount cannot change once payment is released", field="final_amount")
    if booking.status in BookingStatus.TERMINAL:
        raise ValidationError(f"Final amount cannot change on a {booking.status} booking", field="final_amount")

    payments = calculate_payments(_check_final_amount(amount), booking.commission_rate)
    booking.final_amount = payments.total_amount
    booking.commission_amount = payments.commission
    booking.worker_payout = payments.worker_payout
    return booking


def schedule(booking: Booking, start: datetime, end: datetime, now: datetime | None = None) -> Booking:
    if booking.status in BookingStatus.STARTED or booking.status in BookingStatus.TERMINAL:
        raise ValidationError(f"Cannot schedule a booking that is {booking.status}", field="scheduled_start")

    start, end = as_utc(start), as_utc(end)
    now = as_utc(now) or utc_now()
    if start < now:
        raise ValidationError("Scheduled start cannot be in the past", field="scheduled_start")
    if end <= start:
        raise ValidationError("Scheduled end must be after scheduled start", field="scheduled_end")

    booking.scheduled_start = start
    booking.scheduled_end = end
    return booking


def record_satisfaction(booking: Booking, client: int | None = None, worker: int | None = None) -> Booking:
    if client is None and worker is None:
        raise ValidationError("At least one satisfaction rating is required")
    if booking.status not in RATABLE_STATUSES:
        raise ValidationError(f"Cannot rate a booking that is {booking.status}")

    for field, value in (("client_satisfaction", client), ("worker_satisfaction", worker)):
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, int) or not 1 <= value <= 5:
            raise ValidationError(f"{field} rating must be between 1 and 5", field=field)

    if client is not None:
        booking.client_satisfaction = client
    if worker is not None:
        booking.worker_satisfaction = worker
    return booking


def set_notes(booking: Booking, client_notes: str | None = None, worker_notes: str | None = None) -> Booking:
    """Replace the client's and/or worker's free-text notes. admin_notes is not writable here."""
    if client_notes is None and worker_notes is None:
        raise ValidationError("At least one of client_notes or worker_notes is required")
    _check_text(client_notes, "client_notes")
    _check_text(worker_notes, "worker_notes")

    if client_notes is not None:
        booking.client_notes = client_notes
    if worker_notes is not None:
        booking.worker_notes = worker_notes
    return booking


def get_work_duration(booking: Booking) -> dict:
    estimated = booking.estimated_hours

    if booking.actual_start and booking.actual_end:
        elapsed = as_utc(booking.actual_end) - as_utc(booking.actual_start)
        hours = Decimal(elapsed.total_seconds()) / Decimal(3600)
        actual = float(hours.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))
        variance = round(actual - estimated, 1)
        if variance <= 0:
            efficiency = "efficient"
        elif variance <= 1:
            efficiency = "on-time"
        else:
            efficiency = "overtime"
        return {"estimated": estimated, "actual": actual, "variance": variance, "efficiency": efficiency}

    return {"estimated": estimated}


def get_timeline(booking: Booking) -> list[dict]:
    timeline = []
    for field, stage, description in TIMELINE_STAGES:
        ts = getattr(booking, field)
        if ts is not None:
            timeline.append({"stage": stage, "timestamp": as_utc(ts), "description": description})
    return timeline


def get_status_info(booking: Booking) -> dict:
    info = STATUS_INFO[booking.status]
    return {
        "status": booking.status,
        "description": info["description"],
        "next_actions": list(info["next_actions"]),
        "can_edit": info["can_edit"],
        "color": info["color"],
    }


def public_info(booking: Booking) -> dict:
    return {
        "id": booking.id,
        "status": booking.status,
        "proposed_rate": booking.proposed_rate,
        "estimated_hours": booking.estimated_hours,
        "scheduled_start": as_utc(booking.scheduled_start),
        "scheduled_end": as_utc(booking.scheduled_end),
        "payment_status": booking.payment_status,
        "applied_at": as_utc(booking.applied_at),
        "created_at": as_utc(booking.created_at),
    }