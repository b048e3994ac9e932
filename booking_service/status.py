"""
Status constants and transition graphs for bookings.
Lifecycle: pending → accepted → confirmed → in_progress → completed → approved → paid
"""


class BookingStatus:
    """Booking lifecycle statuses."""
    PENDING = "pending"          # Worker applied, waiting for client response
    ACCEPTED = "accepted"        # Client accepted worker, scheduling in progress
    CONFIRMED = "confirmed"      # Schedule confirmed, work about to start
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"      # Work finished, waiting for client approval
    APPROVED = "approved"        # Client approved work, payment being processed
    PAID = "paid"
    CANCELLED = "cancelled"
    DISPUTED = "disputed"        # Issues reported, requires admin intervention
    REJECTED = "rejected"        # Client rejected worker application

    ALL = (
        PENDING, ACCEPTED, CONFIRMED, IN_PROGRESS, COMPLETED,
        APPROVED, PAID, CANCELLED, DISPUTED, REJECTED,
    )
    TERMINAL = frozenset({PAID, CANCELLED, DISPUTED, REJECTED})
    ACTIVE = (ACCEPTED, CONFIRMED, IN_PROGRESS)
    # Work has started from here on; cancellation is no longer possible.
    STARTED = frozenset({IN_PROGRESS, COMPLETED, APPROVED, PAID})


class PaymentStatus:
    """Escrow sub-state, tracked independently of work progress."""
    PENDING = "pending"
    HELD = "held"
    PROCESSING = "processing"
    RELEASED = "released"
    REFUNDED = "refunded"
    DISPUTED = "disputed"

    ALL = (PENDING, HELD, PROCESSING, RELEASED, REFUNDED, DISPUTED)
    FINAL = frozenset({RELEASED, REFUNDED, DISPUTED})


_S = BookingStatus

TRANSITIONS = {
    _S.PENDING: {_S.ACCEPTED, _S.REJECTED, _S.CANCELLED, _S.DISPUTED},
    _S.ACCEPTED: {_S.CONFIRMED, _S.IN_PROGRESS, _S.CANCELLED, _S.DISPUTED},
    _S.CONFIRMED: {_S.IN_PROGRESS, _S.CANCELLED, _S.DISPUTED},
    _S.IN_PROGRESS: {_S.COMPLETED, _S.CANCELLED, _S.DISPUTED},
    _S.COMPLETED: {_S.APPROVED, _S.CANCELLED, _S.DISPUTED},
    _S.APPROVED: {_S.PAID, _S.CANCELLED, _S.DISPUTED},
    _S.PAID: set(),
    _S.CANCELLED: set(),
    _S.DISPUTED: set(),
    _S.REJECTED: set(),
}

_P = PaymentStatus

PAYMENT_TRANSITIONS = {
    _P.PENDING: {_P.HELD, _P.REFUNDED, _P.DISPUTED},
    _P.HELD: {_P.PROCESSING, _P.REFUNDED, _P.DISPUTED},
    _P.PROCESSING: {_P.RELEASED, _P.REFUNDED, _P.DISPUTED},
    _P.RELEASED: set(),
    _P.REFUNDED: set(),
    _P.DISPUTED: set(),
}


def is_allowed(current: str, target: str) -> bool:
    return target in TRANSITIONS[current]


STATUS_INFO = {
    _S.PENDING: {
        "description": "Application submitted, waiting for client response",
        "next_actions": ["Client: Accept or reject application"],
        "can_edit": True,
        "color": "yellow",
    },
    _S.ACCEPTED: {
        "description": "Application accepted, scheduling work time",
        "next_actions": ["Both: Confirm schedule", "Worker: Start work when ready"],
        "can_edit": True,
        "color": "blue",
    },
    _S.CONFIRMED: {
        "description": "Schedule confirmed, work ready to start",
        "next_actions": ["Worker: Start work", "Client: Track progress"],
        "can_edit": False,
        "color": "green",
    },
    _S.IN_PROGRESS: {
        "description": "Work is currently being performed",
        "next_actions": ["Worker: Complete work", "Client: Monitor progress"],
        "can_edit": False,
        "color": "orange",
    },
    _S.COMPLETED: {
        "description": "Work finished, waiting for client approval",
        "next_actions": ["Client: Approve or request changes"],
        "can_edit": False,
        "color": "purple",
    },
    _S.APPROVED: {
        "description": "Work approved, processing payment",
        "next_actions": ["System: Processing payment to worker"],
        "can_edit": False,
        "color": "green",
    },
    _S.PAID: {
        "description": "Payment completed, booking finished",
        "next_actions": ["Both: Leave reviews"],
        "can_edit": False,
        "color": "green",
    },
    _S.CANCELLED: {
        "description": "Booking cancelled",
        "next_actions": ["None - booking ended"],
        "can_edit": False,
        "color": "red",
    },
    _S.DISPUTED: {
        "description": "Issues reported, under admin review",
        "next_actions": ["Admin: Resolve dispute"],
        "can_edit": False,
        "color": "red",
    },
    _S.REJECTED: {
        "description": "Application rejected by client",
        "next_actions": ["None - application declined"],
        "can_edit": False,
        "color": "gray",
    },
}
