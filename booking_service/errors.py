class BookingError(Exception):
    """Base class for errors raised by the booking lifecycle engine."""

    code = "booking_error"
    http_status = 400
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidTransition(BookingError):
    code = "invalid_transition"
    http_status = 409

    def __init__(self, current: str, target: str, message: str | None = None):
        super().__init__(message or f"Invalid booking transition: {current} -> {target}")
        self.current = current
        self.target = target


class ValidationError(BookingError):
    code = "validation_error"
    http_status = 422

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class ConflictError(BookingError):
    """The booking changed between read and write. Reload and retry."""

    code = "conflict"
    http_status = 409
    retryable = True


class NotFoundError(BookingError):
    code = "not_found"
    http_status = 404

    def __init__(self, booking_id: str):
        super().__init__(f"Booking {booking_id} not found")
        self.booking_id = booking_id
