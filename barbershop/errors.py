# barbershop/errors.py
"""
Error taxonomy for the booking engine.

Every error is recoverable at the HTTP boundary: main.py renders it as
{"detail": ..., "code": ...} with the class status_code. Only
ConfigurationError is meant to stop the process, and it is raised while
the app starts, not per request.
"""


class BookingError(Exception):
    status_code = 400
    code = "booking_error"

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class ValidationError(BookingError):
    status_code = 422
    code = "validation_error"


class NotFoundError(BookingError):
    status_code = 404
    code = "not_found"


class ConflictError(BookingError):
    """The slot is no longer free. Callers should refetch slots, not retry blindly."""

    status_code = 409
    code = "slot_conflict"


class PolicyViolation(BookingError):
    status_code = 403
    code = "policy_violation"


class CancellationWindowExpired(PolicyViolation):
    code = "cancellation_window_expired"


class PlanNotUsable(PolicyViolation):
    code = "plan_not_usable"


class ClientSuspended(PolicyViolation):
    code = "client_suspended"


class NotOwner(PolicyViolation):
    code = "not_owner"


class InvalidTransition(PolicyViolation):
    status_code = 409
    code = "invalid_transition"


class ConfigurationError(BookingError):
    status_code = 500
    code = "configuration_error"
