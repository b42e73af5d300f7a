class AdmissionError(Exception):
    """
    Base class for errors raised by the slot engine and booking services.

    ``code`` is stable and machine readable; ``status_code`` is the HTTP
    status the API layer renders it with.
    """
    code = "admission_error"
    status_code = 400

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.code)
        self.detail = detail or self.code


class ValidationError(AdmissionError):
    code = "validation_error"
    status_code = 400


class IdentityMismatch(ValidationError):
    code = "identity_mismatch"
    status_code = 403


class HealthPostNotFound(ValidationError):
    code = "health_post_not_found"
    status_code = 404


class NoSuchSlot(AdmissionError):
    code = "no_such_slot"
    status_code = 404


class InsufficientCapacity(AdmissionError):
    code = "insufficient_capacity"
    status_code = 409

    def __init__(self, detail: str = "", requested: int = 0, remaining: int = 0):
        super().__init__(detail)
        self.requested = requested
        self.remaining = remaining


class BookingNotFound(AdmissionError):
    code = "booking_not_found"
    status_code = 404


class TemplateNotFound(AdmissionError):
    code = "template_not_found"
    status_code = 404


class InvalidStatusTransition(AdmissionError):
    code = "invalid_status_transition"
    status_code = 409


class DatastoreUnavailable(AdmissionError):
    code = "datastore_unavailable"
    status_code = 503


class ConcurrencyConflict(AdmissionError):
    code = "concurrency_conflict"
    status_code = 503
