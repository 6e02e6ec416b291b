"""
Failure taxonomy for voyage reporting.

Every operation of the reporting core raises one of these. The HTTP layer
maps them to status codes in one place (see api/errors.py).
"""

from typing import Optional


class ReportingError(Exception):
    """Base class for all reporting failures."""

    kind = "reporting_error"
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ReportingError):
    """A referenced vessel, voyage, report or bunker record does not exist."""

    kind = "not_found"
    status_code = 404

    def __init__(self, resource: str, resource_id: Optional[int] = None):
        msg = resource
        if resource_id is not None:
            msg += f" {resource_id}"
        msg += " not found"
        super().__init__(msg)
        self.resource = resource
        self.resource_id = resource_id


class InvalidInputError(ReportingError):
    """Request is missing required fields or carries malformed values."""

    kind = "invalid_input"
    status_code = 400

    def __init__(self, message: str, fields: Optional[list] = None):
        super().__init__(message)
        self.fields = fields or []


class InvalidStateError(ReportingError):
    """Operation needs state the vessel does not have yet (e.g. no approved report)."""

    kind = "invalid_state"
    status_code = 409


class InvalidTransitionError(ReportingError):
    """Report type or passage state may not follow the last approved report."""

    kind = "invalid_transition"
    status_code = 409

    def __init__(self, attempted: str, baseline: Optional[str], reason: Optional[str] = None):
        msg = f"Cannot submit '{attempted}' report after '{baseline or 'none'}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.attempted = attempted
        self.baseline = baseline


class ConflictError(ReportingError):
    """A pending report already blocks the voyage."""

    kind = "conflict"
    status_code = 409

    def __init__(self, pending_report_id: int, pending_type: str):
        super().__init__(
            f"Report {pending_report_id} ({pending_type}) is still pending review; "
            "it must be approved or rejected before submitting a new report"
        )
        self.pending_report_id = pending_report_id
        self.pending_type = pending_type


class DataIntegrityError(ReportingError):
    """Persisted state violates an invariant (e.g. approved report without bunker record)."""

    kind = "data_integrity"
    status_code = 500
