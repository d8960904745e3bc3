"""
Error taxonomy for the leave request form.

None of these are fatal: every error is reported to the caller for display
and leaves the draft in a consistent, correctable state.
"""


class LeaveFormError(Exception):
    """Base class for all leave form errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(LeaveFormError):
    """Draft is incomplete or holds a value outside its allowed set."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class NetworkError(LeaveFormError):
    """The external API could not be reached (no response)."""


class SubmissionError(LeaveFormError):
    """The external API answered with a failure."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class UpstreamServerError(SubmissionError):
    """The external API answered with a 5xx status."""


class SubmissionInProgressError(LeaveFormError):
    """A submission is already in flight for this gateway."""
