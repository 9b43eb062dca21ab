"""Error taxonomy for the submission pipeline."""
from enum import Enum
from typing import Iterable


class ValidationFailure(str, Enum):
    MISSING_FIELDS = "missing_fields"
    INVALID_EMAIL = "invalid_email"


class SinkFailure(str, Enum):
    """Why a sink delivery did not succeed. Carried on results, never raised."""

    TIMEOUT = "timeout"
    TRANSPORT_FAILURE = "transport_failure"
    NON_SUCCESS_STATUS = "non_success_status"


class SubmissionValidationError(Exception):
    """A submission was rejected before any sink was contacted."""

    reason: ValidationFailure

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingFieldsError(SubmissionValidationError):
    reason = ValidationFailure.MISSING_FIELDS

    def __init__(self, fields: Iterable[str]):
        self.fields = list(fields)
        super().__init__(f"Missing required fields: {', '.join(self.fields)}")


class InvalidEmailError(SubmissionValidationError):
    reason = ValidationFailure.INVALID_EMAIL

    def __init__(self, email: str):
        self.email = email
        super().__init__("Please provide a valid email address")


class InternalFault(Exception):
    """Unexpected failure while building a record, after the id was minted."""

    def __init__(self, kind, submission_id: str | None, cause: Exception | None = None):
        super().__init__(f"internal fault handling {kind.value} submission {submission_id}")
        self.kind = kind
        self.submission_id = submission_id
        self.cause = cause
