"""Turns raw form payloads into normalized, immutable submission records.

Nothing here performs I/O. The raw body never travels past this module:
callers get back a ``ContactRecord`` or ``BookingRecord`` or an exception.
"""
from datetime import datetime
from typing import Any, Mapping
import math
import re

from .errors import InvalidEmailError, MissingFieldsError
from .records import (
    MAX_PARTICIPANTS,
    BookingRecord,
    ContactRecord,
    SubmissionKind,
    SubmissionRecord,
    new_submission_id,
    utc_now,
)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

REQUIRED_FIELDS: dict[SubmissionKind, tuple[str, ...]] = {
    SubmissionKind.CONTACT: ("name", "email", "subject", "message"),
    SubmissionKind.BOOKING: ("program", "date", "firstName", "lastName", "email"),
}

DEFAULT_PHONE = "Not provided"
DEFAULT_SPECIAL_REQUIREMENTS = "None"


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value))


def clean_text(value: Any) -> str:
    """Trim scalars to text; anything else (None, lists, dicts, bools) is empty."""
    if isinstance(value, bool) or value is None:
        return ""
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, (int, float)):
        return str(value).strip()
    return ""


def coerce_participants(value: Any) -> int:
    """Parse a participant count, falling back to 1 and capped at ``MAX_PARTICIPANTS``."""
    if isinstance(value, bool) or value is None:
        return 1
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return 1
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 1
    if not math.isfinite(number):
        return 1
    return min(max(int(number), 1), MAX_PARTICIPANTS)


def normalize(
    raw: Any,
    kind: SubmissionKind,
    *,
    submission_id: str | None = None,
    now: datetime | None = None,
) -> SubmissionRecord:
    """
    Validate a raw form body and build the matching record.

    Args:
        raw: Decoded request body. Non-mapping bodies count as empty.
        kind: Which form was submitted.
        submission_id: Pre-minted id; minted here when omitted.
        now: Construction time; defaults to the current UTC time.

    Raises:
        MissingFieldsError: A required field is absent or blank.
        InvalidEmailError: The email does not look like ``local@domain.tld``.
    """
    body: Mapping[str, Any] = raw if isinstance(raw, Mapping) else {}
    fields = {name: clean_text(body.get(name)) for name in REQUIRED_FIELDS[kind]}

    missing = [name for name, value in fields.items() if not value]
    if missing:
        raise MissingFieldsError(missing)

    email = fields["email"].lower()
    if not is_valid_email(email):
        raise InvalidEmailError(email)

    created_at = now or utc_now()
    record_id = submission_id or new_submission_id(kind, created_at)

    if kind is SubmissionKind.CONTACT:
        return ContactRecord(
            id=record_id,
            created_at=created_at,
            name=fields["name"],
            email=email,
            subject=fields["subject"],
            message=fields["message"],
        )

    return BookingRecord(
        id=record_id,
        created_at=created_at,
        program=fields["program"],
        date=fields["date"],
        participants=coerce_participants(body.get("participants")),
        first_name=fields["firstName"],
        last_name=fields["lastName"],
        email=email,
        phone=clean_text(body.get("phone")) or DEFAULT_PHONE,
        special_requirements=clean_text(body.get("specialRequirements")) or DEFAULT_SPECIAL_REQUIREMENTS,
    )
