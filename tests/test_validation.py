"""Tests for submission normalization and validation."""
from datetime import datetime, timezone
import re

import pytest

from app.errors import InvalidEmailError, MissingFieldsError, ValidationFailure
from app.records import MAX_PARTICIPANTS, BookingRecord, ContactRecord, SubmissionKind
from app.validation import coerce_participants, is_valid_email, normalize


CONTACT = {"name": "Ann", "email": "ann@x.com", "subject": "Hi", "message": "Hello"}
BOOKING = {
    "program": "bestie",
    "date": "2025-01-01",
    "firstName": "A",
    "lastName": "B",
    "email": "a@b.com",
}


def test_contact_is_normalized():
    record = normalize(
        {"name": "  Ann ", "email": " Ann@X.COM ", "subject": "Hi\n", "message": " Hello "},
        SubmissionKind.CONTACT,
    )

    assert isinstance(record, ContactRecord)
    assert record.name == "Ann"
    assert record.email == "ann@x.com"
    assert record.subject == "Hi"
    assert record.message == "Hello"
    assert re.fullmatch(r"contact_\d+", record.id)
    assert record.created_at.tzinfo is not None


def test_booking_defaults_optional_fields():
    record = normalize(BOOKING, SubmissionKind.BOOKING)

    assert isinstance(record, BookingRecord)
    assert record.participants == 1
    assert record.phone == "Not provided"
    assert record.special_requirements == "None"
    assert record.full_name == "A B"
    assert re.fullmatch(r"book_\d+", record.id)


def test_booking_keeps_provided_optional_fields():
    record = normalize(
        {**BOOKING, "participants": "3", "phone": " +254712345678 ", "specialRequirements": "Vegan"},
        SubmissionKind.BOOKING,
    )

    assert record.participants == 3
    assert record.phone == "+254712345678"
    assert record.special_requirements == "Vegan"


def test_blank_optional_fields_fall_back_to_sentinels():
    record = normalize({**BOOKING, "phone": "   ", "specialRequirements": None}, SubmissionKind.BOOKING)

    assert record.phone == "Not provided"
    assert record.special_requirements == "None"


@pytest.mark.parametrize("missing", ["name", "email", "subject", "message"])
def test_contact_missing_field_rejected(missing):
    body = {k: v for k, v in CONTACT.items() if k != missing}

    with pytest.raises(MissingFieldsError) as exc_info:
        normalize(body, SubmissionKind.CONTACT)

    assert exc_info.value.fields == [missing]
    assert exc_info.value.reason is ValidationFailure.MISSING_FIELDS
    assert missing in exc_info.value.message


@pytest.mark.parametrize("missing", ["program", "date", "firstName", "lastName", "email"])
def test_booking_missing_field_rejected(missing):
    body = {**BOOKING, missing: "   "}

    with pytest.raises(MissingFieldsError) as exc_info:
        normalize(body, SubmissionKind.BOOKING)

    assert exc_info.value.fields == [missing]


def test_missing_fields_listed_in_declared_order():
    with pytest.raises(MissingFieldsError) as exc_info:
        normalize({"name": "Ann"}, SubmissionKind.CONTACT)

    assert exc_info.value.fields == ["email", "subject", "message"]


@pytest.mark.parametrize("raw", [None, [], "name=Ann", 42])
def test_non_mapping_body_counts_as_empty(raw):
    with pytest.raises(MissingFieldsError):
        normalize(raw, SubmissionKind.CONTACT)


def test_non_scalar_field_counts_as_missing():
    with pytest.raises(MissingFieldsError) as exc_info:
        normalize({**CONTACT, "name": {"first": "Ann"}}, SubmissionKind.CONTACT)

    assert exc_info.value.fields == ["name"]


@pytest.mark.parametrize(
    "email",
    ["ann", "ann@x", "@x.com", "ann@.com.", "ann x@y.com", "ann@@x.com", "ann@x .com"],
)
def test_invalid_email_rejected(email):
    with pytest.raises(InvalidEmailError) as exc_info:
        normalize({**CONTACT, "email": email}, SubmissionKind.CONTACT)

    assert exc_info.value.reason is ValidationFailure.INVALID_EMAIL


@pytest.mark.parametrize("email", ["a@b.co", "first.last+tag@sub.example.org", "x@y.z"])
def test_email_shape_accepts_common_addresses(email):
    assert is_valid_email(email)


@pytest.mark.parametrize(
    "value,expected",
    [
        ("abc", 1),
        ("", 1),
        ("   ", 1),
        (0, 1),
        (-5, 1),
        ("-5", 1),
        (None, 1),
        (True, 1),
        ("nan", 1),
        ("inf", 1),
        ([2], 1),
        ("3", 3),
        (" 4 ", 4),
        (2.9, 2),
        (12, 12),
        ("1e20", 1000),
        (10**25, 1000),
        ("1001", 1000),
        (1000, 1000),
    ],
)
def test_participant_coercion(value, expected):
    assert coerce_participants(value) == expected


def test_huge_participant_count_is_capped():
    record = normalize({**BOOKING, "participants": "1e20"}, SubmissionKind.BOOKING)

    assert record.participants == MAX_PARTICIPANTS
    assert record.to_payload("bestie.co.ke")["participants"] == MAX_PARTICIPANTS


def test_absent_participants_default_to_one():
    assert normalize(BOOKING, SubmissionKind.BOOKING).participants == 1


def test_injected_id_and_clock_are_used():
    now = datetime(2025, 1, 1, 9, 30, tzinfo=timezone.utc)

    record = normalize(CONTACT, SubmissionKind.CONTACT, submission_id="contact_1", now=now)

    assert record.id == "contact_1"
    assert record.created_at == now


def test_id_derived_from_clock_when_not_injected():
    now = datetime(2025, 1, 1, tzinfo=timezone.utc)

    record = normalize(BOOKING, SubmissionKind.BOOKING, now=now)

    assert record.id == f"book_{int(now.timestamp() * 1000)}"
