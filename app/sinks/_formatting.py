"""Shared formatting helpers for submission notifications."""
from html import escape
from typing import List, Tuple

from ..records import BookingRecord, ContactRecord, SubmissionRecord, format_timestamp

EXCERPT_CHARS = 60


def one_line(text: str) -> str:
    return " ".join(text.split())


def excerpt(text: str, limit: int = EXCERPT_CHARS) -> str:
    """Collapse whitespace and cut *text* to *limit* characters with an ellipsis."""
    flat = one_line(text)
    if len(flat) <= limit:
        return flat
    return flat[: limit - 1].rstrip() + "…"


def format_subject(record: SubmissionRecord) -> str:
    """Single-line Subject header; every interpolated value is flattened."""
    if isinstance(record, ContactRecord):
        return f"Contact Form: {one_line(record.name)} - {excerpt(record.subject)}"
    return f"Booking Request: {one_line(record.program)} ({one_line(record.date)})"


def detail_rows(record: SubmissionRecord) -> List[Tuple[str, str]]:
    """Return ``(label, value)`` pairs describing the record."""
    if isinstance(record, ContactRecord):
        rows = [
            ("Name", record.name),
            ("Email", record.email),
            ("Subject", record.subject),
            ("Message", record.message),
        ]
    elif isinstance(record, BookingRecord):
        rows = [
            ("Program", record.program),
            ("Date", record.date),
            ("Participants", str(record.participants)),
            ("Name", record.full_name),
            ("Email", record.email),
            ("Phone", record.phone),
            ("Special requirements", record.special_requirements),
        ]
    else:
        raise TypeError(f"unsupported record type: {type(record).__name__}")

    rows.append(("Reference", record.id))
    rows.append(("Received", format_timestamp(record.created_at)))
    return rows


def format_heading(record: SubmissionRecord) -> str:
    return "New contact message" if isinstance(record, ContactRecord) else "New booking request"


def format_body_text(record: SubmissionRecord) -> str:
    heading = format_heading(record)
    lines = [heading, "=" * len(heading)]
    lines.extend(f"{label}: {value}" for label, value in detail_rows(record))
    lines.append("")
    lines.append("Reply to this email to respond to the sender.")
    return "\n".join(lines)


def format_body_html(record: SubmissionRecord) -> str:
    rows = "\n".join(
        f"<tr><td><b>{escape(label)}</b></td><td>{escape(value)}</td></tr>"
        for label, value in detail_rows(record)
    )
    return (
        f"<h2>{escape(format_heading(record))}</h2>\n"
        f"<table>\n{rows}\n</table>\n"
        "<hr/><p><em>Reply to this email to respond to the sender.</em></p>"
    )
