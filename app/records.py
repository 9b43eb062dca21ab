from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Union
import time

from pydantic import BaseModel, ConfigDict, Field

MAX_PARTICIPANTS = 1000


class SubmissionKind(str, Enum):
    CONTACT = "contact"
    BOOKING = "booking"

    @property
    def id_prefix(self) -> str:
        return "contact" if self is SubmissionKind.CONTACT else "book"

    @property
    def id_field(self) -> str:
        """Key under which the id travels in payloads and responses."""
        return "contactId" if self is SubmissionKind.CONTACT else "bookingId"


def new_submission_id(kind: SubmissionKind, now: datetime | None = None) -> str:
    """Return ``<prefix>_<epoch-millis>``. Same-millisecond ids may collide."""
    if now is None:
        millis = time.time_ns() // 1_000_000
    else:
        millis = int(now.timestamp() * 1000)
    return f"{kind.id_prefix}_{millis}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """ISO-8601 UTC with millisecond precision and a ``Z`` suffix."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class _RecordBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    created_at: datetime = Field(default_factory=utc_now)

    kind: SubmissionKind

    def to_payload(self, source: str) -> Dict[str, Any]:
        """Webhook body: type tag, camelCase fields, timestamp, id, source."""
        payload: Dict[str, Any] = {"type": self.kind.value}
        payload.update(self._fields())
        payload["timestamp"] = format_timestamp(self.created_at)
        payload[self.kind.id_field] = self.id
        payload["source"] = source
        return payload

    def _fields(self) -> Dict[str, Any]:
        raise NotImplementedError


class ContactRecord(_RecordBase):
    kind: SubmissionKind = SubmissionKind.CONTACT
    name: str
    subject: str
    message: str

    def _fields(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "email": self.email,
            "subject": self.subject,
            "message": self.message,
        }


class BookingRecord(_RecordBase):
    kind: SubmissionKind = SubmissionKind.BOOKING
    program: str
    date: str
    participants: int = Field(default=1, ge=1, le=MAX_PARTICIPANTS)
    first_name: str
    last_name: str
    phone: str = "Not provided"
    special_requirements: str = "None"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def _fields(self) -> Dict[str, Any]:
        return {
            "program": self.program,
            "date": self.date,
            "participants": self.participants,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "specialRequirements": self.special_requirements,
        }


SubmissionRecord = Union[ContactRecord, BookingRecord]
