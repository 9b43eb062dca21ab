from pydantic import BaseModel, ConfigDict, Field
from ..records import BookingRecord


class ContactResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    contact_id: str = Field(..., alias="contactId")


class BookingDetails(BaseModel):
    program: str
    date: str
    participants: int
    name: str

    @classmethod
    def from_record(cls, record: BookingRecord) -> "BookingDetails":
        return cls(
            program=record.program,
            date=record.date,
            participants=record.participants,
            name=record.full_name,
        )


class BookingResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    booking_id: str = Field(..., alias="bookingId")
    details: BookingDetails


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
