from typing import Any
from urllib.parse import parse_qsl

from fastapi import APIRouter, Depends, Request
import orjson

from .schemas import BookingDetails, BookingResponse, ContactResponse, ErrorResponse
from ..services.submissions import SubmissionService

router = APIRouter()

ERROR_RESPONSES = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def get_submission_service(request: Request) -> SubmissionService:
    return request.app.state.submissions


async def read_form_body(request: Request) -> Any:
    """Decode a JSON or URL-encoded form body; an empty body is an empty form."""
    body = await request.body()
    if not body:
        return {}
    if request.headers.get("content-type", "").startswith(FORM_CONTENT_TYPE):
        return dict(parse_qsl(body.decode("utf-8", errors="replace"), keep_blank_values=True))
    try:
        return orjson.loads(body)
    except orjson.JSONDecodeError:
        # Other content types carry no fields
        return {}


@router.post(
    "/api/contact",
    response_model=ContactResponse,
    response_model_by_alias=True,
    responses=ERROR_RESPONSES,
)
async def submit_contact(
    raw: Any = Depends(read_form_body),
    service: SubmissionService = Depends(get_submission_service),
):
    outcome = await service.submit_contact(raw)
    return ContactResponse(contact_id=outcome.record.id)


@router.post(
    "/book",
    response_model=BookingResponse,
    response_model_by_alias=True,
    responses=ERROR_RESPONSES,
)
async def submit_booking(
    raw: Any = Depends(read_form_body),
    service: SubmissionService = Depends(get_submission_service),
):
    outcome = await service.submit_booking(raw)
    record = outcome.record
    return BookingResponse(booking_id=record.id, details=BookingDetails.from_record(record))
