from fastapi import APIRouter, Depends, HTTPException

from groombook.dependencies.services import get_booking_submitter
from groombook.schemas.booking import BookingResponse, BookingSubmission
from groombook.services import BookingSubmitter
from groombook.services.exceptions import (
    BookingRejectedError,
    ServiceError,
    SlotValidationError,
)

router = APIRouter()


def booking_http_error(exc: ServiceError) -> HTTPException:
    """Map a booking failure onto the status codes the booking screens expect."""

    if isinstance(exc, SlotValidationError):
        return HTTPException(
            status_code=409,
            detail={"code": exc.code, "message": exc.user_message},
        )
    if isinstance(exc, BookingRejectedError):
        return HTTPException(
            status_code=422,
            detail={"kind": exc.kind, "message": exc.user_message},
        )
    return HTTPException(status_code=502, detail=str(exc))


@router.post("", response_model=BookingResponse)
async def submit_booking(
    req: BookingSubmission,
    submitter: BookingSubmitter = Depends(get_booking_submitter),
):
    try:
        return await submitter.submit(req.booking, req.snapshot)
    except ServiceError as exc:
        raise booking_http_error(exc) from exc
