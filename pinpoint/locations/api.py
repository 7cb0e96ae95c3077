import structlog
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse

from .dependencies import Gateway
from .exceptions import StorageError
from .gateway import DEFAULT_LIMIT
from .types import ErrorResponse, LocationRecord, SavedLocation
from .validation import decode_body, validate

logger = structlog.get_logger()

router = APIRouter()


@router.post(
    "/send-location",
    response_model=SavedLocation,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    },
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": {
                        "type": "object",
                        "required": ["latitude", "longitude"],
                        "properties": {
                            "latitude": {
                                "type": "number",
                                "minimum": -90,
                                "maximum": 90,
                            },
                            "longitude": {
                                "type": "number",
                                "minimum": -180,
                                "maximum": 180,
                            },
                        },
                    }
                }
            },
        }
    },
)
async def send_location(
    request: Request, gateway: Gateway
) -> SavedLocation | JSONResponse:
    """
    Validate and store a submitted coordinate.

    The body is decoded by hand so malformed JSON and invalid fields can be
    reported with their own error messages.
    """

    coordinate = validate(decode_body(await request.body()))

    try:
        record = await gateway.save(coordinate)
    except StorageError as exc:
        logger.exception("Failed to save location")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Server error", "message": str(exc)},
        )

    return SavedLocation(message="Location saved successfully", location=record)


@router.get(
    "/locations",
    response_model=list[LocationRecord],
    responses={status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse}},
)
async def get_locations(gateway: Gateway) -> list[LocationRecord] | JSONResponse:
    """
    Get the most recently stored locations, newest first.
    """

    try:
        return await gateway.list_recent(DEFAULT_LIMIT)
    except StorageError as exc:
        logger.exception("Failed to fetch locations")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Error fetching locations", "message": str(exc)},
        )
