"""Upload and download API endpoints.

- POST /download[?non-blocking] and POST /upload[?non-blocking] start or
  join a transfer and return the request's own record
- GET /download/{id} and GET /upload/status/{id} return a record snapshot

The presence of the non-blocking query parameter, with any value or none,
selects fire-and-forget mode. Without it the request waits for the
in-flight transfer of its kind to finish.
"""

from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request

from file_transfers.api.schemas import ErrorDetail, TransferRecordResponse
from file_transfers.core.errors import SerializationError
from file_transfers.models.transfer import TransferKind, TransferRecord
from file_transfers.services.transfer_service import TransferService

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["transfers"])

NON_BLOCKING_PARAM = "non-blocking"


# Dependency placeholder (to be configured in main app)
async def get_transfer_service() -> TransferService:
    """Get transfer service instance."""
    raise NotImplementedError("Transfer service dependency not configured")


def is_non_blocking(request: Request) -> bool:
    return NON_BLOCKING_PARAM in request.query_params


def serialize_record(record: TransferRecord) -> TransferRecordResponse:
    """Build the response model from a consistent snapshot of the record.

    Raises:
        SerializationError: If the snapshot does not fit the response schema.
    """
    try:
        return TransferRecordResponse(**record.to_dict())
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Error serializing {record.kind.value} record: {e}") from e


async def _trigger(kind: TransferKind, request: Request, service: TransferService) -> Any:
    blocking = not is_non_blocking(request)

    logger.info("transfer_request_received", kind=kind.value, blocking=blocking)

    record = await service.request_transfer(kind, blocking=blocking)
    return serialize_record(record)


@router.post(
    "/download",
    response_model=TransferRecordResponse,
    responses={
        200: {"description": "Record of this download request"},
        500: {"description": "Record could not be serialized", "model": ErrorDetail},
    },
)
async def download_files(
    request: Request,
    service: TransferService = Depends(get_transfer_service),  # noqa: B008
) -> Any:
    """
    Start or join a download.

    Launches porklock `get` unless a download is already running or the
    input path list file is missing. Either way a new record is created
    for this request and returned.
    """
    return await _trigger(TransferKind.DOWNLOAD, request, service)


@router.get(
    "/download/{record_id}",
    response_model=TransferRecordResponse,
    responses={404: {"description": "Download not found", "model": ErrorDetail}},
)
async def get_download_status(
    record_id: str,
    service: TransferService = Depends(get_transfer_service),  # noqa: B008
) -> Any:
    """Get the current status of a download record."""
    logger.debug("transfer_status_requested", kind="download", record_id=record_id)
    return serialize_record(service.get_status(TransferKind.DOWNLOAD, record_id))


@router.post(
    "/upload",
    response_model=TransferRecordResponse,
    responses={
        200: {"description": "Record of this upload request"},
        500: {"description": "Record could not be serialized", "model": ErrorDetail},
    },
)
async def upload_files(
    request: Request,
    service: TransferService = Depends(get_transfer_service),  # noqa: B008
) -> Any:
    """
    Start or join an upload.

    Launches porklock `put` unless an upload is already running. Either
    way a new record is created for this request and returned.
    """
    return await _trigger(TransferKind.UPLOAD, request, service)


@router.get(
    "/upload/status/{record_id}",
    response_model=TransferRecordResponse,
    responses={404: {"description": "Upload not found", "model": ErrorDetail}},
)
async def get_upload_status(
    record_id: str,
    service: TransferService = Depends(get_transfer_service),  # noqa: B008
) -> Any:
    """Get the current status of an upload record."""
    logger.debug("transfer_status_requested", kind="upload", record_id=record_id)
    return serialize_record(service.get_status(TransferKind.UPLOAD, record_id))
