"""Aggregate record router for record creation and progress reads."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Header, status
from fastapi.responses import JSONResponse

from slot_aggregator.domain import RecordAccessDeniedError, RecordNotFoundError, SlotValidationError
from slot_aggregator.jobs import AggregateRecordService

from ..access_policy import OWNER_HEADER_NAME, RecordAccessPolicyPort
from ..payloads import RecordCreateRequest, api_error_response, api_serialize_record


def api_create_records_router(
    record_service: AggregateRecordService,
    access_policy: RecordAccessPolicyPort,
) -> APIRouter:
    """Create record router exposing create and detail endpoints.

    Args:
        record_service: Job-layer record service.
        access_policy: Record read authorization policy.

    Returns:
        APIRouter: Router exposing `/records` endpoints.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if record_service is None:
        raise ValueError("record_service must not be None")
    if access_policy is None:
        raise ValueError("access_policy must not be None")

    router = APIRouter(prefix="/records", tags=["records"])

    @router.post("")
    def api_record_create(request: RecordCreateRequest) -> JSONResponse:
        """Create one record with all slots empty.

        Args:
            request: Owner and slot count.

        Returns:
            JSONResponse: 201 record payload, or 400 for an invalid slot count.

        Raises:
            RuntimeError: Raised when persistence fails.
        """

        try:
            record = record_service.job_record_create(owner_id=request.owner_id, slot_count=request.slot_count)
        except SlotValidationError as error:
            return api_error_response(status.HTTP_400_BAD_REQUEST, "INVALID_REQUEST", str(error))
        return JSONResponse(content=api_serialize_record(record), status_code=status.HTTP_201_CREATED)

    @router.get("/{record_id}")
    def api_record_get(
        record_id: UUID,
        owner_id: str | None = Header(default=None, alias=OWNER_HEADER_NAME),
    ) -> JSONResponse:
        """Return one record with filled and missing slot summaries.

        Args:
            record_id: Record identifier.
            owner_id: Forwarded owner header.

        Returns:
            JSONResponse: Record payload, 403 for a foreign owner, 404 when missing.

        Raises:
            RuntimeError: Raised when the read fails.
        """

        try:
            record = record_service.job_record_get(record_id)
            access_policy.api_check_record_access(record, owner_id)
        except RecordNotFoundError as error:
            return api_error_response(status.HTTP_404_NOT_FOUND, "RECORD_NOT_FOUND", str(error))
        except RecordAccessDeniedError as error:
            return api_error_response(status.HTTP_403_FORBIDDEN, "RECORD_ACCESS_DENIED", str(error))
        return JSONResponse(content=api_serialize_record(record), status_code=status.HTTP_200_OK)

    return router
