"""Slot job router for submission and status polling."""

from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from slot_aggregator.adapters import ProviderError, ProviderJobNotFoundError, ProviderRequestError
from slot_aggregator.domain import MaterializationError, RecordNotFoundError, SlotValidationError
from slot_aggregator.jobs import SlotJobOrchestratorPort

from ..payloads import JobSubmitRequest, api_error_response, api_serialize_poll_result


def api_create_jobs_router(slot_job_orchestrator: SlotJobOrchestratorPort) -> APIRouter:
    """Create jobs router.

    Args:
        slot_job_orchestrator: Job-layer slot orchestrator.

    Returns:
        APIRouter: Router exposing `/jobs` endpoints.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if slot_job_orchestrator is None:
        raise ValueError("slot_job_orchestrator must not be None")

    router = APIRouter(prefix="/jobs", tags=["jobs"])

    @router.post("")
    def api_job_submit(request: JobSubmitRequest) -> JSONResponse:
        """Start one provider job for an empty slot.

        A filled slot short-circuits with 200 and the stored URL; no provider
        job is started.

        Args:
            request: Record id, slot index and opaque provider parameters.

        Returns:
            JSONResponse: 202 pending handle, 200 short-circuit, or an error envelope.

        Raises:
            RuntimeError: Raised when persistence fails.
        """

        try:
            submission = slot_job_orchestrator.job_submit_slot(
                record_id=request.record_id,
                slot_index=request.slot_index,
                parameters=request.parameters,
            )
        except SlotValidationError as error:
            return api_error_response(status.HTTP_400_BAD_REQUEST, "INVALID_REQUEST", str(error))
        except RecordNotFoundError as error:
            return api_error_response(status.HTTP_404_NOT_FOUND, "RECORD_NOT_FOUND", str(error))
        except ProviderError as error:
            return _api_provider_error_response(error, job_lookup=False)

        if submission.existing_result_ref is not None:
            payload = {
                "job_handle_id": None,
                "record_id": str(submission.record.record_id),
                "slot_index": submission.slot_index,
                "status": "succeeded",
                "result_url": submission.existing_result_ref.url,
            }
            return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

        job_handle = submission.job_handle
        payload = {
            "job_handle_id": job_handle.job_handle_id,
            "record_id": str(job_handle.record_id),
            "slot_index": job_handle.slot_index,
            "status": job_handle.status.value,
        }
        return JSONResponse(content=payload, status_code=status.HTTP_202_ACCEPTED)

    @router.get("/{job_handle_id}/status")
    def api_job_status(
        job_handle_id: str,
        record_id: UUID = Query(),
        slot_index: int = Query(),
    ) -> JSONResponse:
        """Poll one job; on success materialize, write the slot and check completion.

        Args:
            job_handle_id: Provider job identifier.
            record_id: Owning record.
            slot_index: Slot the job fills.

        Returns:
            JSONResponse: Poll payload or an error envelope.

        Raises:
            RuntimeError: Raised when persistence fails.
        """

        try:
            poll_result = slot_job_orchestrator.job_poll_slot(
                job_handle_id=job_handle_id,
                record_id=record_id,
                slot_index=slot_index,
            )
        except SlotValidationError as error:
            return api_error_response(status.HTTP_400_BAD_REQUEST, "INVALID_REQUEST", str(error))
        except RecordNotFoundError as error:
            return api_error_response(status.HTTP_404_NOT_FOUND, "RECORD_NOT_FOUND", str(error))
        except MaterializationError as error:
            return api_error_response(
                status.HTTP_503_SERVICE_UNAVAILABLE,
                "MATERIALIZATION_FAILED",
                str(error),
                retryable=error.retryable,
            )
        except ProviderError as error:
            return _api_provider_error_response(error, job_lookup=True)

        return JSONResponse(content=api_serialize_poll_result(poll_result), status_code=status.HTTP_200_OK)

    return router


def _api_provider_error_response(error: ProviderError, job_lookup: bool) -> JSONResponse:
    """Map provider failures to 404 for unknown handles and 502 otherwise.

    Args:
        error: Provider failure.
        job_lookup: Whether the failing call looked up an existing job handle.

    Returns:
        JSONResponse: Error envelope.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if job_lookup and isinstance(error, ProviderJobNotFoundError):
        return api_error_response(status.HTTP_404_NOT_FOUND, "JOB_NOT_FOUND", str(error))
    if isinstance(error, ProviderRequestError):
        return api_error_response(status.HTTP_502_BAD_GATEWAY, "PROVIDER_REJECTED", str(error))
    return api_error_response(
        status.HTTP_502_BAD_GATEWAY,
        "PROVIDER_UNAVAILABLE",
        str(error),
        retryable=error.retryable,
    )
