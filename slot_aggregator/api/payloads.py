"""Request models and response serializers for the HTTP surface."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from slot_aggregator.domain import AggregateRecord
from slot_aggregator.jobs import SlotPollResult


class RecordCreateRequest(BaseModel):
    """Body of `POST /records`."""

    owner_id: str = Field(min_length=1)
    slot_count: int


class JobSubmitRequest(BaseModel):
    """Body of `POST /jobs`."""

    record_id: UUID
    slot_index: int
    parameters: dict[str, Any] = Field(default_factory=dict)


def api_error_response(status_code: int, code: str, message: str, retryable: bool = False) -> JSONResponse:
    """Build the deterministic error envelope.

    Args:
        status_code: HTTP status code.
        code: Stable machine-readable error code.
        message: Human-readable message.
        retryable: Whether the same request may succeed later.

    Returns:
        JSONResponse: Error response.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    payload = {
        "status": "error",
        "code": code,
        "message": message,
        "retryable": retryable,
    }
    return JSONResponse(content=payload, status_code=status_code)


def api_serialize_record(record: AggregateRecord) -> dict[str, object]:
    """Serialize one aggregate record for API responses.

    Args:
        record: Aggregate record.

    Returns:
        dict[str, object]: JSON-compatible record payload.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {
        "record_id": str(record.record_id),
        "owner_id": record.owner_id,
        "slot_count": record.slot_count,
        "slots": [slot.url if slot is not None else None for slot in record.slots],
        "filled_count": record.record_filled_count(),
        "missing_slot_indexes": record.record_missing_slot_indexes(),
        "completed": record.completed,
        "completed_at_utc": record.completed_at_utc.isoformat() if record.completed_at_utc is not None else None,
        "created_at_utc": record.created_at_utc.isoformat(),
        "updated_at_utc": record.updated_at_utc.isoformat(),
    }


def api_serialize_poll_result(poll_result: SlotPollResult) -> dict[str, object]:
    """Serialize one slot poll result, omitting unset optional fields.

    Args:
        poll_result: Orchestrator poll result.

    Returns:
        dict[str, object]: JSON-compatible poll payload.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    payload: dict[str, object] = {
        "job_handle_id": poll_result.job_handle_id,
        "record_id": str(poll_result.record_id),
        "slot_index": poll_result.slot_index,
        "status": poll_result.status.value,
    }
    if poll_result.result_url is not None:
        payload["result_url"] = poll_result.result_url
    if poll_result.error_message is not None:
        payload["error"] = poll_result.error_message
    if poll_result.slot_write is not None:
        payload["slot_write"] = poll_result.slot_write.value
    if poll_result.filled_count is not None:
        payload["filled_count"] = poll_result.filled_count
        payload["slot_count"] = poll_result.slot_count
    if poll_result.completed is not None:
        payload["completed"] = poll_result.completed
    payload["completion_flipped"] = poll_result.completion_flipped
    payload["stages"] = poll_result.stages
    return payload

