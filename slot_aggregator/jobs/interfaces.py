"""Typed interfaces for job-layer slot orchestration responsibilities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol
from uuid import UUID

from slot_aggregator.domain import AggregateRecord, JobHandle, JobStatus, ResultRef, SlotWriteOutcome


@dataclass(frozen=True)
class JobStatusTranslation:
    """Translated view of one provider job observation.

    Attributes:
        job_handle_id: Provider job identifier.
        status: Internal three-state status.
        provider_state: Raw provider state text, kept for diagnostics.
        output_url: Transient output location; set only when status is `succeeded`.
        error_message: Failure text; set only when status is `failed`.
    """

    job_handle_id: str
    status: JobStatus
    provider_state: str
    output_url: str | None = None
    error_message: str | None = None


@dataclass(frozen=True)
class SlotSubmissionResult:
    """Outcome of a slot submission request.

    Exactly one of `job_handle` and `existing_result_ref` is set: a new provider
    job was started, or the slot was already filled and no job was started.

    Attributes:
        record: Record observed before submission.
        slot_index: Requested slot.
        job_handle: New job handle when a provider job was created.
        existing_result_ref: Stored reference when the slot was already filled.
    """

    record: AggregateRecord
    slot_index: int
    job_handle: JobHandle | None = None
    existing_result_ref: ResultRef | None = None


@dataclass(frozen=True)
class SlotPollResult:
    """Outcome of one status poll for a slot job.

    Attributes:
        job_handle_id: Provider job identifier.
        record_id: Owning record.
        slot_index: Slot the job fills.
        status: Translated job status.
        result_url: Stored permanent URL once the slot holds a result.
        error_message: Provider failure text for failed jobs.
        slot_write: Conditional write outcome, when a write was attempted or skipped as filled.
        filled_count: Non-empty slot count after this poll, when known.
        slot_count: Record slot count.
        completed: Record completion flag after this poll.
        completion_flipped: Whether this poll performed the completion flip.
        stages: Structured stage timeline for diagnostics.
    """

    job_handle_id: str
    record_id: UUID
    slot_index: int
    status: JobStatus
    result_url: str | None = None
    error_message: str | None = None
    slot_write: SlotWriteOutcome | None = None
    filled_count: int | None = None
    slot_count: int | None = None
    completed: bool | None = None
    completion_flipped: bool = False
    stages: list[dict[str, object]] = field(default_factory=list)


class SlotJobOrchestratorPort(Protocol):
    """Port definition for request-driven slot job submission and polling."""

    def job_submit_slot(self, record_id: UUID, slot_index: int, parameters: dict[str, Any]) -> SlotSubmissionResult:
        """Start one provider job for an empty slot or report the stored result.

        Args:
            record_id: Record identifier.
            slot_index: Zero-based slot index.
            parameters: Opaque provider input object.

        Returns:
            SlotSubmissionResult: New handle or existing result.

        Raises:
            RecordNotFoundError: Raised when the record does not exist.
            SlotValidationError: Raised when slot index or parameters are invalid.
            ProviderError: Raised when the provider rejects or cannot be reached.
        """

    def job_poll_slot(self, job_handle_id: str, record_id: UUID, slot_index: int) -> SlotPollResult:
        """Poll one job and, on success, materialize and write its slot.

        Args:
            job_handle_id: Provider job identifier.
            record_id: Record identifier.
            slot_index: Zero-based slot index.

        Returns:
            SlotPollResult: Poll outcome with write and completion details.

        Raises:
            RecordNotFoundError: Raised when the record does not exist.
            SlotValidationError: Raised when slot index is invalid.
            ProviderError: Raised for provider failures, including unknown handles.
            MaterializationError: Raised when download or upload fails.
        """
