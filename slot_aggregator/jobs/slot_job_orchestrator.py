"""Request-driven slot job orchestration.

Every status poll runs the full completion path synchronously: translate the
provider status, materialize the output, conditionally write the slot and, after
an applied write, conditionally flip record completion. No step holds state
between requests, so any number of pollers may drive the same record.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from slot_aggregator.db import AggregateRecordRepositoryPort
from slot_aggregator.domain import (
    AggregateRecord,
    JobStatus,
    MaterializationError,
    RecordNotFoundError,
    SlotWriteOutcome,
    domain_build_stage_event,
    domain_elapsed_ms,
)

from .interfaces import SlotJobOrchestratorPort, SlotPollResult, SlotSubmissionResult
from .result_materializer import ResultMaterializer
from .status_translator import JobStatusTranslator
from .submission_gateway import JobSubmissionGateway
from .validation import job_validate_parameters, job_validate_slot_index

logger = logging.getLogger(__name__)


class SlotJobOrchestrator(SlotJobOrchestratorPort):
    """Compose gateway, translator, materializer and the conditional record writes."""

    def __init__(
        self,
        record_repository: AggregateRecordRepositoryPort,
        submission_gateway: JobSubmissionGateway,
        status_translator: JobStatusTranslator,
        result_materializer: ResultMaterializer,
    ):
        """Initialize slot job orchestrator dependencies.

        Args:
            record_repository: DB-layer aggregate record repository.
            submission_gateway: Provider job submission gateway.
            status_translator: Provider status translator.
            result_materializer: Output materializer.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies are None.
        """

        if record_repository is None:
            raise ValueError("record_repository must not be None")
        if submission_gateway is None:
            raise ValueError("submission_gateway must not be None")
        if status_translator is None:
            raise ValueError("status_translator must not be None")
        if result_materializer is None:
            raise ValueError("result_materializer must not be None")

        self._record_repository = record_repository
        self._submission_gateway = submission_gateway
        self._status_translator = status_translator
        self._result_materializer = result_materializer

    def job_submit_slot(self, record_id: UUID, slot_index: int, parameters: dict[str, Any]) -> SlotSubmissionResult:
        """Start one provider job for an empty slot, or return the stored result.

        Args:
            record_id: Record identifier.
            slot_index: Zero-based slot index.
            parameters: Opaque provider input object.

        Returns:
            SlotSubmissionResult: New handle, or the existing reference for a filled slot.

        Raises:
            RecordNotFoundError: Raised when the record does not exist.
            SlotValidationError: Raised when slot index or parameters are invalid.
            ProviderError: Raised when the provider rejects or cannot be reached.
        """

        record = self._job_load_record(record_id)
        validated_slot_index = job_validate_slot_index(record, slot_index)
        job_validate_parameters(parameters)

        existing_result_ref = record.slots[validated_slot_index]
        if existing_result_ref is not None:
            logger.info(
                "slot already filled; submission skipped record_id=%s slot_index=%s",
                record_id,
                validated_slot_index,
            )
            return SlotSubmissionResult(
                record=record,
                slot_index=validated_slot_index,
                existing_result_ref=existing_result_ref,
            )

        job_handle = self._submission_gateway.job_submit(record, validated_slot_index, parameters)
        return SlotSubmissionResult(record=record, slot_index=validated_slot_index, job_handle=job_handle)

    def job_poll_slot(self, job_handle_id: str, record_id: UUID, slot_index: int) -> SlotPollResult:
        """Poll one job and drive its slot to the filled state on success.

        Args:
            job_handle_id: Provider job identifier.
            record_id: Record identifier.
            slot_index: Zero-based slot index.

        Returns:
            SlotPollResult: Status plus write and completion details.

        Raises:
            RecordNotFoundError: Raised when the record does not exist.
            SlotValidationError: Raised when slot index is invalid.
            ProviderError: Raised for provider failures, including unknown handles.
            MaterializationError: Raised when download or upload fails.
        """

        record = self._job_load_record(record_id)
        validated_slot_index = job_validate_slot_index(record, slot_index)
        timeline: list[dict[str, object]] = []

        started_at_utc = datetime.now(timezone.utc)
        translation = self._status_translator.job_translate_status(job_handle_id)
        timeline.append(
            domain_build_stage_event(
                stage="status",
                status=translation.status.value,
                details={"provider_state": translation.provider_state, "duration_ms": domain_elapsed_ms(started_at_utc)},
            )
        )

        if translation.status is not JobStatus.SUCCEEDED:
            return SlotPollResult(
                job_handle_id=job_handle_id,
                record_id=record_id,
                slot_index=validated_slot_index,
                status=translation.status,
                error_message=translation.error_message,
                filled_count=record.record_filled_count(),
                slot_count=record.slot_count,
                completed=record.completed,
                stages=timeline,
            )

        stored_result_ref = record.slots[validated_slot_index]
        if stored_result_ref is not None:
            timeline.append(domain_build_stage_event(stage="materialize", status="skipped"))
            timeline.append(domain_build_stage_event(stage="slot_write", status=SlotWriteOutcome.ALREADY_FILLED.value))
            return self._job_finalize_already_filled(
                job_handle_id=job_handle_id,
                record=record,
                slot_index=validated_slot_index,
                result_url=stored_result_ref.url,
                filled_count=record.record_filled_count(),
                completed=record.completed,
                timeline=timeline,
            )

        started_at_utc = datetime.now(timezone.utc)
        try:
            result_ref = self._result_materializer.job_materialize(
                record_id=record_id,
                slot_index=validated_slot_index,
                job_handle_id=job_handle_id,
                output_url=str(translation.output_url),
            )
        except MaterializationError as error:
            logger.warning(
                "materialization failed record_id=%s slot_index=%s job_handle_id=%s phase=%s",
                record_id,
                validated_slot_index,
                job_handle_id,
                error.phase,
            )
            raise
        timeline.append(
            domain_build_stage_event(
                stage="materialize",
                status="completed",
                details={"duration_ms": domain_elapsed_ms(started_at_utc)},
            )
        )

        write_result = self._record_repository.db_record_write_slot_if_empty(
            record_id=record_id,
            slot_index=validated_slot_index,
            result_ref=result_ref,
        )
        timeline.append(
            domain_build_stage_event(
                stage="slot_write",
                status=write_result.outcome.value,
                details={"filled_count": write_result.filled_count, "slot_count": write_result.slot_count},
            )
        )
        logger.info(
            "slot write record_id=%s slot_index=%s job_handle_id=%s outcome=%s filled=%s/%s",
            record_id,
            validated_slot_index,
            job_handle_id,
            write_result.outcome.value,
            write_result.filled_count,
            write_result.slot_count,
        )

        stored_url = write_result.result_ref.url if write_result.result_ref is not None else result_ref.url
        if write_result.outcome is SlotWriteOutcome.ALREADY_FILLED:
            return self._job_finalize_already_filled(
                job_handle_id=job_handle_id,
                record=record,
                slot_index=validated_slot_index,
                result_url=stored_url,
                filled_count=write_result.filled_count,
                completed=write_result.completed,
                timeline=timeline,
            )

        completion_state = self._record_repository.db_record_mark_completed_if_full(record_id)
        timeline.append(
            domain_build_stage_event(
                stage="completion",
                status="flipped" if completion_state.completion_flipped else "unchanged",
                details={"completed": completion_state.completed},
            )
        )
        return SlotPollResult(
            job_handle_id=job_handle_id,
            record_id=record_id,
            slot_index=validated_slot_index,
            status=JobStatus.SUCCEEDED,
            result_url=stored_url,
            slot_write=SlotWriteOutcome.APPLIED,
            filled_count=completion_state.filled_count,
            slot_count=completion_state.slot_count,
            completed=completion_state.completed,
            completion_flipped=completion_state.completion_flipped,
            stages=timeline,
        )

    def _job_finalize_already_filled(
        self,
        job_handle_id: str,
        record: AggregateRecord,
        slot_index: int,
        result_url: str,
        filled_count: int,
        completed: bool,
        timeline: list[dict[str, object]],
    ) -> SlotPollResult:
        """Build the poll result for a slot another caller already filled.

        When the record looks full but is not marked completed (the winning
        request died between its write and its completion check), the
        conditional completion flip is re-run; it is a no-op otherwise.

        Args:
            job_handle_id: Provider job identifier.
            record: Record observed at the start of the poll.
            slot_index: Validated slot index.
            result_url: URL currently stored in the slot.
            filled_count: Observed non-empty slot count.
            completed: Observed completion flag.
            timeline: Stage timeline to finalize.

        Returns:
            SlotPollResult: Succeeded poll result with `already_filled` outcome.

        Raises:
            RecordNotFoundError: Raised when the record vanished.
            RuntimeError: Raised when persistence fails.
        """

        completion_flipped = False
        if filled_count == record.slot_count and not completed:
            completion_state = self._record_repository.db_record_mark_completed_if_full(record.record_id)
            completion_flipped = completion_state.completion_flipped
            completed = completion_state.completed
            filled_count = completion_state.filled_count
            timeline.append(
                domain_build_stage_event(
                    stage="completion",
                    status="flipped" if completion_flipped else "unchanged",
                    details={"completed": completed},
                )
            )

        return SlotPollResult(
            job_handle_id=job_handle_id,
            record_id=record.record_id,
            slot_index=slot_index,
            status=JobStatus.SUCCEEDED,
            result_url=result_url,
            slot_write=SlotWriteOutcome.ALREADY_FILLED,
            filled_count=filled_count,
            slot_count=record.slot_count,
            completed=completed,
            completion_flipped=completion_flipped,
            stages=timeline,
        )

    def _job_load_record(self, record_id: UUID) -> AggregateRecord:
        """Load one record or raise when it does not exist.

        Args:
            record_id: Record identifier.

        Returns:
            AggregateRecord: Current record.

        Raises:
            RecordNotFoundError: Raised when the record does not exist.
        """

        record = self._record_repository.db_record_get_by_id(record_id)
        if record is None:
            raise RecordNotFoundError(f"aggregate record not found: {record_id}")
        return record
