"""Job submission gateway turning slot requests into provider jobs."""

from __future__ import annotations

import logging
from typing import Any

from slot_aggregator.adapters import PredictionProviderPort
from slot_aggregator.domain import AggregateRecord, JobHandle, JobStatus

from .validation import job_validate_parameters, job_validate_slot_index

logger = logging.getLogger(__name__)


class JobSubmissionGateway:
    """Start exactly one provider job per call and return its opaque handle.

    The gateway persists nothing. Callers are expected to have checked that the
    slot is still empty; a redundant job is harmless because the slot write is
    conditional.
    """

    def __init__(self, provider: PredictionProviderPort):
        """Initialize submission gateway.

        Args:
            provider: Prediction provider adapter.

        Raises:
            ValueError: Raised when provider is None.
        """

        if provider is None:
            raise ValueError("provider must not be None")
        self._provider = provider

    def job_submit(self, record: AggregateRecord, slot_index: int, parameters: dict[str, Any]) -> JobHandle:
        """Submit one provider job for a slot.

        Args:
            record: Target record.
            slot_index: Zero-based slot index.
            parameters: Opaque provider input object.

        Returns:
            JobHandle: Handle with status `pending`.

        Raises:
            SlotValidationError: Raised when slot index or parameters are invalid.
            ProviderError: Raised when the provider rejects the job or is unreachable.
        """

        validated_slot_index = job_validate_slot_index(record, slot_index)
        validated_parameters = job_validate_parameters(parameters)

        snapshot = self._provider.adapter_submit_job(validated_parameters)
        logger.info(
            "slot job submitted record_id=%s slot_index=%s job_handle_id=%s source=%s",
            record.record_id,
            validated_slot_index,
            snapshot.job_id,
            self._provider.adapter_source_name(),
        )
        return JobHandle(
            job_handle_id=snapshot.job_id,
            record_id=record.record_id,
            slot_index=validated_slot_index,
            status=JobStatus.PENDING,
        )
