"""Provider status translation into the internal three-state taxonomy."""

from __future__ import annotations

import logging

from slot_aggregator.adapters import (
    PredictionProviderPort,
    ProviderJobSnapshot,
    provider_failure_default_message,
    provider_state_to_job_status,
)
from slot_aggregator.domain import JobStatus

from .interfaces import JobStatusTranslation

logger = logging.getLogger(__name__)


def job_translate_snapshot(snapshot: ProviderJobSnapshot) -> JobStatusTranslation:
    """Translate one provider snapshot.

    A `succeeded` report without an output location stays `pending`; unknown
    provider states are `pending` as well.

    Args:
        snapshot: Provider job observation.

    Returns:
        JobStatusTranslation: Translated status with output or error details.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    translated_status = provider_state_to_job_status(snapshot.provider_state)

    if translated_status is JobStatus.SUCCEEDED:
        if not snapshot.output_url:
            logger.warning("provider reported success without output job_handle_id=%s", snapshot.job_id)
            return JobStatusTranslation(
                job_handle_id=snapshot.job_id,
                status=JobStatus.PENDING,
                provider_state=snapshot.provider_state,
            )
        return JobStatusTranslation(
            job_handle_id=snapshot.job_id,
            status=JobStatus.SUCCEEDED,
            provider_state=snapshot.provider_state,
            output_url=snapshot.output_url,
        )

    if translated_status is JobStatus.FAILED:
        return JobStatusTranslation(
            job_handle_id=snapshot.job_id,
            status=JobStatus.FAILED,
            provider_state=snapshot.provider_state,
            error_message=snapshot.error_message or provider_failure_default_message(snapshot.provider_state),
        )

    return JobStatusTranslation(
        job_handle_id=snapshot.job_id,
        status=JobStatus.PENDING,
        provider_state=snapshot.provider_state,
    )


class JobStatusTranslator:
    """Read-only status lookups against the provider."""

    def __init__(self, provider: PredictionProviderPort):
        """Initialize status translator.

        Args:
            provider: Prediction provider adapter.

        Raises:
            ValueError: Raised when provider is None.
        """

        if provider is None:
            raise ValueError("provider must not be None")
        self._provider = provider

    def job_translate_status(self, job_handle_id: str) -> JobStatusTranslation:
        """Fetch and translate the current state of one provider job.

        Args:
            job_handle_id: Provider job identifier.

        Returns:
            JobStatusTranslation: Translated status.

        Raises:
            ProviderJobNotFoundError: Raised when the handle is unknown.
            ProviderError: Raised for other provider failures.
        """

        return job_translate_snapshot(self._provider.adapter_get_job(job_handle_id))
