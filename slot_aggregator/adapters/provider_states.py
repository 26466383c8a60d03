"""Canonical provider job-state semantics for status translation."""

from __future__ import annotations

from enum import Enum
from typing import Final

from slot_aggregator.domain import JobStatus


class ProviderJobState(str, Enum):
    """Native job states reported by the prediction provider."""

    STARTING = "starting"
    QUEUED = "queued"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


PROVIDER_STATE_TO_JOB_STATUS: Final[dict[str, JobStatus]] = {
    ProviderJobState.STARTING.value: JobStatus.PENDING,
    ProviderJobState.QUEUED.value: JobStatus.PENDING,
    ProviderJobState.PROCESSING.value: JobStatus.PENDING,
    ProviderJobState.SUCCEEDED.value: JobStatus.SUCCEEDED,
    ProviderJobState.FAILED.value: JobStatus.FAILED,
    ProviderJobState.CANCELED.value: JobStatus.FAILED,
}

PROVIDER_RETRYABLE_HTTP_STATUS_CODES: Final[frozenset[int]] = frozenset({408, 425, 429, 500, 502, 503, 504})

PROVIDER_DEFAULT_FAILURE_MESSAGES: Final[dict[str, str]] = {
    ProviderJobState.FAILED.value: "Generation failed.",
    ProviderJobState.CANCELED.value: "Generation was canceled.",
}


def provider_state_to_job_status(provider_state: str) -> JobStatus:
    """Map a native provider state onto the internal three-state taxonomy.

    Unknown states map to `pending` so polling continues instead of
    treating an unrecognized state as success.

    Args:
        provider_state: Raw provider state text.

    Returns:
        JobStatus: Translated status.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    normalized_state = (provider_state or "").strip().lower()
    return PROVIDER_STATE_TO_JOB_STATUS.get(normalized_state, JobStatus.PENDING)


def provider_failure_default_message(provider_state: str, fallback_message: str = "Generation failed.") -> str:
    """Return canonical failure message for a failed provider state.

    Args:
        provider_state: Raw provider state text.
        fallback_message: Message for states without a canonical text.

    Returns:
        str: Human-readable failure message.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return PROVIDER_DEFAULT_FAILURE_MESSAGES.get((provider_state or "").strip().lower(), fallback_message)
