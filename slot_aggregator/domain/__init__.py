"""Domain models used across application layer boundaries."""

from .errors import MaterializationError, RecordAccessDeniedError, RecordNotFoundError, SlotValidationError
from .models import (
    AggregateRecord,
    HealthStatus,
    JobHandle,
    JobStatus,
    ResultRef,
    SlotWriteOutcome,
    SlotWriteResult,
)
from .timeline import domain_build_stage_event, domain_elapsed_ms

__all__ = [
    "AggregateRecord",
    "HealthStatus",
    "JobHandle",
    "JobStatus",
    "MaterializationError",
    "RecordAccessDeniedError",
    "RecordNotFoundError",
    "ResultRef",
    "SlotValidationError",
    "SlotWriteOutcome",
    "SlotWriteResult",
    "domain_build_stage_event",
    "domain_elapsed_ms",
]
