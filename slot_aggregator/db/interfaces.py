"""Typed interfaces for database-layer services.

All SQL access must remain in the db package and its submodules.
"""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from slot_aggregator.domain import AggregateRecord, HealthStatus, ResultRef, SlotWriteResult


class DatabaseHealthPort(Protocol):
    """Port definition for database connectivity verification."""

    def db_connection_label(self) -> str:
        """Return a stable label for the active database connection target.

        Returns:
            str: Database target label for diagnostics.

        Raises:
            RuntimeError: Raised when connection metadata is unavailable.
        """

    def db_check_health(self) -> HealthStatus:
        """Check database connectivity and return deterministic health payload.

        Returns:
            HealthStatus: Database health status payload.

        Raises:
            ConnectionError: Raised when database cannot be reached.
        """


@dataclass(frozen=True)
class RecordCompletionState:
    """Result of one conditional completion flip.

    Attributes:
        completion_flipped: Whether this call set `completed` from false to true.
        completed: Completion flag after the call.
        filled_count: Non-empty slot count recomputed from the stored row.
        slot_count: Record slot count.
    """

    completion_flipped: bool
    completed: bool
    filled_count: int
    slot_count: int


class AggregateRecordRepositoryPort(Protocol):
    """Port definition for aggregate record persistence and conditional writes."""

    def db_record_create(self, owner_id: str, slot_count: int) -> AggregateRecord:
        """Create one record with all slots empty and `completed = false`.

        Args:
            owner_id: Opaque owner identifier.
            slot_count: Fixed number of slots.

        Returns:
            AggregateRecord: Newly created record.

        Raises:
            ValueError: Raised when inputs are invalid.
            RuntimeError: Raised when persistence fails.
        """

    def db_record_get_by_id(self, record_id: UUID) -> AggregateRecord | None:
        """Fetch one record by id.

        Args:
            record_id: Record identifier.

        Returns:
            AggregateRecord | None: Matching record, or None when absent.

        Raises:
            RuntimeError: Raised when the read fails.
        """

    def db_record_write_slot_if_empty(
        self,
        record_id: UUID,
        slot_index: int,
        result_ref: ResultRef,
    ) -> SlotWriteResult:
        """Set one slot only if it is currently empty, as one atomic statement.

        Args:
            record_id: Record identifier.
            slot_index: Zero-based slot index.
            result_ref: Reference to store.

        Returns:
            SlotWriteResult: `applied` or `already_filled` with observed progress.

        Raises:
            RecordNotFoundError: Raised when the record does not exist.
            SlotValidationError: Raised when slot index or reference is inconsistent.
            RuntimeError: Raised when persistence fails.
        """

    def db_record_mark_completed_if_full(self, record_id: UUID) -> RecordCompletionState:
        """Set `completed = true` only if still false and every slot is filled.

        Args:
            record_id: Record identifier.

        Returns:
            RecordCompletionState: Flip indicator and recomputed progress.

        Raises:
            RecordNotFoundError: Raised when the record does not exist.
            RuntimeError: Raised when persistence fails.
        """
