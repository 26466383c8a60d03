"""Record creation and lookup workflow over the aggregate record repository."""

from __future__ import annotations

from uuid import UUID

from slot_aggregator.db import AggregateRecordRepositoryPort
from slot_aggregator.domain import AggregateRecord, RecordNotFoundError, SlotValidationError

from .validation import job_validate_slot_count


class AggregateRecordService:
    """Create records with validated slot counts and resolve records by id."""

    def __init__(self, record_repository: AggregateRecordRepositoryPort, max_slot_count: int):
        """Initialize record service.

        Args:
            record_repository: DB-layer aggregate record repository.
            max_slot_count: Upper bound for N.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies or limits are invalid.
        """

        if record_repository is None:
            raise ValueError("record_repository must not be None")
        if max_slot_count < 1:
            raise ValueError("max_slot_count must be >= 1")

        self._record_repository = record_repository
        self._max_slot_count = max_slot_count

    def job_record_create(self, owner_id: str, slot_count: int) -> AggregateRecord:
        """Create one record with N empty slots.

        Args:
            owner_id: Opaque owner identifier.
            slot_count: Requested N.

        Returns:
            AggregateRecord: Newly created record.

        Raises:
            SlotValidationError: Raised when owner or slot count is invalid.
            RuntimeError: Raised when persistence fails.
        """

        normalized_owner_id = (owner_id or "").strip()
        if not normalized_owner_id:
            raise SlotValidationError("owner_id must not be blank", field_name="owner_id")
        validated_slot_count = job_validate_slot_count(slot_count, self._max_slot_count)
        return self._record_repository.db_record_create(owner_id=normalized_owner_id, slot_count=validated_slot_count)

    def job_record_get(self, record_id: UUID) -> AggregateRecord:
        """Return one record or raise when it does not exist.

        Args:
            record_id: Record identifier.

        Returns:
            AggregateRecord: Matching record.

        Raises:
            RecordNotFoundError: Raised when the record does not exist.
            RuntimeError: Raised when the read fails.
        """

        record = self._record_repository.db_record_get_by_id(record_id)
        if record is None:
            raise RecordNotFoundError(f"aggregate record not found: {record_id}")
        return record
