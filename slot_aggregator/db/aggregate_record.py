"""Database service for aggregate records and their conditional slot writes."""

from __future__ import annotations

import json
import logging
from typing import Any
from uuid import UUID

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from slot_aggregator.domain import (
    AggregateRecord,
    RecordNotFoundError,
    ResultRef,
    SlotValidationError,
    SlotWriteOutcome,
    SlotWriteResult,
)

from .interfaces import AggregateRecordRepositoryPort, RecordCompletionState

logger = logging.getLogger(__name__)

_RECORD_COLUMNS = (
    "record_id, owner_id, slot_count, slots, completed, completed_at_utc, created_at_utc, updated_at_utc"
)
_FILLED_COUNT_EXPRESSION = (
    "(SELECT count(*) FROM jsonb_array_elements(aggregate_record.slots) AS slot_entry(value) "
    "WHERE jsonb_typeof(slot_entry.value) <> 'null')"
)


class SQLAlchemyAggregateRecordService(AggregateRecordRepositoryPort):
    """SQLAlchemy-backed aggregate record service.

    Slot writes and the completion flip are single conditional `UPDATE`
    statements. PostgreSQL re-evaluates the `WHERE` predicate against the latest
    row version when a concurrent writer commits first, so exactly one caller
    fills a slot and exactly one caller flips `completed`.
    """

    def __init__(self, engine: Engine):
        """Initialize aggregate record persistence service.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.

        Returns:
            None: This initializer does not return a value.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_record_create(self, owner_id: str, slot_count: int) -> AggregateRecord:
        """Create one record with `slot_count` JSON nulls.

        Args:
            owner_id: Opaque owner identifier.
            slot_count: Fixed number of slots.

        Returns:
            AggregateRecord: Newly created record.

        Raises:
            ValueError: Raised when owner is blank or slot count is below 1.
            RuntimeError: Raised when persistence fails.
        """

        normalized_owner_id = owner_id.strip()
        if not normalized_owner_id:
            raise ValueError("owner_id must not be blank")
        if slot_count < 1:
            raise ValueError("slot_count must be >= 1")

        try:
            with self._engine.begin() as connection:
                row = connection.execute(
                    text(
                        "INSERT INTO aggregate_record (owner_id, slot_count, slots) "
                        "VALUES (:owner_id, :slot_count, CAST(:slots AS jsonb)) "
                        f"RETURNING {_RECORD_COLUMNS}"
                    ),
                    {
                        "owner_id": normalized_owner_id,
                        "slot_count": slot_count,
                        "slots": json.dumps([None] * slot_count),
                    },
                ).mappings().one()
        except SQLAlchemyError as error:
            raise RuntimeError("failed to create aggregate record") from error

        record = self._map_aggregate_record(row)
        logger.info("aggregate record created record_id=%s slot_count=%s", record.record_id, slot_count)
        return record

    def db_record_get_by_id(self, record_id: UUID) -> AggregateRecord | None:
        """Fetch one record by id.

        Args:
            record_id: Record identifier.

        Returns:
            AggregateRecord | None: Matching record or None.

        Raises:
            RuntimeError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                row = self._db_fetch_record_row(connection=connection, record_id=record_id)
        except SQLAlchemyError as error:
            raise RuntimeError("failed to fetch aggregate record by id") from error

        if row is None:
            return None
        return self._map_aggregate_record(row)

    def db_record_write_slot_if_empty(
        self,
        record_id: UUID,
        slot_index: int,
        result_ref: ResultRef,
    ) -> SlotWriteResult:
        """Fill one slot with a single compare-and-set `UPDATE`.

        Args:
            record_id: Record identifier.
            slot_index: Zero-based slot index.
            result_ref: Reference to store.

        Returns:
            SlotWriteResult: `applied` when this call filled the slot, otherwise
            `already_filled` carrying the reference that won.

        Raises:
            SlotValidationError: Raised when slot index is negative, outside the record,
                or disagrees with the reference.
            RecordNotFoundError: Raised when the record does not exist.
            RuntimeError: Raised when persistence fails.
        """

        if slot_index < 0:
            raise SlotValidationError("slot_index must be >= 0", field_name="slot_index")
        if result_ref.slot_index != slot_index:
            raise SlotValidationError(
                f"result_ref.slot_index={result_ref.slot_index} does not match slot_index={slot_index}",
                field_name="slot_index",
            )

        try:
            with self._engine.begin() as connection:
                updated_row = connection.execute(
                    text(
                        "UPDATE aggregate_record SET "
                        "slots = jsonb_set(slots, ARRAY[CAST(:slot_path AS text)], CAST(:result_ref AS jsonb), false), "
                        "updated_at_utc = now() "
                        "WHERE record_id = CAST(:record_id AS uuid) "
                        "AND CAST(:slot_index AS integer) < slot_count "
                        "AND jsonb_typeof(slots -> CAST(:slot_index AS integer)) = 'null' "
                        f"RETURNING slot_count, completed, {_FILLED_COUNT_EXPRESSION} AS filled_count"
                    ),
                    {
                        "slot_path": str(slot_index),
                        "slot_index": slot_index,
                        "result_ref": json.dumps(result_ref.result_ref_to_payload()),
                        "record_id": str(record_id),
                    },
                ).mappings().first()

                if updated_row is not None:
                    return SlotWriteResult(
                        outcome=SlotWriteOutcome.APPLIED,
                        result_ref=result_ref,
                        filled_count=int(updated_row["filled_count"]),
                        slot_count=int(updated_row["slot_count"]),
                        completed=bool(updated_row["completed"]),
                    )

                current_row = self._db_fetch_record_row(connection=connection, record_id=record_id)
        except SQLAlchemyError as error:
            raise RuntimeError("failed to write aggregate record slot") from error

        if current_row is None:
            raise RecordNotFoundError(f"aggregate record not found: {record_id}")

        current_record = self._map_aggregate_record(current_row)
        if slot_index >= current_record.slot_count:
            raise SlotValidationError(
                f"slot_index={slot_index} outside record with slot_count={current_record.slot_count}",
                field_name="slot_index",
            )

        return SlotWriteResult(
            outcome=SlotWriteOutcome.ALREADY_FILLED,
            result_ref=current_record.slots[slot_index],
            filled_count=current_record.record_filled_count(),
            slot_count=current_record.slot_count,
            completed=current_record.completed,
        )

    def db_record_mark_completed_if_full(self, record_id: UUID) -> RecordCompletionState:
        """Flip `completed` with one conditional `UPDATE` over the recounted slots.

        Args:
            record_id: Record identifier.

        Returns:
            RecordCompletionState: Flip indicator and recomputed progress.

        Raises:
            RecordNotFoundError: Raised when the record does not exist.
            RuntimeError: Raised when persistence fails.
        """

        try:
            with self._engine.begin() as connection:
                flipped_row = connection.execute(
                    text(
                        "UPDATE aggregate_record SET "
                        "completed = TRUE, "
                        "completed_at_utc = now(), "
                        "updated_at_utc = now() "
                        "WHERE record_id = CAST(:record_id AS uuid) "
                        "AND completed = FALSE "
                        f"AND {_FILLED_COUNT_EXPRESSION} = slot_count "
                        "RETURNING record_id"
                    ),
                    {"record_id": str(record_id)},
                ).mappings().first()
                current_row = self._db_fetch_record_row(connection=connection, record_id=record_id)
        except SQLAlchemyError as error:
            raise RuntimeError("failed to mark aggregate record completed") from error

        if current_row is None:
            raise RecordNotFoundError(f"aggregate record not found: {record_id}")

        current_record = self._map_aggregate_record(current_row)
        if flipped_row is not None:
            logger.info("aggregate record completed record_id=%s slot_count=%s", record_id, current_record.slot_count)
        return RecordCompletionState(
            completion_flipped=flipped_row is not None,
            completed=current_record.completed,
            filled_count=current_record.record_filled_count(),
            slot_count=current_record.slot_count,
        )

    def _db_fetch_record_row(self, connection, record_id: UUID) -> Any:
        """Fetch one raw record row inside an active connection.

        Args:
            connection: Active SQLAlchemy connection.
            record_id: Record identifier.

        Returns:
            Any: Row mapping or None.

        Raises:
            SQLAlchemyError: Propagated to the caller for wrapping.
        """

        return connection.execute(
            text(f"SELECT {_RECORD_COLUMNS} FROM aggregate_record WHERE record_id = CAST(:record_id AS uuid)"),
            {"record_id": str(record_id)},
        ).mappings().first()

    def _map_aggregate_record(self, row: Any) -> AggregateRecord:
        """Map SQLAlchemy row mapping to typed aggregate record.

        Args:
            row: SQLAlchemy mapping row.

        Returns:
            AggregateRecord: Typed record.

        Raises:
            TypeError: Raised when the stored slots value is not an array of the declared length.
        """

        slots_value = row["slots"]
        if isinstance(slots_value, str):
            slots_value = json.loads(slots_value)
        slot_count = int(row["slot_count"])
        if not isinstance(slots_value, list) or len(slots_value) != slot_count:
            raise TypeError("aggregate_record.slots must be a JSON array of length slot_count")

        slots = tuple(
            None if slot_payload is None else ResultRef.result_ref_from_payload(slot_payload, slot_index)
            for slot_index, slot_payload in enumerate(slots_value)
        )
        record_id = row["record_id"]
        return AggregateRecord(
            record_id=record_id if isinstance(record_id, UUID) else UUID(str(record_id)),
            owner_id=row["owner_id"],
            slot_count=slot_count,
            slots=slots,
            completed=bool(row["completed"]),
            completed_at_utc=row["completed_at_utc"],
            created_at_utc=row["created_at_utc"],
            updated_at_utc=row["updated_at_utc"],
        )
