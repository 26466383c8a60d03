"""Typed domain models shared across runtime layers.

This module provides the aggregate record, result reference and job handle
contracts that flow between the adapter, db, job and API layers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID


class JobStatus(str, Enum):
    """Internal three-state taxonomy for provider job progress."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SlotWriteOutcome(str, Enum):
    """Observable outcome of one conditional slot write.

    `ALREADY_FILLED` is the conflict no-op: another caller won the race and this
    call did not change the record.
    """

    APPLIED = "applied"
    ALREADY_FILLED = "already_filled"


@dataclass(frozen=True)
class HealthStatus:
    """Health response contract used by health-check surfaces.

    Attributes:
        status: Overall status text for service health.
        detail: Additional message suitable for operational diagnostics.
    """

    status: str
    detail: str


@dataclass(frozen=True)
class ResultRef:
    """Permanent reference to one materialized slot artifact.

    Attributes:
        url: Stable public URL of the materialized artifact.
        slot_index: Slot the artifact belongs to, verified on write and read.
        materialized_at_utc: Timestamp of the upload that produced the URL.
    """

    url: str
    slot_index: int
    materialized_at_utc: datetime

    def result_ref_to_payload(self) -> dict[str, Any]:
        """Serialize reference to the JSON shape stored inside the slots array.

        Returns:
            dict[str, Any]: JSON-compatible slot entry.

        Raises:
            RuntimeError: This method does not raise runtime errors.
        """

        return {
            "url": self.url,
            "slot_index": self.slot_index,
            "materialized_at_utc": self.materialized_at_utc.isoformat(),
        }

    @classmethod
    def result_ref_from_payload(cls, payload: dict[str, Any], expected_slot_index: int) -> ResultRef:
        """Build reference from a stored slot entry and verify its slot index.

        Args:
            payload: Stored JSON slot entry.
            expected_slot_index: Array position the entry was read from.

        Returns:
            ResultRef: Typed reference.

        Raises:
            TypeError: Raised when the stored entry is malformed.
            ValueError: Raised when the stored slot index does not match its position.
        """

        if not isinstance(payload, dict):
            raise TypeError("slot entry must be a JSON object")
        url_value = payload.get("url")
        if not isinstance(url_value, str) or not url_value.strip():
            raise TypeError("slot entry url must be a non-empty string")

        stored_slot_index = int(payload.get("slot_index", -1))
        if stored_slot_index != expected_slot_index:
            raise ValueError(
                f"slot entry index mismatch: stored={stored_slot_index}, position={expected_slot_index}"
            )

        return cls(
            url=url_value,
            slot_index=stored_slot_index,
            materialized_at_utc=datetime.fromisoformat(str(payload["materialized_at_utc"])),
        )


@dataclass(frozen=True)
class AggregateRecord:
    """One batch of N slots assembled from independently completing jobs.

    Attributes:
        record_id: Aggregate identifier.
        owner_id: Opaque principal identifier of the commissioning owner.
        slot_count: Fixed number of slots.
        slots: Ordered slot entries, `None` for empty slots.
        completed: Whether every slot has been filled.
        completed_at_utc: Timestamp of the completion flip, when completed.
        created_at_utc: Creation timestamp.
        updated_at_utc: Last mutation timestamp.
    """

    record_id: UUID
    owner_id: str
    slot_count: int
    slots: tuple[ResultRef | None, ...]
    completed: bool
    completed_at_utc: datetime | None
    created_at_utc: datetime
    updated_at_utc: datetime

    def record_filled_count(self) -> int:
        """Return number of non-empty slots."""

        return sum(1 for slot in self.slots if slot is not None)

    def record_missing_slot_indexes(self) -> list[int]:
        """Return ascending indexes of empty slots."""

        return [slot_index for slot_index, slot in enumerate(self.slots) if slot is None]


@dataclass(frozen=True)
class JobHandle:
    """Ephemeral reference to one in-flight provider job.

    Attributes:
        job_handle_id: Opaque provider job identifier.
        record_id: Owning aggregate record.
        slot_index: Slot this job will fill.
        status: Last observed translated status; a cache, not the source of truth.
    """

    job_handle_id: str
    record_id: UUID
    slot_index: int
    status: JobStatus = JobStatus.PENDING


@dataclass(frozen=True)
class SlotWriteResult:
    """Result of one conditional slot write.

    Attributes:
        outcome: Whether this call filled the slot.
        result_ref: Reference now stored in the slot (the winner's on conflict).
        filled_count: Non-empty slot count observed after the write.
        slot_count: Record slot count.
        completed: Record completion flag after the write.
    """

    outcome: SlotWriteOutcome
    result_ref: ResultRef | None
    filled_count: int
    slot_count: int
    completed: bool
