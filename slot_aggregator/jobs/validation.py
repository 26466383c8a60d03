"""Input validation helpers shared by slot job workflows."""

from __future__ import annotations

from typing import Any

from slot_aggregator.domain import AggregateRecord, SlotValidationError


def job_validate_slot_index(record: AggregateRecord, slot_index: int) -> int:
    """Validate a slot index against the record's fixed slot count.

    Args:
        record: Record the slot belongs to.
        slot_index: Candidate zero-based index.

    Returns:
        int: Validated slot index.

    Raises:
        SlotValidationError: Raised when the index is not an integer in `[0, slot_count)`.
    """

    if isinstance(slot_index, bool) or not isinstance(slot_index, int):
        raise SlotValidationError("slot_index must be an integer", field_name="slot_index")
    if slot_index < 0 or slot_index >= record.slot_count:
        raise SlotValidationError(
            f"slot_index must be in [0, {record.slot_count}); got {slot_index}",
            field_name="slot_index",
        )
    return slot_index


def job_validate_parameters(parameters: Any) -> dict[str, Any]:
    """Validate opaque provider parameters.

    Args:
        parameters: Candidate provider input.

    Returns:
        dict[str, Any]: The parameters object unchanged.

    Raises:
        SlotValidationError: Raised when parameters are not a JSON object.
    """

    if not isinstance(parameters, dict):
        raise SlotValidationError("parameters must be a JSON object", field_name="parameters")
    return parameters


def job_validate_slot_count(slot_count: int, max_slot_count: int) -> int:
    """Validate a requested record slot count.

    Args:
        slot_count: Requested N.
        max_slot_count: Configured upper bound.

    Returns:
        int: Validated slot count.

    Raises:
        SlotValidationError: Raised when slot count is outside `[1, max_slot_count]`.
    """

    if isinstance(slot_count, bool) or not isinstance(slot_count, int):
        raise SlotValidationError("slot_count must be an integer", field_name="slot_count")
    if slot_count < 1 or slot_count > max_slot_count:
        raise SlotValidationError(
            f"slot_count must be in [1, {max_slot_count}]; got {slot_count}",
            field_name="slot_count",
        )
    return slot_count
