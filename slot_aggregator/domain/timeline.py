"""Stage timeline helpers for per-request poll diagnostics."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def domain_build_stage_event(
    stage: str,
    status: str,
    details: dict[str, Any] | None = None,
) -> dict[str, object]:
    """Build one structured stage event for a poll response timeline.

    Args:
        stage: Stage name (`status`, `materialize`, `slot_write`, `completion`).
        status: Stage status marker.
        details: Optional structured details object.

    Returns:
        dict[str, object]: Structured timeline event.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    event_payload: dict[str, object] = {
        "stage": stage,
        "status": status,
        "at_utc": datetime.now(timezone.utc).isoformat(),
    }
    if details:
        event_payload["details"] = details
    return event_payload


def domain_elapsed_ms(started_at_utc: datetime) -> int:
    """Return non-negative elapsed milliseconds since a UTC timestamp."""

    return max(0, int((datetime.now(timezone.utc) - started_at_utc).total_seconds() * 1000))
