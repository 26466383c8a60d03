"""Resumable client protocol driving one record's slots to completion.

The client is the only moving part: it submits empty slots, remembers the
returned handles locally and polls the stateless status endpoint on a fixed
interval. A restart re-reads the record, forgets handles for slots that filled in
the meantime, keeps polling the rest and re-submits empty slots it has no handle
for.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Final

import httpx

from slot_aggregator.api import OWNER_HEADER_NAME

from .state_store import JsonFilePollStateStore

logger = logging.getLogger(__name__)

SLOT_STATE_FILLED: Final[str] = "filled"
SLOT_STATE_FAILED: Final[str] = "failed"
SLOT_STATE_STALLED: Final[str] = "stalled"


class PollClientError(RuntimeError):
    """Service answered a client request with an unexpected response.

    Attributes:
        status_code: HTTP status code, when a response was received.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class SlotRunOutcome:
    """Final state of one slot in a batch run.

    Attributes:
        slot_index: Zero-based slot index.
        state: `filled`, `failed` or `stalled`.
        result_url: Stored URL for filled slots.
        error: Failure or stall detail.
        attempts: Status polls spent on the slot in this run.
    """

    slot_index: int
    state: str
    result_url: str | None = None
    error: str | None = None
    attempts: int = 0


@dataclass
class BatchPollReport:
    """Summary of one batch run against a record.

    Attributes:
        record_id: Record identifier.
        slot_count: Record slot count.
        filled_count: Non-empty slots observed at the end of the run.
        completed: Record completion flag observed at the end of the run.
        slot_outcomes: Per-slot outcome keyed by slot index.
    """

    record_id: str
    slot_count: int
    filled_count: int = 0
    completed: bool = False
    slot_outcomes: dict[int, SlotRunOutcome] = field(default_factory=dict)

    def report_slots_in_state(self, state: str) -> list[int]:
        """Return ascending slot indexes that ended in one state."""

        return sorted(slot_index for slot_index, outcome in self.slot_outcomes.items() if outcome.state == state)


class ResumablePollClient:
    """HTTP client for the record, submission and status endpoints."""

    def __init__(
        self,
        base_url: str,
        state_store: JsonFilePollStateStore,
        interval_seconds: float = 5.0,
        max_attempts: int = 120,
        request_timeout_seconds: float = 30.0,
        owner_id: str | None = None,
        transport: httpx.BaseTransport | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize poll client.

        Args:
            base_url: Service base URL.
            state_store: Local handle state store.
            interval_seconds: Fixed delay between poll rounds.
            max_attempts: Status polls per handle before the slot is reported stalled.
            request_timeout_seconds: HTTP timeout per request.
            owner_id: Optional owner id forwarded in the owner header.
            transport: Optional httpx transport override.
            sleep: Sleep function, overridable in tests.

        Raises:
            ValueError: Raised when limits are invalid.
        """

        if state_store is None:
            raise ValueError("state_store must not be None")
        if interval_seconds < 0:
            raise ValueError("interval_seconds must be >= 0")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        headers = {"Accept": "application/json"}
        if owner_id:
            headers[OWNER_HEADER_NAME] = owner_id

        self._state_store = state_store
        self._interval_seconds = interval_seconds
        self._max_attempts = max_attempts
        self._sleep = sleep
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=request_timeout_seconds,
            transport=transport,
        )

    def client_close(self) -> None:
        """Close the pooled HTTP client."""

        self._client.close()

    def client_create_record(self, owner_id: str, slot_count: int) -> dict[str, Any]:
        """Create one record through the service.

        Args:
            owner_id: Opaque owner identifier.
            slot_count: Requested N.

        Returns:
            dict[str, Any]: Record payload.

        Raises:
            PollClientError: Raised when the service does not answer 201.
        """

        response = self._client_send("POST", "/records", json={"owner_id": owner_id, "slot_count": slot_count})
        if response.status_code != 201:
            raise PollClientError(self._client_error_text(response), status_code=response.status_code)
        return response.json()

    def client_get_record(self, record_id: str) -> dict[str, Any]:
        """Fetch one record payload.

        Args:
            record_id: Record identifier.

        Returns:
            dict[str, Any]: Record payload.

        Raises:
            PollClientError: Raised when the service does not answer 200.
        """

        response = self._client_send("GET", f"/records/{record_id}")
        if response.status_code != 200:
            raise PollClientError(self._client_error_text(response), status_code=response.status_code)
        return response.json()

    def client_run_batch(
        self,
        record_id: str,
        slot_parameters: dict[str, Any] | list[dict[str, Any]],
    ) -> BatchPollReport:
        """Resume or start a batch run until every slot is filled, failed or stalled.

        Args:
            record_id: Record identifier.
            slot_parameters: One parameters object for all slots, or one per slot.

        Returns:
            BatchPollReport: Per-slot outcomes and final record progress.

        Raises:
            PollClientError: Raised when the record cannot be read.
            ValueError: Raised when per-slot parameters do not cover every slot.
        """

        record_payload = self.client_get_record(record_id)
        slot_count = int(record_payload["slot_count"])
        report = BatchPollReport(record_id=record_id, slot_count=slot_count)
        parameters_for_slot = _client_parameters_resolver(slot_parameters, slot_count)

        slot_urls: list[str | None] = list(record_payload["slots"])
        for slot_index, slot_url in enumerate(slot_urls):
            if slot_url is not None:
                report.slot_outcomes[slot_index] = SlotRunOutcome(
                    slot_index=slot_index,
                    state=SLOT_STATE_FILLED,
                    result_url=slot_url,
                )

        handles = {
            slot_index: job_handle_id
            for slot_index, job_handle_id in self._state_store.client_load_handles(record_id).items()
            if 0 <= slot_index < slot_count and slot_urls[slot_index] is None
        }
        self._state_store.client_save_handles(record_id, handles)
        if handles:
            logger.info("resuming remembered handles record_id=%s slots=%s", record_id, sorted(handles))

        for slot_index in record_payload["missing_slot_indexes"]:
            if slot_index in handles:
                continue
            self._client_submit_slot(record_id, slot_index, parameters_for_slot(slot_index), handles, report)

        self._client_poll_handles(record_id, handles, report)

        final_payload = self.client_get_record(record_id)
        report.filled_count = int(final_payload["filled_count"])
        report.completed = bool(final_payload["completed"])
        return report

    def _client_submit_slot(
        self,
        record_id: str,
        slot_index: int,
        parameters: dict[str, Any],
        handles: dict[int, str],
        report: BatchPollReport,
    ) -> None:
        """Submit one empty slot and remember its handle immediately."""

        try:
            response = self._client_send(
                "POST",
                "/jobs",
                json={"record_id": record_id, "slot_index": slot_index, "parameters": parameters},
            )
        except httpx.HTTPError as error:
            report.slot_outcomes[slot_index] = SlotRunOutcome(
                slot_index=slot_index,
                state=SLOT_STATE_FAILED,
                error=f"submission transport error: {error}",
            )
            return

        if response.status_code == 202:
            handles[slot_index] = str(response.json()["job_handle_id"])
            self._state_store.client_save_handles(record_id, handles)
            logger.info("slot submitted record_id=%s slot_index=%s", record_id, slot_index)
            return
        if response.status_code == 200:
            report.slot_outcomes[slot_index] = SlotRunOutcome(
                slot_index=slot_index,
                state=SLOT_STATE_FILLED,
                result_url=response.json().get("result_url"),
            )
            return

        report.slot_outcomes[slot_index] = SlotRunOutcome(
            slot_index=slot_index,
            state=SLOT_STATE_FAILED,
            error=self._client_error_text(response),
        )

    def _client_poll_handles(self, record_id: str, handles: dict[int, str], report: BatchPollReport) -> None:
        """Poll every remembered handle on a fixed interval until none are active."""

        active_slots = set(handles)
        attempts = {slot_index: 0 for slot_index in active_slots}

        while active_slots:
            for slot_index in sorted(active_slots):
                attempts[slot_index] += 1
                slot_outcome = self._client_poll_once(record_id, slot_index, handles[slot_index], attempts[slot_index])

                if slot_outcome is None:
                    if attempts[slot_index] >= self._max_attempts:
                        report.slot_outcomes[slot_index] = SlotRunOutcome(
                            slot_index=slot_index,
                            state=SLOT_STATE_STALLED,
                            error=f"no result after {attempts[slot_index]} polls",
                            attempts=attempts[slot_index],
                        )
                        active_slots.discard(slot_index)
                        logger.warning("slot stalled record_id=%s slot_index=%s", record_id, slot_index)
                    continue

                report.slot_outcomes[slot_index] = slot_outcome
                active_slots.discard(slot_index)
                handles.pop(slot_index, None)
                self._state_store.client_save_handles(record_id, handles)

            if active_slots:
                self._sleep(self._interval_seconds)

    def _client_poll_once(
        self,
        record_id: str,
        slot_index: int,
        job_handle_id: str,
        attempt: int,
    ) -> SlotRunOutcome | None:
        """Poll one handle once.

        Server and transport errors only affect this slot; it is polled again next round.

        Returns:
            SlotRunOutcome | None: Terminal outcome, or None to keep polling.

        Raises:
            PollClientError: Raised when the record disappeared or the request is rejected.
        """

        try:
            response = self._client_send(
                "GET",
                f"/jobs/{job_handle_id}/status",
                params={"record_id": record_id, "slot_index": slot_index},
            )
        except httpx.HTTPError as error:
            logger.warning("status poll transport error slot_index=%s error=%s", slot_index, error)
            return None

        if response.status_code >= 500:
            logger.info("status poll retryable failure slot_index=%s http=%s", slot_index, response.status_code)
            return None

        payload = self._client_json_or_empty(response)
        if response.status_code == 404 and payload.get("code") == "JOB_NOT_FOUND":
            return SlotRunOutcome(
                slot_index=slot_index,
                state=SLOT_STATE_FAILED,
                error="job handle unknown to provider",
                attempts=attempt,
            )
        if response.status_code != 200:
            raise PollClientError(self._client_error_text(response), status_code=response.status_code)

        job_status = payload.get("status")
        if job_status == "succeeded":
            return SlotRunOutcome(
                slot_index=slot_index,
                state=SLOT_STATE_FILLED,
                result_url=payload.get("result_url"),
                attempts=attempt,
            )
        if job_status == "failed":
            return SlotRunOutcome(
                slot_index=slot_index,
                state=SLOT_STATE_FAILED,
                error=payload.get("error") or "generation failed",
                attempts=attempt,
            )
        return None

    def _client_send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send one request through the pooled client."""

        return self._client.request(method, path, **kwargs)

    def _client_json_or_empty(self, response: httpx.Response) -> dict[str, Any]:
        """Decode a JSON object body, or return an empty dict."""

        try:
            payload = response.json()
        except ValueError:
            return {}
        return payload if isinstance(payload, dict) else {}

    def _client_error_text(self, response: httpx.Response) -> str:
        """Render an error envelope or raw body for diagnostics."""

        payload = self._client_json_or_empty(response)
        message = payload.get("message") or response.text or "no response body"
        return f"HTTP {response.status_code}: {message}"


def _client_parameters_resolver(
    slot_parameters: dict[str, Any] | list[dict[str, Any]],
    slot_count: int,
) -> Callable[[int], dict[str, Any]]:
    """Return a lookup from slot index to provider parameters.

    Args:
        slot_parameters: One shared parameters object or one object per slot.
        slot_count: Record slot count.

    Returns:
        Callable[[int], dict[str, Any]]: Slot parameters lookup.

    Raises:
        ValueError: Raised when a per-slot list has the wrong length or shape.
    """

    if isinstance(slot_parameters, dict):
        return lambda _slot_index: slot_parameters
    if not isinstance(slot_parameters, list) or len(slot_parameters) != slot_count:
        raise ValueError(f"slot_parameters must be an object or a list of {slot_count} objects")
    if not all(isinstance(parameters, dict) for parameters in slot_parameters):
        raise ValueError("every per-slot parameters entry must be an object")
    return lambda slot_index: slot_parameters[slot_index]
