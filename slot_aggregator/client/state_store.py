"""Local JSON state file holding slot -> job handle maps per record."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any


class JsonFilePollStateStore:
    """Persist remembered job handles so a restarted client resumes polling.

    File layout: `{"records": {"<record_id>": {"<slot_index>": "<job_handle_id>"}}}`.
    """

    def __init__(self, state_file: str | Path):
        """Initialize state store.

        Args:
            state_file: Path of the JSON state file; created on first save.

        Raises:
            ValueError: Raised when the path is blank.
        """

        if not str(state_file).strip():
            raise ValueError("state_file must not be blank")
        self._state_path = Path(state_file)

    def client_load_handles(self, record_id: str) -> dict[int, str]:
        """Load remembered handles for one record.

        Args:
            record_id: Record identifier.

        Returns:
            dict[int, str]: Slot index to job handle id.

        Raises:
            ValueError: Raised when the state file is not valid JSON.
        """

        record_entries = self._client_read_state()["records"].get(str(record_id), {})
        return {int(slot_index): str(job_handle_id) for slot_index, job_handle_id in record_entries.items()}

    def client_save_handles(self, record_id: str, handles: dict[int, str]) -> None:
        """Replace remembered handles for one record.

        An empty map removes the record entry.

        Args:
            record_id: Record identifier.
            handles: Slot index to job handle id.

        Returns:
            None: State is written atomically.

        Raises:
            OSError: Raised when the state file cannot be written.
        """

        state = self._client_read_state()
        if handles:
            state["records"][str(record_id)] = {
                str(slot_index): job_handle_id for slot_index, job_handle_id in sorted(handles.items())
            }
        else:
            state["records"].pop(str(record_id), None)
        self._client_write_state(state)

    def _client_read_state(self) -> dict[str, Any]:
        """Read the whole state document, defaulting to an empty one."""

        if not self._state_path.exists():
            return {"records": {}}
        try:
            state = json.loads(self._state_path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as error:
            raise ValueError(f"poll state file is not valid JSON: {self._state_path}") from error
        if not isinstance(state, dict) or not isinstance(state.get("records", {}), dict):
            raise ValueError(f"poll state file has unexpected shape: {self._state_path}")
        state.setdefault("records", {})
        return state

    def _client_write_state(self, state: dict[str, Any]) -> None:
        """Write the state document through a temp file and atomic rename."""

        directory = self._state_path.parent if str(self._state_path.parent) else Path(".")
        directory.mkdir(parents=True, exist_ok=True)
        file_descriptor, temp_path = tempfile.mkstemp(prefix=".poll-state-", dir=directory)
        try:
            with os.fdopen(file_descriptor, "w", encoding="utf-8") as temp_file:
                json.dump(state, temp_file, indent=2, sort_keys=True)
            os.replace(temp_path, self._state_path)
        except OSError:
            Path(temp_path).unlink(missing_ok=True)
            raise
