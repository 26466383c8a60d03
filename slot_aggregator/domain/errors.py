"""Project-native typed exceptions shared by job and API layers."""

from __future__ import annotations


class SlotValidationError(ValueError):
    """Caller input is invalid and must be corrected before retrying.

    Attributes:
        field_name: Offending request field.
    """

    def __init__(self, message: str, field_name: str | None = None):
        super().__init__(message)
        self.field_name = field_name


class RecordNotFoundError(LookupError):
    """Aggregate record does not exist."""


class MaterializationError(RuntimeError):
    """Download or upload failed after the provider reported success.

    Always retryable: polling again re-runs materialization from scratch.

    Attributes:
        phase: Failing phase (`download` or `upload`).
    """

    def __init__(self, message: str, phase: str):
        super().__init__(message)
        self.phase = phase
        self.retryable = True


class RecordAccessDeniedError(PermissionError):
    """Caller is not allowed to read the aggregate record."""
