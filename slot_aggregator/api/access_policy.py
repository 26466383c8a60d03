"""Record access policy seam between the HTTP surface and principal checks.

Authentication is owned by an upstream gateway; this service only compares the
forwarded owner header against the record owner.
"""

from __future__ import annotations

from typing import Protocol

from slot_aggregator.domain import AggregateRecord, RecordAccessDeniedError

OWNER_HEADER_NAME = "X-Owner-Id"


class RecordAccessPolicyPort(Protocol):
    """Port definition for record read authorization."""

    def api_check_record_access(self, record: AggregateRecord, caller_owner_id: str | None) -> None:
        """Allow or deny one record read.

        Args:
            record: Record being read.
            caller_owner_id: Owner id forwarded by the caller, if any.

        Returns:
            None: Returns when access is allowed.

        Raises:
            RecordAccessDeniedError: Raised when access is denied.
        """


class HeaderOwnerAccessPolicy(RecordAccessPolicyPort):
    """Compare the forwarded owner header with the record owner."""

    def __init__(self, owner_header_required: bool = False):
        """Initialize header policy.

        Args:
            owner_header_required: Deny requests that omit the owner header.
        """

        self._owner_header_required = owner_header_required

    def api_check_record_access(self, record: AggregateRecord, caller_owner_id: str | None) -> None:
        """Deny mismatched owners, and missing owners when the header is required.

        Args:
            record: Record being read.
            caller_owner_id: Owner id forwarded by the caller, if any.

        Returns:
            None: Returns when access is allowed.

        Raises:
            RecordAccessDeniedError: Raised when access is denied.
        """

        normalized_caller = (caller_owner_id or "").strip()
        if not normalized_caller:
            if self._owner_header_required:
                raise RecordAccessDeniedError(f"{OWNER_HEADER_NAME} header is required")
            return
        if normalized_caller != record.owner_id:
            raise RecordAccessDeniedError("caller does not own this record")
