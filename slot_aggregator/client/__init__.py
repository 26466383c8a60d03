"""Client package for the resumable slot polling protocol."""

from .poll_client import (
	SLOT_STATE_FAILED,
	SLOT_STATE_FILLED,
	SLOT_STATE_STALLED,
	BatchPollReport,
	PollClientError,
	ResumablePollClient,
	SlotRunOutcome,
)
from .state_store import JsonFilePollStateStore

__all__ = [
	"BatchPollReport",
	"JsonFilePollStateStore",
	"PollClientError",
	"ResumablePollClient",
	"SLOT_STATE_FAILED",
	"SLOT_STATE_FILLED",
	"SLOT_STATE_STALLED",
	"SlotRunOutcome",
]
