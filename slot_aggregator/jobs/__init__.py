"""Job layer package for slot submission, polling and materialization workflows."""

from .interfaces import JobStatusTranslation, SlotJobOrchestratorPort, SlotPollResult, SlotSubmissionResult
from .record_service import AggregateRecordService
from .result_materializer import ResultMaterializer, job_materialize_extension, job_materialize_object_key
from .slot_job_orchestrator import SlotJobOrchestrator
from .status_translator import JobStatusTranslator, job_translate_snapshot
from .submission_gateway import JobSubmissionGateway
from .validation import job_validate_parameters, job_validate_slot_count, job_validate_slot_index

__all__ = [
	"AggregateRecordService",
	"JobStatusTranslation",
	"JobStatusTranslator",
	"JobSubmissionGateway",
	"ResultMaterializer",
	"SlotJobOrchestrator",
	"SlotJobOrchestratorPort",
	"SlotPollResult",
	"SlotSubmissionResult",
	"job_materialize_extension",
	"job_materialize_object_key",
	"job_translate_snapshot",
	"job_validate_parameters",
	"job_validate_slot_count",
	"job_validate_slot_index",
]
