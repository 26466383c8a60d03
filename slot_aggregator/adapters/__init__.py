"""Adapter layer package for provider and object storage boundaries."""

from .interfaces import (
	DownloadedArtifact,
	ObjectStoragePort,
	OutputDownloaderPort,
	PredictionProviderPort,
	ProviderJobSnapshot,
	StoredObject,
)
from .object_storage import GcsObjectStorageAdapter
from .output_downloader import HttpOutputDownloader
from .prediction_provider import HttpPredictionProviderAdapter
from .provider_errors import (
	OutputDownloadError,
	ProviderAuthError,
	ProviderContractError,
	ProviderError,
	ProviderJobNotFoundError,
	ProviderRequestError,
	ProviderTimeoutError,
	ProviderUnavailableError,
	StorageUploadError,
)
from .provider_states import ProviderJobState, provider_failure_default_message, provider_state_to_job_status

__all__ = [
	"DownloadedArtifact",
	"GcsObjectStorageAdapter",
	"HttpOutputDownloader",
	"HttpPredictionProviderAdapter",
	"ObjectStoragePort",
	"OutputDownloadError",
	"OutputDownloaderPort",
	"PredictionProviderPort",
	"ProviderAuthError",
	"ProviderContractError",
	"ProviderError",
	"ProviderJobNotFoundError",
	"ProviderJobSnapshot",
	"ProviderJobState",
	"ProviderRequestError",
	"ProviderTimeoutError",
	"ProviderUnavailableError",
	"StorageUploadError",
	"StoredObject",
	"provider_failure_default_message",
	"provider_state_to_job_status",
]
