"""Typed interfaces for adapter-layer responsibilities."""

from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class ProviderJobSnapshot:
    """One observation of a provider job.

    Attributes:
        job_id: Opaque provider job identifier.
        provider_state: Raw provider state text.
        output_url: Transient raw output location, present on success.
        error_message: Provider error text, present on failure.
    """

    job_id: str
    provider_state: str
    output_url: str | None
    error_message: str | None


@dataclass(frozen=True)
class DownloadedArtifact:
    """Raw output bytes fetched from the provider's transient location.

    Attributes:
        payload_bytes: Immutable artifact bytes.
        content_type: Content type reported by the download response.
    """

    payload_bytes: bytes
    content_type: str


@dataclass(frozen=True)
class StoredObject:
    """Durable object written to object storage.

    Attributes:
        object_key: Storage key.
        public_url: Stable permanent URL for the object.
    """

    object_key: str
    public_url: str


class PredictionProviderPort(Protocol):
    """Port definition for the external asynchronous inference provider."""

    def adapter_source_name(self) -> str:
        """Return adapter source identifier for diagnostics.

        Returns:
            str: Human-readable upstream source identifier.

        Raises:
            RuntimeError: Raised when source metadata is unavailable.
        """

    def adapter_submit_job(self, parameters: dict[str, Any]) -> ProviderJobSnapshot:
        """Create one provider job from opaque job parameters.

        Args:
            parameters: Provider input payload, forwarded unchanged.

        Returns:
            ProviderJobSnapshot: Initial job observation with its identifier.

        Raises:
            ProviderRequestError: Raised when the provider rejects the request.
            ProviderUnavailableError: Raised when the provider is unreachable.
        """

    def adapter_get_job(self, job_id: str) -> ProviderJobSnapshot:
        """Read current state of one provider job.

        Args:
            job_id: Provider job identifier.

        Returns:
            ProviderJobSnapshot: Current job observation.

        Raises:
            ProviderJobNotFoundError: Raised when the job id is unknown.
            ProviderUnavailableError: Raised when the provider is unreachable.
        """


class OutputDownloaderPort(Protocol):
    """Port definition for fetching raw provider output bytes."""

    def adapter_download_output(self, output_url: str) -> DownloadedArtifact:
        """Download raw output bytes.

        Args:
            output_url: Transient provider output URL.

        Returns:
            DownloadedArtifact: Downloaded bytes and content type.

        Raises:
            OutputDownloadError: Raised when the download fails.
        """


class ObjectStoragePort(Protocol):
    """Port definition for durable object storage."""

    def adapter_put_object(self, object_key: str, payload_bytes: bytes, content_type: str) -> StoredObject:
        """Write one object, overwriting any object under the same key.

        Args:
            object_key: Storage key.
            payload_bytes: Object bytes.
            content_type: Object content type.

        Returns:
            StoredObject: Key and permanent public URL.

        Raises:
            StorageUploadError: Raised when the upload fails.
        """
