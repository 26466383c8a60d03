"""Copy transient provider output into durable object storage."""

from __future__ import annotations

import logging
import mimetypes
import posixpath
import re
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Final
from urllib.parse import urlparse
from uuid import UUID

from slot_aggregator.adapters import ObjectStoragePort, OutputDownloaderPort, OutputDownloadError, StorageUploadError
from slot_aggregator.domain import MaterializationError, ResultRef

logger = logging.getLogger(__name__)

_UNSAFE_KEY_CHARACTERS: Final[re.Pattern[str]] = re.compile(r"[^A-Za-z0-9_-]")
_EXTENSION_PATTERN: Final[re.Pattern[str]] = re.compile(r"^\.[A-Za-z0-9]{1,8}$")


def job_materialize_object_key(
    key_prefix: str,
    record_id: UUID,
    slot_index: int,
    job_handle_id: str,
    extension: str = "",
) -> str:
    """Build the deterministic storage key for one (record, slot, job) triple.

    Args:
        key_prefix: Configured key prefix.
        record_id: Record identifier.
        slot_index: Zero-based slot index.
        job_handle_id: Provider job identifier.
        extension: Optional file extension including the dot.

    Returns:
        str: Storage key such as `slot-results/<record>/slot-002-<job>.png`.

    Raises:
        ValueError: Raised when the job handle id is blank.
    """

    safe_job_handle_id = _UNSAFE_KEY_CHARACTERS.sub("_", job_handle_id.strip())
    if not safe_job_handle_id:
        raise ValueError("job_handle_id must not be blank")

    normalized_prefix = key_prefix.strip().strip("/")
    object_name = f"{record_id}/slot-{slot_index:03d}-{safe_job_handle_id}{extension}"
    return f"{normalized_prefix}/{object_name}" if normalized_prefix else object_name


def job_materialize_extension(output_url: str, content_type: str) -> str:
    """Pick a file extension from the output URL path, else from content type.

    Args:
        output_url: Transient provider output URL.
        content_type: Downloaded content type.

    Returns:
        str: Extension including the dot, or an empty string.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    url_extension = posixpath.splitext(urlparse(output_url).path)[1].lower()
    if _EXTENSION_PATTERN.match(url_extension):
        return url_extension
    return mimetypes.guess_extension(content_type) or ""


class ResultMaterializer:
    """Download one succeeded job's output and upload it under a stable key.

    Re-running for the same job overwrites the same key with equivalent bytes,
    so a retry after any partial failure is safe.
    """

    def __init__(
        self,
        downloader: OutputDownloaderPort,
        storage: ObjectStoragePort,
        key_prefix: str = "slot-results",
        clock: Callable[[], datetime] | None = None,
    ):
        """Initialize materializer.

        Args:
            downloader: Transient output downloader.
            storage: Durable object storage adapter.
            key_prefix: Storage key prefix.
            clock: Optional UTC clock override for tests.

        Raises:
            ValueError: Raised when dependencies are None.
        """

        if downloader is None:
            raise ValueError("downloader must not be None")
        if storage is None:
            raise ValueError("storage must not be None")

        self._downloader = downloader
        self._storage = storage
        self._key_prefix = key_prefix
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def job_materialize(self, record_id: UUID, slot_index: int, job_handle_id: str, output_url: str) -> ResultRef:
        """Persist one job output and return its permanent reference.

        Args:
            record_id: Record identifier.
            slot_index: Zero-based slot index.
            job_handle_id: Provider job identifier.
            output_url: Transient provider output URL.

        Returns:
            ResultRef: Reference carrying the permanent URL.

        Raises:
            MaterializationError: Raised when download or upload fails.
        """

        try:
            artifact = self._downloader.adapter_download_output(output_url)
        except OutputDownloadError as error:
            logger.warning(
                "output download failed record_id=%s slot_index=%s job_handle_id=%s",
                record_id,
                slot_index,
                job_handle_id,
            )
            raise MaterializationError(f"download failed: {error}", phase="download") from error

        object_key = job_materialize_object_key(
            key_prefix=self._key_prefix,
            record_id=record_id,
            slot_index=slot_index,
            job_handle_id=job_handle_id,
            extension=job_materialize_extension(output_url, artifact.content_type),
        )
        try:
            stored_object = self._storage.adapter_put_object(
                object_key=object_key,
                payload_bytes=artifact.payload_bytes,
                content_type=artifact.content_type,
            )
        except (StorageUploadError, ValueError) as error:
            logger.warning("object upload failed object_key=%s", object_key)
            raise MaterializationError(f"upload failed: {error}", phase="upload") from error

        logger.info("slot output materialized object_key=%s bytes=%s", object_key, len(artifact.payload_bytes))
        return ResultRef(url=stored_object.public_url, slot_index=slot_index, materialized_at_utc=self._clock())
