"""Google Cloud Storage adapter for durable slot artifacts."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from google.api_core.exceptions import GoogleAPIError
from google.auth.exceptions import GoogleAuthError
from google.cloud import storage

from .interfaces import ObjectStoragePort, StoredObject
from .provider_errors import StorageUploadError


class GcsObjectStorageAdapter(ObjectStoragePort):
    """Thin wrapper over one GCS bucket for put-and-publish uploads."""

    def __init__(
        self,
        bucket_name: str,
        project_id: str | None = None,
        public_base_url: str | None = None,
        cache_control: str = "public, max-age=31536000, immutable",
        client: Any | None = None,
    ):
        """Initialize storage adapter.

        Args:
            bucket_name: Target bucket name.
            project_id: Optional cloud project for the default client.
            public_base_url: Optional base URL (CDN or custom domain) for public links.
            cache_control: Cache-Control metadata applied to uploads.
            client: Optional preconfigured storage client.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when bucket name is blank.
        """

        normalized_bucket_name = bucket_name.strip()
        if not normalized_bucket_name:
            raise ValueError("bucket_name must not be blank")

        self._bucket_name = normalized_bucket_name
        self._public_base_url = (public_base_url or "").strip().rstrip("/") or None
        self._cache_control = cache_control
        self._client = client if client is not None else storage.Client(project=project_id)

    def adapter_put_object(self, object_key: str, payload_bytes: bytes, content_type: str) -> StoredObject:
        """Upload bytes under a fixed key and return its permanent URL.

        Args:
            object_key: Storage key; an existing object is overwritten.
            payload_bytes: Object bytes.
            content_type: Object content type.

        Returns:
            StoredObject: Key and public URL.

        Raises:
            ValueError: Raised when key or payload is empty.
            StorageUploadError: Raised when the storage service fails.
        """

        normalized_key = object_key.strip().lstrip("/")
        if not normalized_key:
            raise ValueError("object_key must not be blank")
        if not payload_bytes:
            raise ValueError("payload_bytes must not be empty")

        try:
            bucket = self._client.bucket(self._bucket_name)
            blob = bucket.blob(normalized_key)
            blob.cache_control = self._cache_control
            blob.upload_from_string(payload_bytes, content_type=content_type)
        except (GoogleAPIError, GoogleAuthError, OSError) as error:
            raise StorageUploadError(f"object upload failed for key={normalized_key}") from error

        return StoredObject(object_key=normalized_key, public_url=self._adapter_public_url(normalized_key, blob))

    def _adapter_public_url(self, object_key: str, blob: Any) -> str:
        """Build the public URL for an uploaded object.

        Args:
            object_key: Normalized storage key.
            blob: Uploaded blob handle.

        Returns:
            str: Permanent public URL.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        if self._public_base_url is not None:
            return f"{self._public_base_url}/{quote(object_key)}"
        return str(blob.public_url)
