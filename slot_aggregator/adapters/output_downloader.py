"""HTTP downloader for transient provider output locations."""

from __future__ import annotations

from typing import Final

import httpx

from .interfaces import DownloadedArtifact, OutputDownloaderPort
from .provider_errors import OutputDownloadError


class HttpOutputDownloader(OutputDownloaderPort):
    """Download raw provider output with a timeout and a size cap."""

    _DEFAULT_CONTENT_TYPE: Final[str] = "application/octet-stream"

    def __init__(
        self,
        timeout_seconds: float = 60.0,
        max_bytes: int = 50 * 1024 * 1024,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize output downloader.

        Args:
            timeout_seconds: HTTP timeout for one download.
            max_bytes: Maximum accepted payload size.
            transport: Optional httpx transport override.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when limits are invalid.
        """

        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if max_bytes < 1:
            raise ValueError("max_bytes must be >= 1")

        self._max_bytes = max_bytes
        self._client = httpx.Client(timeout=timeout_seconds, follow_redirects=True, transport=transport)

    def adapter_close(self) -> None:
        """Close the pooled HTTP client."""

        self._client.close()

    def adapter_download_output(self, output_url: str) -> DownloadedArtifact:
        """Download the full artifact body.

        Args:
            output_url: Transient provider output URL.

        Returns:
            DownloadedArtifact: Artifact bytes and content type.

        Raises:
            OutputDownloadError: Raised for transport errors, non-2xx status, empty or oversized bodies.
        """

        normalized_url = output_url.strip()
        if not normalized_url.startswith(("http://", "https://")):
            raise OutputDownloadError(f"unsupported output url={output_url!r}")

        try:
            with self._client.stream("GET", normalized_url) as response:
                if response.status_code >= 400:
                    raise OutputDownloadError(f"output download returned HTTP {response.status_code}")

                chunks: list[bytes] = []
                received_bytes = 0
                for chunk in response.iter_bytes():
                    received_bytes += len(chunk)
                    if received_bytes > self._max_bytes:
                        raise OutputDownloadError(f"output exceeds max_bytes={self._max_bytes}")
                    chunks.append(chunk)
                content_type = response.headers.get("Content-Type") or self._DEFAULT_CONTENT_TYPE
        except httpx.HTTPError as error:
            raise OutputDownloadError("output download transport failed") from error

        payload_bytes = b"".join(chunks)
        if not payload_bytes:
            raise OutputDownloadError("output download returned empty body")
        return DownloadedArtifact(
            payload_bytes=payload_bytes,
            content_type=content_type.split(";", 1)[0].strip() or self._DEFAULT_CONTENT_TYPE,
        )
