"""Project-native typed exceptions for provider and storage adapter failures."""

from __future__ import annotations


class ProviderError(Exception):
    """Base exception for prediction provider failures.

    Attributes:
        status_code: Optional upstream HTTP status code.
        retryable: Whether repeating the same call later may succeed.
    """

    retryable = True

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderRequestError(ProviderError, ValueError):
    """Provider rejected the request (invalid input, quota, unsupported model)."""

    retryable = False


class ProviderAuthError(ProviderRequestError):
    """Provider rejected the configured API token."""


class ProviderUnavailableError(ProviderError, ConnectionError):
    """Transport failure, throttling or provider-side server error."""


class ProviderTimeoutError(ProviderUnavailableError, TimeoutError):
    """Provider call exceeded the configured timeout."""


class ProviderJobNotFoundError(ProviderError, LookupError):
    """Provider does not know the requested job handle."""

    retryable = False


class ProviderContractError(ProviderError, RuntimeError):
    """Provider response did not match the expected JSON contract."""


class OutputDownloadError(ConnectionError):
    """Raw provider output could not be downloaded from its transient location."""


class StorageUploadError(RuntimeError):
    """Object storage rejected or failed the upload."""
