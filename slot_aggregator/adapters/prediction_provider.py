"""HTTP prediction provider adapter for job submission and status reads."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass
from typing import Any, Callable, Final

import httpx

from .interfaces import PredictionProviderPort, ProviderJobSnapshot
from .provider_errors import (
    ProviderAuthError,
    ProviderContractError,
    ProviderJobNotFoundError,
    ProviderRequestError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from .provider_states import PROVIDER_RETRYABLE_HTTP_STATUS_CODES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _AdapterRetryStrategy:
    """Immutable retry strategy config and calculation helpers.

    Attributes:
        retry_attempts: Number of attempts per provider call.
        backoff_base_seconds: Base delay for exponential backoff.
        max_backoff_seconds: Exponential delay cap before jitter.
        jitter_min_multiplier: Minimum jitter multiplier.
        jitter_max_multiplier: Maximum jitter multiplier.
        random_unit_interval_provider: Provider returning value in [0.0, 1.0].
    """

    retry_attempts: int
    backoff_base_seconds: float
    max_backoff_seconds: float
    jitter_min_multiplier: float
    jitter_max_multiplier: float
    random_unit_interval_provider: Callable[[], float]

    def strategy_calculate_retry_wait_seconds(self, retry_index: int) -> float:
        """Calculate exponential retry wait with cap and jitter.

        Args:
            retry_index: Zero-based retry index (0 is the wait before the second attempt).

        Returns:
            float: Computed wait seconds.

        Raises:
            ValueError: Raised when retry index is negative.
            RuntimeError: Raised when jitter provider returns out-of-range value.
        """

        if retry_index < 0:
            raise ValueError("retry_index must be >= 0")

        backoff_seconds = self.backoff_base_seconds * (2**retry_index)
        capped_backoff_seconds = min(backoff_seconds, self.max_backoff_seconds)
        return float(capped_backoff_seconds * self.strategy_calculate_jitter_multiplier())

    def strategy_calculate_jitter_multiplier(self) -> float:
        """Return jitter multiplier using configured min/max bounds.

        Returns:
            float: Jitter multiplier value.

        Raises:
            RuntimeError: Raised when jitter source returns value outside [0.0, 1.0].
        """

        random_ratio = float(self.random_unit_interval_provider())
        if random_ratio < 0.0 or random_ratio > 1.0:
            raise RuntimeError("random_unit_interval_provider must return a value in [0.0, 1.0]")

        jitter_span = self.jitter_max_multiplier - self.jitter_min_multiplier
        return self.jitter_min_multiplier + (random_ratio * jitter_span)


class HttpPredictionProviderAdapter(PredictionProviderPort):
    """Adapter for a Replicate-style predictions API.

    Jobs are created with `POST /models/{owner}/{name}/predictions` and read with
    `GET /predictions/{id}`. Transient failures (transport errors, throttling,
    provider 5xx) are retried a bounded number of times inside one call.
    """

    _USER_AGENT: Final[str] = "slot-aggregator/1.0 (Python/httpx)"

    def __init__(
        self,
        api_token: str,
        model: str,
        base_url: str = "https://api.replicate.com/v1",
        retry_attempts: int = 3,
        retry_backoff_base_seconds: float = 0.5,
        retry_max_backoff_seconds: float = 4.0,
        jitter_min_multiplier: float = 0.5,
        jitter_max_multiplier: float = 1.5,
        random_unit_interval_provider: Callable[[], float] | None = None,
        request_timeout_seconds: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize prediction provider adapter.

        Args:
            api_token: Provider API token.
            model: Provider model identifier in `owner/name` form.
            base_url: Provider API base URL.
            retry_attempts: Attempts per call for transient failures.
            retry_backoff_base_seconds: Base retry delay used by exponential backoff.
            retry_max_backoff_seconds: Maximum retry delay cap before applying jitter.
            jitter_min_multiplier: Minimum jitter multiplier for computed retry delay.
            jitter_max_multiplier: Maximum jitter multiplier for computed retry delay.
            random_unit_interval_provider: Optional provider returning random values in [0.0, 1.0].
            request_timeout_seconds: HTTP request timeout in seconds.
            transport: Optional httpx transport override.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when required config values are invalid.
        """

        normalized_token = api_token.strip()
        normalized_model = model.strip()
        normalized_base_url = base_url.strip()

        if not normalized_token:
            raise ValueError("api_token must not be blank")
        if normalized_model.count("/") != 1 or normalized_model.startswith("/") or normalized_model.endswith("/"):
            raise ValueError("model must use owner/name form")
        if not normalized_base_url:
            raise ValueError("base_url must not be blank")
        if retry_attempts < 1:
            raise ValueError("retry_attempts must be >= 1")
        if retry_backoff_base_seconds < 0:
            raise ValueError("retry_backoff_base_seconds must be >= 0")
        if retry_max_backoff_seconds <= 0:
            raise ValueError("retry_max_backoff_seconds must be > 0")
        if jitter_min_multiplier <= 0 or jitter_max_multiplier <= 0:
            raise ValueError("jitter multipliers must be > 0")
        if jitter_max_multiplier < jitter_min_multiplier:
            raise ValueError("jitter_max_multiplier must be >= jitter_min_multiplier")
        if request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be > 0")

        self._model = normalized_model
        self._retry_strategy = _AdapterRetryStrategy(
            retry_attempts=retry_attempts,
            backoff_base_seconds=retry_backoff_base_seconds,
            max_backoff_seconds=retry_max_backoff_seconds,
            jitter_min_multiplier=jitter_min_multiplier,
            jitter_max_multiplier=jitter_max_multiplier,
            random_unit_interval_provider=random_unit_interval_provider or random.random,
        )
        self._client = httpx.Client(
            base_url=normalized_base_url.rstrip("/"),
            headers={
                "Authorization": f"Bearer {normalized_token}",
                "User-Agent": self._USER_AGENT,
                "Content-Type": "application/json",
            },
            timeout=request_timeout_seconds,
            transport=transport,
        )

    def adapter_close(self) -> None:
        """Close the pooled HTTP client."""

        self._client.close()

    def adapter_source_name(self) -> str:
        """Return stable adapter source label.

        Returns:
            str: Source identifier.

        Raises:
            RuntimeError: This implementation does not raise runtime errors.
        """

        return f"prediction_provider:{self._model}"

    def adapter_submit_job(self, parameters: dict[str, Any]) -> ProviderJobSnapshot:
        """Create one prediction from opaque input parameters.

        A transient failure after the provider accepted the request can create a
        duplicate job on retry; the duplicate only wastes provider work because
        slot writes discard redundant results.

        Args:
            parameters: Provider `input` payload.

        Returns:
            ProviderJobSnapshot: Created job observation.

        Raises:
            ProviderRequestError: Raised when the provider rejects the request.
            ProviderUnavailableError: Raised when the provider is unreachable.
            ProviderContractError: Raised when the response lacks a job id.
        """

        if not isinstance(parameters, dict):
            raise ProviderRequestError("parameters must be a JSON object")

        response_payload = self._adapter_request_json(
            method="POST",
            path=f"/models/{self._model}/predictions",
            json_body={"input": parameters},
        )
        snapshot = self._adapter_parse_snapshot(response_payload)
        logger.info("provider job created job_id=%s state=%s", snapshot.job_id, snapshot.provider_state)
        return snapshot

    def adapter_get_job(self, job_id: str) -> ProviderJobSnapshot:
        """Read one prediction by id.

        Args:
            job_id: Provider job identifier.

        Returns:
            ProviderJobSnapshot: Current job observation.

        Raises:
            ProviderJobNotFoundError: Raised when the id is unknown.
            ProviderUnavailableError: Raised when the provider is unreachable.
            ProviderContractError: Raised when the response is malformed.
        """

        normalized_job_id = job_id.strip()
        if not normalized_job_id or "/" in normalized_job_id:
            raise ProviderJobNotFoundError(f"unknown provider job id={job_id!r}", status_code=None)

        response_payload = self._adapter_request_json(method="GET", path=f"/predictions/{normalized_job_id}")
        return self._adapter_parse_snapshot(response_payload)

    def _adapter_request_json(
        self,
        method: str,
        path: str,
        json_body: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute one provider call with bounded retries and return its JSON body.

        Args:
            method: HTTP method.
            path: Path relative to the provider base URL.
            json_body: Optional JSON request body.

        Returns:
            dict[str, Any]: Decoded JSON object.

        Raises:
            ProviderRequestError: Raised for non-retryable 4xx responses.
            ProviderJobNotFoundError: Raised for 404 responses.
            ProviderUnavailableError: Raised when retries are exhausted.
            ProviderContractError: Raised when the body is not a JSON object.
        """

        last_error: ProviderUnavailableError | None = None
        pending_retry_delay_seconds = 0.0

        for attempt_index in range(self._retry_strategy.retry_attempts):
            if attempt_index > 0:
                wait_seconds = max(
                    self._retry_strategy.strategy_calculate_retry_wait_seconds(retry_index=attempt_index - 1),
                    pending_retry_delay_seconds,
                )
                pending_retry_delay_seconds = 0.0
                if wait_seconds > 0:
                    time.sleep(wait_seconds)

            try:
                response = self._client.request(method, path, json=json_body)
            except httpx.TimeoutException as error:
                last_error = ProviderTimeoutError("provider request timed out")
                last_error.__cause__ = error
                logger.warning("provider %s %s timed out attempt=%s", method, path, attempt_index + 1)
                continue
            except httpx.TransportError as error:
                last_error = ProviderUnavailableError("provider transport request failed")
                last_error.__cause__ = error
                logger.warning("provider %s %s transport error attempt=%s", method, path, attempt_index + 1)
                continue

            if response.status_code in PROVIDER_RETRYABLE_HTTP_STATUS_CODES:
                pending_retry_delay_seconds = self._adapter_retry_after_seconds(response)
                last_error = ProviderUnavailableError(
                    f"provider returned HTTP {response.status_code}",
                    status_code=response.status_code,
                )
                logger.warning(
                    "provider %s %s returned HTTP %s attempt=%s",
                    method,
                    path,
                    response.status_code,
                    attempt_index + 1,
                )
                continue

            self._adapter_raise_for_client_error(response)
            return self._adapter_decode_json(response)

        if last_error is None:
            raise ProviderUnavailableError("provider request failed without response")
        raise last_error

    def _adapter_raise_for_client_error(self, response: httpx.Response) -> None:
        """Raise typed errors for non-retryable provider error responses.

        Args:
            response: Provider HTTP response.

        Returns:
            None: Returns only for success responses.

        Raises:
            ProviderAuthError: Raised for 401 and 403.
            ProviderJobNotFoundError: Raised for 404.
            ProviderRequestError: Raised for other 4xx responses.
            ProviderUnavailableError: Raised for unexpected 5xx responses.
        """

        status_code = response.status_code
        if status_code < 400:
            return

        detail = self._adapter_extract_error_detail(response)
        if status_code in {401, 403}:
            raise ProviderAuthError(f"provider rejected credentials: {detail}", status_code=status_code)
        if status_code == 404:
            raise ProviderJobNotFoundError(f"provider resource not found: {detail}", status_code=status_code)
        if status_code < 500:
            raise ProviderRequestError(f"provider rejected request: {detail}", status_code=status_code)
        raise ProviderUnavailableError(f"provider returned HTTP {status_code}", status_code=status_code)

    def _adapter_decode_json(self, response: httpx.Response) -> dict[str, Any]:
        """Decode response body as a JSON object.

        Args:
            response: Provider HTTP response.

        Returns:
            dict[str, Any]: Decoded JSON object.

        Raises:
            ProviderContractError: Raised when body is not a JSON object.
        """

        try:
            payload = response.json()
        except ValueError as error:
            raise ProviderContractError("provider response is not valid JSON") from error
        if not isinstance(payload, dict):
            raise ProviderContractError("provider response must be a JSON object")
        return payload

    def _adapter_parse_snapshot(self, payload: dict[str, Any]) -> ProviderJobSnapshot:
        """Map provider JSON payload to a typed job snapshot.

        Args:
            payload: Decoded provider JSON object.

        Returns:
            ProviderJobSnapshot: Typed job observation.

        Raises:
            ProviderContractError: Raised when the job id is missing.
        """

        job_id = str(payload.get("id") or "").strip()
        if not job_id:
            raise ProviderContractError("provider response missing job id")

        error_value = payload.get("error")
        return ProviderJobSnapshot(
            job_id=job_id,
            provider_state=str(payload.get("status") or "").strip().lower(),
            output_url=self._adapter_extract_output_url(payload.get("output")),
            error_message=str(error_value).strip() if error_value else None,
        )

    def _adapter_extract_output_url(self, output_value: Any) -> str | None:
        """Return the first output URL from a string or list output field.

        Args:
            output_value: Raw `output` field.

        Returns:
            str | None: Output URL when present.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        if isinstance(output_value, str) and output_value.strip():
            return output_value.strip()
        if isinstance(output_value, list):
            for item in output_value:
                if isinstance(item, str) and item.strip():
                    return item.strip()
        return None

    def _adapter_extract_error_detail(self, response: httpx.Response) -> str:
        """Extract a short error detail from a provider error response.

        Args:
            response: Provider HTTP response.

        Returns:
            str: Error detail text.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        try:
            payload = response.json()
        except ValueError:
            return response.text[:200] or f"HTTP {response.status_code}"
        if isinstance(payload, dict):
            for key in ("detail", "error", "title"):
                if payload.get(key):
                    return str(payload[key])
        return f"HTTP {response.status_code}"

    def _adapter_retry_after_seconds(self, response: httpx.Response) -> float:
        """Return Retry-After delay floor in seconds when the header is numeric.

        Args:
            response: Provider HTTP response.

        Returns:
            float: Delay floor, 0 when absent or unparseable.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        header_value = (response.headers.get("Retry-After") or "").strip()
        try:
            return max(0.0, min(float(header_value), self._retry_strategy.max_backoff_seconds))
        except ValueError:
            return 0.0
