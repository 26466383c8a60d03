"""Regression tests for the HTTP prediction provider adapter."""

from __future__ import annotations

import json

import httpx
import pytest

from slot_aggregator.adapters import (
    HttpPredictionProviderAdapter,
    ProviderAuthError,
    ProviderContractError,
    ProviderJobNotFoundError,
    ProviderRequestError,
    ProviderTimeoutError,
    ProviderUnavailableError,
)
from slot_aggregator.adapters import prediction_provider


def _build_adapter(handler, retry_attempts: int = 3) -> HttpPredictionProviderAdapter:
    """Build adapter over an in-process mock transport.

    Args:
        handler: httpx mock handler.
        retry_attempts: Attempts per call.

    Returns:
        HttpPredictionProviderAdapter: Adapter under test.
    """

    return HttpPredictionProviderAdapter(
        api_token="token-1",
        model="acme/image-model",
        base_url="https://provider.test/v1",
        retry_attempts=retry_attempts,
        retry_backoff_base_seconds=0.5,
        retry_max_backoff_seconds=2.0,
        random_unit_interval_provider=lambda: 0.5,
        transport=httpx.MockTransport(handler),
    )


@pytest.fixture(autouse=True)
def _no_sleep(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Replace retry sleeps with a recorder."""

    recorded_sleeps: list[float] = []
    monkeypatch.setattr(prediction_provider.time, "sleep", recorded_sleeps.append)
    return recorded_sleeps


def test_adapters_submit_job_posts_input_and_parses_snapshot() -> None:
    """Post `{"input": parameters}` to the model endpoint with bearer auth.

    Returns:
        None: Assertions validate request and parsing.

    Raises:
        AssertionError: Raised when request shape changes.
    """

    captured_requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        captured_requests.append(request)
        return httpx.Response(201, json={"id": "pred-1", "status": "starting", "output": None, "error": None})

    snapshot = _build_adapter(handler).adapter_submit_job({"prompt": "a cat"})

    assert snapshot.job_id == "pred-1"
    assert snapshot.provider_state == "starting"
    assert snapshot.output_url is None
    assert captured_requests[0].method == "POST"
    assert captured_requests[0].url.path == "/v1/models/acme/image-model/predictions"
    assert captured_requests[0].headers["Authorization"] == "Bearer token-1"
    assert json.loads(captured_requests[0].content) == {"input": {"prompt": "a cat"}}


def test_adapters_get_job_extracts_first_output_url_from_list() -> None:
    """Take the first URL when the provider returns a list of outputs.

    Returns:
        None: Assertions validate parsing.

    Raises:
        AssertionError: Raised when output extraction changes.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/v1/predictions/pred-1"
        return httpx.Response(
            200,
            json={"id": "pred-1", "status": "Succeeded", "output": ["https://out.test/a.png", "https://out.test/b.png"]},
        )

    snapshot = _build_adapter(handler).adapter_get_job("pred-1")

    assert snapshot.provider_state == "succeeded"
    assert snapshot.output_url == "https://out.test/a.png"


def test_adapters_retries_transient_status_and_honors_retry_after(_no_sleep: list[float]) -> None:
    """Retry 503 then succeed, waiting at least the Retry-After floor.

    Args:
        _no_sleep: Recorded sleep durations.

    Returns:
        None: Assertions validate retry behavior.

    Raises:
        AssertionError: Raised when retries are not performed.
    """

    responses = iter(
        [
            httpx.Response(503, headers={"Retry-After": "1.5"}, json={"detail": "busy"}),
            httpx.Response(200, json={"id": "pred-1", "status": "processing"}),
        ]
    )

    snapshot = _build_adapter(lambda request: next(responses)).adapter_get_job("pred-1")

    assert snapshot.provider_state == "processing"
    assert _no_sleep == [1.5]


def test_adapters_raises_unavailable_after_exhausting_retries(_no_sleep: list[float]) -> None:
    """Raise unavailable after the configured number of 5xx attempts.

    Args:
        _no_sleep: Recorded sleep durations.

    Returns:
        None: Assertions validate bounded retries.

    Raises:
        AssertionError: Raised when retry count changes.
    """

    call_count = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal call_count
        call_count += 1
        return httpx.Response(502, text="bad gateway")

    with pytest.raises(ProviderUnavailableError) as error:
        _build_adapter(handler, retry_attempts=3).adapter_get_job("pred-1")

    assert call_count == 3
    assert error.value.status_code == 502
    assert len(_no_sleep) == 2


def test_adapters_timeouts_map_to_timeout_error() -> None:
    """Map transport timeouts to the typed timeout error.

    Returns:
        None: Assertions validate timeout mapping.

    Raises:
        AssertionError: Raised when mapping changes.
    """

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(ProviderTimeoutError):
        _build_adapter(handler, retry_attempts=2).adapter_submit_job({"prompt": "x"})


@pytest.mark.parametrize(
    ("status_code", "expected_error"),
    [(401, ProviderAuthError), (404, ProviderJobNotFoundError), (422, ProviderRequestError)],
)
def test_adapters_client_errors_are_not_retried(status_code: int, expected_error: type[Exception]) -> None:
    """Raise typed errors for 4xx responses without retrying.

    Args:
        status_code: Provider status code.
        expected_error: Expected error type.

    Returns:
        None: Assertions validate mapping.

    Raises:
        AssertionError: Raised when mapping or retry behavior changes.
    """

    call_count = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal call_count
        call_count += 1
        return httpx.Response(status_code, json={"detail": "rejected"})

    with pytest.raises(expected_error):
        _build_adapter(handler).adapter_get_job("pred-1")

    assert call_count == 1


def test_adapters_rejects_malformed_payloads_and_job_ids() -> None:
    """Reject responses without ids and ids that would escape the path.

    Returns:
        None: Assertions validate contract checks.

    Raises:
        AssertionError: Raised when malformed input is accepted.
    """

    adapter = _build_adapter(lambda request: httpx.Response(200, json={"status": "starting"}))

    with pytest.raises(ProviderContractError):
        adapter.adapter_submit_job({"prompt": "x"})
    with pytest.raises(ProviderJobNotFoundError):
        adapter.adapter_get_job("../secrets")
    with pytest.raises(ValueError):
        HttpPredictionProviderAdapter(api_token="token", model="no-owner")


def test_adapters_close_releases_provider_client() -> None:
    """Refuse further requests once the pooled client is closed.

    Returns:
        None: Assertions validate close behavior.

    Raises:
        AssertionError: Raised when a closed adapter still sends requests.
    """

    adapter = _build_adapter(lambda request: httpx.Response(200, json={"id": "pred-1", "status": "starting"}))

    adapter.adapter_close()

    with pytest.raises(RuntimeError):
        adapter.adapter_get_job("pred-1")
