"""Tests for slot job submission and status polling endpoints."""

from uuid import uuid4

from slot_aggregator.adapters import ProviderJobNotFoundError, ProviderRequestError, ProviderUnavailableError

from slot_store_stubs import build_api_test_client, build_orchestrator_fixture


def _status_url(job_handle_id: str, record_id, slot_index: int) -> str:
    """Build one status poll URL."""

    return f"/jobs/{job_handle_id}/status?record_id={record_id}&slot_index={slot_index}"


def test_api_jobs_submit_then_poll_fills_slots_and_completes_record() -> None:
    """Drive a two-slot record to completion through the HTTP surface.

    Returns:
        None: Assertions validate end-to-end request flow.

    Raises:
        AssertionError: Raised when submission, polling or completion behave unexpectedly.
    """

    fixture = build_orchestrator_fixture()
    client = build_api_test_client(fixture)
    record_id = client.post("/records", json={"owner_id": "owner-1", "slot_count": 2}).json()["record_id"]

    handles = []
    for slot_index in range(2):
        response = client.post(
            "/jobs",
            json={"record_id": record_id, "slot_index": slot_index, "parameters": {"prompt": f"p{slot_index}"}},
        )
        assert response.status_code == 202
        assert response.json()["status"] == "pending"
        assert response.json()["slot_index"] == slot_index
        handles.append(response.json()["job_handle_id"])
    assert fixture.provider.submitted_parameters == [{"prompt": "p0"}, {"prompt": "p1"}]

    pending = client.get(_status_url(handles[1], record_id, 1))
    assert pending.status_code == 200
    assert pending.json()["status"] == "pending"
    assert "result_url" not in pending.json()

    fixture.provider.stub_set_state(handles[1], "succeeded", output_url="https://provider.test/out-1.png")
    first = client.get(_status_url(handles[1], record_id, 1))
    assert first.status_code == 200
    assert first.json()["status"] == "succeeded"
    assert first.json()["slot_write"] == "applied"
    assert first.json()["filled_count"] == 1
    assert first.json()["completed"] is False
    assert first.json()["result_url"].startswith("https://cdn.test/slot-results/")

    fixture.provider.stub_set_state(handles[0], "succeeded", output_url="https://provider.test/out-0.png")
    second = client.get(_status_url(handles[0], record_id, 0))
    assert second.json()["completed"] is True
    assert second.json()["completion_flipped"] is True
    assert [stage["stage"] for stage in second.json()["stages"]] == ["status", "materialize", "slot_write", "completion"]

    repeat = client.get(_status_url(handles[0], record_id, 0))
    assert repeat.json()["slot_write"] == "already_filled"
    assert repeat.json()["completion_flipped"] is False
    assert repeat.json()["result_url"] == second.json()["result_url"]

    record_payload = client.get(f"/records/{record_id}").json()
    assert record_payload["completed"] is True
    assert record_payload["slots"] == [second.json()["result_url"], first.json()["result_url"]]


def test_api_jobs_submit_short_circuits_filled_slot() -> None:
    """Return 200 with the stored URL instead of starting a provider job."""

    fixture = build_orchestrator_fixture()
    client = build_api_test_client(fixture)
    record = fixture.repository.db_record_create(owner_id="owner-1", slot_count=2)
    fixture.repository.stub_force_fill(record.record_id, 0, "https://cdn.test/zero.png")

    response = client.post("/jobs", json={"record_id": str(record.record_id), "slot_index": 0})

    assert response.status_code == 200
    assert response.json()["job_handle_id"] is None
    assert response.json()["status"] == "succeeded"
    assert response.json()["result_url"] == "https://cdn.test/zero.png"
    assert fixture.provider.submitted_parameters == []


def test_api_jobs_submit_validates_record_and_index() -> None:
    """Return 404 for unknown records and 400 for bad indexes or parameters."""

    fixture = build_orchestrator_fixture()
    client = build_api_test_client(fixture)
    record = fixture.repository.db_record_create(owner_id="owner-1", slot_count=2)

    unknown = client.post("/jobs", json={"record_id": str(uuid4()), "slot_index": 0})
    out_of_range = client.post("/jobs", json={"record_id": str(record.record_id), "slot_index": 2})
    negative = client.post("/jobs", json={"record_id": str(record.record_id), "slot_index": -1})
    bad_parameters = client.post(
        "/jobs",
        json={"record_id": str(record.record_id), "slot_index": 0, "parameters": ["not", "an", "object"]},
    )

    assert unknown.status_code == 404
    assert unknown.json()["code"] == "RECORD_NOT_FOUND"
    assert out_of_range.status_code == 400
    assert negative.status_code == 400
    assert bad_parameters.status_code == 400
    assert fixture.provider.submitted_parameters == []


def test_api_jobs_submit_maps_provider_failures_to_bad_gateway() -> None:
    """Return 502 with retryability from the provider error class."""

    fixture = build_orchestrator_fixture()
    client = build_api_test_client(fixture)
    record = fixture.repository.db_record_create(owner_id="owner-1", slot_count=1)
    body = {"record_id": str(record.record_id), "slot_index": 0}

    fixture.provider.submit_error = ProviderRequestError("invalid input", status_code=422)
    rejected = client.post("/jobs", json=body)
    fixture.provider.submit_error = ProviderUnavailableError("provider overloaded", status_code=503)
    unavailable = client.post("/jobs", json=body)
    fixture.provider.submit_error = ProviderJobNotFoundError("model missing", status_code=404)
    missing_model = client.post("/jobs", json=body)

    assert rejected.status_code == 502
    assert rejected.json()["code"] == "PROVIDER_REJECTED"
    assert rejected.json()["retryable"] is False
    assert unavailable.status_code == 502
    assert unavailable.json()["code"] == "PROVIDER_UNAVAILABLE"
    assert unavailable.json()["retryable"] is True
    assert missing_model.status_code == 502
    assert missing_model.json()["code"] == "PROVIDER_UNAVAILABLE"


def test_api_jobs_status_returns_not_found_for_unknown_handle() -> None:
    """Return 404 JOB_NOT_FOUND and leave the record untouched."""

    fixture = build_orchestrator_fixture()
    client = build_api_test_client(fixture)
    record = fixture.repository.db_record_create(owner_id="owner-1", slot_count=1)

    response = client.get(_status_url("job-unknown", record.record_id, 0))

    assert response.status_code == 404
    assert response.json()["code"] == "JOB_NOT_FOUND"
    assert fixture.repository.write_calls == 0


def test_api_jobs_status_reports_failed_job_without_writing() -> None:
    """Return the provider error text for failed jobs; the slot stays empty."""

    fixture = build_orchestrator_fixture()
    client = build_api_test_client(fixture)
    record = fixture.repository.db_record_create(owner_id="owner-1", slot_count=1)
    job_handle_id = fixture.provider.adapter_submit_job({}).job_id
    fixture.provider.stub_set_state(job_handle_id, "failed", error_message="NSFW content detected")

    response = client.get(_status_url(job_handle_id, record.record_id, 0))

    assert response.status_code == 200
    assert response.json()["status"] == "failed"
    assert response.json()["error"] == "NSFW content detected"
    assert response.json()["filled_count"] == 0
    assert fixture.repository.write_calls == 0


def test_api_jobs_status_returns_retryable_unavailable_when_materialization_fails() -> None:
    """Return 503 MATERIALIZATION_FAILED, then fill the slot on the next poll."""

    fixture = build_orchestrator_fixture(download_failures=1)
    client = build_api_test_client(fixture)
    record = fixture.repository.db_record_create(owner_id="owner-1", slot_count=1)
    job_handle_id = fixture.provider.adapter_submit_job({}).job_id
    fixture.provider.stub_set_state(job_handle_id, "succeeded", output_url="https://provider.test/out.png")

    failed_poll = client.get(_status_url(job_handle_id, record.record_id, 0))
    retried_poll = client.get(_status_url(job_handle_id, record.record_id, 0))

    assert failed_poll.status_code == 503
    assert failed_poll.json()["code"] == "MATERIALIZATION_FAILED"
    assert failed_poll.json()["retryable"] is True
    assert retried_poll.status_code == 200
    assert retried_poll.json()["completed"] is True


def test_api_jobs_status_maps_provider_outage_to_bad_gateway() -> None:
    """Return retryable 502 when the provider cannot be reached."""

    fixture = build_orchestrator_fixture()
    client = build_api_test_client(fixture)
    record = fixture.repository.db_record_create(owner_id="owner-1", slot_count=1)
    fixture.provider.get_error = ProviderUnavailableError("connection reset")

    response = client.get(_status_url("job-1", record.record_id, 0))

    assert response.status_code == 502
    assert response.json()["code"] == "PROVIDER_UNAVAILABLE"
    assert response.json()["retryable"] is True


def test_api_jobs_status_rejects_missing_or_malformed_query() -> None:
    """Return 400 when record id or slot index is missing or malformed."""

    client = build_api_test_client(build_orchestrator_fixture())

    missing = client.get("/jobs/job-1/status")
    malformed = client.get("/jobs/job-1/status?record_id=nope&slot_index=zero")

    assert missing.status_code == 400
    assert malformed.status_code == 400
    assert malformed.json()["code"] == "INVALID_REQUEST"
