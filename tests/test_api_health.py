"""Tests for API health endpoint behavior.

These tests validate deterministic response behavior for healthy, degraded and
database-unavailable states.
"""

from fastapi.testclient import TestClient

from slot_aggregator.api import create_api_application
from slot_aggregator.domain import HealthStatus
from slot_aggregator.jobs import AggregateRecordService

from slot_store_stubs import (
    StubDatabaseHealthService,
    build_api_test_client,
    build_orchestrator_fixture,
    stub_build_settings,
)


class _MissingSchemaDatabaseService:
    """Test double that reaches the database but finds no record table."""

    def db_connection_label(self) -> str:
        """Return deterministic target label.

        Returns:
            str: Health target label.

        Raises:
            RuntimeError: Never raised by this test double.
        """

        return "postgresql://test"

    def db_check_health(self) -> HealthStatus:
        """Return degraded database result.

        Returns:
            HealthStatus: Degraded DB response.

        Raises:
            ConnectionError: Never raised by this test double.
        """

        return HealthStatus(status="degraded", detail="aggregate_record table missing")


class _FailingDatabaseService:
    """Test double that simulates a database connectivity failure."""

    def db_connection_label(self) -> str:
        """Return deterministic target label."""

        return "postgresql://test"

    def db_check_health(self) -> HealthStatus:
        """Raise deterministic connection error.

        Raises:
            ConnectionError: Always raised by this test double.
        """

        raise ConnectionError("database connectivity check failed")


def test_api_health_returns_success_when_database_is_available() -> None:
    """Return HTTP 200 and healthy payload when DB service reports success.

    Returns:
        None: Assertions validate response behavior.

    Raises:
        AssertionError: Raised when response does not match expected payload.
    """

    client = build_api_test_client(build_orchestrator_fixture())

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"
    assert response.json()["app"] == "up"
    assert response.json()["database"] == "ok"
    assert response.json()["target"] == "postgresql://test"


def test_api_health_reports_degraded_when_schema_is_missing() -> None:
    """Return HTTP 200 with degraded status when the table has not been migrated."""

    client = build_api_test_client(build_orchestrator_fixture(), db_health_service=_MissingSchemaDatabaseService())

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["database"] == "degraded"


def test_api_health_returns_service_unavailable_when_database_is_down() -> None:
    """Return HTTP 503 and degraded payload when DB service reports failure.

    Returns:
        None: Assertions validate response behavior.

    Raises:
        AssertionError: Raised when response does not match expected payload.
    """

    client = build_api_test_client(build_orchestrator_fixture(), db_health_service=_FailingDatabaseService())

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"
    assert response.json()["app"] == "up"
    assert response.json()["database"] == "down"
    assert "connectivity" in response.json()["detail"]


def test_api_exposes_only_health_record_and_job_routes() -> None:
    """Serve no routes beyond health, records and jobs."""

    client = build_api_test_client(build_orchestrator_fixture())

    route_paths = {route.path for route in client.app.routes if getattr(route, "methods", None)}

    assert {"/health", "/records", "/records/{record_id}", "/jobs", "/jobs/{job_handle_id}/status"}.issubset(route_paths)
    assert "/" not in route_paths
    assert client.get("/").status_code == 404


def test_api_shutdown_runs_release_callbacks_in_order() -> None:
    """Run every shutdown callback once when the application stops.

    Returns:
        None: Assertions validate lifespan shutdown.

    Raises:
        AssertionError: Raised when callbacks are skipped or reordered.
    """

    fixture = build_orchestrator_fixture()
    released: list[str] = []
    application = create_api_application(
        stub_build_settings(),
        StubDatabaseHealthService(),
        AggregateRecordService(record_repository=fixture.repository, max_slot_count=3),
        fixture.orchestrator,
        shutdown_callbacks=(lambda: released.append("provider"), lambda: released.append("engine")),
    )

    with TestClient(application) as client:
        assert client.get("/health").status_code == 200
        assert released == []

    assert released == ["provider", "engine"]
