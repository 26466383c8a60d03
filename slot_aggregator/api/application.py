"""FastAPI application factory for the slot aggregation service."""

from collections.abc import AsyncIterator, Callable, Sequence
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from slot_aggregator.config import AppSettings
from slot_aggregator.db import DatabaseHealthPort
from slot_aggregator.jobs import AggregateRecordService, SlotJobOrchestratorPort

from .access_policy import HeaderOwnerAccessPolicy, RecordAccessPolicyPort
from .payloads import api_error_response
from .routers import api_create_health_router, api_create_jobs_router, api_create_records_router

logger = logging.getLogger(__name__)


def create_api_application(
    settings: AppSettings,
    db_health_service: DatabaseHealthPort,
    record_service: AggregateRecordService,
    slot_job_orchestrator: SlotJobOrchestratorPort,
    access_policy: RecordAccessPolicyPort | None = None,
    shutdown_callbacks: Sequence[Callable[[], None]] = (),
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings.
        db_health_service: Database health service used by health endpoints.
        record_service: Record create/read service.
        slot_job_orchestrator: Slot submission and polling orchestrator.
        access_policy: Optional record access policy; defaults to the owner header policy.
        shutdown_callbacks: Resource release callables run in order when the application stops.

    Returns:
        FastAPI: Application with health, record and job routes.

    Raises:
        ValueError: Raised when routers reject their dependencies.
    """

    @asynccontextmanager
    async def api_lifespan(_application: FastAPI) -> AsyncIterator[None]:
        """Release pooled clients and connections on shutdown."""

        yield
        for shutdown_callback in shutdown_callbacks:
            shutdown_callback()
        logger.info("application shutdown released resources count=%s", len(shutdown_callbacks))

    application = FastAPI(title="Slot Aggregator", lifespan=api_lifespan)
    resolved_access_policy = access_policy or HeaderOwnerAccessPolicy(
        owner_header_required=settings.owner_header_required
    )

    @application.exception_handler(RequestValidationError)
    async def api_request_validation_handler(_request: Request, error: RequestValidationError) -> JSONResponse:
        """Answer malformed bodies and query strings with the 400 error envelope."""

        first_error = error.errors()[0] if error.errors() else {}
        location = ".".join(str(part) for part in first_error.get("loc", ()))
        message = f"{location}: {first_error.get('msg', 'invalid request')}" if location else "invalid request"
        return api_error_response(status.HTTP_400_BAD_REQUEST, "INVALID_REQUEST", message)

    application.include_router(api_create_health_router(db_health_service=db_health_service))
    application.include_router(
        api_create_records_router(record_service=record_service, access_policy=resolved_access_policy)
    )
    application.include_router(api_create_jobs_router(slot_job_orchestrator=slot_job_orchestrator))

    return application
