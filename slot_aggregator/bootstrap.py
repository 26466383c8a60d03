"""Application bootstrap wiring for startup validation and dependency assembly."""

from fastapi import FastAPI

from slot_aggregator.adapters import GcsObjectStorageAdapter, HttpOutputDownloader, HttpPredictionProviderAdapter
from slot_aggregator.api import HeaderOwnerAccessPolicy, create_api_application
from slot_aggregator.client import JsonFilePollStateStore, ResumablePollClient
from slot_aggregator.config import AppSettings, config_load_poll_client_settings, config_load_settings
from slot_aggregator.db import SQLAlchemyAggregateRecordService, SQLAlchemyDatabaseHealthService, db_create_engine
from slot_aggregator.jobs import (
    AggregateRecordService,
    JobStatusTranslator,
    JobSubmissionGateway,
    ResultMaterializer,
    SlotJobOrchestrator,
)


def bootstrap_create_application(settings: AppSettings | None = None) -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Args:
        settings: Optional preloaded settings.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    engine = db_create_engine(database_url=resolved_settings.database_url)
    record_repository = SQLAlchemyAggregateRecordService(engine=engine)
    provider = HttpPredictionProviderAdapter(
        api_token=resolved_settings.provider_api_token,
        model=resolved_settings.provider_model,
        base_url=resolved_settings.provider_api_base_url,
        retry_attempts=resolved_settings.provider_retry_attempts,
        retry_backoff_base_seconds=resolved_settings.provider_backoff_base_seconds,
        retry_max_backoff_seconds=resolved_settings.provider_backoff_max_seconds,
        jitter_min_multiplier=resolved_settings.provider_jitter_min_multiplier,
        jitter_max_multiplier=resolved_settings.provider_jitter_max_multiplier,
        request_timeout_seconds=resolved_settings.provider_request_timeout_seconds,
    )
    downloader = HttpOutputDownloader(
        timeout_seconds=resolved_settings.materialize_download_timeout_seconds,
        max_bytes=resolved_settings.materialize_max_bytes,
    )
    materializer = ResultMaterializer(
        downloader=downloader,
        storage=GcsObjectStorageAdapter(
            bucket_name=resolved_settings.storage_bucket_name,
            project_id=resolved_settings.storage_project_id,
            public_base_url=resolved_settings.storage_public_base_url,
            cache_control=resolved_settings.storage_cache_control,
        ),
        key_prefix=resolved_settings.storage_key_prefix,
    )
    slot_job_orchestrator = SlotJobOrchestrator(
        record_repository=record_repository,
        submission_gateway=JobSubmissionGateway(provider=provider),
        status_translator=JobStatusTranslator(provider=provider),
        result_materializer=materializer,
    )
    return create_api_application(
        settings=resolved_settings,
        db_health_service=SQLAlchemyDatabaseHealthService(engine=engine),
        record_service=AggregateRecordService(
            record_repository=record_repository,
            max_slot_count=resolved_settings.record_max_slot_count,
        ),
        slot_job_orchestrator=slot_job_orchestrator,
        access_policy=HeaderOwnerAccessPolicy(owner_header_required=resolved_settings.owner_header_required),
        shutdown_callbacks=(provider.adapter_close, downloader.adapter_close, engine.dispose),
    )


def bootstrap_create_record_service() -> AggregateRecordService:
    """Build the record service for non-HTTP command surfaces.

    Returns:
        AggregateRecordService: Record service bound to the configured database.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    settings = config_load_settings()
    engine = db_create_engine(database_url=settings.database_url)
    return AggregateRecordService(
        record_repository=SQLAlchemyAggregateRecordService(engine=engine),
        max_slot_count=settings.record_max_slot_count,
    )


def bootstrap_create_poll_client(state_file: str | None = None) -> ResumablePollClient:
    """Build the resumable poll client from `POLL_CLIENT_*` settings.

    Args:
        state_file: Optional state file override.

    Returns:
        ResumablePollClient: Configured client.

    Raises:
        SettingsLoadError: Raised when client configuration validation fails.
    """

    client_settings = config_load_poll_client_settings()
    return ResumablePollClient(
        base_url=client_settings.base_url,
        state_store=JsonFilePollStateStore(state_file or client_settings.state_file),
        interval_seconds=client_settings.interval_seconds,
        max_attempts=client_settings.max_attempts,
        request_timeout_seconds=client_settings.request_timeout_seconds,
        owner_id=client_settings.owner_id,
    )
