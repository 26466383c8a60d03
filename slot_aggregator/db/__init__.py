"""Database layer package for all SQL and persistence boundaries."""

from .aggregate_record import SQLAlchemyAggregateRecordService
from .health import SQLAlchemyDatabaseHealthService
from .interfaces import (
	AggregateRecordRepositoryPort,
	DatabaseHealthPort,
	RecordCompletionState,
)
from .session import db_create_engine

__all__ = [
	"AggregateRecordRepositoryPort",
	"DatabaseHealthPort",
	"RecordCompletionState",
	"SQLAlchemyAggregateRecordService",
	"SQLAlchemyDatabaseHealthService",
	"db_create_engine",
]
