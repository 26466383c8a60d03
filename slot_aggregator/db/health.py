"""Database connectivity check used by the health endpoint."""

import logging

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from slot_aggregator.domain import HealthStatus

from .interfaces import DatabaseHealthPort

logger = logging.getLogger(__name__)


class SQLAlchemyDatabaseHealthService(DatabaseHealthPort):
    """Check PostgreSQL reachability and the presence of the aggregate table."""

    def __init__(self, engine: Engine):
        """Initialize database health service.

        Args:
            engine: SQLAlchemy engine used for connectivity checks.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_connection_label(self) -> str:
        """Return the engine URL with the password masked."""

        return self._engine.url.render_as_string(hide_password=True)

    def db_check_health(self) -> HealthStatus:
        """Run a trivial query and confirm the aggregate table is migrated.

        Returns:
            HealthStatus: `ok` when reachable and migrated, `degraded` when the table is missing.

        Raises:
            ConnectionError: Raised when the database cannot be reached.
        """

        try:
            with self._engine.connect() as connection:
                table_name = connection.execute(text("SELECT to_regclass('aggregate_record')")).scalar()
        except SQLAlchemyError as error:
            logger.warning("database health check failed target=%s", self.db_connection_label())
            raise ConnectionError("database connectivity check failed") from error

        if table_name is None:
            return HealthStatus(status="degraded", detail="aggregate_record table is missing; run migrations")
        return HealthStatus(status="ok", detail="database connectivity verified")
