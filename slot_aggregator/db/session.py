"""Database engine construction.

Every SQLAlchemy engine in the service is created here so pool behavior stays
consistent across the API process, CLI commands and migrations tooling.
"""

from sqlalchemy import Engine, create_engine


def db_create_engine(database_url: str, pool_size: int = 5, max_overflow: int = 10) -> Engine:
    """Create the SQLAlchemy engine for aggregate record access.

    Args:
        database_url: SQLAlchemy database URL.
        pool_size: Persistent pooled connections kept open.
        max_overflow: Extra connections allowed under burst polling load.

    Returns:
        Engine: Configured SQLAlchemy engine with pre-ping enabled.

    Raises:
        ValueError: Raised when the database URL is blank or pool limits are invalid.
    """

    if not database_url.strip():
        raise ValueError("database_url must not be blank")
    if pool_size < 1:
        raise ValueError("pool_size must be >= 1")
    if max_overflow < 0:
        raise ValueError("max_overflow must be >= 0")

    return create_engine(database_url, pool_pre_ping=True, pool_size=pool_size, max_overflow=max_overflow)
