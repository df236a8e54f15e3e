from typing import Optional

from src.config import Settings, get_settings
from src.db.interfaces.base import BaseDatabase
from src.db.interfaces.postgresql import PostgreSQLDatabase, PostgreSQLSettings


def make_database(settings: Optional[Settings] = None) -> BaseDatabase:
    """Factory function to create and start the configuration database."""
    # Register models on the declarative base before tables are created
    import src.models.index_configuration  # noqa: F401

    if settings is None:
        settings = get_settings()
    database = PostgreSQLDatabase(
        PostgreSQLSettings(
            database_url=settings.postgres_database_url,
            echo_sql=settings.postgres_echo_sql,
            pool_size=settings.postgres_pool_size,
            max_overflow=settings.postgres_max_overflow,
        )
    )
    database.startup()
    return database
