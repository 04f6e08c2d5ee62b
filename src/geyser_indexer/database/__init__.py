from geyser_indexer.config import settings
from geyser_indexer.database.operations import get_scoped_sqlite_session
from geyser_indexer.database.store import EntityStore

db_session = get_scoped_sqlite_session(database_path=settings.database.path)

__all__ = (
    "EntityStore",
    "db_session",
)
