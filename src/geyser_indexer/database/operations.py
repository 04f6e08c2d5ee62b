import pathlib
import sqlite3

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import URL, create_engine, text
from sqlalchemy.orm import Session, scoped_session, sessionmaker

from geyser_indexer.config import settings
from geyser_indexer.database.models import Base
from geyser_indexer.exceptions import BackupExists, GeyserIndexerValueError
from geyser_indexer.logging import logger
from geyser_indexer.version import __version__


def _require_database(db_path: pathlib.Path) -> None:
    if not db_path.exists():
        raise GeyserIndexerValueError(
            message=f"No database found at {db_path}. Run 'geyser-indexer database reset' first."
        )


def _checkpoint_wal(db_path: pathlib.Path) -> None:
    """
    Fold the write-ahead log into the main database file and truncate it.
    """

    engine = create_engine(f"sqlite:///{db_path.absolute()}")
    with engine.connect() as connection:
        connection.execute(text("PRAGMA wal_checkpoint(TRUNCATE);"))
    engine.dispose()


def backup_sqlite_database(db_path: pathlib.Path) -> pathlib.Path:
    """
    Copy the database to `<name>.bak` beside it using SQLite's online backup API. Returns the
    backup path.
    """

    _require_database(db_path)

    backup_path = db_path.with_suffix(db_path.suffix + ".bak")
    if backup_path.exists():
        raise BackupExists(path=backup_path)

    _checkpoint_wal(db_path)
    source = sqlite3.connect(db_path)
    destination = sqlite3.connect(backup_path)
    try:
        source.backup(destination)
    finally:
        destination.close()
        source.close()

    logger.info(f"Backed up SQLite database at {db_path} to {backup_path}")
    return backup_path


def create_new_sqlite_database(db_path: pathlib.Path) -> None:
    if db_path.exists():
        db_path.unlink()

    engine = create_engine(
        f"sqlite:///{db_path.absolute()}",
    )
    with engine.connect() as connection:
        assert (
            connection.execute(
                text("PRAGMA journal_mode=WAL;"),
            ).scalar()
            == "wal"
        )
        connection.execute(
            text("PRAGMA auto_vacuum=FULL;"),
        )

        Base.metadata.create_all(bind=engine)
        connection.execute(
            text("VACUUM;"),
        )

        logger.info(f"Initialized new SQLite database at {db_path}")
        command.stamp(get_alembic_config(db_path), "head")


def compact_sqlite_database(db_path: pathlib.Path) -> tuple[int, int]:
    """
    Rebuild the database file without free pages. Returns the file size in bytes before and after.
    """

    _require_database(db_path)

    _checkpoint_wal(db_path)
    size_before = db_path.stat().st_size

    engine = create_engine(f"sqlite:///{db_path.absolute()}")
    with engine.connect().execution_options(isolation_level="AUTOCOMMIT") as connection:
        connection.execute(text("VACUUM;"))
    engine.dispose()

    _checkpoint_wal(db_path)
    size_after = db_path.stat().st_size

    logger.info(f"Compacted SQLite database at {db_path}: {size_before} -> {size_after} bytes")
    return size_before, size_after


def upgrade_existing_sqlite_database() -> None:
    command.upgrade(get_alembic_config(), "head")
    logger.info("Updated existing SQLite database.")


def get_scoped_sqlite_session(database_path: pathlib.Path) -> scoped_session[Session]:
    return scoped_session(
        session_factory=sessionmaker(
            bind=create_engine(
                URL.create(
                    drivername="sqlite",
                    database=str(database_path.absolute()),
                )
            )
        )
    )


def get_alembic_config(db_path: pathlib.Path | None = None) -> Config:
    if db_path is None:
        db_path = settings.database.path

    cfg = Config()
    cfg.set_main_option("sqlalchemy.url", f"sqlite:///{db_path.absolute()}")
    cfg.set_main_option("script_location", "geyser_indexer:migrations")

    return cfg


def get_database_revisions(db_path: pathlib.Path) -> tuple[str | None, str | None]:
    """
    Get the (current, latest) Alembic revisions for the database at the given path.
    """

    engine = create_engine(f"sqlite:///{db_path.absolute()}")
    with engine.connect() as connection:
        current_revision = MigrationContext.configure(connection=connection).get_current_revision()
    latest_revision = ScriptDirectory.from_config(
        config=get_alembic_config(db_path)
    ).get_current_head()
    return current_revision, latest_revision


def ensure_database(db_path: pathlib.Path) -> None:
    """
    Create the database if it does not exist, otherwise warn if its schema is out of date.
    """

    if not db_path.exists():
        create_new_sqlite_database(db_path=db_path)
        return

    current_revision, latest_revision = get_database_revisions(db_path)
    if current_revision is not None and current_revision != latest_revision:
        logger.warning(
            f"The current database revision ({current_revision}) does not match the latest "
            f"({latest_revision}) for {__package__} version {__version__}!"
            "\n"
            "Database-related features may raise exceptions if you continue. Perform database "
            "migrations with 'geyser-indexer database upgrade'."
        )
