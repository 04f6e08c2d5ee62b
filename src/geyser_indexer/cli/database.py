import click
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from geyser_indexer.cli import cli
from geyser_indexer.config import settings
from geyser_indexer.database.operations import (
    backup_sqlite_database,
    compact_sqlite_database,
    create_new_sqlite_database,
    get_database_revisions,
    upgrade_existing_sqlite_database,
)
from geyser_indexer.database.store import EntityStore
from geyser_indexer.exceptions import BackupExists
from geyser_indexer.version import __version__


def _require_database() -> None:
    if not settings.database.path.exists():
        msg = f"No database found at {settings.database.path}."
        raise click.ClickException(msg)


@cli.group()
def database() -> None:
    """
    Database commands
    """


@database.command("backup")
@click.option(
    "--overwrite",
    is_flag=True,
    help="Replace an existing backup without asking.",
)
def database_backup(*, overwrite: bool) -> None:
    """
    Copy the database to a .bak file beside it.
    """

    _require_database()
    try:
        backup_path = backup_sqlite_database(settings.database.path)
    except BackupExists as exc:
        if not overwrite and not click.confirm(
            f"A backup already exists at {exc.path}. Replace it?",
            default=False,
        ):
            raise click.Abort from None
        exc.path.unlink()
        backup_path = backup_sqlite_database(settings.database.path)

    click.echo(f"Backed up {settings.database.path} to {backup_path}")


@database.command("reset")
def database_reset() -> None:
    """
    Remove and recreate the database.
    """

    if not click.confirm(
        f"All indexed pools, positions and history in {settings.database.path} will be removed "
        f"and an empty database created with the schema of {__package__} {__version__}. "
        "Do you want to proceed?",
        default=False,
    ):
        raise click.Abort

    create_new_sqlite_database(settings.database.path)
    click.echo("Database reset. Register pools again with 'geyser-indexer pool add'.")


@database.command("upgrade")
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
def database_upgrade(*, force: bool) -> None:
    """
    Upgrade the database to the latest schema.
    """

    _require_database()
    current_revision, latest_revision = get_database_revisions(settings.database.path)
    if current_revision == latest_revision:
        click.echo(f"Database is already at the latest revision ({latest_revision}).")
        return

    if not force and not click.confirm(
        f"The database at {settings.database.path} will be upgraded from revision "
        f"{current_revision} to {latest_revision}. Do you want to proceed?",
        default=False,
    ):
        raise click.Abort

    upgrade_existing_sqlite_database()


@database.command("compact")
def database_compact() -> None:
    """
    Rebuild the database file to release unused space.
    """

    _require_database()
    size_before, size_after = compact_sqlite_database(settings.database.path)

    click.echo(f"Compacted {settings.database.path}: {size_before:,} -> {size_after:,} bytes")


@database.command("status")
def database_status() -> None:
    """
    Show the schema revision and indexing progress of the database.
    """

    _require_database()
    current_revision, latest_revision = get_database_revisions(settings.database.path)

    engine = create_engine(f"sqlite:///{settings.database.path.absolute()}")
    with Session(engine) as session:
        pools = EntityStore(session).get_pools()
        indexed_blocks = [
            pool.last_update_block for pool in pools if pool.last_update_block is not None
        ]
    engine.dispose()

    click.echo(f"path: {settings.database.path}")
    click.echo(f"revision: {current_revision} (latest {latest_revision})")
    click.echo(f"pools: {len(pools)}")
    click.echo(f"indexed through block: {min(indexed_blocks) if indexed_blocks else None}")
