import click

from geyser_indexer.version import __version__


@click.group()
@click.version_option(version=__version__)
def cli() -> None: ...


from . import config, database, pool, update  # noqa: F401, E402
