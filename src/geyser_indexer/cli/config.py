import click
import tomlkit

from geyser_indexer.cli import cli
from geyser_indexer.config import settings


@cli.group()
def config() -> None:
    """
    Configuration commands
    """


@config.command("show")
@click.option(
    "--json",
    "output_format",
    flag_value="json",
    type=str,
    help="Show configuration in JSON format",
)
@click.option(
    "--toml",
    "output_format",
    flag_value="toml",
    type=str,
    help="Show configuration in TOML format (default)",
    default=True,
)
def config_show(output_format: str) -> None:
    """
    Display the active configuration in JSON or TOML (default) format.
    """

    match output_format:
        case "json":
            click.echo(settings.model_dump_json(indent=2))
        case "toml":
            click.echo(tomlkit.dumps(settings.model_dump(mode="json")))
