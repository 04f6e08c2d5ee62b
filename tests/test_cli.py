import json
import pathlib

import pytest
from click.testing import CliRunner

from geyser_indexer import __version__
from geyser_indexer.cli import cli
from geyser_indexer.config import settings
from geyser_indexer.database.operations import create_new_sqlite_database


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


def test_cli_help(runner: CliRunner):
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    for command in ("config", "database", "pool", "update"):
        assert command in result.output


def test_cli_version(runner: CliRunner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_config_show_default(runner: CliRunner):
    result = runner.invoke(cli, ["config", "show"])
    assert result.exit_code == 0
    assert "[database]" in result.output
    assert "[indexer]" in result.output


def test_cli_config_show_json(runner: CliRunner):
    result = runner.invoke(cli, ["config", "show", "--json"])
    assert result.exit_code == 0
    shown = json.loads(result.output)
    assert shown["indexer"]["chain_id"] == 1
    assert shown["indexer"]["pricing_min_tvl"] == "1000"


def test_cli_config_show_toml(runner: CliRunner):
    result = runner.invoke(cli, ["config", "show", "--toml"])
    assert result.exit_code == 0
    assert "[database]" in result.output


def test_cli_database_reset(runner: CliRunner):
    result = runner.invoke(cli, ["database", "reset"], input="n")
    assert result.exit_code == 1

    result = runner.invoke(cli, ["database", "reset"], input="")
    assert result.exit_code == 1


def test_cli_pool_list_empty(runner: CliRunner):
    result = runner.invoke(cli, ["pool", "list"])
    assert result.exit_code == 0
    assert "No pools registered." in result.output


def test_cli_pool_add_rejects_unknown_version(runner: CliRunner):
    result = runner.invoke(
        cli, ["pool", "add", "0x1111111111111111111111111111111111111111", "--version", "2"]
    )
    assert result.exit_code == 2


def test_cli_update_without_pools(runner: CliRunner):
    result = runner.invoke(cli, ["update", "--no-progress"])
    assert result.exit_code == 0
    assert "No pools registered." in result.output


@pytest.fixture
def database_path(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> pathlib.Path:
    database_path = tmp_path / "geyser_indexer.db"
    monkeypatch.setattr(settings.database, "path", database_path)
    create_new_sqlite_database(database_path)
    return database_path


def test_cli_database_backup(runner: CliRunner, database_path: pathlib.Path):
    backup_path = database_path.with_suffix(".db.bak")

    result = runner.invoke(cli, ["database", "backup"])
    assert result.exit_code == 0
    assert str(backup_path) in result.output
    assert backup_path.exists()

    # An existing backup is only replaced after confirmation
    backup_path.write_bytes(b"stale")
    result = runner.invoke(cli, ["database", "backup"], input="n")
    assert result.exit_code == 1
    assert backup_path.read_bytes() == b"stale"

    result = runner.invoke(cli, ["database", "backup"], input="y")
    assert result.exit_code == 0
    assert backup_path.read_bytes() != b"stale"

    backup_path.write_bytes(b"stale")
    result = runner.invoke(cli, ["database", "backup", "--overwrite"])
    assert result.exit_code == 0
    assert backup_path.read_bytes() != b"stale"


def test_cli_database_compact(runner: CliRunner, database_path: pathlib.Path):
    result = runner.invoke(cli, ["database", "compact"])
    assert result.exit_code == 0
    assert f"Compacted {database_path}" in result.output


def test_cli_database_status(runner: CliRunner, database_path: pathlib.Path):
    result = runner.invoke(cli, ["database", "status"])
    assert result.exit_code == 0
    assert "pools: 0" in result.output
    assert "indexed through block: None" in result.output


@pytest.mark.usefixtures("database_path")
def test_cli_database_upgrade_at_head(runner: CliRunner):
    result = runner.invoke(cli, ["database", "upgrade"])
    assert result.exit_code == 0
    assert "already at the latest revision" in result.output


@pytest.mark.parametrize("command", ["backup", "compact", "status", "upgrade"])
def test_cli_database_commands_without_database(
    runner: CliRunner, tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch, command: str
):
    monkeypatch.setattr(settings.database, "path", tmp_path / "missing.db")

    result = runner.invoke(cli, ["database", command])
    assert result.exit_code == 1
    assert "No database found" in result.output
