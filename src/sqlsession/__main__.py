"""CLI entry point for sqlsession.

Runs single statements or batches through a session against a
SQLite database file.
"""

import json
from pathlib import Path
from typing import Any

import click
import yaml

from sqlsession import __version__

config_option = click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
tag_option = click.option("--tag", "tags", multiple=True, help="Tag attached to logs and failure reports")
timeout_option = click.option("--timeout", type=int, default=None, help="Query timeout in seconds")


def _parse_param(text: str) -> Any:
    """Read a command-line parameter as a YAML scalar (18 -> int, null -> None)."""
    return yaml.safe_load(text) if text else text


def _setup(config: Path | None) -> None:
    from sqlsession.config.loader import load_config
    from sqlsession.errors import ConfigurationError
    from sqlsession.settings import configure
    from sqlsession.utils.logging import configure_logging

    try:
        cfg = load_config(config)
    except (ConfigurationError, FileNotFoundError) as e:
        raise click.ClickException(str(e)) from e
    configure(cfg)
    configure_logging(cfg.logging)


@click.group()
@click.version_option(version=__version__)
def cli() -> None:
    """Session-scoped SQL execution.

    Runs parameterized statements against a SQLite database
    through a read-only or auto-commit session.
    """
    pass


@cli.command()
@click.argument("database", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("sql")
@click.argument("params", nargs=-1)
@config_option
@click.option("--fetch-size", type=int, default=None, help="Rows fetched per round trip")
@timeout_option
@tag_option
def query(
    database: Path,
    sql: str,
    params: tuple[str, ...],
    config: Path | None,
    fetch_size: int | None,
    timeout: int | None,
    tags: tuple[str, ...],
) -> None:
    """Run a query in a read-only session and print rows as JSON lines."""
    from sqlsession.adapters.sqlite import open_sqlite_session

    _setup(config)
    with open_sqlite_session(database, read_only=True) as session:
        session.set_fetch_size(fetch_size).set_query_timeout(timeout).set_tags(*tags)
        session.foreach(
            sql,
            *[_parse_param(p) for p in params],
            fn=lambda row: click.echo(json.dumps(row.to_dict(), default=str)),
        )


@cli.command()
@click.argument("database", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("sql")
@click.argument("params", nargs=-1)
@config_option
@click.option("--return-key", "return_key", default=None, help="Print the generated key of this column (or 1-based index)")
@timeout_option
@tag_option
def update(
    database: Path,
    sql: str,
    params: tuple[str, ...],
    config: Path | None,
    return_key: str | None,
    timeout: int | None,
    tags: tuple[str, ...],
) -> None:
    """Run a mutating statement in an auto-commit session."""
    from sqlsession.adapters.sqlite import open_sqlite_session

    _setup(config)
    values = [_parse_param(p) for p in params]
    with open_sqlite_session(database) as session:
        session.set_query_timeout(timeout).set_tags(*tags)
        if return_key is None:
            click.echo(f"Updated {session.update(sql, *values)} row(s)")
            return
        key: str | int = int(return_key) if return_key.isdigit() else return_key
        click.echo(f"Generated key: {session.update_and_return_specified_generated_key(sql, *values, key=key)}")


@cli.command()
@click.argument("database", type=click.Path(dir_okay=False, path_type=Path))
@click.argument("sql")
@click.argument("rows_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@config_option
@click.option("--return-keys", is_flag=True, help="Print generated keys instead of counts")
@timeout_option
@tag_option
def batch(
    database: Path,
    sql: str,
    rows_file: Path,
    config: Path | None,
    return_keys: bool,
    timeout: int | None,
    tags: tuple[str, ...],
) -> None:
    """Run SQL once per parameter row listed in a YAML or JSON file."""
    from sqlsession.adapters.sqlite import open_sqlite_session

    _setup(config)
    with rows_file.open() as f:
        rows = yaml.safe_load(f) or []
    if not isinstance(rows, list) or not all(isinstance(r, list) for r in rows):
        raise click.BadParameter("must contain a list of parameter lists", param_hint="ROWS_FILE")

    with open_sqlite_session(database) as session:
        session.set_query_timeout(timeout).set_tags(*tags)
        if return_keys:
            keys = session.batch_and_return_generated_key(sql, rows)
            click.echo(f"Generated keys: {', '.join(str(k) for k in keys)}")
        else:
            counts = session.batch(sql, rows)
            click.echo(f"Executed {len(counts)} statement(s)")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
