"""
DocumentDB Command-Line Interface

Runs one-off operations against a DocumentDB account: list databases and
collections, query documents, create and delete resources. Results are
written to stdout as JSON, logs go to stderr.
"""

import sys
import json
import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

import click
from pydantic import BaseModel, ValidationError

from documentdb import __version__
from documentdb.core.config_manager import ClientConfig, ConfigManager
from documentdb.core.logging_config import setup_logging
from documentdb.documentdb import DocumentDB
from documentdb.exceptions import DocumentDBError
from documentdb.models import Query

logger = logging.getLogger("documentdb.cli")


def _to_json(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(value, (list, tuple)):
        return [_to_json(item) for item in value]
    return value


def _echo(value: Any) -> None:
    click.echo(json.dumps(_to_json(value), indent=2))


def _parse_params(raw: Tuple[str, ...]) -> Dict[str, Any]:
    """Parse ``@name=value`` pairs; values are JSON-decoded when possible."""
    params: Dict[str, Any] = {}
    for item in raw:
        name, sep, value = item.partition("=")
        if not sep or not name.startswith("@"):
            raise click.BadParameter(f"expected @name=value, got '{item}'", param_hint="--param")
        try:
            params[name] = json.loads(value)
        except ValueError:
            params[name] = value
    return params


def _run(ctx: click.Context, operation: Callable[[DocumentDB], Awaitable[Any]]) -> None:
    """Run one API call and print its result, exiting with 1 on failure."""
    config: ClientConfig = ctx.obj["config"]
    if not config.url:
        click.echo("[ERROR] No account URL configured (--url or DOCUMENTDB_URL)", err=True)
        sys.exit(1)

    async def runner() -> Any:
        async with DocumentDB.from_config(config) as api:
            return await operation(api)

    try:
        result = asyncio.run(runner())
    except (DocumentDBError, ValueError) as e:
        logger.debug(f"Command failed: {e!r}")
        click.echo(f"[ERROR] {e}", err=True)
        sys.exit(1)

    if result is not None:
        _echo(result)


@click.group()
@click.version_option(version=__version__, prog_name="documentdb")
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file (YAML or JSON)",
)
@click.option("--url", help="Account endpoint, e.g. https://account.documents.azure.com")
@click.option("--master-key", help="Base64-encoded master key")
@click.option("--max-retries", type=int, help="Retries for throttled or unavailable responses")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level",
)
@click.pass_context
def cli(
    ctx,
    config_file: Optional[Path],
    url: Optional[str],
    master_key: Optional[str],
    max_retries: Optional[int],
    log_level: Optional[str],
):
    """
    DocumentDB - Azure Cosmos DB SQL API client

    Connection settings come from the config file, DOCUMENTDB_* environment
    variables and the options below, in increasing order of precedence.
    """
    ctx.ensure_object(dict)

    overrides: Dict[str, Any] = {
        "url": url,
        "master_key": master_key,
        "max_retries": max_retries,
    }
    if log_level:
        overrides["logging"] = {"level": log_level.upper()}

    try:
        config = ConfigManager().load(
            config_file=str(config_file) if config_file else None,
            cli_overrides=overrides,
        )
    except (ValidationError, ValueError) as e:
        click.echo(f"[ERROR] Invalid configuration: {e}", err=True)
        sys.exit(1)

    setup_logging(
        level=config.logging.level,
        format_type=config.logging.format,
        log_file=config.logging.file,
        rotation_size=config.logging.rotation_size,
        rotation_count=config.logging.rotation_count,
        module_levels=config.logging.module_levels,
    )
    ctx.obj["config"] = config


@cli.command("list-databases")
@click.pass_context
def list_databases(ctx):
    """List all databases of the account."""
    _run(ctx, lambda api: api.read_databases())


@cli.command("list-collections")
@click.argument("db_link")
@click.pass_context
def list_collections(ctx, db_link: str):
    """
    List the collections of a database.

    DB_LINK is the database self link, e.g. dbs/Xq0AAA==/
    """
    _run(ctx, lambda api: api.read_collections(db_link))


@cli.command()
@click.argument("coll_link")
@click.argument("sql")
@click.option("--param", "-p", "params", multiple=True, help="Query parameter as @name=value")
@click.option("--continuation", default="", help="Continuation token from a previous page")
@click.pass_context
def query(ctx, coll_link: str, sql: str, params: Tuple[str, ...], continuation: str):
    """
    Query the documents of a collection.

    Examples:
        documentdb query dbs/Xq0AAA==/colls/Xq0AAP8=/ "SELECT * FROM root r WHERE r.id = @id" -p @id=foo
    """
    q = Query.new(sql, _parse_params(params), token=continuation)

    async def operation(api: DocumentDB) -> Dict[str, Any]:
        docs, token = await api.query_documents(coll_link, q)
        return {"documents": _to_json(docs), "continuation": token}

    _run(ctx, operation)


@cli.command("create-database")
@click.argument("database_id")
@click.pass_context
def create_database(ctx, database_id: str):
    """Create a database with the given id."""
    _run(ctx, lambda api: api.create_database({"id": database_id}))


@cli.command()
@click.argument("link")
@click.pass_context
def delete(ctx, link: str):
    """Delete the resource at LINK (any self link)."""

    async def operation(api: DocumentDB) -> Dict[str, Any]:
        await api.client.delete(link)
        return {"deleted": link}

    _run(ctx, operation)


def main():
    """Main entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
