"""
Command-line interface for Cosmos DB Manager.

Commands:
    config-init                 Write a commented sample configuration file
    accounts                    List configured Azure accounts
    servers                     List configured servers
    connect SERVER              Run the connection pipeline for a server
    account-info SERVER         Show the database account summary
    databases SERVER            List databases with throughput and usage
    collections SERVER DATABASE List collections with counts and shard keys
    list-databases SERVER       List database names over a live connection
    list-collections SERVER DB  List collection names over a live connection
    browse SERVER               List every database with its collections
    drop-database SERVER DB     Drop a database
    drop-collection SERVER DB C Drop a collection
"""

import asyncio
import functools
import sys
from pathlib import Path
from typing import Any, Callable, Coroutine, Optional

import click
import structlog
from rich.console import Console
from rich.table import Table

from .app import CosmosDbManagerApp
from .config import ConfigError, create_default_config, load_config
from .config_manager import create_config_from_env, setup_logging
from .exceptions import CosmosDbManagerError
from .logging_config import configure_structlog
from .utils.connection_strings import mask_connection_string

console = Console()
logger = structlog.get_logger(__name__)


def exit_with_error(message: str, code: int = 1) -> None:
    """Exit with error message."""
    click.echo(f"Error: {message}", err=True)
    sys.exit(code)


def async_command(f: Callable[..., Coroutine[Any, Any, Any]]) -> Callable[..., Any]:
    """Run an async click command and turn pipeline errors into exit code 1."""

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return asyncio.run(f(*args, **kwargs))
        except CosmosDbManagerError as e:
            logger.debug("Command failed", error=e.to_dict())
            exit_with_error(e.message)
        except ConfigError as e:
            exit_with_error(str(e))

    return wrapper


def _create_app(ctx: click.Context) -> CosmosDbManagerApp:
    profiles = load_config(ctx.obj.get("config_path"))
    return ctx.obj["app_factory"](profiles, config=ctx.obj["config"])


def _format_kb(value: Optional[float]) -> str:
    return "" if value is None else f"{value:,.2f}"


def _format_count(value: Optional[float]) -> str:
    return "" if value is None else f"{int(value):,}"


@click.group()
@click.option(
    "--log-level",
    default=None,
    help="Logging level (DEBUG, INFO, WARNING, ERROR); defaults to COSMOSDB_MANAGER_LOG_LEVEL",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to the accounts/servers YAML file",
)
@click.pass_context
def cli(ctx: click.Context, log_level: Optional[str], config_path: Optional[Path]) -> None:
    """Cosmos DB Manager - connect to Mongo and NoSQL API Cosmos DB accounts."""
    ctx.ensure_object(dict)
    try:
        config = create_config_from_env(log_level=log_level)
    except ValueError as e:
        exit_with_error(str(e))

    setup_logging(config.logging)
    configure_structlog()

    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path
    ctx.obj.setdefault("app_factory", CosmosDbManagerApp)


@cli.command("config-init")
@click.option("--force", is_flag=True, help="Overwrite an existing configuration file")
@click.pass_context
def config_init(ctx: click.Context, force: bool) -> None:
    """Write a commented sample configuration file."""
    try:
        path = create_default_config(ctx.obj.get("config_path"), force=force)
    except ConfigError as e:
        exit_with_error(str(e))
    click.echo(f"✅ Configuration written to {path}")


@cli.command()
@click.pass_context
@async_command
async def accounts(ctx: click.Context) -> None:
    """List configured Azure accounts."""
    async with _create_app(ctx) as app:
        identities = await app.list_accounts()

    if not identities:
        click.echo("No Azure accounts configured.")
        return

    table = Table(title="Azure Accounts")
    table.add_column("ID", style="cyan")
    table.add_column("Name")
    table.add_column("Auth", style="green")
    table.add_column("Tenants", style="dim")
    for identity in identities:
        table.add_row(
            identity.account_id,
            identity.display_name,
            identity.auth_kind.value,
            ", ".join(identity.tenant_ids),
        )
    console.print(table)


@cli.command()
@click.pass_context
def servers(ctx: click.Context) -> None:
    """List configured servers."""
    try:
        profiles = load_config(ctx.obj.get("config_path"))
    except ConfigError as e:
        exit_with_error(str(e))

    if not profiles.servers:
        click.echo("No servers configured. Run 'cosmosdb-manager config-init' to start.")
        return

    table = Table(title="Servers")
    table.add_column("Name", style="cyan")
    table.add_column("API")
    table.add_column("Authentication", style="green")
    table.add_column("Azure Account", style="dim")
    for server in profiles.servers:
        table.add_row(
            server.name,
            server.api.value,
            server.authentication_type.value,
            server.azure_account or "",
        )
    console.print(table)


@cli.command()
@click.argument("server")
@click.pass_context
@async_command
async def connect(ctx: click.Context, server: str) -> None:
    """Run the connection pipeline for SERVER and verify the connection."""
    async with _create_app(ctx) as app:
        result = await app.connect(server)
        result.unwrap()
        profile = app.profile(server)

    click.echo(f"✅ Connected to {server}")
    if result.is_cosmos_db:
        click.echo("   Azure Cosmos DB account")
    if not profile.is_federated:
        connection_string = profile.resolve_connection_string() or ""
        click.echo(f"   {mask_connection_string(connection_string)}")
    logger.info("Connection verified", server=server)


@cli.command("account-info")
@click.argument("server")
@click.pass_context
@async_command
async def account_info(ctx: click.Context, server: str) -> None:
    """Show the database account summary of SERVER."""
    async with _create_app(ctx) as app:
        info = await app.account_info(server)

    table = Table(title=f"Account {server}")
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    table.add_row("Status", info.server_status)
    table.add_row("Backup Policy", info.backup_policy)
    table.add_row("Consistency", info.consistency_policy)
    table.add_row("Location", info.location)
    table.add_row("Read Locations", ", ".join(info.read_locations))
    table.add_row("Endpoint", info.document_endpoint or "")
    console.print(table)


@cli.command()
@click.argument("server")
@click.pass_context
@async_command
async def databases(ctx: click.Context, server: str) -> None:
    """List the databases of SERVER."""
    async with _create_app(ctx) as app:
        infos = await app.databases(server)

    if not infos:
        click.echo(f"No databases found in {server}.")
        return

    table = Table(title=f"Databases in {server}")
    table.add_column("Name", style="cyan")
    table.add_column("Collections", justify="right")
    table.add_column("Throughput", style="green")
    table.add_column("Usage (KB)", justify="right")
    for info in infos:
        table.add_row(
            info.name,
            str(info.collection_count),
            info.throughput_setting,
            _format_kb(info.usage_size_kb),
        )
    console.print(table)


@cli.command()
@click.argument("server")
@click.argument("database")
@click.pass_context
@async_command
async def collections(ctx: click.Context, server: str, database: str) -> None:
    """List the collections of DATABASE in SERVER."""
    async with _create_app(ctx) as app:
        infos = await app.collections(server, database)

    if not infos:
        click.echo(f"No collections found in {database}.")
        return

    table = Table(title=f"Collections in {database}")
    table.add_column("Name", style="cyan")
    table.add_column("Documents", justify="right")
    table.add_column("Throughput", style="green")
    table.add_column("Usage (KB)", justify="right")
    table.add_column("Shard Key", style="dim")
    for info in infos:
        table.add_row(
            info.name,
            _format_count(info.document_count),
            info.throughput_setting,
            _format_kb(info.usage_size_kb),
            info.shard_key or "",
        )
    console.print(table)


@cli.command("list-databases")
@click.argument("server")
@click.pass_context
@async_command
async def list_databases(ctx: click.Context, server: str) -> None:
    """List the database names of SERVER over a live connection."""
    async with _create_app(ctx) as app:
        names = await app.list_databases(server)

    if not names:
        click.echo(f"No databases found in {server}.")
        return
    for name in names:
        click.echo(name)


@cli.command("list-collections")
@click.argument("server")
@click.argument("database")
@click.pass_context
@async_command
async def list_collections(ctx: click.Context, server: str, database: str) -> None:
    """List the collection names of DATABASE in SERVER over a live connection."""
    async with _create_app(ctx) as app:
        names = await app.list_collections(server, database)

    if not names:
        click.echo(f"No collections found in {database}.")
        return
    for name in names:
        click.echo(name)


@cli.command()
@click.argument("server")
@click.pass_context
@async_command
async def browse(ctx: click.Context, server: str) -> None:
    """List every database of SERVER with its collections."""
    async with _create_app(ctx) as app:
        names = await app.list_databases(server)
        contents = [(name, await app.list_collections(server, name)) for name in names]

    if not contents:
        click.echo(f"No databases found in {server}.")
        return

    table = Table(title=f"Databases in {server}")
    table.add_column("Database", style="cyan")
    table.add_column("Collections")
    for name, collection_names in contents:
        table.add_row(name, ", ".join(collection_names))
    console.print(table)


@cli.command("drop-database")
@click.argument("server")
@click.argument("database")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
@async_command
async def drop_database(ctx: click.Context, server: str, database: str, yes: bool) -> None:
    """Drop DATABASE from SERVER."""
    if not yes and not click.confirm(
        f"⚠️  Drop database {database} on {server}?", default=False
    ):
        click.echo("Cancelled.")
        return

    async with _create_app(ctx) as app:
        await app.drop_database(server, database)
    click.echo(f"✅ Dropped database {database}")
    logger.info("Database dropped", server=server, database=database)


@cli.command("drop-collection")
@click.argument("server")
@click.argument("database")
@click.argument("collection")
@click.option("--yes", is_flag=True, help="Skip confirmation")
@click.pass_context
@async_command
async def drop_collection(
    ctx: click.Context, server: str, database: str, collection: str, yes: bool
) -> None:
    """Drop COLLECTION from DATABASE in SERVER."""
    if not yes and not click.confirm(
        f"⚠️  Drop collection {database}.{collection} on {server}?", default=False
    ):
        click.echo("Cancelled.")
        return

    async with _create_app(ctx) as app:
        await app.drop_collection(server, database, collection)
    click.echo(f"✅ Dropped collection {database}.{collection}")
    logger.info("Collection dropped", server=server, database=database, collection=collection)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
