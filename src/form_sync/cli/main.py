import asyncio
import logging
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from form_sync.bootstrap import setup_database, sync_account
from form_sync.config import DEFAULT_DATABASE, DEFAULT_SCHEMA, SyncConfig
from form_sync.db.store import SQLiteStore
from form_sync.errors import AccountNotFoundError, FormSyncError
from form_sync.host import JSONAccountSource
from form_sync.metrics import configure_logging, get_registry
from form_sync.orchestrator import SyncOrchestrator

app = typer.Typer(help="Form Sync CLI")
console = Console()
logger = logging.getLogger("form_sync.cli")


@app.callback()
def callback():
    """Mirror form definitions and records into relational tables."""


@app.command()
def sync(
    org: Optional[str] = typer.Option(None, "--org", help="Organization to sync"),
    database: str = typer.Option(
        DEFAULT_DATABASE, "--database", envvar="FORM_SYNC_DATABASE", help="Path to SQLite database"
    ),
    schema: str = typer.Option(
        DEFAULT_SCHEMA, "--schema", envvar="FORM_SYNC_SCHEMA", help="Schema holding the tables"
    ),
    source: Optional[str] = typer.Option(
        None, "--source", envvar="FORM_SYNC_SOURCE", help="Organization export (JSON)"
    ),
    debug: bool = typer.Option(False, "--debug", help="Echo SQL and log ignored failures"),
    setup: bool = typer.Option(False, "--setup", help="Create the database and exit"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit structured JSON logs"),
):
    """Rebuild every active form of an organization."""
    configure_logging(level="DEBUG" if debug else "WARNING", json_format=json_logs)

    if setup:
        path = asyncio.run(setup_database(database))
        console.print(f"[green]Created database {path}[/green]")
        return

    if not org:
        console.print("[red]--org is required[/red]")
        raise typer.Exit(code=1)
    if not source:
        console.print("[red]--source is required[/red]")
        raise typer.Exit(code=1)
    if schema != DEFAULT_SCHEMA:
        console.print(
            f"[red]Unsupported schema '{escape(schema)}': tables are created in "
            f"the '{DEFAULT_SCHEMA}' database[/red]"
        )
        raise typer.Exit(code=1)

    store = SQLiteStore(database, debug=debug)
    orchestrator = SyncOrchestrator(store, SyncConfig(schema=schema, debug=debug))

    try:
        with console.status(f"Syncing {escape(org)}...") as status:
            def progress_factory(form):
                def report(count: int) -> None:
                    status.update(f"{escape(form.name)} : {count} records")
                return report

            summary = asyncio.run(
                _run(orchestrator, JSONAccountSource(source), org, progress_factory)
            )
    except AccountNotFoundError as e:
        console.print(f"[red]{escape(e.message)}[/red]")
        raise typer.Exit(code=1)
    except FormSyncError as e:
        logger.debug("Sync failed", exc_info=True)
        console.print(f"[red]Sync failed: {escape(str(e))}[/red]")
        raise typer.Exit(code=1)

    table = Table(title=f"Synced {escape(org)}")
    table.add_column("Form", style="cyan")
    table.add_column("Records", style="magenta", justify="right")
    for name, count in summary.items():
        table.add_row(escape(name), str(count))
    console.print(table)

    _print_metrics()


async def _run(orchestrator, source, org, progress_factory):
    try:
        return await sync_account(orchestrator, source, org, progress_factory)
    finally:
        await orchestrator.close()


def _print_metrics():
    table = Table(title="Metrics")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="magenta", justify="right")
    for metric in get_registry().collect_all():
        if metric.name.endswith("_bucket"):
            continue
        labels = ",".join(f"{k}={v}" for k, v in metric.labels.items())
        name = f"{metric.name}{{{labels}}}" if labels else metric.name
        table.add_row(name, f"{metric.value:g}")
    console.print(table)


def main():
    app()


if __name__ == "__main__":
    main()
