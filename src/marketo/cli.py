"""Marketo CLI - diagnostics for credentials, commands and bulk imports."""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from .api.bulk import BatchStatus
from .api.client import MarketoClient
from .api.commands import load_command_table
from .config import MarketoSettings
from .errors import MarketoError

app = typer.Typer(
    name="marketo",
    help="Marketo REST API client - credentials, command table and bulk import tools",
    no_args_is_help=True,
)
console = Console()

STATUS_STYLES = {
    BatchStatus.QUEUED: "yellow",
    BatchStatus.IMPORTING: "cyan",
    BatchStatus.COMPLETE: "green",
    BatchStatus.FAILED: "red",
}


def _client() -> MarketoClient:
    return MarketoClient.from_settings(MarketoSettings())


def _fail(error: MarketoError) -> None:
    console.print(Panel(f"[red]{error.message}[/red]", title=type(error).__name__))
    raise typer.Exit(code=1)


# ============================================================================
# Command table
# ============================================================================


@app.command("commands")
def commands_list():
    """List the commands in the bundled command table."""
    table = Table(title="Marketo Commands")
    table.add_column("Command", style="cyan")
    table.add_column("Method", style="yellow", width=8)
    table.add_column("API", width=6)
    table.add_column("Path")

    for name, descriptor in sorted(load_command_table().items()):
        table.add_row(name, descriptor.http_method, descriptor.api, descriptor.path_template)

    console.print(table)


# ============================================================================
# Auth
# ============================================================================


@app.command("token")
def token_check():
    """Exchange the configured credentials for an access token."""

    async def _run():
        async with _client() as mkto:
            await mkto.credentials.get_valid_token()
            return mkto.credentials.expires_in

    try:
        expires_in = asyncio.run(_run())
    except MarketoError as e:
        _fail(e)

    console.print(
        Panel(
            f"[green]Credentials accepted.[/green]\nToken expires in {int(expires_in or 0)}s",
            title="Authentication",
        )
    )


# ============================================================================
# Bulk import
# ============================================================================


@app.command("import")
def bulk_import(
    file: Path = typer.Argument(..., help="Lead file to import"),
    format: str = typer.Option("csv", "--format", "-f", help="csv, tsv or ssv"),
    lookup_field: str = typer.Option(None, "--lookup-field", help="Field used to match leads"),
    list_id: int = typer.Option(None, "--list-id", help="Static list to add leads to"),
):
    """Submit a lead file for bulk import."""

    async def _run():
        async with _client() as mkto:
            return await mkto.bulk.submit(
                file, format=format, lookup_field=lookup_field, list_id=list_id
            )

    try:
        batch = asyncio.run(_run())
    except MarketoError as e:
        _fail(e)

    console.print(f"Batch [bold]{batch.batch_id}[/bold] {batch.status.value}")
    console.print(f"[dim]Run [bold]marketo batch {batch.batch_id}[/bold] to check progress[/dim]")


@app.command("batch")
def bulk_status(batch_id: int = typer.Argument(..., help="Batch id from 'marketo import'")):
    """Show the status of an import batch, with failures and warnings once finished."""

    async def _run():
        async with _client() as mkto:
            batch = await mkto.bulk.poll_status(batch_id)
            failures, warnings = [], []
            if batch.is_terminal:
                failures = await mkto.bulk.get_failures(batch_id)
                warnings = await mkto.bulk.get_warnings(batch_id)
            return batch, failures, warnings

    try:
        batch, failures, warnings = asyncio.run(_run())
    except MarketoError as e:
        _fail(e)

    style = STATUS_STYLES[batch.status]
    table = Table(title=f"Batch {batch.batch_id}")
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Status", f"[{style}]{batch.status.value}[/{style}]")
    table.add_row("Rows processed", str(batch.num_rows if batch.num_rows is not None else "-"))
    table.add_row("Rows failed", str(batch.num_rows_failed if batch.num_rows_failed is not None else "-"))
    table.add_row(
        "Rows with warnings",
        str(batch.num_rows_with_warning if batch.num_rows_with_warning is not None else "-"),
    )
    if batch.message:
        table.add_row("Message", batch.message)
    console.print(table)

    for title, rows in (("Failures", failures), ("Warnings", warnings)):
        if not rows:
            continue
        report = Table(title=title)
        for column in rows[0]:
            report.add_column(column)
        for row in rows:
            report.add_row(*(str(v) for v in row.values()))
        console.print(report)


# ============================================================================
# Main
# ============================================================================


@app.command()
def version():
    """Show version information."""
    from . import __version__

    console.print(f"marketo v{__version__}")


if __name__ == "__main__":
    app()
