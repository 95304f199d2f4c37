"""CLI entry point for cloudstash.

Provides commands:
  - upload: Upload one or more local files into a storage folder
  - config: Show settings and manage the API token
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from cloudstash.config import (
    SERVICE_NAME,
    delete_api_token,
    find_api_token,
    get_api_token,
    load_upload_config,
    mask_token,
    store_api_token,
)
from cloudstash.models import BatchResult, SelectedFile

logger = logging.getLogger(__name__)

app = typer.Typer(
    help="cloudstash - upload files to your cloud storage",
    rich_markup_mode="rich",
)
console = Console()

# Config command group
config_app = typer.Typer(help="Manage configuration (API token)")
app.add_typer(config_app, name="config")


def _format_size(size_bytes: int) -> str:
    return f"{size_bytes / 1024 / 1024:.2f} MB"


@app.command()
def upload(
    files: Annotated[
        list[Path],
        typer.Argument(
            help="Files to upload, in upload order",
            exists=True,
            dir_okay=False,
            resolve_path=True,
        ),
    ],
    folder_id: Annotated[
        int | None,
        typer.Option("--folder", "-f", help="Destination folder id (default: root)"),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to upload_config.json"),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be uploaded without uploading"),
    ] = False,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Write debug log to ~/.cloudstash/debug.log"),
    ] = False,
) -> None:
    """Upload files one at a time: request slot, transfer, confirm.

    A failed file does not stop the others.  The storage API token is read
    from the system keyring (service: cloudstash) or CLOUDSTASH_API_TOKEN.
    """
    selection = [SelectedFile.from_path(path) for path in files]

    table = Table(title=f"{len(selection)} file(s) selected")
    table.add_column("#", justify="right")
    table.add_column("File", style="cyan", no_wrap=True)
    table.add_column("Size", justify="right")
    table.add_column("Type", style="green")
    for index, file in enumerate(selection, start=1):
        table.add_row(str(index), file.name, _format_size(file.size_bytes), file.mime_type or "-")
    console.print(table)

    if dry_run:
        return

    if debug:
        debug_dir = Path.home() / ".cloudstash"
        debug_dir.mkdir(exist_ok=True)
        fh = logging.FileHandler(debug_dir / "debug.log")
        fh.setLevel(logging.DEBUG)
        pkg_logger = logging.getLogger("cloudstash")
        pkg_logger.setLevel(logging.DEBUG)
        pkg_logger.addHandler(fh)

    config = load_upload_config(config_path)
    if not config.api_token:
        try:
            config.api_token = get_api_token()
        except RuntimeError as e:
            console.print(f"[red]{e}[/red]")
            raise typer.Exit(code=1)

    # Import upload modules here to keep CLI startup fast for config commands
    from cloudstash.upload.client import (
        ObjectTransferClient,
        StorageApiClient,
        UploadSlotClient,
    )
    from cloudstash.upload.orchestrator import UploadOrchestrator
    from cloudstash.upload.progress import UploadProgressTracker

    destination = "root" if folder_id is None else f"folder {folder_id}"
    console.print(
        Panel(
            f"Uploading [bold]{len(selection)}[/bold] file(s) to "
            f"[bold]{destination}[/bold] at {config.api_base_url}",
            title="Upload",
        )
    )

    def _show_summary(result: BatchResult) -> None:
        style = "green" if result.failed_count == 0 else "yellow"
        console.print(Panel(result.summary, title="Upload Complete", border_style=style))

    async def _run_upload() -> BatchResult | None:
        async with StorageApiClient(
            config.api_base_url,
            token=config.api_token,
            timeout=config.request_timeout_seconds,
            transfer_timeout=config.transfer_timeout_seconds,
        ) as api:
            tracker = UploadProgressTracker(selection, console=console)
            orchestrator = UploadOrchestrator(
                UploadSlotClient(api),
                ObjectTransferClient(api),
                progress=tracker,
                on_batch_complete=_show_summary,
                reset_delay_seconds=config.reset_delay_seconds,
            )
            orchestrator.add_files(selection)
            with tracker:
                return await orchestrator.start_upload(folder_id)

    result = asyncio.run(_run_upload())

    if result is not None and result.failed_count > 0:
        raise typer.Exit(code=1)


@config_app.command("set-token")
def set_token(
    token: Annotated[
        str,
        typer.Argument(help="Storage API token to store in system keyring"),
    ],
) -> None:
    """Store the storage API token in the system keyring (service: cloudstash)."""
    try:
        store_api_token(token)
    except ValueError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)
    except Exception as e:
        console.print(f"[red]Error:[/red] Failed to store token: {e}")
        raise typer.Exit(code=1)

    console.print(
        f"[green]✓[/green] Token stored as {mask_token(token.strip())} "
        f"(keyring service: {SERVICE_NAME})"
    )


@config_app.command("show")
def show_config(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", "-c", help="Path to upload_config.json"),
    ] = None,
) -> None:
    """Show the effective upload settings, with the token masked."""
    config = load_upload_config(config_path)
    stored, source = find_api_token()
    if config.api_token and config.api_token != stored:
        source = "config file"

    table = Table(title="Upload configuration", show_header=False)
    table.add_column("Setting", style="bold")
    table.add_column("Value")
    table.add_row("API URL", config.api_base_url)
    if config.api_token:
        table.add_row("Token", f"{mask_token(config.api_token)} [dim]({source})[/dim]")
    else:
        table.add_row("Token", "[yellow]not set[/yellow]")
    table.add_row("Request timeout", f"{config.request_timeout_seconds:g}s")
    table.add_row("Transfer timeout", f"{config.transfer_timeout_seconds:g}s")
    table.add_row("Reset delay", f"{config.reset_delay_seconds:g}s")
    console.print(table)

    if not config.api_token:
        console.print(
            "Set a token with: [bold]cloudstash config set-token YOUR_TOKEN[/bold]"
        )


@config_app.command("remove-token")
def remove_token() -> None:
    """Delete the stored token from the system keyring."""
    try:
        removed = delete_api_token()
    except Exception as e:
        console.print(f"[red]Error:[/red] Failed to remove token: {e}")
        raise typer.Exit(code=1)

    if removed:
        console.print(f"[green]✓[/green] Token removed (keyring service: {SERVICE_NAME})")
    else:
        console.print("[yellow]No token in keyring.[/yellow] Nothing to remove.")
