"""
Notes CLI.

Command-line client for a notebook kept on this machine.
Built with Typer for type-safe commands and Rich for formatted output.

Without --user the notebook runs in guest mode and never leaves the local
storage directory. With --user it talks to the remote notes API configured
in remote.yaml, falling back to the pending queue when the API is down.

Usage:
    notesync list                         # Active notes
    notesync list --trash                 # Trashed notes
    notesync add "Groceries" -c "milk"    # New note
    notesync show <id>                    # One note
    notesync pin <id>                     # Toggle pin
    notesync trash <id>                   # Move to trash
    notesync restore <id>                 # Restore from trash
    notesync purge <id>                   # Delete a trashed note for good
    notesync empty-trash                  # Delete every trashed note
    notesync search "milk"                # Search titles and content
    notesync --user u1 sync               # Push offline writes to the API

Options:
    --user, -u        Sign in as this user id
    --verbose, -v     Enable verbose output
    --debug           Enable debug mode (detailed logging)
    --help            Show help message
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Optional, TypeVar

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from notesync.core.config import find_project_root, get_storage_directory
from notesync.core.logging import get_logger, log_with_source
from notesync.core.utils import strip_html
from notesync.schemas.base import OperationResult
from notesync.schemas.note import Note, NoteCreate
from notesync.schemas.session import AuthSession
from notesync.services.connectivity import ConnectivityMonitor, ConnectivityProbe
from notesync.services.notebook import Notebook
from notesync.storage.documents import DocumentStore, InMemoryDocumentStore
from notesync.storage.key_value import FileStorage

T = TypeVar("T")

logger = get_logger(__name__)

app = typer.Typer(
    name="notesync",
    help="Notes CLI - keep notes locally or in sync with the notes API.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

PREVIEW_LENGTH = 60


@app.callback()
def main(
    ctx: typer.Context,
    user: Optional[str] = typer.Option(
        None,
        "--user",
        "-u",
        help="Sign in as this user id (guest mode when omitted)",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output (INFO level logging)",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        "-d",
        help="Enable debug mode (DEBUG level logging)",
    ),
) -> None:
    """
    Notes CLI.

    Guest notes stay on this machine. Signed-in notes live in the notes API
    and are queued locally while it is unreachable.
    """
    ctx.obj = {"user": user}

    if debug:
        from notesync.core.logging import setup_logging
        setup_logging(level="DEBUG", format_type="console")
        console.print("[dim]Debug mode enabled[/dim]")
    elif verbose:
        from notesync.core.logging import setup_logging
        setup_logging(level="INFO", format_type="console")


def _session(ctx: typer.Context) -> AuthSession:
    user = (ctx.obj or {}).get("user")
    return AuthSession.signed_in(user) if user else AuthSession.guest()


def _remote_store(session: AuthSession) -> DocumentStore:
    if not session.is_authenticated:
        # Guest notebooks never reach the remote store.
        return InMemoryDocumentStore()
    from notesync.storage.http import HttpDocumentStore

    return HttpDocumentStore.from_config()


@asynccontextmanager
async def open_notebook(session: AuthSession, sync_on_open: bool = True) -> AsyncIterator[Notebook]:
    """Open a file-backed notebook for the session and close it on exit."""
    find_project_root()
    storage = FileStorage(get_storage_directory())
    store = _remote_store(session)
    monitor = ConnectivityMonitor(online=session.is_authenticated)
    if session.is_authenticated:
        await ConnectivityProbe(monitor, store).check_once()
        if not monitor.is_online:
            console.print("[yellow]Notes API unreachable, working offline[/yellow]")

    notebook = Notebook.from_config(storage=storage, store=store, monitor=monitor)
    notebook.sync_on_sign_in = notebook.sync_on_sign_in and sync_on_open
    try:
        opened = await notebook.open(session)
        if not opened.success:
            console.print(f"[yellow]Notes not loaded: {opened.error.message}[/yellow]")
        yield notebook
    finally:
        await notebook.close()
        await store.close()


def _unwrap(result: OperationResult[T]) -> T:
    """Return the result's data or print its error and exit."""
    if not result.success:
        console.print(f"[red]Error ({result.error.code}): {result.error.message}[/red]")
        raise typer.Exit(1)
    return result.data


def _run(
    ctx: typer.Context,
    action: Callable[[Notebook], Awaitable[None]],
    sync_on_open: bool = True,
) -> None:
    session = _session(ctx)

    async def run() -> None:
        async with open_notebook(session, sync_on_open=sync_on_open) as notebook:
            await action(notebook)

    asyncio.run(run())


def _preview(note: Note) -> str:
    text = strip_html(note.content).strip().replace("\n", " ")
    if len(text) > PREVIEW_LENGTH:
        return text[:PREVIEW_LENGTH - 1] + "…"
    return text


def _display_notes(notes: list[Note], title: str) -> None:
    if not notes:
        console.print(f"[dim]{title}: nothing here[/dim]")
        return

    table = Table(title=title, show_header=True)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Preview", style="dim")
    table.add_column("Updated")

    for note in notes:
        marker = "[yellow]*[/yellow] " if note.pinned else ""
        updated = note.last_updated.strftime("%Y-%m-%d %H:%M") if note.last_updated else "-"
        table.add_row(note.id, f"{marker}{note.title or '[dim](untitled)[/dim]'}", _preview(note), updated)

    console.print(table)


@app.command("list")
def list_notes(
    ctx: typer.Context,
    trash: bool = typer.Option(False, "--trash", "-t", help="Show the trash instead"),
) -> None:
    """
    List notes, pinned first.

    Examples:
        notesync list
        notesync list --trash
    """
    async def action(notebook: Notebook) -> None:
        if trash:
            _display_notes(notebook.trashed_notes, "Trash")
        else:
            _display_notes(notebook.notes, "Notes")

    _run(ctx, action)


@app.command()
def add(
    ctx: typer.Context,
    title: str = typer.Argument(..., help="Note title"),
    content: str = typer.Option("", "--content", "-c", help="Note body"),
    pinned: bool = typer.Option(False, "--pin", help="Pin the new note"),
) -> None:
    """
    Create a note.

    Examples:
        notesync add "Groceries" -c "milk, eggs"
    """
    async def action(notebook: Notebook) -> None:
        created = _unwrap(await notebook.create(NoteCreate(title=title, content=content, pinned=pinned)))
        log_with_source(logger, "cli", "info", "Note added", note_id=created.id)
        console.print(f"[green]✓ Created {created.id}[/green]")

    _run(ctx, action)


@app.command()
def show(
    ctx: typer.Context,
    note_id: str = typer.Argument(..., help="Note id"),
) -> None:
    """Show one note and remember it as the last opened note."""
    async def action(notebook: Notebook) -> None:
        note = _unwrap(await notebook.get(note_id))
        _unwrap(await notebook.remember_last_note(note.id))
        status = "[red]trashed[/red]" if note.deleted else "[green]active[/green]"
        if note.pinned:
            status += ", [yellow]pinned[/yellow]"
        console.print(Panel(
            f"{strip_html(note.content) or '[dim](empty)[/dim]'}\n\n"
            f"[dim]{status} | created {note.created} | updated {note.last_updated}[/dim]",
            title=note.title or "(untitled)",
            subtitle=note.id,
        ))

    _run(ctx, action)


@app.command()
def pin(
    ctx: typer.Context,
    note_id: str = typer.Argument(..., help="Note id"),
) -> None:
    """Pin or unpin a note."""
    async def action(notebook: Notebook) -> None:
        note = _unwrap(await notebook.toggle_pin(note_id))
        console.print(f"[green]✓ {'Pinned' if note.pinned else 'Unpinned'} {note.id}[/green]")

    _run(ctx, action)


@app.command()
def trash(
    ctx: typer.Context,
    note_id: str = typer.Argument(..., help="Note id"),
) -> None:
    """Move a note to the trash."""
    async def action(notebook: Notebook) -> None:
        _unwrap(await notebook.move_to_trash(note_id))
        console.print(f"[green]✓ Moved {note_id} to the trash[/green]")

    _run(ctx, action)


@app.command()
def restore(
    ctx: typer.Context,
    note_id: str = typer.Argument(..., help="Note id"),
) -> None:
    """Restore a note from the trash."""
    async def action(notebook: Notebook) -> None:
        _unwrap(await notebook.restore_from_trash(note_id))
        console.print(f"[green]✓ Restored {note_id}[/green]")

    _run(ctx, action)


@app.command()
def purge(
    ctx: typer.Context,
    note_id: str = typer.Argument(..., help="Note id"),
) -> None:
    """Permanently delete a trashed note."""
    async def action(notebook: Notebook) -> None:
        _unwrap(await notebook.permanently_delete(note_id))
        console.print(f"[green]✓ Deleted {note_id}[/green]")

    _run(ctx, action)


@app.command("empty-trash")
def empty_trash(ctx: typer.Context) -> None:
    """Permanently delete every trashed note."""
    async def action(notebook: Notebook) -> None:
        removed = _unwrap(await notebook.empty_trash())
        console.print(f"[green]✓ Removed {removed} note(s)[/green]")

    _run(ctx, action)


@app.command()
def search(
    ctx: typer.Context,
    text: str = typer.Argument(..., help="Text to look for"),
) -> None:
    """Search active notes by title and content."""
    async def action(notebook: Notebook) -> None:
        _display_notes(_unwrap(await notebook.search(text)), f"Matches for {text!r}")

    _run(ctx, action)


@app.command()
def sync(ctx: typer.Context) -> None:
    """
    Push notes written offline to the notes API.

    Examples:
        notesync --user u1 sync
    """
    session = _session(ctx)
    if not session.is_authenticated:
        console.print("[red]Error: sync needs --user[/red]")
        raise typer.Exit(1)

    async def action(notebook: Notebook) -> None:
        if notebook.is_offline:
            console.print("[red]Error: notes API unreachable[/red]")
            raise typer.Exit(1)
        report = _unwrap(await notebook.sync())
        table = Table(title="Sync", show_header=True)
        table.add_column("Result", style="cyan")
        table.add_column("Count")
        table.add_row("Synced", str(len(report.synced)))
        table.add_row("Failed", f"[red]{len(report.failed)}[/red]" if report.failed else "0")
        table.add_row("Renamed", str(len(report.remapped)))
        console.print(table)
        for old_id, new_id in report.remapped.items():
            console.print(f"[dim]{old_id} -> {new_id}[/dim]")

    _run(ctx, action, sync_on_open=False)


if __name__ == "__main__":
    app()
