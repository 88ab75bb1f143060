"""Secure Vault CLI - Encrypted local notes."""

import shlex
from dataclasses import replace
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from .. import __version__
from ..utils.logging import setup_logging
from ..vault import (
    IdleTimer,
    JsonFileStore,
    Note,
    StoreError,
    VaultConfig,
    VaultError,
    VaultSession,
    get_vault_config,
    strength_label,
    validate_new_password,
)

app = typer.Typer(
    name="secure-vault",
    help="Encrypted local notes protected by a single master password.",
    no_args_is_help=True,
)

console = Console()

PASSWORD_WARNING = (
    "[bold]CRITICAL:[/bold] Your password is the ONLY key to your vault. "
    "It is never stored or sent anywhere. If you forget it, your data will "
    "be permanently lost."
)


def _config(ctx: typer.Context) -> VaultConfig:
    return ctx.obj["config"]


def _open_session(ctx: typer.Context, idle_timer: Optional[IdleTimer] = None) -> VaultSession:
    config = _config(ctx)
    try:
        return VaultSession(JsonFileStore(config.store_path), config=config, idle_timer=idle_timer)
    except StoreError as e:
        _error(str(e))
        raise typer.Exit(1)


def _error(message: str) -> None:
    console.print(f"[red]Error: {escape(message)}[/red]")


def _unlock_or_exit(ctx: typer.Context, password: str) -> VaultSession:
    session = _open_session(ctx)
    if not session.is_initialized:
        _error(f"No vault at {_config(ctx).store_path}. Run 'secure-vault init' first.")
        raise typer.Exit(1)
    try:
        session.unlock(password)
    except VaultError as e:
        _error(str(e))
        raise typer.Exit(1)
    return session


def _resolve_note(session: VaultSession, ref: str) -> Note:
    """Find a note by full id or unique id prefix."""
    matches = [n for n in session.notes if n.id == ref]
    if not matches:
        matches = [n for n in session.notes if n.id.startswith(ref)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise VaultError(f"Note not found: {ref}")
    raise VaultError(f"Ambiguous note id prefix: {ref}")


def _notes_table(session: VaultSession) -> Table:
    notes = session.sorted_notes()
    table = Table(title=f"Notes ({len(notes)})")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Updated", justify="right")

    for note in notes:
        table.add_row(
            note.id[:8],
            escape(note.title),
            note.updated_at.astimezone().strftime("%Y-%m-%d %H:%M"),
        )
    return table


def _print_note(note: Note) -> None:
    console.print(Panel(escape(note.content), title=escape(note.title), title_align="left"))
    console.print(f"ID: {note.id}")
    console.print(f"Created: {note.created_at.astimezone():%Y-%m-%d %H:%M:%S}")
    console.print(f"Updated: {note.updated_at.astimezone():%Y-%m-%d %H:%M:%S}")


def _password_option():
    return typer.Option(
        ...,
        "--password", "-p",
        prompt="Master password",
        hide_input=True,
        envvar="SECURE_VAULT_PASSWORD",
        help="Master password (prompted if omitted)",
    )


@app.callback()
def main_callback(
    ctx: typer.Context,
    store: Optional[Path] = typer.Option(
        None,
        "--store", "-s",
        help="Vault file (default: $SECURE_VAULT_STORE or ~/.secure_vault/vault.json)",
    ),
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Also write DEBUG-level logs to this file",
    ),
):
    """Encrypted local notes protected by a single master password."""
    setup_logging(log_level, log_file=log_file)
    config = get_vault_config()
    if store is not None:
        config = replace(config, store_path=store.expanduser())
    ctx.obj = {"config": config}


@app.command()
def init(
    ctx: typer.Context,
    password: str = _password_option(),
    confirm: str = typer.Option(
        ...,
        "--confirm",
        prompt="Confirm master password",
        hide_input=True,
        envvar="SECURE_VAULT_PASSWORD",
        help="Master password again",
    ),
):
    """
    Create a new vault protected by a master password.
    """
    config = _config(ctx)
    session = _open_session(ctx)

    if session.is_initialized:
        _error(f"A vault already exists at {config.store_path}")
        raise typer.Exit(1)

    try:
        validate_new_password(password, confirm, config.min_password_length)
        console.print(f"Password strength: {strength_label(password)}")
        session.initialize(password)
    except VaultError as e:
        _error(str(e))
        raise typer.Exit(1)

    session.lock()
    console.print(f"\n[bold green]Vault created:[/bold green] {config.store_path}")
    console.print(f"[yellow]{PASSWORD_WARNING}[/yellow]")


@app.command()
def status(ctx: typer.Context):
    """
    Show whether a vault exists and how it is configured.
    """
    config = _config(ctx)
    session = _open_session(ctx)

    console.print(f"\n[bold]Vault: {config.store_path}[/bold]")
    if not session.is_initialized:
        console.print("State: [yellow]not initialized[/yellow]")
        return

    console.print("State: locked")
    console.print(f"Key derivation: PBKDF2-HMAC-SHA256, {config.pbkdf2_iterations:,} iterations")
    console.print("Cipher: AES-256-CBC + HMAC-SHA256")
    if config.idle_timeout_seconds > 0:
        console.print(f"Idle auto-lock: {config.idle_timeout_seconds:g}s")
    else:
        console.print("Idle auto-lock: disabled")


@app.command("list")
def list_notes(
    ctx: typer.Context,
    password: str = _password_option(),
):
    """
    List notes, most recently updated first.
    """
    session = _unlock_or_exit(ctx, password)
    try:
        if session.notes:
            console.print(_notes_table(session))
        else:
            console.print("Your vault is empty.")
    finally:
        session.lock()


@app.command()
def show(
    ctx: typer.Context,
    note_id: str = typer.Argument(..., help="Note id or unique id prefix"),
    password: str = _password_option(),
):
    """
    Show a single note.
    """
    session = _unlock_or_exit(ctx, password)
    try:
        _print_note(_resolve_note(session, note_id))
    except VaultError as e:
        _error(str(e))
        raise typer.Exit(1)
    finally:
        session.lock()


@app.command()
def add(
    ctx: typer.Context,
    title: str = typer.Option(..., "--title", "-t", prompt=True, help="Note title"),
    content: str = typer.Option(..., "--content", "-c", prompt=True, help="Note content"),
    password: str = _password_option(),
):
    """
    Add a note.
    """
    session = _unlock_or_exit(ctx, password)
    try:
        note = session.add_note(title, content)
    except VaultError as e:
        _error(str(e))
        raise typer.Exit(1)
    finally:
        session.lock()

    console.print(f"[green]Added note {note.id}[/green]")


@app.command()
def edit(
    ctx: typer.Context,
    note_id: str = typer.Argument(..., help="Note id or unique id prefix"),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="New title"),
    content: Optional[str] = typer.Option(None, "--content", "-c", help="New content"),
    password: str = _password_option(),
):
    """
    Change the title and/or content of a note.
    """
    if title is None and content is None:
        _error("Nothing to change: pass --title and/or --content")
        raise typer.Exit(1)

    session = _unlock_or_exit(ctx, password)
    try:
        note = _resolve_note(session, note_id)
        updated = session.update_note(
            replace(
                note,
                title=note.title if title is None else title,
                content=note.content if content is None else content,
            )
        )
    except VaultError as e:
        _error(str(e))
        raise typer.Exit(1)
    finally:
        session.lock()

    console.print(f"[green]Updated note {updated.id}[/green]")


@app.command()
def delete(
    ctx: typer.Context,
    note_id: str = typer.Argument(..., help="Note id or unique id prefix"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    password: str = _password_option(),
):
    """
    Delete a note.
    """
    session = _unlock_or_exit(ctx, password)
    try:
        note = _resolve_note(session, note_id)
        if not yes and not typer.confirm(f"Delete '{note.title}'?"):
            console.print("Cancelled.")
            return
        session.delete_note(note.id)
    except VaultError as e:
        _error(str(e))
        raise typer.Exit(1)
    finally:
        session.lock()

    console.print(f"[green]Deleted note {note.id}[/green]")


SHELL_HELP = """Commands:
  list                     List notes
  show ID                  Show a note
  add TITLE CONTENT        Add a note
  edit ID TITLE CONTENT    Replace a note's title and content
  delete ID                Delete a note
  lock                     Lock the vault
  unlock                   Unlock the vault
  help                     Show this help
  quit                     Lock and exit"""


def _shell_unlock(session: VaultSession) -> None:
    password = typer.prompt("Master password", hide_input=True)
    try:
        session.unlock(password)
    except VaultError as e:
        _error(str(e))
        return
    console.print(f"[green]Unlocked ({len(session.notes)} notes)[/green]")


def _shell_dispatch(session: VaultSession, command: str, args: list[str]) -> None:
    if command == "help":
        console.print(SHELL_HELP)
    elif command == "unlock":
        if session.is_locked:
            _shell_unlock(session)
        else:
            console.print("Already unlocked.")
    elif command == "lock":
        session.lock()
        console.print("[yellow]Vault locked[/yellow]")
    elif session.is_locked:
        console.print("Vault is locked. Type 'unlock'.")
    elif command == "list":
        if session.notes:
            console.print(_notes_table(session))
        else:
            console.print("Your vault is empty.")
    elif command == "show" and len(args) == 1:
        _print_note(_resolve_note(session, args[0]))
    elif command == "add" and len(args) == 2:
        note = session.add_note(args[0], args[1])
        console.print(f"[green]Added note {note.id}[/green]")
    elif command == "edit" and len(args) == 3:
        note = _resolve_note(session, args[0])
        session.update_note(replace(note, title=args[1], content=args[2]))
        console.print(f"[green]Updated note {note.id}[/green]")
    elif command == "delete" and len(args) == 1:
        note = _resolve_note(session, args[0])
        session.delete_note(note.id)
        console.print(f"[green]Deleted note {note.id}[/green]")
    else:
        console.print(f"Unknown command: {escape(command)}. Type 'help'.")


@app.command()
def shell(ctx: typer.Context):
    """
    Interactive session that auto-locks after a period of inactivity.

    Every command counts as activity. Quote arguments containing spaces.
    """
    config = _config(ctx)
    session = _open_session(ctx, idle_timer=IdleTimer())
    if not session.is_initialized:
        _error(f"No vault at {config.store_path}. Run 'secure-vault init' first.")
        raise typer.Exit(1)

    console.print("[bold]Secure Vault shell[/bold] - type 'help' for commands")
    _shell_unlock(session)
    was_locked = session.is_locked

    try:
        while True:
            line = typer.prompt("vault")
            session.record_activity()

            if session.is_locked and not was_locked:
                console.print("[yellow]Vault was locked after inactivity.[/yellow]")

            try:
                parts = shlex.split(line)
            except ValueError as e:
                _error(str(e))
                continue
            if not parts:
                continue

            command, args = parts[0].lower(), parts[1:]
            if command in ("quit", "exit"):
                break

            try:
                _shell_dispatch(session, command, args)
            except VaultError as e:
                _error(str(e))
            was_locked = session.is_locked
    finally:
        session.lock()

    console.print("Vault locked. Bye.")


@app.command()
def version():
    """Show version information."""
    console.print(f"Secure Vault v{__version__}")
    console.print("Encrypted local notes")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
