"""Roster user management CLI commands.

These commands work on the roster file directly, through the same service
the HTTP API uses. Do not run them against a file a live server is writing.
"""

import json
from pathlib import Path

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from src.roster.core.exceptions import UserNotFoundError
from src.roster.core.services import UserService
from src.roster.core.storage import RecordStore, build_record_store
from src.roster.entities.user import User, UserCreate, UserUpdate
from src.roster.runtime.context import get_config

console = Console()

# Create the users subcommand app
users_app = typer.Typer(help="Manage users in the roster file")

DbOption = typer.Option(
    None, "--db", help="Roster file to use instead of the configured one"
)


def open_roster(db: Path | None = None) -> tuple[RecordStore, UserService]:
    """Load the roster file and return its store and service."""
    config = get_config()
    path = str(db) if db is not None else config.storage.path
    store = build_record_store(
        path,
        indent=config.storage.indent,
        max_recent_warnings=config.storage.max_recent_warnings,
    )
    store.load()
    service = UserService(
        store,
        username_enabled=config.users.username_enabled,
        default_limit=config.users.default_page_limit,
    )
    return store, service


def _report_save(store: RecordStore) -> None:
    if store.degraded:
        console.print(
            f"[yellow]⚠️  Change applied but {store.location} could not be written[/yellow]"
        )
        raise typer.Exit(code=1)


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]❌ {escape(message)}[/red]")
    return typer.Exit(code=1)


def _text(value: object) -> str:
    return "-" if value is None else str(value)


def _active_mark(is_active: bool | None) -> str:
    if is_active is None:
        return "-"
    return "✅" if is_active else "❌"


def _print_user(user: User, title: str) -> None:
    table = Table(title=title)
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("ID", user.record_id)
    table.add_row("Name", user.name or "")
    table.add_row("Last Name", user.last_name or "")
    table.add_row("Username", user.username or "")
    table.add_row("Email", user.email or "")
    table.add_row("Phone", _text(user.phone))
    table.add_row("Active", _active_mark(user.is_active))
    table.add_row("Photo", "yes" if user.photo else "no")

    console.print(table)


@users_app.command("list")
def list_users(
    page: int = typer.Option(1, "--page", "-p", help="Page number (1-based)"),
    limit: int | None = typer.Option(None, "--limit", "-l", help="Users per page"),
    search: str | None = typer.Option(None, "--search", "-s", help="Search text"),
    active: bool | None = typer.Option(
        None, "--active/--inactive", help="Only active or only inactive users"
    ),
    db: Path | None = DbOption,
) -> None:
    """List users one page at a time."""
    _, service = open_roster(db)

    try:
        result = service.get_users(page=page, limit=limit, search=search, is_active=active)
    except ValueError as e:
        raise _fail(f"Invalid listing request: {e}") from e

    meta = result.metadata
    if not result.data:
        console.print(
            f"[yellow]No users on page {meta.page} ({meta.total_items} matching)[/yellow]"
        )
        return

    table = Table(title=f"Users (page {meta.page} of {meta.total_pages})")
    table.add_column("ID", style="cyan")
    table.add_column("Name", style="magenta")
    table.add_column("Username", style="green")
    table.add_column("Email", style="blue")
    table.add_column("Phone", style="white")
    table.add_column("Active", style="yellow")

    for user in result.data:
        table.add_row(
            user.record_id,
            f"{user.name or ''} {user.last_name or ''}".strip(),
            user.username or "",
            user.email or "",
            _text(user.phone),
            _active_mark(user.is_active),
        )

    console.print(table)
    console.print(
        f"\n[green]Showing {len(result.data)} of {meta.total_items} users[/green]"
    )


@users_app.command("show")
def show_user(
    user_id: str = typer.Argument(..., help="User ID"),
    db: Path | None = DbOption,
) -> None:
    """Show detailed information about a user."""
    _, service = open_roster(db)

    try:
        user = service.get_user_by_id(user_id)
    except UserNotFoundError as e:
        raise _fail(f"User '{user_id}' not found") from e

    _print_user(user, f"User Information: {user_id}")


@users_app.command("add")
def add_user(
    name: str = typer.Option(..., "--name", "-n", help="First name"),
    last_name: str = typer.Option(..., "--last-name", "-L", help="Last name(s)"),
    email: str = typer.Option(..., "--email", "-e", help="Email address"),
    username: str | None = typer.Option(
        None, "--username", "-u", help="Username (derived from the name if omitted)"
    ),
    phone: str | None = typer.Option(None, "--phone", help="Phone number"),
    active: bool = typer.Option(True, "--active/--inactive", help="Initial state"),
    db: Path | None = DbOption,
) -> None:
    """Add a new user to the roster."""
    store, service = open_roster(db)

    try:
        payload = UserCreate(
            name=name,
            last_name=last_name,
            email=email,
            username=username,
            phone=phone,
            is_active=active,
        )
    except ValidationError as e:
        raise _fail(f"Invalid user: {e}") from e

    user = service.create_user(payload)
    console.print(f"[green]✅ Created user '{user.record_id}'[/green]")
    _print_user(user, "New user")
    _report_save(store)


@users_app.command("update")
def update_user(
    user_id: str = typer.Argument(..., help="User ID"),
    name: str | None = typer.Option(None, "--name", "-n", help="First name"),
    last_name: str | None = typer.Option(None, "--last-name", "-L", help="Last name(s)"),
    email: str | None = typer.Option(None, "--email", "-e", help="Email address"),
    username: str | None = typer.Option(None, "--username", "-u", help="Username"),
    phone: str | None = typer.Option(None, "--phone", help="Phone number"),
    db: Path | None = DbOption,
) -> None:
    """Change selected fields of a user; omitted options are left untouched."""
    store, service = open_roster(db)

    supplied = {
        key: value
        for key, value in {
            "name": name,
            "last_name": last_name,
            "email": email,
            "username": username,
            "phone": phone,
        }.items()
        if value is not None
    }
    if not supplied:
        raise _fail("Nothing to update; pass at least one field option")

    try:
        payload = UserUpdate(**supplied)
        user = service.update_user(user_id, payload)
    except ValidationError as e:
        raise _fail(f"Invalid update: {e}") from e
    except UserNotFoundError as e:
        raise _fail(f"User '{user_id}' not found") from e

    console.print(f"[green]✅ Updated user '{user_id}'[/green]")
    _print_user(user, "Updated user")
    _report_save(store)


@users_app.command("deactivate")
def deactivate_user(
    user_id: str = typer.Argument(..., help="User ID"),
    db: Path | None = DbOption,
) -> None:
    """Deactivate (soft-delete) a user."""
    store, service = open_roster(db)

    try:
        service.deactivate_user(user_id)
    except UserNotFoundError as e:
        raise _fail(f"User '{user_id}' not found") from e

    console.print(f"[green]✅ Deactivated user '{user_id}'[/green]")
    _report_save(store)


@users_app.command("activate")
def activate_user(
    user_id: str = typer.Argument(..., help="User ID"),
    db: Path | None = DbOption,
) -> None:
    """Reactivate a user."""
    store, service = open_roster(db)

    try:
        service.activate_user(user_id)
    except UserNotFoundError as e:
        raise _fail(f"User '{user_id}' not found") from e

    console.print(f"[green]✅ Activated user '{user_id}'[/green]")
    _report_save(store)


@users_app.command("export")
def export_users(
    output: Path | None = typer.Option(
        None, "--output", "-o", help="Write to this file instead of stdout"
    ),
    db: Path | None = DbOption,
) -> None:
    """Export every user, unpaginated, as a JSON array."""
    _, service = open_roster(db)

    documents = [user.to_document() for user in service.get_all_users()]
    text = json.dumps(documents, indent=2, ensure_ascii=False)

    if output is None:
        typer.echo(text)
        return

    output.write_text(text + "\n", encoding="utf-8")
    console.print(f"[green]✅ Exported {len(documents)} users to {output}[/green]")
