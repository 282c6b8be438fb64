"""Access CLI commands: show, grant, block."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from docguard.core.errors import PermissionDenied
from docguard.core.models import Block, Document, User
from docguard.security.permissions import PermissionManager
from docguard.security.protection import BlockProtection

console = Console()
access_app = typer.Typer(name="access", help="Evaluate document and block permissions.")


def _load_document(path: Path) -> Document:
    if not path.exists():
        console.print(f"[red]File not found:[/red] {path}")
        raise typer.Exit(1)
    try:
        return Document.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as exc:
        console.print(f"[red]Invalid document JSON:[/red] {exc}")
        raise typer.Exit(1)


def _manager(user: str, admin: bool) -> PermissionManager:
    return PermissionManager.from_callables(
        get_current_user=lambda: User(id=user),
        is_admin=lambda: admin,
    )


def _denied(exc: PermissionDenied) -> None:
    info = exc.to_dict()
    console.print(f"[red]Denied[/red] [yellow]{info['code']}[/yellow]: {info['message']}")
    if info["details"]:
        console.print(f"[dim]{json.dumps(info['details'], default=str)}[/dim]")


@access_app.command("show")
def show_access(
    document: Path = typer.Argument(..., help="Document JSON file"),
    user: str = typer.Option(..., "--user", "-u", help="Current user id"),
    admin: bool = typer.Option(False, "--admin", help="Treat the current user as an admin"),
    as_user: Optional[str] = typer.Option(None, "--as-user", help="Evaluate another user's access"),
) -> None:
    """Show the access level and capabilities for a user."""
    doc = _load_document(document)
    pm = _manager(user, admin)
    info = pm.describe_access(doc, as_user)

    target = as_user or user
    console.print(f"\n[bold]Document[/bold] [cyan]{doc.id or '(no id)'}[/cyan] — owner "
                  f"[cyan]{doc.resolved_owner or '(none)'}[/cyan]")
    console.print(f"User [cyan]{target}[/cyan]: [bold]{info['access_level'].value}[/bold]\n")

    table = Table(title="Capabilities")
    table.add_column("Action", style="cyan")
    table.add_column("Allowed", justify="center")
    for key in ("can_read", "can_comment", "can_edit", "can_delete", "can_manage"):
        allowed = "[green]Yes[/green]" if info[key] else "[red]No[/red]"
        table.add_row(key.removeprefix("can_"), allowed)
    console.print(table)


@access_app.command("grant")
def grant_access(
    document: Path = typer.Argument(..., help="Document JSON file"),
    user: str = typer.Option(..., "--user", "-u", help="Current user id (must own the document)"),
    target: str = typer.Option(..., "--target", "-t", help="User id to change"),
    level: str = typer.Option(..., "--level", "-l", help="owner, editor, commenter, reader or none"),
    write: bool = typer.Option(False, "--write", help="Write the updated document back to the file"),
) -> None:
    """Change a user's access level on a document."""
    doc = _load_document(document)
    pm = _manager(user, admin=False)

    try:
        pm.set_user_access(doc, target, level.lower())
    except PermissionDenied as exc:
        _denied(exc)
        raise typer.Exit(1)

    payload = doc.model_dump(mode="json", by_alias=True, exclude_none=True)
    if write:
        document.write_text(json.dumps(payload, indent=2) + "\n", encoding="utf-8")
        console.print(f"[green]Updated[/green] {target} -> {level.lower()} in [cyan]{document}[/cyan]")
    else:
        typer.echo(json.dumps(payload, indent=2))


@access_app.command("block")
def check_block(
    document: Path = typer.Argument(..., help="Document JSON file with a 'blocks' array"),
    block_id: str = typer.Argument(..., help="Block id to check"),
    user: str = typer.Option(..., "--user", "-u", help="Current user id"),
    admin: bool = typer.Option(False, "--admin", help="Treat the current user as an admin"),
    action: str = typer.Option("edit", "--action", "-a", help="edit, delete, move or duplicate"),
) -> None:
    """Check whether the current user may act on one block."""
    doc = _load_document(document)
    blocks = (doc.model_extra or {}).get("blocks") or []
    raw = next((b for b in blocks if isinstance(b, dict) and b.get("id") == block_id), None)
    if raw is None:
        console.print(f"[red]Block not found:[/red] {block_id}")
        raise typer.Exit(1)

    block = Block.model_validate(raw)
    protection = BlockProtection(_manager(user, admin))
    checks = {
        "edit": protection.can_edit_block,
        "delete": protection.can_delete_block,
        "move": protection.can_move_block,
        "duplicate": protection.can_duplicate_block,
    }
    check_fn = checks.get(action)
    if check_fn is None:
        console.print(f"[red]Unknown action:[/red] {action}")
        raise typer.Exit(1)

    try:
        check_fn(block, doc)
    except PermissionDenied as exc:
        _denied(exc)
        raise typer.Exit(1)

    level = protection.get_protection_level(block)
    level_str = getattr(level, "value", level)
    console.print(f"[green]Allowed[/green] {action} on block [cyan]{block_id}[/cyan] (protection: {level_str})")
