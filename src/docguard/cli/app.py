"""Root CLI application: sanitize, check, escape and config commands."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from docguard.cli.access import access_app
from docguard.core.config import configure_logging, load_config
from docguard.core.models import AppConfig
from docguard.security.sanitizer import ContentSanitizer

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(
    name="docguard",
    help="docguard — HTML sanitization and access checks for the block editor.",
    no_args_is_help=True,
)

app.add_typer(access_app)


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Path to a YAML config file"),
) -> None:
    """Load configuration and set up logging."""
    cfg = load_config(config)
    configure_logging(cfg.logging)
    ctx.obj = cfg


def get_app_config(ctx: typer.Context) -> AppConfig:
    cfg = ctx.find_root().obj
    if isinstance(cfg, AppConfig):
        return cfg
    return load_config()


def read_input(path: Optional[Path]) -> str:
    if path is None or str(path) == "-":
        return sys.stdin.read()
    if not path.exists():
        err_console.print(f"[red]File not found:[/red] {path}")
        raise typer.Exit(1)
    return path.read_text(encoding="utf-8")


@app.command()
def sanitize(
    ctx: typer.Context,
    path: Optional[Path] = typer.Argument(None, help="HTML file to sanitize (stdin when omitted)"),
    no_images: bool = typer.Option(False, "--no-images", help="Remove <img> elements"),
    no_links: bool = typer.Option(False, "--no-links", help="Flatten <a> elements to text"),
    allow_tag: Optional[list[str]] = typer.Option(None, "--allow-tag", help="Extra tag to allow (repeatable)"),
    paste: bool = typer.Option(False, "--paste", help="Treat input as clipboard text"),
) -> None:
    """Sanitize HTML and print the result."""
    cfg = get_app_config(ctx)
    sanitizer = ContentSanitizer(base_url=cfg.sanitizer.base_url, defaults=cfg.sanitizer.options())

    overrides: dict = {}
    if no_images:
        overrides["allow_images"] = False
    if no_links:
        overrides["allow_links"] = False
    if allow_tag:
        overrides["additional_tags"] = sorted(sanitizer.defaults.additional_tags | set(allow_tag))

    raw = read_input(path)
    if paste:
        result = sanitizer.sanitize_paste(raw, **overrides)
    else:
        result = sanitizer.sanitize(raw, **overrides)
    typer.echo(result)


@app.command()
def check(
    path: Optional[Path] = typer.Argument(None, help="HTML file to inspect (stdin when omitted)"),
) -> None:
    """Quick advisory scan for dangerous markup. Exits 1 when something looks suspicious."""
    raw = read_input(path)
    if ContentSanitizer.contains_dangerous_content(raw):
        console.print("[red]Potentially dangerous content found.[/red] Run [cyan]docguard sanitize[/cyan].")
        raise typer.Exit(1)
    console.print("[green]No obviously dangerous content.[/green]")


@app.command()
def escape(text: str = typer.Argument(..., help="Text to escape")) -> None:
    """Escape HTML metacharacters."""
    typer.echo(ContentSanitizer.escape(text))


@app.command("config")
def show_config(ctx: typer.Context) -> None:
    """Show the effective configuration."""
    cfg = get_app_config(ctx)

    table = Table(title="docguard configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")
    table.add_row("sanitizer.base_url", cfg.sanitizer.base_url)
    table.add_row("sanitizer.allow_images", str(cfg.sanitizer.allow_images))
    table.add_row("sanitizer.allow_links", str(cfg.sanitizer.allow_links))
    table.add_row("sanitizer.additional_tags", ", ".join(cfg.sanitizer.additional_tags) or "—")
    table.add_row("logging.level", cfg.logging.level)

    console.print(table)
