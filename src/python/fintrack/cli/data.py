"""Data maintenance CLI commands."""

from __future__ import annotations

import click

from fintrack.cli.common import get_client


@click.group()
def data() -> None:
    """Data maintenance commands."""


@data.command("clear")
@click.option("--yes", is_flag=True, help="Skip confirmation.")
@click.pass_context
def clear(ctx: click.Context, yes: bool) -> None:
    """Delete all accounts, transactions, persons and groups."""
    if not yes and not click.confirm("Delete ALL data?", default=False):
        click.echo("Clear cancelled.")
        return
    with get_client(ctx) as client:
        client.clear_all()
    click.echo("All data cleared.")


@data.command("reset")
@click.option("--yes", is_flag=True, help="Skip confirmation.")
@click.pass_context
def reset(ctx: click.Context, yes: bool) -> None:
    """Delete all data and restore default accounts and categories."""
    if not yes and not click.confirm("Reset to defaults?", default=False):
        click.echo("Reset cancelled.")
        return
    with get_client(ctx) as client:
        client.reset_to_defaults()
    click.echo("Data reset to defaults.")


@data.command("pending")
@click.pass_context
def pending(ctx: click.Context) -> None:
    """Apply balance effects of transactions left half-written."""
    with get_client(ctx) as client:
        applied = client.apply_pending_effects()
    click.echo(f"Applied {len(applied)} pending transaction(s).")
