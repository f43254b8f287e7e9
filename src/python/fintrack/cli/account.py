"""Account CLI commands."""

from __future__ import annotations

import click

from fintrack.cli.common import domain_errors, get_client, parse_amount, resolve_account
from fintrack.models import AccountDTO, AccountType
from fintrack.schema import ARCHIVED_PREFIX


@click.group()
def account() -> None:
    """Account commands."""


@account.command("add")
@click.option("--name", required=True, help="Account name.")
@click.option(
    "--type",
    "account_type",
    type=click.Choice([kind.value for kind in AccountType], case_sensitive=False),
    default=AccountType.CASH.value,
    show_default=True,
    help="Account type.",
)
@click.option("--balance", "balance_value", default="0", help="Opening balance.")
@click.pass_context
def add_account(ctx: click.Context, name: str, account_type: str, balance_value: str) -> None:
    """Add an account with an opening balance."""
    balance = parse_amount(balance_value, "--balance")
    with get_client(ctx) as client, domain_errors("Account add"):
        record = client.add_account(
            AccountDTO(name=name, account_type=AccountType(account_type.upper()), balance=balance)
        )
        click.echo(f"Added account {record.name} ({client.format_money(record.balance)})")


@account.command("list")
@click.option("--all", "include_archived", is_flag=True, help="Include archived accounts.")
@click.pass_context
def list_accounts(ctx: click.Context, include_archived: bool) -> None:
    """List accounts with current balances.

    Examples:
        fintrack account list
        fintrack account list --all
    """
    with get_client(ctx) as client:
        accounts = client.list_accounts(include_archived=include_archived)
        if not accounts:
            click.echo("No accounts found.")
            return

        click.echo(f"{'Name':<30} {'Type':<8} {'Balance':>15}")
        click.echo("-" * 55)
        for record in accounts:
            click.echo(
                f"{record.name:<30} {record.account_type.value:<8} "
                f"{client.format_money(record.balance):>15}"
            )
        click.echo("-" * 55)
        click.echo(f"{'Total':<39} {client.format_money(client.total_balance()):>15}")


@account.command("set-balance")
@click.option("--name", required=True, help="Account name.")
@click.option("--balance", "balance_value", required=True, help="New balance.")
@click.option("--reason", default="Balance adjusted", show_default=True, help="Adjustment note.")
@click.pass_context
def set_balance(ctx: click.Context, name: str, balance_value: str, reason: str) -> None:
    """Override an account balance, recording the adjustment."""
    balance = parse_amount(balance_value, "--balance")
    with get_client(ctx) as client, domain_errors("Set balance"):
        record = client.set_balance(resolve_account(client, name).id, balance, reason)
        click.echo(f"{record.name}: {client.format_money(record.balance)}")


@account.command("archive")
@click.option("--name", required=True, help="Account name.")
@click.pass_context
def archive_account(ctx: click.Context, name: str) -> None:
    """Archive an account."""
    with get_client(ctx) as client, domain_errors("Archive"):
        record = client.archive_account(resolve_account(client, name).id)
        click.echo(f"Archived as {record.name}")


@account.command("unarchive")
@click.option("--name", required=True, help="Archived account name, with or without the marker.")
@click.pass_context
def unarchive_account(ctx: click.Context, name: str) -> None:
    """Restore an archived account."""
    with get_client(ctx) as client, domain_errors("Unarchive"):
        record = client.find_account_by_name(f"{ARCHIVED_PREFIX}{name}") or resolve_account(
            client, name
        )
        restored = client.unarchive_account(record.id)
        click.echo(f"Restored {restored.name}")


@account.command("delete")
@click.option("--name", required=True, help="Account name.")
@click.option("--yes", is_flag=True, help="Skip delete confirmation.")
@click.pass_context
def delete_account(ctx: click.Context, name: str, yes: bool) -> None:
    """Delete an account; accounts with history are archived instead."""
    if not yes:
        confirm = click.confirm(f"Delete account {name}?", default=False)
        if not confirm:
            click.echo("Delete cancelled.")
            return
    with get_client(ctx) as client, domain_errors("Delete"):
        deleted = client.delete_account(resolve_account(client, name).id)
    if deleted:
        click.echo(f"Deleted account {name}")
    else:
        click.echo(f"Account {name} has transactions and was archived instead")


@account.command("recompute")
@click.pass_context
def recompute(ctx: click.Context) -> None:
    """Rebuild every balance from the transaction history."""
    with get_client(ctx) as client:
        drifted = client.recompute_balances()
        if not drifted:
            click.echo("All balances consistent.")
            return
        for record, expected in drifted:
            click.echo(
                f"Corrected {record.name}: {client.format_money(record.balance)} -> "
                f"{client.format_money(expected)}"
            )
