"""Person ledger CLI commands."""

from __future__ import annotations

import click

from fintrack.cli.common import (
    domain_errors,
    get_client,
    parse_amount,
    parse_date,
    resolve_account,
    resolve_person,
)
from fintrack.models import LedgerDirection, LedgerTransactionDTO


@click.group()
def ledger() -> None:
    """Ledger (IOU) commands."""


@ledger.command("add-person")
@click.argument("name")
@click.pass_context
def add_person(ctx: click.Context, name: str) -> None:
    """Add a person to track money with."""
    with get_client(ctx) as client, domain_errors("Add person"):
        person = client.add_person(name)
    click.echo(f"Added {person.name}")


@ledger.command("persons")
@click.pass_context
def list_persons(ctx: click.Context) -> None:
    """List persons with their balances.

    A positive balance means you received more than you sent.
    """
    with get_client(ctx) as client:
        persons = client.list_persons()
        if not persons:
            click.echo("No persons found.")
            return
        for person in persons:
            last = person.last_transaction_date.isoformat() if person.last_transaction_date else "-"
            click.echo(
                f"{person.name:<25} {client.format_money(person.balance):>15} "
                f"{person.transaction_count:>5}  {last}"
            )


def _record(
    ctx: click.Context,
    direction: LedgerDirection,
    name: str,
    amount_value: str,
    account: str | None,
    date_value: str | None,
    title: str,
    description: str,
) -> None:
    amount = parse_amount(amount_value, "--amount")
    date = parse_date(date_value, "--date")
    with get_client(ctx) as client, domain_errors("Ledger entry"):
        person = resolve_person(client, name)
        extra = {"date": date} if date else {}
        entry = client.record_ledger(
            LedgerTransactionDTO(
                person_id=person.id,
                amount=amount,
                direction=direction,
                account_id=resolve_account(client, account).id if account else None,
                title=title,
                description=description,
                **extra,
            )
        )
        click.echo(
            f"Recorded {entry.id}; {person.name} balance {client.format_money(entry.balance_at_time)}"
        )


def _entry_options(command):
    command = click.option("--description", default="", help="Description.")(command)
    command = click.option("--title", default="", help="Short title.")(command)
    command = click.option("--date", "date_value", default=None, help="Date in YYYY-MM-DD.")(command)
    command = click.option("--account", default=None, help="Funding account name.")(command)
    command = click.option("--amount", "amount_value", required=True, help="Amount.")(command)
    return click.argument("name")(command)


@ledger.command("sent")
@_entry_options
@click.pass_context
def sent(ctx: click.Context, name: str, amount_value: str, account: str | None,
         date_value: str | None, title: str, description: str) -> None:
    """Record money sent to a person."""
    _record(ctx, LedgerDirection.SENT, name, amount_value, account, date_value, title, description)


@ledger.command("received")
@_entry_options
@click.pass_context
def received(ctx: click.Context, name: str, amount_value: str, account: str | None,
             date_value: str | None, title: str, description: str) -> None:
    """Record money received from a person."""
    _record(
        ctx, LedgerDirection.RECEIVED, name, amount_value, account, date_value, title, description
    )


@ledger.command("history")
@click.argument("name")
@click.pass_context
def history(ctx: click.Context, name: str) -> None:
    """Show a person's entries, oldest first."""
    with get_client(ctx) as client:
        person = resolve_person(client, name)
        entries = client.person_history(person.id)
        if not entries:
            click.echo("No entries found.")
            return
        for entry in entries:
            click.echo(
                f"{entry.id}\t{entry.date.isoformat()} {entry.time}\t{entry.direction.value}"
                f"\t{entry.amount}\t{entry.balance_at_time}\t{entry.account_name or ''}"
            )


@ledger.command("delete")
@click.argument("entry_id")
@click.pass_context
def delete_entry(ctx: click.Context, entry_id: str) -> None:
    """Delete a ledger entry and its account transaction."""
    with get_client(ctx) as client, domain_errors("Ledger delete"):
        client.delete_ledger(entry_id)
    click.echo(f"Deleted ledger entry {entry_id}")


@ledger.command("recompute")
@click.pass_context
def recompute(ctx: click.Context) -> None:
    """Recompute every person balance from their history."""
    with get_client(ctx) as client:
        drifted = client.verify_ledger()
        if not drifted:
            click.echo("All ledger balances consistent.")
            return
        for person, expected in drifted:
            click.echo(
                f"Corrected {person.name}: {client.format_money(person.balance)} -> "
                f"{client.format_money(expected)}"
            )
