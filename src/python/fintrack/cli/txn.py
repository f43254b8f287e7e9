"""Transaction CLI commands."""

from __future__ import annotations

import click

from fintrack.cli.common import (
    domain_errors,
    get_client,
    parse_amount,
    parse_date,
    resolve_account,
)
from fintrack.models import TransactionDTO, TransactionRecord, TransactionType

TYPE_CHOICE = click.Choice([kind.value for kind in TransactionType], case_sensitive=False)


def _format_row(record: TransactionRecord) -> str:
    accounts = record.account_name
    if record.transfer_to:
        accounts = f"{record.account_name} -> {record.transfer_to}"
    return (
        f"{record.id}\t{record.date.isoformat()} {record.time}\t{record.transaction_type.value}"
        f"\t{record.amount}\t{accounts}\t{record.category}\t{record.title}"
    )


@click.group()
def txn() -> None:
    """Transaction commands."""


@txn.command("add")
@click.option("--type", "transaction_type", type=TYPE_CHOICE, required=True, help="Transaction type.")
@click.option("--amount", "amount_value", required=True, help="Amount.")
@click.option("--account", required=True, help="Account name (source for transfers).")
@click.option("--to", "transfer_to", default=None, help="Destination account for transfers.")
@click.option("--title", default="", help="Short title.")
@click.option("--category", default="General", show_default=True, help="Category name.")
@click.option("--date", "date_value", default=None, help="Date in YYYY-MM-DD (defaults to today).")
@click.option("--description", default="", help="Description.")
@click.pass_context
def add_transaction(
    ctx: click.Context,
    transaction_type: str,
    amount_value: str,
    account: str,
    transfer_to: str | None,
    title: str,
    category: str,
    date_value: str | None,
    description: str,
) -> None:
    """Add a transaction and update account balances.

    Examples:
        fintrack txn add --type EXPENSE --amount 12.50 --account Cash --category Food
        fintrack txn add --type TRANSFER --amount 100 --account "Bank Account" --to Cash
    """
    amount = parse_amount(amount_value, "--amount")
    date = parse_date(date_value, "--date")
    with get_client(ctx) as client, domain_errors("Transaction add"):
        source = resolve_account(client, account)
        destination = resolve_account(client, transfer_to) if transfer_to else None
        extra = {"date": date} if date else {}
        record = client.add_transaction(
            TransactionDTO(
                transaction_type=TransactionType(transaction_type.upper()),
                amount=amount,
                account=source.id,
                transfer_to=destination.id if destination else None,
                title=title,
                category=category,
                description=description,
                **extra,
            )
        )
    click.echo(f"Added transaction {record.id}")


@txn.command("list")
@click.option("--type", "transaction_type", type=TYPE_CHOICE, default=None, help="Filter by type.")
@click.option("--account", default=None, help="Filter by account name.")
@click.option("--category", default=None, help="Filter by category.")
@click.option("--start-date", default=None, help="Start date in YYYY-MM-DD.")
@click.option("--end-date", default=None, help="End date in YYYY-MM-DD.")
@click.option("--search", default=None, help="Match title or description.")
@click.option("--limit", type=int, default=None, help="Limit results.")
@click.pass_context
def list_transactions(
    ctx: click.Context,
    transaction_type: str | None,
    account: str | None,
    category: str | None,
    start_date: str | None,
    end_date: str | None,
    search: str | None,
    limit: int | None,
) -> None:
    """List transactions, newest first."""
    filters: dict[str, object] = {
        "start_date": parse_date(start_date, "--start-date"),
        "end_date": parse_date(end_date, "--end-date"),
        "category": category,
        "search": search,
        "limit": limit,
    }
    if transaction_type:
        filters["transaction_type"] = TransactionType(transaction_type.upper())
    with get_client(ctx) as client:
        if account:
            filters["account_id"] = resolve_account(client, account).id
        records = client.list_transactions(**filters)
    if not records:
        click.echo("No transactions found.")
        return
    for record in records:
        click.echo(_format_row(record))


@txn.command("update")
@click.argument("transaction_id")
@click.option("--amount", "amount_value", default=None, help="Updated amount.")
@click.option("--account", default=None, help="Updated account name.")
@click.option("--to", "transfer_to", default=None, help="Updated destination account.")
@click.option("--title", default=None, help="Updated title.")
@click.option("--category", default=None, help="Updated category.")
@click.option("--date", "date_value", default=None, help="Updated date in YYYY-MM-DD.")
@click.option("--description", default=None, help="Updated description.")
@click.pass_context
def update_transaction(
    ctx: click.Context,
    transaction_id: str,
    amount_value: str | None,
    account: str | None,
    transfer_to: str | None,
    title: str | None,
    category: str | None,
    date_value: str | None,
    description: str | None,
) -> None:
    """Update a transaction, reversing its old balance effects."""
    amount = parse_amount(amount_value, "--amount")
    date = parse_date(date_value, "--date")
    with get_client(ctx) as client, domain_errors("Transaction update"):
        current = client.get_transaction(transaction_id)
        source_id = resolve_account(client, account).id if account else current.account_id
        destination_id = current.transfer_to_id
        if transfer_to:
            destination_id = resolve_account(client, transfer_to).id
        record = client.update_transaction(
            transaction_id,
            TransactionDTO(
                transaction_type=current.transaction_type,
                amount=amount if amount is not None else current.amount,
                account=source_id,
                transfer_to=destination_id,
                title=title if title is not None else current.title,
                category=category or current.category,
                date=date or current.date,
                time=current.time,
                description=description if description is not None else current.description,
            ),
        )
    click.echo(f"Updated transaction {record.id}")


@txn.command("delete")
@click.argument("transaction_id")
@click.option("--yes", is_flag=True, help="Skip delete confirmation.")
@click.pass_context
def delete_transaction(ctx: click.Context, transaction_id: str, yes: bool) -> None:
    """Delete a transaction, reversing its balance effects."""
    if not yes:
        confirm = click.confirm("Delete transaction?", default=False)
        if not confirm:
            click.echo("Delete cancelled.")
            return
    with get_client(ctx) as client, domain_errors("Transaction delete"):
        client.delete_transaction(transaction_id)
    click.echo(f"Deleted transaction {transaction_id}")
