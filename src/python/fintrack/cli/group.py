"""Group expense CLI commands."""

from __future__ import annotations

import click

from fintrack.cli.common import (
    domain_errors,
    get_client,
    parse_amount,
    parse_date,
    resolve_group,
)
from fintrack.models import GroupExpenseDTO, SplitPolicy


@click.group()
def group() -> None:
    """Group expense commands."""


@group.command("create")
@click.argument("name")
@click.option("--member", "members", multiple=True, required=True, help="Member name (repeatable).")
@click.option("--description", default="", help="Group description.")
@click.pass_context
def create_group(ctx: click.Context, name: str, members: tuple[str, ...], description: str) -> None:
    """Create a group with its members.

    Examples:
        fintrack group create Trip --member Ann --member Bo --member Cy
    """
    with get_client(ctx) as client, domain_errors("Group create"):
        record = client.create_group(name, members, description)
    click.echo(f"Created group {record.name} with {record.member_count} members")


@group.command("add-expense")
@click.argument("name")
@click.option("--paid-by", required=True, help="Name of the paying member.")
@click.option("--amount", "amount_value", required=True, help="Expense amount.")
@click.option("--description", required=True, help="What the expense was for.")
@click.option(
    "--split",
    "splits",
    multiple=True,
    help="member=amount for non-equal splits (repeatable). Defaults to all members, equal.",
)
@click.option(
    "--policy",
    type=click.Choice([policy.value for policy in SplitPolicy], case_sensitive=False),
    default=SplitPolicy.EQUAL.value,
    show_default=True,
    help="Split policy.",
)
@click.option("--member", "members", multiple=True, help="Restrict an equal split to these members.")
@click.option("--date", "date_value", default=None, help="Date in YYYY-MM-DD.")
@click.pass_context
def add_expense(
    ctx: click.Context,
    name: str,
    paid_by: str,
    amount_value: str,
    description: str,
    splits: tuple[str, ...],
    policy: str,
    members: tuple[str, ...],
    date_value: str | None,
) -> None:
    """Add a shared expense to a group."""
    amount = parse_amount(amount_value, "--amount")
    date = parse_date(date_value, "--date")
    split_policy = SplitPolicy(policy.upper())
    with get_client(ctx) as client, domain_errors("Group expense"):
        record = resolve_group(client, name)
        by_name = {member.name.lower(): member for member in client.list_group_members(record.id)}

        def member_id(member_name: str) -> str:
            member = by_name.get(member_name.strip().lower())
            if member is None:
                raise click.ClickException(f"Member {member_name!r} not in group {record.name}.")
            return member.id

        split_amounts = None
        if split_policy is SplitPolicy.EQUAL:
            if members:
                member_ids = tuple(member_id(member) for member in members)
            else:
                member_ids = tuple(member.id for member in by_name.values())
        else:
            if not splits:
                raise click.UsageError("Provide --split member=amount for non-equal policies.")
            pairs = []
            for item in splits:
                member_name, _, value = item.partition("=")
                pairs.append((member_id(member_name), parse_amount(value, "--split")))
            member_ids = tuple(pair[0] for pair in pairs)
            split_amounts = tuple(pair[1] for pair in pairs)
        extra = {"date": date} if date else {}
        expense = client.add_group_expense(
            GroupExpenseDTO(
                group_id=record.id,
                paid_by=member_id(paid_by),
                amount=amount,
                description=description,
                member_ids=member_ids,
                policy=split_policy,
                split_amounts=split_amounts,
                **extra,
            )
        )
        for split in client.list_expense_splits(expense.id):
            member = next(m for m in by_name.values() if m.id == split.member_id)
            click.echo(f"{member.name:<20} {client.format_money(split.amount):>12}")


@group.command("show")
@click.argument("name")
@click.pass_context
def show_group(ctx: click.Context, name: str) -> None:
    """Show member balances and expenses of a group."""
    with get_client(ctx) as client:
        record = resolve_group(client, name)
        click.echo(f"{record.name}: total spent {client.format_money(record.total_spent)}")
        click.echo(f"{'Member':<20} {'Paid':>12} {'Owed':>12} {'Balance':>12}")
        members = client.list_group_members(record.id)
        names = {member.id: member.name for member in members}
        for member in members:
            click.echo(
                f"{member.name:<20} {client.format_money(member.total_paid):>12} "
                f"{client.format_money(member.total_owed):>12} "
                f"{client.format_money(member.balance):>12}"
            )
        for expense in client.list_group_expenses(record.id):
            click.echo(
                f"{expense.date.isoformat()}\t{expense.description}\t{expense.amount}"
                f"\tpaid by {names.get(expense.paid_by, '?')}\t{expense.split_type.value}"
            )
            for split in client.list_expense_splits(expense.id):
                state = "paid" if split.is_paid else "open"
                click.echo(f"  {split.id}\t{names.get(split.member_id, '?')}\t{split.amount}\t{state}")


@group.command("settle")
@click.argument("split_id")
@click.option("--unpaid", is_flag=True, help="Mark the split as open again.")
@click.pass_context
def settle(ctx: click.Context, split_id: str, unpaid: bool) -> None:
    """Mark a split as paid."""
    with get_client(ctx) as client, domain_errors("Settle"):
        split = client.mark_split_paid(split_id, not unpaid)
    click.echo(f"Split {split.id} {'paid' if split.is_paid else 'open'}")
