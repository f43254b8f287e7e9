"""Savings goal CLI commands."""

from __future__ import annotations

import click

from fintrack.cli.common import domain_errors, get_client, parse_amount, parse_date
from fintrack.models import GoalDTO, GoalPriority


@click.group()
def goal() -> None:
    """Savings goal commands."""


@goal.command("add")
@click.option("--title", required=True, help="Goal title.")
@click.option("--target", "target_value", required=True, help="Target amount.")
@click.option("--saved", "saved_value", default="0", show_default=True, help="Amount saved so far.")
@click.option("--deadline", "deadline_value", default=None, help="Deadline in YYYY-MM-DD.")
@click.option(
    "--priority",
    type=click.Choice([priority.value for priority in GoalPriority], case_sensitive=False),
    default=GoalPriority.MEDIUM.value,
    show_default=True,
)
@click.option("--monthly", "monthly_value", default=None, help="Planned monthly saving.")
@click.option("--description", default="", help="Goal description.")
@click.pass_context
def add_goal(
    ctx: click.Context,
    title: str,
    target_value: str,
    saved_value: str,
    deadline_value: str | None,
    priority: str,
    monthly_value: str | None,
    description: str,
) -> None:
    """Create a savings goal.

    Examples:
        fintrack goal add --title "New laptop" --target 1500 --deadline 2026-12-01
    """
    target = parse_amount(target_value, "--target")
    saved = parse_amount(saved_value, "--saved")
    monthly = parse_amount(monthly_value, "--monthly")
    deadline = parse_date(deadline_value, "--deadline")
    with get_client(ctx) as client, domain_errors("Goal add"):
        record = client.add_goal(
            GoalDTO(
                title=title,
                target_amount=target,
                current_amount=saved,
                description=description,
                deadline=deadline,
                is_recurring=monthly is not None,
                monthly_amount=monthly,
                priority=GoalPriority(priority.lower()),
            )
        )
    click.echo(f"Created goal {record.id} ({record.title})")


@goal.command("list")
@click.pass_context
def list_goals(ctx: click.Context) -> None:
    """List goals with their progress."""
    with get_client(ctx) as client:
        goals = client.list_goals()
        if not goals:
            click.echo("No goals found.")
            return
        for record in goals:
            deadline = record.deadline.isoformat() if record.deadline else "-"
            click.echo(
                f"{record.id}\t{record.title}\t"
                f"{client.format_money(record.current_amount)} / "
                f"{client.format_money(record.target_amount)}\t"
                f"{record.progress_percentage}%\t{record.status.value}\t{deadline}"
            )


@goal.command("progress")
@click.argument("goal_id")
@click.option("--saved", "saved_value", required=True, help="Amount saved so far.")
@click.pass_context
def set_progress(ctx: click.Context, goal_id: str, saved_value: str) -> None:
    """Set the amount saved toward a goal."""
    saved = parse_amount(saved_value, "--saved")
    with get_client(ctx) as client, domain_errors("Goal progress"):
        record = client.update_goal_progress(goal_id, saved)
    click.echo(f"{record.title}: {record.progress_percentage}% ({record.status.value})")


@goal.command("contribute")
@click.argument("goal_id")
@click.option("--amount", "amount_value", required=True, help="Amount to add.")
@click.pass_context
def contribute(ctx: click.Context, goal_id: str, amount_value: str) -> None:
    """Add money to a goal."""
    amount = parse_amount(amount_value, "--amount")
    with get_client(ctx) as client, domain_errors("Goal contribute"):
        record = client.contribute_to_goal(goal_id, amount)
        remaining = client.format_money(record.remaining_amount)
    click.echo(f"{record.title}: {record.progress_percentage}%, {remaining} to go")


@goal.command("delete")
@click.argument("goal_id")
@click.option("--yes", is_flag=True, help="Skip confirmation.")
@click.pass_context
def delete_goal(ctx: click.Context, goal_id: str, yes: bool) -> None:
    """Delete a goal."""
    if not yes:
        click.confirm(f"Delete goal {goal_id}?", abort=True)
    with get_client(ctx) as client, domain_errors("Goal delete"):
        client.delete_goal(goal_id)
    click.echo(f"Deleted goal {goal_id}")
