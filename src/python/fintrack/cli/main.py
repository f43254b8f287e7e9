"""fintrack CLI entry point."""

from __future__ import annotations

from pathlib import Path

import click

from fintrack.__version__ import __version__
from fintrack.cli.account import account
from fintrack.cli.data import data
from fintrack.cli.goal import goal
from fintrack.cli.group import group
from fintrack.cli.ledger import ledger
from fintrack.cli.txn import txn


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="fintrack")
@click.option(
    "--db",
    "db_path",
    type=click.Path(path_type=Path),
    help="Path to the fintrack database.",
)
@click.pass_context
def main(ctx: click.Context, db_path: Path | None) -> None:
    """fintrack CLI entry point."""
    ctx.obj = {"db_path": db_path}


main.add_command(account)
main.add_command(txn)
main.add_command(ledger)
main.add_command(group)
main.add_command(goal)
main.add_command(data)


if __name__ == "__main__":
    main()
