from __future__ import annotations

from decimal import Decimal

from fintrack.client import FinanceClient
from fintrack.effects import net_effects_by_account


def assert_balance(client: FinanceClient, account_id: str, expected: str) -> None:
    actual = client.get_account(account_id).balance
    if actual != Decimal(expected):
        raise AssertionError(f"Expected balance {expected}, got {actual}")


def assert_balances_reconstructable(client: FinanceClient) -> None:
    """Stored balances must equal the fold over applied transaction rows."""
    rows = client.repository.list_transactions(
        include_account_operations=True, effects_applied=True
    )
    totals = net_effects_by_account(rows)
    for account in client.repository.list_accounts():
        expected = totals.get(account.id, Decimal("0.00"))
        if account.balance != expected:
            raise AssertionError(
                f"{account.name}: stored {account.balance}, reconstructed {expected}"
            )
