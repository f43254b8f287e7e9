"""Map transactions to signed balance effects.

Edit and delete correctness rests on the symmetry between ``effects_for``
and ``reverse_effects_for``: an edit is ``reverse(old)`` followed by
``effects_for(new)`` and a delete is ``reverse(old)``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from fintrack.models import Effect, TransactionRecord, TransactionType


def effects_for(transaction: TransactionRecord) -> list[Effect]:
    """Return the signed deltas a transaction applies to its accounts."""
    amount = transaction.amount
    if transaction.transaction_type is TransactionType.INCOME:
        return [Effect(transaction.account_id, amount)]
    if transaction.transaction_type is TransactionType.EXPENSE:
        return [Effect(transaction.account_id, -amount)]
    if transaction.transaction_type is TransactionType.TRANSFER:
        if not transaction.transfer_to_id:
            raise ValueError(f"Transfer {transaction.id} has no destination account")
        return [
            Effect(transaction.account_id, -amount),
            Effect(transaction.transfer_to_id, amount),
        ]
    raise ValueError(f"Unknown transaction type: {transaction.transaction_type}")


def reverse_effects_for(transaction: TransactionRecord) -> list[Effect]:
    """Return the negation of every effect of a transaction."""
    return [Effect(effect.account_id, -effect.delta) for effect in effects_for(transaction)]


def net_effect(effects: Iterable[Effect], account_id: str) -> Decimal:
    """Sum the deltas that touch one account."""
    return sum(
        (effect.delta for effect in effects if effect.account_id == account_id),
        Decimal("0.00"),
    )


def net_effects_by_account(
    transactions: Iterable[TransactionRecord],
) -> dict[str, Decimal]:
    """Fold the effects of many transactions into per-account totals."""
    totals: dict[str, Decimal] = {}
    for transaction in transactions:
        for effect in effects_for(transaction):
            totals[effect.account_id] = totals.get(effect.account_id, Decimal("0.00")) + effect.delta
    return totals
