from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest

from fintrack.effects import effects_for, net_effect, net_effects_by_account, reverse_effects_for
from fintrack.models import Effect, TransactionRecord, TransactionType


def _record(transaction_type: TransactionType, amount: str, transfer_to_id: str | None = None):
    return TransactionRecord(
        id="t1",
        title="",
        amount=Decimal(amount),
        transaction_type=transaction_type,
        account_id="a",
        account_name="A",
        category="General",
        date=dt.date(2026, 1, 1),
        time="10:00",
        description="",
        transfer_to_id=transfer_to_id,
        transfer_to="B" if transfer_to_id else None,
    )


def test_income_credits_account() -> None:
    assert effects_for(_record(TransactionType.INCOME, "10.00")) == [Effect("a", Decimal("10.00"))]


def test_expense_debits_account() -> None:
    assert effects_for(_record(TransactionType.EXPENSE, "10.00")) == [
        Effect("a", Decimal("-10.00"))
    ]


def test_transfer_moves_between_accounts() -> None:
    effects = effects_for(_record(TransactionType.TRANSFER, "20.00", "b"))

    assert effects == [Effect("a", Decimal("-20.00")), Effect("b", Decimal("20.00"))]
    assert sum(effect.delta for effect in effects) == 0


def test_transfer_without_destination_is_rejected() -> None:
    with pytest.raises(ValueError):
        effects_for(_record(TransactionType.TRANSFER, "20.00"))


@pytest.mark.parametrize(
    "record",
    [
        _record(TransactionType.INCOME, "5.55"),
        _record(TransactionType.EXPENSE, "5.55"),
        _record(TransactionType.TRANSFER, "5.55", "b"),
    ],
)
def test_reverse_cancels_forward(record) -> None:
    combined = effects_for(record) + reverse_effects_for(record)

    assert net_effect(combined, "a") == 0
    assert net_effect(combined, "b") == 0


def test_net_effects_by_account() -> None:
    totals = net_effects_by_account(
        [
            _record(TransactionType.INCOME, "100.00"),
            _record(TransactionType.EXPENSE, "30.00"),
            _record(TransactionType.TRANSFER, "20.00", "b"),
        ]
    )

    assert totals == {"a": Decimal("50.00"), "b": Decimal("20.00")}
