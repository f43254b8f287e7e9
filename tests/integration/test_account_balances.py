from __future__ import annotations

from decimal import Decimal

import pytest

from fintrack import AccountDTO, DuplicateNameError, TransactionDTO, TransactionType
from fintrack.client import FinanceClient
from fintrack.exceptions import MissingReferenceError
from tests.utils.assertions import assert_balance, assert_balances_reconstructable


def _fresh_account(client: FinanceClient, name: str, balance: str):
    return client.add_account(AccountDTO(name=name, balance=Decimal(balance)))


@pytest.mark.sit
def test_expense_then_delete_restores_balance(client) -> None:
    client.clear_all()
    cash = _fresh_account(client, "Cash", "100.00")

    saved = client.add_transaction(
        TransactionDTO(transaction_type=TransactionType.EXPENSE, amount="30.00", account=cash.id)
    )
    assert_balance(client, cash.id, "70.00")

    client.delete_transaction(saved.id)
    assert_balance(client, cash.id, "100.00")
    assert_balances_reconstructable(client)


@pytest.mark.sit
def test_transfer_edit_reverses_old_amount(client) -> None:
    client.clear_all()
    cash = _fresh_account(client, "Cash", "100.00")
    bank = _fresh_account(client, "Bank", "0.00")

    saved = client.add_transaction(
        TransactionDTO(
            transaction_type=TransactionType.TRANSFER,
            amount="50.00",
            account=cash.id,
            transfer_to=bank.id,
        )
    )
    assert_balance(client, cash.id, "50.00")
    assert_balance(client, bank.id, "50.00")

    client.update_transaction(
        saved.id,
        TransactionDTO(
            transaction_type=TransactionType.TRANSFER,
            amount="20.00",
            account=cash.id,
            transfer_to=bank.id,
        ),
    )
    assert_balance(client, cash.id, "80.00")
    assert_balance(client, bank.id, "20.00")
    assert_balances_reconstructable(client)


@pytest.mark.sit
def test_duplicate_account_name_rejected(client) -> None:
    first = _fresh_account(client, "Wallet", "12.00")

    with pytest.raises(DuplicateNameError) as excinfo:
        _fresh_account(client, "wallet", "99.00")

    assert excinfo.value.details["existing_id"] == first.id
    assert client.get_account(first.id) == first
    assert [a.name for a in client.list_accounts()].count("Wallet") == 1


@pytest.mark.sit
def test_edit_sequences_keep_balances_reconstructable(client, wallet, bank) -> None:
    plan = [
        (TransactionType.INCOME, "250.00", wallet.id, None),
        (TransactionType.EXPENSE, "19.99", bank.id, None),
        (TransactionType.TRANSFER, "75.25", bank.id, wallet.id),
        (TransactionType.EXPENSE, "0.01", wallet.id, None),
    ]
    saved = [
        client.add_transaction(
            TransactionDTO(
                transaction_type=kind, amount=amount, account=account, transfer_to=target
            )
        )
        for kind, amount, account, target in plan
    ]

    client.update_transaction(
        saved[0].id,
        TransactionDTO(transaction_type=TransactionType.EXPENSE, amount="10.00", account=bank.id),
    )
    client.update_transaction(
        saved[2].id,
        TransactionDTO(
            transaction_type=TransactionType.TRANSFER,
            amount="5.00",
            account=wallet.id,
            transfer_to=bank.id,
        ),
    )
    client.delete_transaction(saved[1].id)
    client.update_transaction(
        saved[2].id,
        TransactionDTO(transaction_type=TransactionType.INCOME, amount="1.10", account=bank.id),
    )

    # wallet: 100 - 0.01 ; bank: 500 - 10 + 1.10
    assert_balance(client, wallet.id, "99.99")
    assert_balance(client, bank.id, "491.10")
    assert_balances_reconstructable(client)
    assert client.recompute_balances() == []


@pytest.mark.sit
def test_set_balance_records_adjustment(client, wallet) -> None:
    client.set_balance(wallet.id, Decimal("40.00"), "Cash count")

    assert_balance(client, wallet.id, "40.00")
    operations = client.list_transactions(include_account_operations=True, account_id=wallet.id)
    adjustment = operations[0]
    assert adjustment.is_account_operation
    assert adjustment.transaction_type is TransactionType.EXPENSE
    assert adjustment.amount == Decimal("60.00")
    assert client.list_transactions(account_id=wallet.id) == []
    assert client.recompute_balances() == []


@pytest.mark.sit
def test_recompute_corrects_drift(client, wallet) -> None:
    client.repository.update_account_balance(wallet.id, Decimal("1.00"))

    drifted = client.recompute_balances()

    assert [(record.id, expected) for record, expected in drifted] == [
        (wallet.id, Decimal("100.00"))
    ]
    assert_balance(client, wallet.id, "100.00")


@pytest.mark.sit
def test_missing_account_aborts_write(client) -> None:
    with pytest.raises(MissingReferenceError):
        client.add_transaction(
            TransactionDTO(transaction_type=TransactionType.INCOME, amount="5", account="nope")
        )

    assert client.count_transactions() == 0


@pytest.mark.sit
def test_archived_account_lifecycle(client, wallet) -> None:
    client.add_transaction(
        TransactionDTO(transaction_type=TransactionType.EXPENSE, amount="5", account=wallet.id)
    )

    assert client.delete_account(wallet.id) is False
    archived = client.get_account(wallet.id)
    assert archived.name == "[Archived] Wallet"
    assert archived.is_archived
    assert wallet.id not in [a.id for a in client.list_accounts()]
    with pytest.raises(ValueError):
        client.add_transaction(
            TransactionDTO(transaction_type=TransactionType.EXPENSE, amount="5", account=wallet.id)
        )

    _fresh_account(client, "Wallet", "0")
    with pytest.raises(DuplicateNameError):
        client.unarchive_account(wallet.id)


@pytest.mark.sit
def test_edit_keeps_archived_account(client, wallet, bank) -> None:
    saved = client.add_transaction(
        TransactionDTO(transaction_type=TransactionType.EXPENSE, amount="10.00", account=wallet.id)
    )
    client.archive_account(wallet.id)

    updated = client.update_transaction(
        saved.id,
        TransactionDTO(transaction_type=TransactionType.EXPENSE, amount="25.00", account=wallet.id),
    )

    assert updated.amount == Decimal("25.00")
    assert_balance(client, wallet.id, "75.00")
    assert_balances_reconstructable(client)


@pytest.mark.sit
def test_edit_cannot_move_onto_archived_account(client, wallet, bank) -> None:
    saved = client.add_transaction(
        TransactionDTO(transaction_type=TransactionType.EXPENSE, amount="10.00", account=bank.id)
    )
    client.archive_account(wallet.id)

    with pytest.raises(ValueError):
        client.update_transaction(
            saved.id,
            TransactionDTO(
                transaction_type=TransactionType.EXPENSE, amount="10.00", account=wallet.id
            ),
        )
    assert_balance(client, bank.id, "490.00")


@pytest.mark.sit
def test_unarchive_restores_name(client, wallet) -> None:
    client.archive_account(wallet.id)
    restored = client.unarchive_account(wallet.id)

    assert restored.name == "Wallet"
    assert not restored.is_archived
    assert restored.balance == Decimal("100.00")


@pytest.mark.sit
def test_account_without_history_is_hard_deleted(client, wallet) -> None:
    assert client.delete_account(wallet.id) is True
    assert client.find_account_by_name("Wallet") is None
    assert client.repository.list_transactions(
        include_account_operations=True, account_id=wallet.id
    ) == []


@pytest.mark.sit
def test_reports_exclude_account_operations(client, wallet) -> None:
    client.add_transaction(
        TransactionDTO(
            transaction_type=TransactionType.EXPENSE,
            amount="12.00",
            account=wallet.id,
            category="Food & Dining",
        )
    )
    client.add_transaction(
        TransactionDTO(
            transaction_type=TransactionType.EXPENSE,
            amount="30.00",
            account=wallet.id,
            category="Travel",
        )
    )
    client.add_transaction(
        TransactionDTO(transaction_type=TransactionType.INCOME, amount="7.00", account=wallet.id)
    )
    today = client.recent_transactions(1)[0].date

    assert list(client.transactions_by_category()) == ["Travel", "Food & Dining"]
    summary = client.monthly_summary(today.year, today.month)
    assert summary.income == Decimal("7.00")
    assert summary.expense == Decimal("42.00")
    assert summary.net == Decimal("-35.00")
    assert len(client.recent_transactions()) == 3
