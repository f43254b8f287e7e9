from __future__ import annotations

import datetime as dt
from decimal import Decimal

import pytest

from fintrack import DuplicateNameError, LedgerDirection, LedgerTransactionDTO
from fintrack.ledger import fold_balance
from fintrack.schema import LEDGER_CATEGORY
from tests.utils.assertions import assert_balance, assert_balances_reconstructable


def _entry(person_id: str, direction: LedgerDirection, amount: str, **kwargs):
    return LedgerTransactionDTO(person_id=person_id, amount=amount, direction=direction, **kwargs)


@pytest.mark.sit
def test_received_then_sent(client) -> None:
    sam = client.add_person("Sam")
    assert sam.balance == Decimal("0.00")

    client.record_ledger(_entry(sam.id, LedgerDirection.RECEIVED, "40.00"))
    assert client.get_person(sam.id).balance == Decimal("40.00")

    client.record_ledger(_entry(sam.id, LedgerDirection.SENT, "15.00"))
    assert client.get_person(sam.id).balance == Decimal("25.00")

    recomputed = client.recompute_person(sam.id)
    assert recomputed.balance == Decimal("25.00")
    assert recomputed.transaction_count == 2


@pytest.mark.sit
def test_duplicate_person_rejected(client) -> None:
    client.add_person("Sam")

    with pytest.raises(DuplicateNameError):
        client.add_person(" sam ")


@pytest.mark.sit
def test_incremental_matches_recompute_after_deletes(client) -> None:
    ana = client.add_person("Ana")
    amounts = [
        (LedgerDirection.SENT, "10.10", dt.date(2026, 1, 3)),
        (LedgerDirection.RECEIVED, "3.33", dt.date(2026, 1, 1)),
        (LedgerDirection.SENT, "0.01", dt.date(2026, 1, 7)),
        (LedgerDirection.RECEIVED, "99.99", dt.date(2026, 1, 5)),
    ]
    entries = [
        client.record_ledger(_entry(ana.id, direction, amount, date=date))
        for direction, amount, date in amounts
    ]
    client.delete_ledger(entries[2].id)
    client.delete_ledger(entries[0].id)

    incremental = client.get_person(ana.id)
    history = client.person_history(ana.id)
    assert incremental.balance == fold_balance(history) == Decimal("103.32")
    assert incremental.transaction_count == 2
    assert incremental.last_transaction_date == dt.date(2026, 1, 5)
    assert client.verify_ledger() == []


@pytest.mark.sit
def test_history_is_oldest_first_with_running_balance(client) -> None:
    bo = client.add_person("Bo")
    client.record_ledger(_entry(bo.id, LedgerDirection.SENT, "5", date=dt.date(2026, 3, 2)))
    first = client.record_ledger(
        _entry(bo.id, LedgerDirection.RECEIVED, "8", date=dt.date(2026, 3, 1))
    )
    client.update_ledger(
        first.id, _entry(bo.id, LedgerDirection.RECEIVED, "9", date=dt.date(2026, 3, 1))
    )

    history = client.person_history(bo.id)
    assert [entry.balance_at_time for entry in history] == [Decimal("9.00"), Decimal("4.00")]
    assert client.get_person(bo.id).balance == Decimal("4.00")


@pytest.mark.sit
def test_funding_account_is_mirrored(client, wallet) -> None:
    sam = client.add_person("Sam")

    entry = client.record_ledger(
        _entry(sam.id, LedgerDirection.SENT, "25.00", account_id=wallet.id)
    )

    assert entry.main_transaction_id == f"main_{entry.id}"
    mirror = client.get_transaction(entry.main_transaction_id)
    assert mirror.category == LEDGER_CATEGORY
    assert mirror.is_ledger_transaction
    assert mirror.title == "Sent to Sam"
    assert_balance(client, wallet.id, "75.00")

    client.update_ledger(
        entry.id, _entry(sam.id, LedgerDirection.RECEIVED, "10.00", account_id=wallet.id)
    )
    assert_balance(client, wallet.id, "110.00")
    assert client.get_person(sam.id).balance == Decimal("10.00")

    client.delete_ledger(entry.id)
    assert_balance(client, wallet.id, "100.00")
    assert client.list_transactions() == []
    assert_balances_reconstructable(client)


@pytest.mark.sit
def test_deleting_mirror_deletes_ledger_entry(client, wallet) -> None:
    sam = client.add_person("Sam")
    entry = client.record_ledger(
        _entry(sam.id, LedgerDirection.RECEIVED, "12.00", account_id=wallet.id)
    )

    client.delete_transaction(entry.main_transaction_id)

    assert client.person_history(sam.id) == []
    assert client.get_person(sam.id).balance == Decimal("0.00")
    assert_balance(client, wallet.id, "100.00")


@pytest.mark.sit
def test_missing_funding_account_degrades(client, caplog) -> None:
    sam = client.add_person("Sam")

    entry = client.record_ledger(
        _entry(sam.id, LedgerDirection.SENT, "5.00", account_id="gone")
    )

    assert entry.main_transaction_id is None
    assert client.get_person(sam.id).balance == Decimal("-5.00")
    assert "not found" in caplog.text


@pytest.mark.sit
def test_update_entry_on_archived_funding_account(client, wallet) -> None:
    sam = client.add_person("Sam")
    entry = client.record_ledger(
        _entry(sam.id, LedgerDirection.SENT, "30.00", account_id=wallet.id)
    )
    client.archive_account(wallet.id)

    updated = client.update_ledger(
        entry.id, _entry(sam.id, LedgerDirection.SENT, "40.00", account_id=wallet.id)
    )

    assert updated.main_transaction_id == entry.main_transaction_id
    assert client.get_transaction(entry.main_transaction_id).amount == Decimal("40.00")
    assert_balance(client, wallet.id, "60.00")
    assert client.get_person(sam.id).balance == Decimal("-40.00")


@pytest.mark.sit
def test_update_entry_with_missing_funding_account_degrades(client, wallet, caplog) -> None:
    sam = client.add_person("Sam")
    entry = client.record_ledger(
        _entry(sam.id, LedgerDirection.SENT, "30.00", account_id=wallet.id)
    )
    client.repository.delete_account(wallet.id)

    updated = client.update_ledger(
        entry.id, _entry(sam.id, LedgerDirection.SENT, "40.00", account_id=wallet.id)
    )

    assert updated.main_transaction_id is None
    assert updated.account_id is None
    assert client.repository.find_transaction(entry.main_transaction_id) is None
    assert client.get_person(sam.id).balance == Decimal("-40.00")
    assert "not found" in caplog.text


@pytest.mark.sit
def test_delete_person_reverses_account_mirrors(client, wallet) -> None:
    sam = client.add_person("Sam")
    client.record_ledger(_entry(sam.id, LedgerDirection.SENT, "30.00", account_id=wallet.id))
    client.record_ledger(_entry(sam.id, LedgerDirection.SENT, "20.00"))

    client.delete_person(sam.id)

    assert client.list_persons() == []
    assert_balance(client, wallet.id, "100.00")


@pytest.mark.sit
def test_verify_repairs_drifted_person(client) -> None:
    sam = client.add_person("Sam")
    client.record_ledger(_entry(sam.id, LedgerDirection.RECEIVED, "40.00"))
    client.repository.update_person_state(sam.id, Decimal("1.00"), 9, None)

    drifted = client.verify_ledger()

    assert [(person.id, expected) for person, expected in drifted] == [
        (sam.id, Decimal("40.00"))
    ]
    repaired = client.get_person(sam.id)
    assert repaired.balance == Decimal("40.00")
    assert repaired.transaction_count == 1
