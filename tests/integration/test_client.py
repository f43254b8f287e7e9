from __future__ import annotations

import json
import threading
from decimal import Decimal

import pytest

from fintrack import (
    AccountDTO,
    LedgerDirection,
    LedgerTransactionDTO,
    TransactionDTO,
    TransactionType,
)
from fintrack.cache import TOPIC_ACCOUNTS
from fintrack.client import FinanceClient
from tests.utils.assertions import assert_balance, assert_balances_reconstructable


def _snapshot(client: FinanceClient):
    return (
        [(a.id, a.name, a.balance, a.is_archived) for a in client.repository.list_accounts()],
        [(c.id, c.name) for c in client.list_categories()],
        client.repository.count_transactions(include_account_operations=True),
        client.list_persons(),
        client.list_groups(),
    )


@pytest.mark.sit
def test_new_database_is_seeded(client) -> None:
    names = [account.name for account in client.list_accounts()]

    assert names == ["Bank Account", "Cash", "Credit Card"]
    assert client.total_balance() == Decimal("0.00")
    assert len(client.list_categories()) == 12


@pytest.mark.sit
def test_reset_to_defaults_is_idempotent(client, wallet) -> None:
    client.add_person("Sam")
    client.create_group("Trip", ["Ann", "Bo"])
    client.add_transaction(
        TransactionDTO(transaction_type=TransactionType.INCOME, amount="5", account=wallet.id)
    )

    client.reset_to_defaults()
    once = _snapshot(client)
    client.reset_to_defaults()
    twice = _snapshot(client)

    assert once == twice
    assert [name for _, name, _, _ in once[0]] == ["Bank Account", "Cash", "Credit Card"]
    assert once[2:] == (0, [], [])


@pytest.mark.sit
def test_clear_all_survives_reopen_and_keeps_settings(db_path) -> None:
    with FinanceClient(db_path=db_path) as client:
        client.set_currency_symbol("₹")
        client.clear_all()

    with FinanceClient(db_path=db_path) as client:
        assert client.list_accounts() == []
        assert client.currency_symbol() == "₹"
        assert client.format_money(Decimal("-1234.5")) == "-₹1,234.50"


@pytest.mark.sit
def test_subscribers_hear_about_writes(client) -> None:
    seen = []
    client.subscribe(TOPIC_ACCOUNTS, seen.append)
    before = client.list_accounts()

    client.add_account(AccountDTO(name="Travel Card", balance="0"))

    assert seen == [TOPIC_ACCOUNTS]
    assert len(client.list_accounts()) == len(before) + 1


@pytest.mark.sit
def test_submit_runs_on_worker(client) -> None:
    cash = client.find_account_by_name("Cash")

    future = client.submit(
        client.add_transaction,
        TransactionDTO(transaction_type=TransactionType.INCOME, amount="8.50", account=cash.id),
    )

    record = future.result(timeout=10)
    assert record.effects_applied is True
    assert client.get_account(cash.id).balance == Decimal("8.50")


@pytest.mark.sit
def test_closed_client_rejects_submit(db_path) -> None:
    client = FinanceClient(db_path=db_path)
    client.open()
    client.close()

    with pytest.raises(RuntimeError):
        client.submit(print)


def test_db_path_from_config(tmp_path, monkeypatch) -> None:
    config_path = tmp_path / "fintrack-config.json"
    config_path.write_text(
        json.dumps({"db_path": str(tmp_path / "from-config.db"), "currency_symbol": "€"}),
        encoding="utf-8",
    )
    monkeypatch.setenv("FINTRACK_CONFIG", str(config_path))

    client = FinanceClient()

    assert client.db_path == tmp_path / "from-config.db"
    assert client.settings.default_symbol == "€"


def test_missing_config_requires_db_path() -> None:
    with pytest.raises(ValueError):
        FinanceClient()


@pytest.mark.sit
def test_concurrent_writes_do_not_lose_updates(client, wallet) -> None:
    sam = client.add_person("Sam")
    errors = []

    def spend() -> None:
        try:
            for _ in range(25):
                client.add_transaction(
                    TransactionDTO(
                        transaction_type=TransactionType.EXPENSE, amount="1.00", account=wallet.id
                    )
                )
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=spend) for _ in range(8)]
    for thread in threads:
        thread.start()
    futures = [
        client.submit(
            client.record_ledger,
            LedgerTransactionDTO(
                person_id=sam.id,
                amount="1.00",
                direction=LedgerDirection.SENT,
                account_id=wallet.id,
            ),
        )
        for _ in range(10)
    ]
    for thread in threads:
        thread.join()
    for future in futures:
        future.result(timeout=30)

    assert errors == []
    assert_balance(client, wallet.id, "-110.00")
    assert client.get_person(sam.id).balance == Decimal("-10.00")
    assert client.get_person(sam.id).transaction_count == 10
    assert_balances_reconstructable(client)


@pytest.mark.sit
def test_read_overlapping_write_is_not_cached(client, wallet) -> None:
    def fetch_then_write():
        snapshot = client.repository.list_accounts()
        client.set_balance(wallet.id, Decimal("5.00"))
        return snapshot

    stale = client.cache.get_or_fetch(TOPIC_ACCOUNTS, ("list", False), fetch_then_write)

    assert next(a for a in stale if a.id == wallet.id).balance == Decimal("100.00")
    listed = next(a for a in client.list_accounts() if a.id == wallet.id)
    assert listed.balance == Decimal("5.00")
