"""Person ledger (IOU) balances.

A person's cached balance is derived state; the ordered list of their
ledger transactions is the source of truth. Adds take the incremental fast
path, edits and deletes end in an authoritative recompute.
"""

from __future__ import annotations

from dataclasses import replace
import datetime as dt
from decimal import Decimal
import logging
import threading
import uuid

from fintrack.exceptions import DuplicateNameError
from fintrack.models import (
    LedgerDirection,
    LedgerPersonRecord,
    LedgerTransactionDTO,
    LedgerTransactionRecord,
    TransactionDTO,
    TransactionType,
)
from fintrack.money import ZERO, round_money
from fintrack.repository import Repository
from fintrack.schema import LEDGER_CATEGORY
from fintrack.transactions import TransactionStore

logger = logging.getLogger(__name__)

MAIN_TRANSACTION_PREFIX = "main_"


def last_activity(entries: list[LedgerTransactionRecord]) -> dt.date | None:
    return entries[-1].date if entries else None


def fold_balance(entries: list[LedgerTransactionRecord]) -> Decimal:
    """Σ received − Σ sent, rounded after every step."""
    balance = ZERO
    for entry in entries:
        balance = round_money(balance + entry.signed_amount)
    return balance


class PersonLedger:
    """Maintain running balances per counterparty."""

    def __init__(self, repository: Repository, transactions: TransactionStore) -> None:
        self.repository = repository
        self.transactions = transactions

    def add_person(self, name: str) -> LedgerPersonRecord:
        name = name.strip()
        if not name:
            raise ValueError("Name is required")
        existing = self.repository.find_person_by_name(name)
        if existing is not None:
            raise DuplicateNameError(
                "Duplicate person name", {"name": name, "existing_id": existing.id}
            )
        person = LedgerPersonRecord(
            id=uuid.uuid4().hex,
            name=name,
            balance=ZERO,
            transaction_count=0,
            last_transaction_date=None,
        )
        return self.repository.insert_person(person)

    def get_person(self, person_id: str) -> LedgerPersonRecord:
        return self.repository.get_person(person_id)

    def list_persons(self) -> list[LedgerPersonRecord]:
        return self.repository.list_persons()

    def history(self, person_id: str) -> list[LedgerTransactionRecord]:
        """Return a person's entries oldest first."""
        self.repository.get_person(person_id)
        return self.repository.list_ledger_transactions(person_id)

    def record(self, entry: LedgerTransactionDTO) -> LedgerTransactionRecord:
        """Record an entry using the incremental update."""
        person = self.repository.get_person(entry.person_id)
        signed = entry.amount if entry.direction is LedgerDirection.RECEIVED else -entry.amount
        new_balance = round_money(person.balance + signed)
        entry_id = uuid.uuid4().hex
        main_id = self._write_mirror(entry_id, entry, person)
        account = self.repository.find_account(entry.account_id) if main_id else None
        record = LedgerTransactionRecord(
            id=entry_id,
            person_id=person.id,
            amount=entry.amount,
            direction=entry.direction,
            date=entry.date,
            time=entry.time,
            account_id=account.id if account else None,
            account_name=account.name if account else None,
            title=entry.title,
            description=entry.description,
            balance_at_time=new_balance,
            main_transaction_id=main_id,
        )
        self.repository.insert_ledger_transaction(record)
        last_date = entry.date
        if person.last_transaction_date and person.last_transaction_date > last_date:
            last_date = person.last_transaction_date
        self.repository.update_person_state(
            person.id, new_balance, person.transaction_count + 1, last_date
        )
        logger.debug("Ledger %s: %s -> %s", person.name, person.balance, new_balance)
        return record

    def update(self, entry_id: str, entry: LedgerTransactionDTO) -> LedgerTransactionRecord:
        """Rewrite an entry, then recompute the person's balance from history."""
        old = self.repository.get_ledger_transaction(entry_id)
        if entry.person_id != old.person_id:
            raise ValueError("Ledger entries cannot move between persons")
        person = self.repository.get_person(old.person_id)
        main_id = old.main_transaction_id
        if main_id and self.repository.find_transaction(main_id) is None:
            main_id = None
        if main_id is None:
            main_id = self._write_mirror(entry_id, entry, person)
        elif entry.account_id and self.repository.find_account(entry.account_id) is not None:
            self.transactions.update(main_id, self._mirror_dto(entry, person))
        else:
            if entry.account_id:
                logger.warning(
                    "Funding account %s not found, dropping account movement of entry %s",
                    entry.account_id,
                    entry_id,
                )
            self.transactions.delete(main_id)
            main_id = None
        account = self.repository.find_account(entry.account_id) if main_id else None
        updated = replace(
            old,
            amount=entry.amount,
            direction=entry.direction,
            date=entry.date,
            time=entry.time,
            account_id=account.id if account else None,
            account_name=account.name if account else None,
            title=entry.title,
            description=entry.description,
            main_transaction_id=main_id,
        )
        self.repository.update_ledger_transaction(updated)
        self.recompute(person.id)
        return self.repository.get_ledger_transaction(entry_id)

    def delete(self, entry_id: str) -> LedgerTransactionRecord:
        """Remove an entry and reverse its effect on the person."""
        entry = self.repository.get_ledger_transaction(entry_id)
        person = self.repository.get_person(entry.person_id)
        self.repository.delete_ledger_transaction(entry_id)
        remaining = self.repository.list_ledger_transactions(person.id)
        last_date = last_activity(remaining)
        self.repository.update_person_state(
            person.id,
            round_money(person.balance - entry.signed_amount),
            max(0, person.transaction_count - 1),
            last_date,
        )
        self._delete_mirror(entry)
        return entry

    def recompute(self, person_id: str) -> LedgerPersonRecord:
        """Rebuild a person's balance, count and last date from history."""
        person = self.repository.get_person(person_id)
        entries = self.repository.list_ledger_transactions(person_id)
        running = ZERO
        for entry in entries:
            running = round_money(running + entry.signed_amount)
            if entry.balance_at_time != running:
                self.repository.update_ledger_transaction(replace(entry, balance_at_time=running))
        last_date = last_activity(entries)
        if running != person.balance:
            logger.warning(
                "Ledger %s balance drifted: cached %s, recomputed %s",
                person.name,
                person.balance,
                running,
            )
        self.repository.update_person_state(person_id, running, len(entries), last_date)
        return self.repository.get_person(person_id)

    def verify_all(
        self, stop_event: threading.Event | None = None
    ) -> list[tuple[LedgerPersonRecord, Decimal]]:
        """Recompute every person; return those whose cache had drifted."""
        drifted = []
        for person in self.repository.list_persons():
            if stop_event is not None and stop_event.is_set():
                logger.warning("Ledger verification interrupted by shutdown")
                break
            expected = fold_balance(self.repository.list_ledger_transactions(person.id))
            if expected != person.balance:
                drifted.append((person, expected))
            self.recompute(person.id)
        return drifted

    def delete_person(self, person_id: str) -> None:
        """Delete a person, their entries and the mirrored account transactions."""
        self.repository.get_person(person_id)
        for entry in self.repository.list_ledger_transactions(person_id):
            self._delete_mirror(entry)
        self.repository.delete_person(person_id)

    def _mirror_dto(self, entry: LedgerTransactionDTO, person: LedgerPersonRecord) -> TransactionDTO:
        if entry.direction is LedgerDirection.SENT:
            title = entry.title or f"Sent to {person.name}"
            transaction_type = TransactionType.EXPENSE
        else:
            title = entry.title or f"Received from {person.name}"
            transaction_type = TransactionType.INCOME
        return TransactionDTO(
            transaction_type=transaction_type,
            amount=entry.amount,
            account=entry.account_id,
            title=title,
            category=LEDGER_CATEGORY,
            date=entry.date,
            time=entry.time,
            description=entry.description,
            ledger_person_id=person.id,
        )

    def _write_mirror(
        self,
        entry_id: str,
        entry: LedgerTransactionDTO,
        person: LedgerPersonRecord,
    ) -> str | None:
        """Write the account transaction that moves the funding account.

        A funding account that no longer exists is tolerated: the IOU entry
        is still recorded, just without an account movement.
        """
        if not entry.account_id:
            return None
        if self.repository.find_account(entry.account_id) is None:
            logger.warning(
                "Funding account %s not found, recording ledger entry without it",
                entry.account_id,
            )
            return None
        record = self.transactions.add(
            self._mirror_dto(entry, person),
            transaction_id=f"{MAIN_TRANSACTION_PREFIX}{entry_id}",
        )
        return record.id

    def _delete_mirror(self, entry: LedgerTransactionRecord) -> None:
        if not entry.main_transaction_id:
            return
        if self.repository.find_transaction(entry.main_transaction_id) is None:
            logger.warning(
                "Mirrored transaction %s of ledger entry %s already gone",
                entry.main_transaction_id,
                entry.id,
            )
            return
        self.transactions.delete(entry.main_transaction_id)
