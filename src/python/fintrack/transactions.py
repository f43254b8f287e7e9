"""Transaction persistence with balance effects."""

from __future__ import annotations

from dataclasses import replace
import datetime as dt
from decimal import Decimal
import logging
import uuid

from fintrack.accounts import AccountLedger
from fintrack.effects import effects_for, reverse_effects_for
from fintrack.exceptions import IntegrityError, MissingReferenceError
from fintrack.models import (
    AccountRecord,
    MonthlySummary,
    TransactionDTO,
    TransactionRecord,
    TransactionType,
)
from fintrack.money import ZERO
from fintrack.repository import Repository

logger = logging.getLogger(__name__)


class TransactionStore:
    """Persist transactions and keep account balances in step with them.

    Every stored row carries an ``effects_applied`` flag. A row is written
    first and its effects applied afterwards; if the second step fails the
    row stays behind unapplied and ``apply_pending_effects`` can finish the
    job without double counting.
    """

    def __init__(self, repository: Repository, accounts: AccountLedger) -> None:
        self.repository = repository
        self.accounts = accounts

    def add(self, transaction: TransactionDTO, transaction_id: str | None = None) -> TransactionRecord:
        """Persist a transaction, then apply its effects."""
        record = self._build_record(transaction, transaction_id or uuid.uuid4().hex)
        self.repository.run_transaction(lambda: self.repository.insert_transaction(record))
        try:
            self.repository.run_transaction(lambda: self._apply(record))
        except Exception as exc:
            logger.error("Transaction %s stored but balances not updated: %s", record.id, exc)
            raise IntegrityError(
                f"Transaction {record.id} was saved but its balance effects failed",
                transaction_id=record.id,
            ) from exc
        return replace(record, effects_applied=True)

    def update(self, transaction_id: str, transaction: TransactionDTO) -> TransactionRecord:
        """Replace a stored transaction, reversing the stored effects first."""
        old = self.repository.get_transaction(transaction_id)
        self._ensure_user_transaction(old)
        new = self._build_record(
            transaction,
            transaction_id,
            ledger_person_id=old.ledger_person_id,
            group_expense_id=old.group_expense_id,
            kept_account_ids={old.account_id, old.transfer_to_id},
        )

        def action() -> TransactionRecord:
            if old.effects_applied:
                self.accounts.apply_effects(reverse_effects_for(old))
            self.repository.update_transaction(new)
            self._apply(new)
            return replace(new, effects_applied=True)

        try:
            return self.repository.run_transaction(action)
        except Exception as exc:
            raise IntegrityError(
                f"Transaction {transaction_id} could not be updated",
                transaction_id=transaction_id,
            ) from exc

    def delete(self, transaction_id: str) -> TransactionRecord:
        """Reverse a transaction's effects and remove it."""
        old = self.repository.get_transaction(transaction_id)
        self._ensure_user_transaction(old)

        def action() -> TransactionRecord:
            if old.effects_applied:
                self.accounts.apply_effects(reverse_effects_for(old))
            self.repository.delete_transaction(transaction_id)
            return old

        try:
            return self.repository.run_transaction(action)
        except Exception as exc:
            logger.error("Delete of transaction %s failed after reversal: %s", transaction_id, exc)
            raise IntegrityError(
                f"Transaction {transaction_id} could not be deleted",
                transaction_id=transaction_id,
                requires_recompute=True,
            ) from exc

    def apply_pending_effects(self) -> list[TransactionRecord]:
        """Apply the effects of rows whose balance step never completed."""
        pending = self.repository.list_transactions(
            include_account_operations=True, effects_applied=False
        )
        # Oldest first so balances evolve in the order rows were written
        for record in reversed(pending):
            self.repository.run_transaction(lambda record=record: self._apply(record))
            logger.info("Applied pending effects of transaction %s", record.id)
        return pending

    def clear_all(self) -> None:
        """Wipe every domain table in one transaction."""
        self.repository.run_transaction(self.repository.wipe_domain_tables)
        logger.info("Cleared all data")

    def reset_to_defaults(self) -> None:
        """Wipe every domain table and reseed defaults in one transaction."""

        def action() -> None:
            self.repository.wipe_domain_tables()
            self.repository.seed_defaults()

        self.repository.run_transaction(action)
        logger.info("Reset data to defaults")

    def get(self, transaction_id: str) -> TransactionRecord:
        return self.repository.get_transaction(transaction_id)

    def list_transactions(self, **filters: object) -> list[TransactionRecord]:
        """List user transactions; account operations only when asked for."""
        return self.repository.list_transactions(**filters)

    def recent(self, limit: int = 10) -> list[TransactionRecord]:
        return self.repository.list_transactions(limit=limit)

    def by_category(
        self, start_date: dt.date | None = None, end_date: dt.date | None = None
    ) -> dict[str, Decimal]:
        """Total expenses per category."""
        totals: dict[str, Decimal] = {}
        for record in self.repository.list_transactions(
            transaction_type=TransactionType.EXPENSE,
            start_date=start_date,
            end_date=end_date,
        ):
            totals[record.category] = totals.get(record.category, ZERO) + record.amount
        return dict(sorted(totals.items(), key=lambda item: item[1], reverse=True))

    def monthly_summary(self, year: int, month: int) -> MonthlySummary:
        """Income and expense totals for one month; transfers are neutral."""
        start = dt.date(year, month, 1)
        end = (
            dt.date(year + 1, 1, 1) if month == 12 else dt.date(year, month + 1, 1)
        ) - dt.timedelta(days=1)
        income = expense = ZERO
        for record in self.repository.list_transactions(start_date=start, end_date=end):
            if record.transaction_type is TransactionType.INCOME:
                income += record.amount
            elif record.transaction_type is TransactionType.EXPENSE:
                expense += record.amount
        return MonthlySummary(year=year, month=month, income=income, expense=expense)

    def _apply(self, record: TransactionRecord) -> None:
        """Apply effects and flag the row, unless already flagged."""
        current = self.repository.get_transaction(record.id)
        if current.effects_applied:
            return
        self.accounts.apply_effects(effects_for(current))
        self.repository.mark_effects_applied(record.id)

    def _build_record(
        self,
        transaction: TransactionDTO,
        transaction_id: str,
        ledger_person_id: str | None = None,
        group_expense_id: str | None = None,
        kept_account_ids: set[str | None] | None = None,
    ) -> TransactionRecord:
        """Validate account references and build an unapplied row.

        Accounts in ``kept_account_ids`` may be archived: an edit can keep
        the accounts a stored row already points at.
        """
        kept = kept_account_ids or set()
        account = self._require_account(transaction.account, transaction.account in kept)
        destination = None
        if transaction.transfer_to:
            destination = self._require_account(
                transaction.transfer_to, transaction.transfer_to in kept
            )
        person_id = transaction.ledger_person_id or ledger_person_id
        return TransactionRecord(
            id=transaction_id,
            title=transaction.title,
            amount=transaction.amount,
            transaction_type=transaction.transaction_type,
            account_id=account.id,
            account_name=account.name,
            category=transaction.category,
            date=transaction.date,
            time=transaction.time,
            description=transaction.description,
            transfer_to_id=destination.id if destination else None,
            transfer_to=destination.name if destination else None,
            is_ledger_transaction=person_id is not None,
            ledger_person_id=person_id,
            group_expense_id=transaction.group_expense_id or group_expense_id,
            effects_applied=False,
        )

    def _require_account(self, account_id: str, allow_archived: bool = False) -> AccountRecord:
        account = self.repository.find_account(account_id)
        if account is None:
            raise MissingReferenceError(f"Account not found: {account_id}")
        if account.is_archived and not allow_archived:
            raise ValueError(f"Account {account.name!r} is archived")
        return account

    @staticmethod
    def _ensure_user_transaction(record: TransactionRecord) -> None:
        if record.is_account_operation:
            raise ValueError("Account operation entries cannot be edited or deleted")
