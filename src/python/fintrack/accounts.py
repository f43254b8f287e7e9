"""Account balances and account lifecycle."""

from __future__ import annotations

from dataclasses import replace
import datetime as dt
from decimal import Decimal
import logging
import threading
from typing import Iterable
import uuid

from fintrack.effects import net_effects_by_account
from fintrack.exceptions import DuplicateNameError
from fintrack.models import (
    AccountDTO,
    AccountRecord,
    Effect,
    TransactionRecord,
    TransactionType,
)
from fintrack.money import ZERO, round_money
from fintrack.repository import Repository
from fintrack.schema import ACCOUNT_OPERATION_CATEGORY, ARCHIVED_PREFIX

logger = logging.getLogger(__name__)


class AccountLedger:
    """Own the mutable balance of every account.

    ``apply_delta`` is a read-modify-write with no optimistic check, so
    callers serialize writes (the client holds a global write lock).
    """

    def __init__(self, repository: Repository) -> None:
        self.repository = repository

    def apply_delta(self, account_id: str, signed_amount: Decimal) -> Decimal | None:
        """Add a signed amount to an account and return the new balance.

        A missing account is tolerated: historical rows may name accounts
        that were deleted since.
        """
        account = self.repository.find_account(account_id)
        if account is None:
            logger.warning("Account %s not found, skipping delta %s", account_id, signed_amount)
            return None
        new_balance = round_money(account.balance + signed_amount)
        self.repository.update_account_balance(account_id, new_balance)
        logger.debug("Account %s: %s -> %s", account.name, account.balance, new_balance)
        return new_balance

    def apply_effects(self, effects: Iterable[Effect]) -> None:
        """Apply effects in order."""
        for effect in effects:
            self.apply_delta(effect.account_id, effect.delta)

    def set_balance(
        self,
        account_id: str,
        new_balance: Decimal,
        reason: str = "Balance adjusted",
    ) -> AccountRecord:
        """Override a balance and record the adjustment.

        The adjustment row keeps the authoritative recompute able to
        reproduce the override.
        """
        account = self.repository.get_account(account_id)
        target = round_money(new_balance)
        delta = target - account.balance
        self.repository.update_account_balance(account_id, target)
        self._record_operation(account, reason, delta)
        logger.info("Account %s balance set to %s (delta %s)", account.name, target, delta)
        return self.repository.get_account(account_id)

    def create_account(self, account: AccountDTO) -> AccountRecord:
        """Create an account, recording its opening balance."""
        self._ensure_name_available(account.name)
        record = AccountRecord(
            id=uuid.uuid4().hex,
            name=account.name,
            balance=account.balance,
            account_type=account.account_type,
            is_custom=account.is_custom,
            is_archived=False,
            original_name=None,
        )
        self.repository.insert_account(record)
        self._record_operation(record, "Account created", account.balance)
        logger.info("Created account %s with balance %s", record.name, record.balance)
        return record

    def rename_account(self, account_id: str, name: str) -> AccountRecord:
        account = self.repository.get_account(account_id)
        name = name.strip()
        if not name:
            raise ValueError("Name is required")
        if name.lower() != account.name.lower():
            self._ensure_name_available(name)
        updated = self.repository.update_account(replace(account, name=name))
        self._record_operation(updated, f"Account renamed from {account.name}", ZERO)
        return updated

    def archive_account(self, account_id: str) -> AccountRecord:
        """Soft-delete an account by renaming it with the archive marker."""
        account = self.repository.get_account(account_id)
        if account.is_archived:
            return account
        archived = self.repository.update_account(
            replace(
                account,
                name=f"{ARCHIVED_PREFIX}{account.name}",
                is_archived=True,
                original_name=account.name,
            )
        )
        self._record_operation(archived, "Account archived", ZERO)
        logger.info("Archived account %s", account.name)
        return archived

    def unarchive_account(self, account_id: str) -> AccountRecord:
        """Restore an archived account under its original name."""
        account = self.repository.get_account(account_id)
        if not account.is_archived:
            return account
        original = account.original_name or account.name.removeprefix(ARCHIVED_PREFIX)
        self._ensure_name_available(original)
        restored = self.repository.update_account(
            replace(account, name=original, is_archived=False, original_name=None)
        )
        self._record_operation(restored, "Account unarchived", ZERO)
        logger.info("Unarchived account %s", original)
        return restored

    def delete_account(self, account_id: str) -> bool:
        """Delete an account without history, archive it otherwise.

        Returns True when the account was hard-deleted.
        """
        account = self.repository.get_account(account_id)
        if self.repository.count_account_history(account_id) > 0:
            self.archive_account(account_id)
            return False
        self.repository.delete_account(account_id)
        logger.info("Deleted account %s", account.name)
        return True

    def recompute_balances(
        self, stop_event: threading.Event | None = None
    ) -> list[tuple[AccountRecord, Decimal]]:
        """Rebuild every balance from the applied transaction rows.

        Returns ``(account, recomputed_balance)`` for each account whose
        stored balance drifted; those balances are corrected in place.
        """
        applied = self.repository.list_transactions(
            include_account_operations=True, effects_applied=True
        )
        totals = net_effects_by_account(applied)
        drifted = []
        for account in self.repository.list_accounts():
            if stop_event is not None and stop_event.is_set():
                logger.warning("Account recompute interrupted by shutdown")
                break
            expected = round_money(totals.get(account.id, ZERO))
            if expected != account.balance:
                logger.warning(
                    "Account %s balance drifted: stored %s, recomputed %s",
                    account.name,
                    account.balance,
                    expected,
                )
                self.repository.update_account_balance(account.id, expected)
                drifted.append((account, expected))
        return drifted

    def _ensure_name_available(self, name: str) -> None:
        existing = self.repository.find_account_by_name(name)
        if existing is not None:
            raise DuplicateNameError(
                "Duplicate account name",
                {"name": name, "existing_id": existing.id},
            )

    def _record_operation(self, account: AccountRecord, title: str, delta: Decimal) -> None:
        """Write an audit row for a balance change that is already applied."""
        now = dt.datetime.now()
        self.repository.insert_transaction(
            TransactionRecord(
                id=uuid.uuid4().hex,
                title=title,
                amount=abs(delta),
                transaction_type=TransactionType.INCOME if delta >= 0 else TransactionType.EXPENSE,
                account_id=account.id,
                account_name=account.name,
                category=ACCOUNT_OPERATION_CATEGORY,
                date=now.date(),
                time=now.strftime("%H:%M"),
                description="",
                effects_applied=True,
            )
        )

