"""Client orchestration layer for fintrack."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any, Callable, Iterable, TypeVar
import datetime as dt
from decimal import Decimal
import json
import logging
import os
import threading
import uuid

from fintrack.accounts import AccountLedger
from fintrack.cache import (
    ALL_TOPICS,
    TOPIC_ACCOUNTS,
    TOPIC_GOALS,
    TOPIC_GROUPS,
    TOPIC_LEDGER,
    TOPIC_SETTINGS,
    TOPIC_TRANSACTIONS,
    QueryCache,
)
from fintrack.exceptions import DuplicateNameError, IntegrityError
from fintrack.goals import GoalBook
from fintrack.groups import GroupBook
from fintrack.ledger import PersonLedger
from fintrack.models import (
    AccountDTO,
    AccountRecord,
    CategoryRecord,
    CategoryType,
    GoalDTO,
    GoalRecord,
    GroupExpenseDTO,
    GroupExpenseRecord,
    GroupExpenseSplitRecord,
    GroupMemberRecord,
    GroupRecord,
    LedgerPersonRecord,
    LedgerTransactionDTO,
    LedgerTransactionRecord,
    MonthlySummary,
    TransactionDTO,
    TransactionRecord,
)
from fintrack.persistence import PersistenceBackend
from fintrack.repository import Repository
from fintrack.schema import DEFAULT_CURRENCY_SYMBOL, SETTING_DEFAULTS_SEEDED
from fintrack.settings import SettingsStore
from fintrack.transactions import TransactionStore

T = TypeVar("T")

# Configure logging
logger = logging.getLogger("fintrack")
log_level = os.environ.get('LOGGING_LEVEL', 'INFO').upper()
logger.setLevel(getattr(logging, log_level, logging.INFO))
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(levelname)s - %(name)s - %(message)s'))
    logger.addHandler(handler)

CONFIG_ENV_VAR = "FINTRACK_CONFIG"
DEFAULT_CONFIG_PATH = Path.home() / ".fintrack" / "fintrack-config.json"


class FinanceClient:
    """Coordinate the balance engines over one SQLite database.

    Every balance-affecting call holds a single write lock. Reads are served
    through a query cache that is invalidated after each write commits.
    """

    def __init__(
        self,
        db_path: str | Path | None = None,
        repository: PersistenceBackend | None = None,
    ) -> None:
        """Initialize the client with a repository backend.

        Args:
            db_path: Path to the SQLite database
            repository: Optional custom persistence backend
        """
        self.config = self._load_config()
        self.db_path = self._resolve_db_path(db_path, repository)
        self.repository = repository or Repository(self.db_path)
        self.accounts = AccountLedger(self.repository)
        self.transactions = TransactionStore(self.repository, self.accounts)
        self.ledger = PersonLedger(self.repository, self.transactions)
        self.groups = GroupBook(self.repository)
        self.goals = GoalBook(self.repository)
        self.settings = SettingsStore(
            self.repository,
            default_symbol=self.config.get("currency_symbol", DEFAULT_CURRENCY_SYMBOL),
        )
        self.cache = QueryCache()
        self._lock = threading.RLock()
        self._shutdown = threading.Event()
        self._executor: ThreadPoolExecutor | None = None

    def __enter__(self) -> "FinanceClient":
        """Open the repository connection and create missing tables."""
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        """Close the repository connection."""
        self.close()

    def open(self) -> None:
        self._shutdown.clear()
        self.repository.connect()
        with self._lock:
            self.repository.run_transaction(self._initialize_schema)

    def close(self) -> None:
        """Stop background work and close the repository connection."""
        self._shutdown.set()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        self.repository.close()

    def _initialize_schema(self) -> None:
        self.repository.create_schema()
        if self.repository.get_setting(SETTING_DEFAULTS_SEEDED) is None:
            self.repository.seed_defaults()
            self.repository.set_setting(SETTING_DEFAULTS_SEEDED, "1")
            logger.info("Seeded default accounts and categories")

    def _resolve_db_path(
        self,
        db_path: str | Path | None,
        repository: PersistenceBackend | None,
    ) -> Path:
        """Resolve the database path from arguments or config."""
        if repository is not None and db_path is None:
            return Path("")
        if db_path is not None:
            return Path(db_path)
        if not self._config_path().exists():
            raise ValueError("db_path is required when config file is missing")
        resolved = self.config.get("db_path")
        if not resolved:
            raise ValueError("db_path is missing in config file")
        return Path(resolved).expanduser()

    @staticmethod
    def _config_path() -> Path:
        override = os.environ.get(CONFIG_ENV_VAR)
        return Path(override) if override else DEFAULT_CONFIG_PATH

    def _load_config(self) -> dict:
        """Load config file if present, else return empty config."""
        config_path = self._config_path()
        if not config_path.exists():
            return {}
        with config_path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
        if not isinstance(payload, dict):
            return {}
        return payload

    def _write(self, topics: Iterable[str], action: Callable[[], T]) -> T:
        """Run a mutation under the write lock and invalidate ``topics``.

        A delete whose reversal could not complete leaves balances untrusted,
        so the authoritative recompute runs before the error propagates.
        """
        with self._lock:
            try:
                return self.repository.run_transaction(action)
            except IntegrityError as exc:
                if exc.requires_recompute:
                    logger.error("Recomputing balances after failed write: %s", exc)
                    self.repository.run_transaction(
                        lambda: self.accounts.recompute_balances(self._shutdown)
                    )
                raise
            finally:
                self.cache.invalidate(topics)

    def _write_two_phase(self, topics: Iterable[str], action: Callable[[], T]) -> T:
        """Like ``_write`` but lets the action manage its own commit points."""
        with self._lock:
            try:
                return action()
            finally:
                self.cache.invalidate(topics)

    def submit(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> Future:
        """Run a client call on the background worker and return its future."""
        if self._shutdown.is_set():
            raise RuntimeError("Client is closed")
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="fintrack")
        return self._executor.submit(fn, *args, **kwargs)

    def subscribe(self, topic: str, callback: Callable[[str], None]) -> Callable[[], None]:
        """Call ``callback(topic)`` whenever data under ``topic`` changes."""
        return self.cache.subscribe(topic, callback)

    # Accounts

    def add_account(self, account: AccountDTO) -> AccountRecord:
        return self._write(
            (TOPIC_ACCOUNTS, TOPIC_TRANSACTIONS), lambda: self.accounts.create_account(account)
        )

    def get_account(self, account_id: str) -> AccountRecord:
        return self.repository.get_account(account_id)

    def find_account_by_name(self, name: str) -> AccountRecord | None:
        return self.repository.find_account_by_name(name)

    def list_accounts(self, include_archived: bool = False) -> list[AccountRecord]:
        return self.cache.get_or_fetch(
            TOPIC_ACCOUNTS,
            ("list", include_archived),
            lambda: self.repository.list_accounts(include_archived=include_archived),
        )

    def total_balance(self) -> Decimal:
        """Sum of live account balances."""
        return sum((account.balance for account in self.list_accounts()), Decimal("0.00"))

    def set_balance(
        self, account_id: str, new_balance: Decimal, reason: str = "Balance adjusted"
    ) -> AccountRecord:
        return self._write(
            (TOPIC_ACCOUNTS, TOPIC_TRANSACTIONS),
            lambda: self.accounts.set_balance(account_id, new_balance, reason),
        )

    def rename_account(self, account_id: str, name: str) -> AccountRecord:
        return self._write(
            (TOPIC_ACCOUNTS, TOPIC_TRANSACTIONS),
            lambda: self.accounts.rename_account(account_id, name),
        )

    def archive_account(self, account_id: str) -> AccountRecord:
        return self._write(
            (TOPIC_ACCOUNTS, TOPIC_TRANSACTIONS), lambda: self.accounts.archive_account(account_id)
        )

    def unarchive_account(self, account_id: str) -> AccountRecord:
        return self._write(
            (TOPIC_ACCOUNTS, TOPIC_TRANSACTIONS),
            lambda: self.accounts.unarchive_account(account_id),
        )

    def delete_account(self, account_id: str) -> bool:
        """Hard-delete an account without history; archive it otherwise."""
        return self._write(
            (TOPIC_ACCOUNTS, TOPIC_TRANSACTIONS), lambda: self.accounts.delete_account(account_id)
        )

    def recompute_balances(self) -> list[tuple[AccountRecord, Decimal]]:
        """Rebuild every account balance from the transaction history."""
        return self._write(
            (TOPIC_ACCOUNTS,), lambda: self.accounts.recompute_balances(self._shutdown)
        )

    # Categories

    def add_category(self, name: str, category_type: CategoryType) -> CategoryRecord:
        name = name.strip()
        if not name:
            raise ValueError("Category name is required")

        def action() -> CategoryRecord:
            existing = self.repository.find_category_by_name(name)
            if existing is not None:
                raise DuplicateNameError(
                    "Duplicate category name", {"name": name, "existing_id": existing.id}
                )
            return self.repository.insert_category(
                CategoryRecord(
                    id=uuid.uuid4().hex,
                    name=name,
                    category_type=CategoryType(category_type),
                    is_custom=True,
                )
            )

        return self._write((TOPIC_TRANSACTIONS,), action)

    def list_categories(self, category_type: CategoryType | None = None) -> list[CategoryRecord]:
        return self.repository.list_categories(category_type)

    # Transactions

    def add_transaction(self, transaction: TransactionDTO) -> TransactionRecord:
        """Store a transaction and apply its balance effects.

        The row is committed before its effects; on ``IntegrityError`` the row
        stays pending until ``apply_pending_effects`` runs.
        """
        return self._write_two_phase(
            (TOPIC_ACCOUNTS, TOPIC_TRANSACTIONS), lambda: self.transactions.add(transaction)
        )

    def get_transaction(self, transaction_id: str) -> TransactionRecord:
        return self.transactions.get(transaction_id)

    def list_transactions(self, **filters: Any) -> list[TransactionRecord]:
        key = tuple(sorted((name, str(value)) for name, value in filters.items()))
        return self.cache.get_or_fetch(
            TOPIC_TRANSACTIONS, ("list", key), lambda: self.transactions.list_transactions(**filters)
        )

    def recent_transactions(self, limit: int = 10) -> list[TransactionRecord]:
        return self.cache.get_or_fetch(
            TOPIC_TRANSACTIONS, ("recent", limit), lambda: self.transactions.recent(limit)
        )

    def transactions_by_category(
        self, start_date: dt.date | None = None, end_date: dt.date | None = None
    ) -> dict[str, Decimal]:
        return self.cache.get_or_fetch(
            TOPIC_TRANSACTIONS,
            ("by_category", start_date, end_date),
            lambda: self.transactions.by_category(start_date, end_date),
        )

    def monthly_summary(self, year: int, month: int) -> MonthlySummary:
        return self.cache.get_or_fetch(
            TOPIC_TRANSACTIONS,
            ("monthly", year, month),
            lambda: self.transactions.monthly_summary(year, month),
        )

    def count_transactions(self) -> int:
        return self.repository.count_transactions()

    def update_transaction(
        self, transaction_id: str, transaction: TransactionDTO
    ) -> TransactionRecord:
        """Reverse the stored transaction's effects and apply the new ones."""
        current = self.transactions.get(transaction_id)
        if current.ledger_person_id is not None:
            raise ValueError("Ledger transactions are edited through the ledger")
        return self._write(
            (TOPIC_ACCOUNTS, TOPIC_TRANSACTIONS),
            lambda: self.transactions.update(transaction_id, transaction),
        )

    def delete_transaction(self, transaction_id: str) -> TransactionRecord:
        """Reverse a transaction's effects and remove it.

        A transaction mirrored from a ledger entry is removed together with
        that entry so the person balance follows.
        """
        current = self.transactions.get(transaction_id)
        entry = self.repository.find_ledger_transaction_by_main_id(transaction_id)
        if entry is not None:
            self._write(
                (TOPIC_ACCOUNTS, TOPIC_TRANSACTIONS, TOPIC_LEDGER),
                lambda: self.ledger.delete(entry.id),
            )
            return current
        return self._write(
            (TOPIC_ACCOUNTS, TOPIC_TRANSACTIONS),
            lambda: self.transactions.delete(transaction_id),
        )

    def apply_pending_effects(self) -> list[TransactionRecord]:
        """Finish transactions whose balance effects never got applied."""
        return self._write_two_phase(
            (TOPIC_ACCOUNTS, TOPIC_TRANSACTIONS), self.transactions.apply_pending_effects
        )

    # Ledger

    def add_person(self, name: str) -> LedgerPersonRecord:
        return self._write((TOPIC_LEDGER,), lambda: self.ledger.add_person(name))

    def get_person(self, person_id: str) -> LedgerPersonRecord:
        return self.ledger.get_person(person_id)

    def find_person_by_name(self, name: str) -> LedgerPersonRecord | None:
        return self.repository.find_person_by_name(name)

    def list_persons(self) -> list[LedgerPersonRecord]:
        return self.cache.get_or_fetch(TOPIC_LEDGER, "persons", self.ledger.list_persons)

    def person_history(self, person_id: str) -> list[LedgerTransactionRecord]:
        return self.cache.get_or_fetch(
            TOPIC_LEDGER, ("history", person_id), lambda: self.ledger.history(person_id)
        )

    def record_ledger(self, entry: LedgerTransactionDTO) -> LedgerTransactionRecord:
        """Record money sent to or received from a person."""
        return self._write(
            (TOPIC_ACCOUNTS, TOPIC_TRANSACTIONS, TOPIC_LEDGER), lambda: self.ledger.record(entry)
        )

    def update_ledger(self, entry_id: str, entry: LedgerTransactionDTO) -> LedgerTransactionRecord:
        return self._write(
            (TOPIC_ACCOUNTS, TOPIC_TRANSACTIONS, TOPIC_LEDGER),
            lambda: self.ledger.update(entry_id, entry),
        )

    def delete_ledger(self, entry_id: str) -> LedgerTransactionRecord:
        return self._write(
            (TOPIC_ACCOUNTS, TOPIC_TRANSACTIONS, TOPIC_LEDGER),
            lambda: self.ledger.delete(entry_id),
        )

    def recompute_person(self, person_id: str) -> LedgerPersonRecord:
        return self._write((TOPIC_LEDGER,), lambda: self.ledger.recompute(person_id))

    def verify_ledger(self) -> list[tuple[LedgerPersonRecord, Decimal]]:
        """Recompute every person balance; return the ones that drifted."""
        return self._write((TOPIC_LEDGER,), lambda: self.ledger.verify_all(self._shutdown))

    def delete_person(self, person_id: str) -> None:
        self._write(
            (TOPIC_ACCOUNTS, TOPIC_TRANSACTIONS, TOPIC_LEDGER),
            lambda: self.ledger.delete_person(person_id),
        )

    # Groups

    def create_group(
        self, name: str, member_names: Iterable[str], description: str = ""
    ) -> GroupRecord:
        return self._write(
            (TOPIC_GROUPS,),
            lambda: self.groups.create_group(name, list(member_names), description),
        )

    def add_group_member(self, group_id: str, name: str) -> GroupMemberRecord:
        return self._write((TOPIC_GROUPS,), lambda: self.groups.add_member(group_id, name))

    def get_group(self, group_id: str) -> GroupRecord:
        return self.groups.get_group(group_id)

    def find_group_by_name(self, name: str) -> GroupRecord | None:
        return self.repository.find_group_by_name(name)

    def list_groups(self) -> list[GroupRecord]:
        return self.cache.get_or_fetch(TOPIC_GROUPS, "groups", self.groups.list_groups)

    def list_group_members(self, group_id: str) -> list[GroupMemberRecord]:
        return self.cache.get_or_fetch(
            TOPIC_GROUPS, ("members", group_id), lambda: self.groups.list_members(group_id)
        )

    def list_group_expenses(self, group_id: str) -> list[GroupExpenseRecord]:
        return self.cache.get_or_fetch(
            TOPIC_GROUPS, ("expenses", group_id), lambda: self.groups.list_expenses(group_id)
        )

    def list_expense_splits(self, expense_id: str) -> list[GroupExpenseSplitRecord]:
        return self.groups.list_splits(expense_id)

    def add_group_expense(self, expense: GroupExpenseDTO) -> GroupExpenseRecord:
        return self._write((TOPIC_GROUPS,), lambda: self.groups.add_expense(expense))

    def mark_split_paid(self, split_id: str, is_paid: bool = True) -> GroupExpenseSplitRecord:
        return self._write((TOPIC_GROUPS,), lambda: self.groups.mark_split_paid(split_id, is_paid))

    def delete_group_expense(self, expense_id: str) -> GroupExpenseRecord:
        return self._write((TOPIC_GROUPS,), lambda: self.groups.delete_expense(expense_id))

    def recompute_group(self, group_id: str) -> list[GroupMemberRecord]:
        return self._write((TOPIC_GROUPS,), lambda: self.groups.recompute_members(group_id))

    def delete_group(self, group_id: str) -> None:
        self._write((TOPIC_GROUPS,), lambda: self.groups.delete_group(group_id))

    # Goals

    def add_goal(self, goal: GoalDTO) -> GoalRecord:
        return self._write((TOPIC_GOALS,), lambda: self.goals.add_goal(goal))

    def get_goal(self, goal_id: str) -> GoalRecord:
        return self.goals.get_goal(goal_id)

    def list_goals(self) -> list[GoalRecord]:
        return self.cache.get_or_fetch(TOPIC_GOALS, "goals", self.goals.list_goals)

    def update_goal(self, goal_id: str, goal: GoalDTO) -> GoalRecord:
        return self._write((TOPIC_GOALS,), lambda: self.goals.update_goal(goal_id, goal))

    def update_goal_progress(self, goal_id: str, current_amount: Decimal) -> GoalRecord:
        return self._write(
            (TOPIC_GOALS,), lambda: self.goals.update_progress(goal_id, current_amount)
        )

    def contribute_to_goal(self, goal_id: str, amount: Decimal) -> GoalRecord:
        return self._write((TOPIC_GOALS,), lambda: self.goals.contribute(goal_id, amount))

    def delete_goal(self, goal_id: str) -> None:
        self._write((TOPIC_GOALS,), lambda: self.goals.delete_goal(goal_id))

    def clear_goals(self) -> None:
        self._write((TOPIC_GOALS,), self.goals.clear_goals)

    # Settings

    def currency_symbol(self) -> str:
        return self.cache.get_or_fetch(TOPIC_SETTINGS, "currency", self.settings.currency_symbol)

    def set_currency_symbol(self, symbol: str) -> str:
        return self._write((TOPIC_SETTINGS,), lambda: self.settings.set_currency_symbol(symbol))

    def format_money(self, amount: Decimal) -> str:
        return self.settings.format(amount)

    # Maintenance

    def clear_all(self) -> None:
        """Delete every account, transaction, person, group and goal."""
        self._write(ALL_TOPICS, self.transactions.clear_all)

    def reset_to_defaults(self) -> None:
        """Delete all user data and restore the default accounts and categories."""
        self._write(ALL_TOPICS, self.transactions.reset_to_defaults)
