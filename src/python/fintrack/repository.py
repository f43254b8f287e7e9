"""SQLite repository implementation for fintrack."""

from __future__ import annotations

from pathlib import Path
import datetime as dt
from decimal import Decimal
import sqlite3

from fintrack.exceptions import NotFoundError
from fintrack.models import (
    AccountRecord,
    AccountType,
    CategoryRecord,
    CategoryType,
    GoalPriority,
    GoalRecord,
    GroupExpenseRecord,
    GroupExpenseSplitRecord,
    GroupMemberRecord,
    GroupRecord,
    LedgerDirection,
    LedgerPersonRecord,
    LedgerTransactionRecord,
    SplitPolicy,
    TransactionRecord,
    TransactionType,
)
from fintrack.persistence import PersistenceBackend
from fintrack.schema import (
    ACCOUNT_OPERATION_CATEGORY,
    DEFAULT_ACCOUNTS,
    DEFAULT_CATEGORIES,
    DOMAIN_TABLES,
    FLAG_N,
    FLAG_Y,
    SCHEMA_STATEMENTS,
)

TRANSACTION_COLUMNS = """
    id, title, amount, category_name, account_id, account_name, transfer_to_id,
    transfer_to, type, date, time, description, is_ledger_transaction,
    ledger_person_id, group_expense_id, effects_applied
"""
LEDGER_TRANSACTION_COLUMNS = """
    id, ledger_person_id, amount, type, date, time, account_id, account_name,
    title, description, balance_at_time, main_transaction_id
"""


def _flag(value: bool) -> int:
    return FLAG_Y if value else FLAG_N


def _optional_date(value: str | None) -> dt.date | None:
    return dt.date.fromisoformat(value) if value else None


class Repository(PersistenceBackend):
    """SQLite-backed persistence implementation.

    Amounts are stored as decimal strings so no float value ever reaches
    storage.
    """

    def __init__(self, db_path: str | Path) -> None:
        """Create a repository for the given database path."""
        self.db_path = Path(db_path)
        self.connection: sqlite3.Connection | None = None

    def connect(self) -> None:
        """Open the database connection."""
        if self.connection is None:
            # Transactions are opened explicitly with BEGIN
            self.connection = sqlite3.connect(
                self.db_path, isolation_level=None, check_same_thread=False
            )
            self.connection.row_factory = sqlite3.Row
            self.connection.execute("PRAGMA foreign_keys = ON")

    def close(self) -> None:
        """Close the database connection."""
        if self.connection is not None:
            self.connection.close()
            self.connection = None

    @property
    def in_transaction(self) -> bool:
        self._ensure_connection()
        return self.connection.in_transaction

    def begin_transaction(self) -> None:
        """Begin a database transaction."""
        self._ensure_connection()
        self.connection.execute("BEGIN IMMEDIATE")

    def commit(self) -> None:
        """Commit the current transaction."""
        self._ensure_connection()
        self.connection.commit()

    def rollback(self) -> None:
        """Rollback the current transaction."""
        self._ensure_connection()
        self.connection.rollback()

    def create_schema(self) -> None:
        """Create every table and index that does not exist yet."""
        self._ensure_connection()
        for statement in SCHEMA_STATEMENTS:
            self.connection.execute(statement)

    def wipe_domain_tables(self) -> None:
        """Delete all user data rows."""
        self._ensure_connection()
        for table in DOMAIN_TABLES:
            self.connection.execute(f"DELETE FROM {table}")

    def seed_defaults(self) -> None:
        """Insert default categories and zero-balance accounts."""
        self._ensure_connection()
        self.connection.executemany(
            "INSERT OR IGNORE INTO categories (id, name, type, is_custom) VALUES (?, ?, ?, ?)",
            [(key, name, kind, FLAG_N) for key, name, kind in DEFAULT_CATEGORIES],
        )
        self.connection.executemany(
            """
            INSERT OR IGNORE INTO accounts (id, name, balance, type, is_custom, is_archived)
            VALUES (?, ?, '0.00', ?, ?, ?)
            """,
            [(key, name, kind, FLAG_N, FLAG_N) for key, name, kind in DEFAULT_ACCOUNTS],
        )

    # Accounts

    def insert_account(self, account: AccountRecord) -> AccountRecord:
        """Insert an account row."""
        self._ensure_connection()
        self.connection.execute(
            """
            INSERT INTO accounts (id, name, balance, type, is_custom, is_archived, original_name)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                account.id,
                account.name,
                str(account.balance),
                account.account_type.value,
                _flag(account.is_custom),
                _flag(account.is_archived),
                account.original_name,
            ),
        )
        return account

    def find_account(self, account_id: str) -> AccountRecord | None:
        """Return an account by id, or None."""
        self._ensure_connection()
        row = self.connection.execute(
            "SELECT * FROM accounts WHERE id = ?", (account_id,)
        ).fetchone()
        return self._account_from_row(row) if row is not None else None

    def get_account(self, account_id: str) -> AccountRecord:
        """Fetch an account by id."""
        account = self.find_account(account_id)
        if account is None:
            raise NotFoundError(f"Account not found: {account_id}")
        return account

    def find_account_by_name(self, name: str) -> AccountRecord | None:
        """Return an account by case-insensitive name, or None."""
        self._ensure_connection()
        row = self.connection.execute(
            "SELECT * FROM accounts WHERE name = ? COLLATE NOCASE", (name.strip(),)
        ).fetchone()
        return self._account_from_row(row) if row is not None else None

    def list_accounts(self, include_archived: bool = True) -> list[AccountRecord]:
        """Return accounts ordered by name."""
        self._ensure_connection()
        query = "SELECT * FROM accounts"
        if not include_archived:
            query += " WHERE is_archived = 0"
        rows = self.connection.execute(query + " ORDER BY name COLLATE NOCASE").fetchall()
        return [self._account_from_row(row) for row in rows]

    def update_account_balance(self, account_id: str, balance: Decimal) -> None:
        """Overwrite the stored balance."""
        self._ensure_connection()
        self.connection.execute(
            "UPDATE accounts SET balance = ? WHERE id = ?", (str(balance), account_id)
        )

    def update_account(self, account: AccountRecord) -> AccountRecord:
        """Rewrite the descriptive fields of an account."""
        self._ensure_connection()
        self.connection.execute(
            """
            UPDATE accounts
            SET name = ?, type = ?, is_custom = ?, is_archived = ?, original_name = ?
            WHERE id = ?
            """,
            (
                account.name,
                account.account_type.value,
                _flag(account.is_custom),
                _flag(account.is_archived),
                account.original_name,
                account.id,
            ),
        )
        return self.get_account(account.id)

    def delete_account(self, account_id: str) -> None:
        """Delete an account and its audit rows."""
        self._ensure_connection()
        self.connection.execute(
            "DELETE FROM transactions WHERE account_id = ? AND category_name = ?",
            (account_id, ACCOUNT_OPERATION_CATEGORY),
        )
        self.connection.execute("DELETE FROM accounts WHERE id = ?", (account_id,))

    def count_account_history(self, account_id: str) -> int:
        """Count user transactions touching an account."""
        self._ensure_connection()
        row = self.connection.execute(
            """
            SELECT COUNT(*) FROM transactions
            WHERE (account_id = ? OR transfer_to_id = ?) AND category_name != ?
            """,
            (account_id, account_id, ACCOUNT_OPERATION_CATEGORY),
        ).fetchone()
        return int(row[0])

    # Categories

    def insert_category(self, category: CategoryRecord) -> CategoryRecord:
        self._ensure_connection()
        self.connection.execute(
            "INSERT INTO categories (id, name, type, is_custom) VALUES (?, ?, ?, ?)",
            (
                category.id,
                category.name,
                category.category_type.value,
                _flag(category.is_custom),
            ),
        )
        return category

    def find_category_by_name(self, name: str) -> CategoryRecord | None:
        self._ensure_connection()
        row = self.connection.execute(
            "SELECT * FROM categories WHERE name = ? COLLATE NOCASE", (name.strip(),)
        ).fetchone()
        return self._category_from_row(row) if row is not None else None

    def list_categories(self, category_type: CategoryType | None = None) -> list[CategoryRecord]:
        self._ensure_connection()
        query = "SELECT * FROM categories"
        params: list[object] = []
        if category_type is not None:
            query += " WHERE type = ?"
            params.append(category_type.value)
        rows = self.connection.execute(query + " ORDER BY name COLLATE NOCASE", params).fetchall()
        return [self._category_from_row(row) for row in rows]

    # Transactions

    def insert_transaction(self, transaction: TransactionRecord) -> TransactionRecord:
        """Insert a transaction row."""
        self._ensure_connection()
        self.connection.execute(
            f"INSERT INTO transactions ({TRANSACTION_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            self._transaction_params(transaction),
        )
        return transaction

    def find_transaction(self, transaction_id: str) -> TransactionRecord | None:
        self._ensure_connection()
        row = self.connection.execute(
            f"SELECT {TRANSACTION_COLUMNS} FROM transactions WHERE id = ?",
            (transaction_id,),
        ).fetchone()
        return self._transaction_from_row(row) if row is not None else None

    def get_transaction(self, transaction_id: str) -> TransactionRecord:
        """Fetch a transaction by id."""
        transaction = self.find_transaction(transaction_id)
        if transaction is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        return transaction

    def update_transaction(self, transaction: TransactionRecord) -> TransactionRecord:
        """Rewrite every column of an existing transaction row."""
        self._ensure_connection()
        params = self._transaction_params(transaction)
        cursor = self.connection.execute(
            """
            UPDATE transactions
            SET title = ?, amount = ?, category_name = ?, account_id = ?,
                account_name = ?, transfer_to_id = ?, transfer_to = ?, type = ?,
                date = ?, time = ?, description = ?, is_ledger_transaction = ?,
                ledger_person_id = ?, group_expense_id = ?, effects_applied = ?
            WHERE id = ?
            """,
            (*params[1:], params[0]),
        )
        if cursor.rowcount == 0:
            raise NotFoundError(f"Transaction not found: {transaction.id}")
        return transaction

    def mark_effects_applied(self, transaction_id: str, applied: bool = True) -> None:
        self._ensure_connection()
        self.connection.execute(
            "UPDATE transactions SET effects_applied = ? WHERE id = ?",
            (_flag(applied), transaction_id),
        )

    def delete_transaction(self, transaction_id: str) -> None:
        """Delete a transaction row."""
        self._ensure_connection()
        cursor = self.connection.execute(
            "DELETE FROM transactions WHERE id = ?", (transaction_id,)
        )
        if cursor.rowcount == 0:
            raise NotFoundError(f"Transaction not found: {transaction_id}")

    def list_transactions(
        self,
        include_account_operations: bool = False,
        transaction_type: TransactionType | None = None,
        account_id: str | None = None,
        category: str | None = None,
        start_date: dt.date | None = None,
        end_date: dt.date | None = None,
        search: str | None = None,
        effects_applied: bool | None = None,
        limit: int | None = None,
    ) -> list[TransactionRecord]:
        """List transactions newest first, optionally filtered."""
        self._ensure_connection()
        filters = []
        params: list[object] = []
        if not include_account_operations:
            filters.append("category_name != ?")
            params.append(ACCOUNT_OPERATION_CATEGORY)
        if transaction_type is not None:
            filters.append("type = ?")
            params.append(transaction_type.value)
        if account_id is not None:
            filters.append("(account_id = ? OR transfer_to_id = ?)")
            params.extend([account_id, account_id])
        if category is not None:
            filters.append("category_name = ? COLLATE NOCASE")
            params.append(category)
        if start_date is not None:
            filters.append("date >= ?")
            params.append(start_date.isoformat())
        if end_date is not None:
            filters.append("date <= ?")
            params.append(end_date.isoformat())
        if search:
            filters.append("(title LIKE ? OR description LIKE ?)")
            params.extend([f"%{search}%", f"%{search}%"])
        if effects_applied is not None:
            filters.append("effects_applied = ?")
            params.append(_flag(effects_applied))
        where_clause = ""
        if filters:
            where_clause = "WHERE " + " AND ".join(filters)
        query = (
            f"SELECT {TRANSACTION_COLUMNS} FROM transactions {where_clause} "
            "ORDER BY date DESC, time DESC, rowid DESC"
        )
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        rows = self.connection.execute(query, params).fetchall()
        return [self._transaction_from_row(row) for row in rows]

    def count_transactions(self, include_account_operations: bool = False) -> int:
        self._ensure_connection()
        query = "SELECT COUNT(*) FROM transactions"
        params: list[object] = []
        if not include_account_operations:
            query += " WHERE category_name != ?"
            params.append(ACCOUNT_OPERATION_CATEGORY)
        return int(self.connection.execute(query, params).fetchone()[0])

    # Ledger persons

    def insert_person(self, person: LedgerPersonRecord) -> LedgerPersonRecord:
        self._ensure_connection()
        self.connection.execute(
            """
            INSERT INTO ledger_persons (id, name, balance, transaction_count, last_transaction_date)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                person.id,
                person.name,
                str(person.balance),
                person.transaction_count,
                person.last_transaction_date.isoformat() if person.last_transaction_date else "",
            ),
        )
        return person

    def find_person(self, person_id: str) -> LedgerPersonRecord | None:
        self._ensure_connection()
        row = self.connection.execute(
            "SELECT * FROM ledger_persons WHERE id = ?", (person_id,)
        ).fetchone()
        return self._person_from_row(row) if row is not None else None

    def get_person(self, person_id: str) -> LedgerPersonRecord:
        person = self.find_person(person_id)
        if person is None:
            raise NotFoundError(f"Ledger person not found: {person_id}")
        return person

    def find_person_by_name(self, name: str) -> LedgerPersonRecord | None:
        self._ensure_connection()
        row = self.connection.execute(
            "SELECT * FROM ledger_persons WHERE name = ? COLLATE NOCASE", (name.strip(),)
        ).fetchone()
        return self._person_from_row(row) if row is not None else None

    def list_persons(self) -> list[LedgerPersonRecord]:
        self._ensure_connection()
        rows = self.connection.execute(
            "SELECT * FROM ledger_persons ORDER BY name COLLATE NOCASE"
        ).fetchall()
        return [self._person_from_row(row) for row in rows]

    def update_person_state(
        self,
        person_id: str,
        balance: Decimal,
        transaction_count: int,
        last_transaction_date: dt.date | None,
    ) -> None:
        """Overwrite the cached balance, count and last date of a person."""
        self._ensure_connection()
        self.connection.execute(
            """
            UPDATE ledger_persons
            SET balance = ?, transaction_count = ?, last_transaction_date = ?
            WHERE id = ?
            """,
            (
                str(balance),
                transaction_count,
                last_transaction_date.isoformat() if last_transaction_date else "",
                person_id,
            ),
        )

    def delete_person(self, person_id: str) -> None:
        self._ensure_connection()
        self.connection.execute(
            "DELETE FROM ledger_transactions WHERE ledger_person_id = ?", (person_id,)
        )
        self.connection.execute("DELETE FROM ledger_persons WHERE id = ?", (person_id,))

    # Ledger transactions

    def insert_ledger_transaction(
        self, entry: LedgerTransactionRecord
    ) -> LedgerTransactionRecord:
        self._ensure_connection()
        self.connection.execute(
            f"INSERT INTO ledger_transactions ({LEDGER_TRANSACTION_COLUMNS}) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            self._ledger_transaction_params(entry),
        )
        return entry

    def find_ledger_transaction(self, entry_id: str) -> LedgerTransactionRecord | None:
        self._ensure_connection()
        row = self.connection.execute(
            f"SELECT {LEDGER_TRANSACTION_COLUMNS} FROM ledger_transactions WHERE id = ?",
            (entry_id,),
        ).fetchone()
        return self._ledger_transaction_from_row(row) if row is not None else None

    def get_ledger_transaction(self, entry_id: str) -> LedgerTransactionRecord:
        entry = self.find_ledger_transaction(entry_id)
        if entry is None:
            raise NotFoundError(f"Ledger transaction not found: {entry_id}")
        return entry

    def update_ledger_transaction(
        self, entry: LedgerTransactionRecord
    ) -> LedgerTransactionRecord:
        self._ensure_connection()
        params = self._ledger_transaction_params(entry)
        self.connection.execute(
            """
            UPDATE ledger_transactions
            SET ledger_person_id = ?, amount = ?, type = ?, date = ?, time = ?,
                account_id = ?, account_name = ?, title = ?, description = ?,
                balance_at_time = ?, main_transaction_id = ?
            WHERE id = ?
            """,
            (*params[1:], params[0]),
        )
        return entry

    def find_ledger_transaction_by_main_id(
        self, main_transaction_id: str
    ) -> LedgerTransactionRecord | None:
        """Return the IOU entry mirrored by an account transaction, or None."""
        self._ensure_connection()
        row = self.connection.execute(
            f"SELECT {LEDGER_TRANSACTION_COLUMNS} FROM ledger_transactions "
            "WHERE main_transaction_id = ?",
            (main_transaction_id,),
        ).fetchone()
        return self._ledger_transaction_from_row(row) if row is not None else None

    def delete_ledger_transaction(self, entry_id: str) -> None:
        self._ensure_connection()
        self.connection.execute("DELETE FROM ledger_transactions WHERE id = ?", (entry_id,))

    def list_ledger_transactions(self, person_id: str) -> list[LedgerTransactionRecord]:
        """Return a person's entries oldest first."""
        self._ensure_connection()
        rows = self.connection.execute(
            f"""
            SELECT {LEDGER_TRANSACTION_COLUMNS} FROM ledger_transactions
            WHERE ledger_person_id = ?
            ORDER BY date, time, rowid
            """,
            (person_id,),
        ).fetchall()
        return [self._ledger_transaction_from_row(row) for row in rows]

    # Groups

    def insert_group(self, group: GroupRecord) -> GroupRecord:
        self._ensure_connection()
        self.connection.execute(
            """
            INSERT INTO groups (id, name, description, total_spent, member_count, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                group.id,
                group.name,
                group.description,
                str(group.total_spent),
                group.member_count,
                group.created_at,
            ),
        )
        return group

    def find_group(self, group_id: str) -> GroupRecord | None:
        self._ensure_connection()
        row = self.connection.execute("SELECT * FROM groups WHERE id = ?", (group_id,)).fetchone()
        return self._group_from_row(row) if row is not None else None

    def get_group(self, group_id: str) -> GroupRecord:
        group = self.find_group(group_id)
        if group is None:
            raise NotFoundError(f"Group not found: {group_id}")
        return group

    def find_group_by_name(self, name: str) -> GroupRecord | None:
        self._ensure_connection()
        row = self.connection.execute(
            "SELECT * FROM groups WHERE name = ? COLLATE NOCASE", (name.strip(),)
        ).fetchone()
        return self._group_from_row(row) if row is not None else None

    def list_groups(self) -> list[GroupRecord]:
        self._ensure_connection()
        rows = self.connection.execute(
            "SELECT * FROM groups ORDER BY created_at, rowid"
        ).fetchall()
        return [self._group_from_row(row) for row in rows]

    def update_group_totals(self, group_id: str, total_spent: Decimal, member_count: int) -> None:
        self._ensure_connection()
        self.connection.execute(
            "UPDATE groups SET total_spent = ?, member_count = ? WHERE id = ?",
            (str(total_spent), member_count, group_id),
        )

    def delete_group(self, group_id: str) -> None:
        """Delete a group and everything that belongs to it."""
        self._ensure_connection()
        self.connection.execute(
            """
            DELETE FROM group_expense_splits WHERE expense_id IN (
                SELECT id FROM group_expenses WHERE group_id = ?
            )
            """,
            (group_id,),
        )
        self.connection.execute("DELETE FROM group_expenses WHERE group_id = ?", (group_id,))
        self.connection.execute("DELETE FROM group_members WHERE group_id = ?", (group_id,))
        self.connection.execute("DELETE FROM groups WHERE id = ?", (group_id,))

    def insert_member(self, member: GroupMemberRecord) -> GroupMemberRecord:
        self._ensure_connection()
        self.connection.execute(
            """
            INSERT INTO group_members (id, group_id, name, balance, total_paid, total_owed)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (
                member.id,
                member.group_id,
                member.name,
                str(member.balance),
                str(member.total_paid),
                str(member.total_owed),
            ),
        )
        return member

    def find_member(self, member_id: str) -> GroupMemberRecord | None:
        self._ensure_connection()
        row = self.connection.execute(
            "SELECT * FROM group_members WHERE id = ?", (member_id,)
        ).fetchone()
        return self._member_from_row(row) if row is not None else None

    def list_members(self, group_id: str) -> list[GroupMemberRecord]:
        """Return group members in insertion order."""
        self._ensure_connection()
        rows = self.connection.execute(
            "SELECT * FROM group_members WHERE group_id = ? ORDER BY rowid", (group_id,)
        ).fetchall()
        return [self._member_from_row(row) for row in rows]

    def update_member_totals(
        self, member_id: str, total_paid: Decimal, total_owed: Decimal
    ) -> None:
        self._ensure_connection()
        self.connection.execute(
            """
            UPDATE group_members SET total_paid = ?, total_owed = ?, balance = ?
            WHERE id = ?
            """,
            (str(total_paid), str(total_owed), str(total_paid - total_owed), member_id),
        )

    def insert_group_expense(self, expense: GroupExpenseRecord) -> GroupExpenseRecord:
        self._ensure_connection()
        self.connection.execute(
            """
            INSERT INTO group_expenses (
                id, group_id, paid_by, amount, description, category, date, time, split_type
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                expense.id,
                expense.group_id,
                expense.paid_by,
                str(expense.amount),
                expense.description,
                expense.category,
                expense.date.isoformat(),
                expense.time,
                expense.split_type.value,
            ),
        )
        return expense

    def find_group_expense(self, expense_id: str) -> GroupExpenseRecord | None:
        self._ensure_connection()
        row = self.connection.execute(
            "SELECT * FROM group_expenses WHERE id = ?", (expense_id,)
        ).fetchone()
        return self._group_expense_from_row(row) if row is not None else None

    def list_group_expenses(self, group_id: str) -> list[GroupExpenseRecord]:
        self._ensure_connection()
        rows = self.connection.execute(
            "SELECT * FROM group_expenses WHERE group_id = ? ORDER BY date DESC, time DESC, rowid DESC",
            (group_id,),
        ).fetchall()
        return [self._group_expense_from_row(row) for row in rows]

    def delete_group_expense(self, expense_id: str) -> None:
        self._ensure_connection()
        self.connection.execute(
            "DELETE FROM group_expense_splits WHERE expense_id = ?", (expense_id,)
        )
        self.connection.execute("DELETE FROM group_expenses WHERE id = ?", (expense_id,))

    def insert_split(self, split: GroupExpenseSplitRecord) -> GroupExpenseSplitRecord:
        self._ensure_connection()
        self.connection.execute(
            """
            INSERT INTO group_expense_splits (id, expense_id, member_id, amount, is_paid)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                split.id,
                split.expense_id,
                split.member_id,
                str(split.amount),
                _flag(split.is_paid),
            ),
        )
        return split

    def find_split(self, split_id: str) -> GroupExpenseSplitRecord | None:
        self._ensure_connection()
        row = self.connection.execute(
            "SELECT * FROM group_expense_splits WHERE id = ?", (split_id,)
        ).fetchone()
        return self._split_from_row(row) if row is not None else None

    def list_splits(self, expense_id: str) -> list[GroupExpenseSplitRecord]:
        self._ensure_connection()
        rows = self.connection.execute(
            "SELECT * FROM group_expense_splits WHERE expense_id = ? ORDER BY rowid",
            (expense_id,),
        ).fetchall()
        return [self._split_from_row(row) for row in rows]

    def set_split_paid(self, split_id: str, is_paid: bool) -> None:
        self._ensure_connection()
        self.connection.execute(
            "UPDATE group_expense_splits SET is_paid = ? WHERE id = ?",
            (_flag(is_paid), split_id),
        )

    # Goals

    def insert_goal(self, goal: GoalRecord) -> GoalRecord:
        self._ensure_connection()
        self.connection.execute(
            """
            INSERT INTO goals (
                id, title, description, target_amount, current_amount, deadline,
                is_recurring, monthly_amount, priority, created_at
            )
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (goal.id, *self._goal_params(goal), goal.created_at),
        )
        return goal

    def find_goal(self, goal_id: str) -> GoalRecord | None:
        self._ensure_connection()
        row = self.connection.execute("SELECT * FROM goals WHERE id = ?", (goal_id,)).fetchone()
        return self._goal_from_row(row) if row is not None else None

    def get_goal(self, goal_id: str) -> GoalRecord:
        goal = self.find_goal(goal_id)
        if goal is None:
            raise NotFoundError(f"Goal not found: {goal_id}")
        return goal

    def list_goals(self) -> list[GoalRecord]:
        self._ensure_connection()
        rows = self.connection.execute("SELECT * FROM goals ORDER BY created_at, rowid").fetchall()
        return [self._goal_from_row(row) for row in rows]

    def update_goal(self, goal: GoalRecord) -> GoalRecord:
        self._ensure_connection()
        self.connection.execute(
            """
            UPDATE goals SET
                title = ?, description = ?, target_amount = ?, current_amount = ?,
                deadline = ?, is_recurring = ?, monthly_amount = ?, priority = ?
            WHERE id = ?
            """,
            (*self._goal_params(goal), goal.id),
        )
        return goal

    def delete_goal(self, goal_id: str) -> None:
        self._ensure_connection()
        self.connection.execute("DELETE FROM goals WHERE id = ?", (goal_id,))

    def delete_all_goals(self) -> None:
        self._ensure_connection()
        self.connection.execute("DELETE FROM goals")

    # Settings

    def get_setting(self, key: str) -> str | None:
        self._ensure_connection()
        row = self.connection.execute(
            "SELECT value FROM settings WHERE key = ?", (key,)
        ).fetchone()
        return row["value"] if row is not None else None

    def set_setting(self, key: str, value: str) -> None:
        self._ensure_connection()
        self.connection.execute(
            """
            INSERT INTO settings (key, value) VALUES (?, ?)
            ON CONFLICT(key) DO UPDATE SET value = excluded.value
            """,
            (key, value),
        )

    def _ensure_connection(self) -> None:
        """Ensure the connection is initialized before use."""
        if self.connection is None:
            raise RuntimeError("Repository connection is not initialized")

    @staticmethod
    def _transaction_params(transaction: TransactionRecord) -> tuple[object, ...]:
        return (
            transaction.id,
            transaction.title,
            str(transaction.amount),
            transaction.category,
            transaction.account_id,
            transaction.account_name,
            transaction.transfer_to_id,
            transaction.transfer_to,
            transaction.transaction_type.value,
            transaction.date.isoformat(),
            transaction.time,
            transaction.description,
            _flag(transaction.is_ledger_transaction),
            transaction.ledger_person_id,
            transaction.group_expense_id,
            _flag(transaction.effects_applied),
        )

    @staticmethod
    def _ledger_transaction_params(entry: LedgerTransactionRecord) -> tuple[object, ...]:
        return (
            entry.id,
            entry.person_id,
            str(entry.amount),
            entry.direction.value,
            entry.date.isoformat(),
            entry.time,
            entry.account_id,
            entry.account_name,
            entry.title,
            entry.description,
            str(entry.balance_at_time),
            entry.main_transaction_id,
        )

    @staticmethod
    def _account_from_row(row: sqlite3.Row) -> AccountRecord:
        return AccountRecord(
            id=row["id"],
            name=row["name"],
            balance=Decimal(row["balance"]),
            account_type=AccountType(row["type"]),
            is_custom=bool(row["is_custom"]),
            is_archived=bool(row["is_archived"]),
            original_name=row["original_name"],
        )

    @staticmethod
    def _category_from_row(row: sqlite3.Row) -> CategoryRecord:
        return CategoryRecord(
            id=row["id"],
            name=row["name"],
            category_type=CategoryType(row["type"]),
            is_custom=bool(row["is_custom"]),
        )

    @staticmethod
    def _transaction_from_row(row: sqlite3.Row) -> TransactionRecord:
        return TransactionRecord(
            id=row["id"],
            title=row["title"],
            amount=Decimal(row["amount"]),
            transaction_type=TransactionType(row["type"]),
            account_id=row["account_id"],
            account_name=row["account_name"],
            category=row["category_name"],
            date=dt.date.fromisoformat(row["date"]),
            time=row["time"],
            description=row["description"],
            transfer_to_id=row["transfer_to_id"],
            transfer_to=row["transfer_to"],
            is_ledger_transaction=bool(row["is_ledger_transaction"]),
            ledger_person_id=row["ledger_person_id"],
            group_expense_id=row["group_expense_id"],
            effects_applied=bool(row["effects_applied"]),
        )

    @staticmethod
    def _person_from_row(row: sqlite3.Row) -> LedgerPersonRecord:
        return LedgerPersonRecord(
            id=row["id"],
            name=row["name"],
            balance=Decimal(row["balance"]),
            transaction_count=int(row["transaction_count"]),
            last_transaction_date=_optional_date(row["last_transaction_date"]),
        )

    @staticmethod
    def _ledger_transaction_from_row(row: sqlite3.Row) -> LedgerTransactionRecord:
        return LedgerTransactionRecord(
            id=row["id"],
            person_id=row["ledger_person_id"],
            amount=Decimal(row["amount"]),
            direction=LedgerDirection(row["type"]),
            date=dt.date.fromisoformat(row["date"]),
            time=row["time"],
            account_id=row["account_id"],
            account_name=row["account_name"],
            title=row["title"],
            description=row["description"],
            balance_at_time=Decimal(row["balance_at_time"]),
            main_transaction_id=row["main_transaction_id"],
        )

    @staticmethod
    def _group_from_row(row: sqlite3.Row) -> GroupRecord:
        return GroupRecord(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            total_spent=Decimal(row["total_spent"]),
            member_count=int(row["member_count"]),
            created_at=row["created_at"],
        )

    @staticmethod
    def _member_from_row(row: sqlite3.Row) -> GroupMemberRecord:
        return GroupMemberRecord(
            id=row["id"],
            group_id=row["group_id"],
            name=row["name"],
            balance=Decimal(row["balance"]),
            total_paid=Decimal(row["total_paid"]),
            total_owed=Decimal(row["total_owed"]),
        )

    @staticmethod
    def _group_expense_from_row(row: sqlite3.Row) -> GroupExpenseRecord:
        return GroupExpenseRecord(
            id=row["id"],
            group_id=row["group_id"],
            paid_by=row["paid_by"],
            amount=Decimal(row["amount"]),
            description=row["description"],
            category=row["category"],
            date=dt.date.fromisoformat(row["date"]),
            time=row["time"],
            split_type=SplitPolicy(row["split_type"]),
        )

    @staticmethod
    def _split_from_row(row: sqlite3.Row) -> GroupExpenseSplitRecord:
        return GroupExpenseSplitRecord(
            id=row["id"],
            expense_id=row["expense_id"],
            member_id=row["member_id"],
            amount=Decimal(row["amount"]),
            is_paid=bool(row["is_paid"]),
        )

    @staticmethod
    def _goal_params(goal: GoalRecord) -> tuple[object, ...]:
        return (
            goal.title,
            goal.description,
            str(goal.target_amount),
            str(goal.current_amount),
            goal.deadline.isoformat() if goal.deadline else None,
            _flag(goal.is_recurring),
            str(goal.monthly_amount) if goal.monthly_amount is not None else None,
            goal.priority.value,
        )

    @staticmethod
    def _goal_from_row(row: sqlite3.Row) -> GoalRecord:
        return GoalRecord(
            id=row["id"],
            title=row["title"],
            description=row["description"],
            target_amount=Decimal(row["target_amount"]),
            current_amount=Decimal(row["current_amount"]),
            deadline=_optional_date(row["deadline"]),
            is_recurring=bool(row["is_recurring"]),
            monthly_amount=(
                Decimal(row["monthly_amount"]) if row["monthly_amount"] is not None else None
            ),
            priority=GoalPriority(row["priority"]),
            created_at=row["created_at"],
        )
