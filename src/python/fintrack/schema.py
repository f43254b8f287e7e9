"""Database schema constants."""

from __future__ import annotations

FLAG_Y = 1
FLAG_N = 0

ACCOUNT_OPERATION_CATEGORY = "Account Operation"
LEDGER_CATEGORY = "Ledger"
ARCHIVED_PREFIX = "[Archived] "

SETTING_CURRENCY_SYMBOL = "currency_symbol"
DEFAULT_CURRENCY_SYMBOL = "$"
SETTING_DEFAULTS_SEEDED = "defaults_seeded"

# Tables holding user data; settings survive a wipe
DOMAIN_TABLES = [
    "group_expense_splits",
    "group_expenses",
    "group_members",
    "groups",
    "ledger_transactions",
    "ledger_persons",
    "transactions",
    "categories",
    "accounts",
    "goals",
]

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS accounts (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        balance TEXT NOT NULL DEFAULT '0.00',
        type TEXT NOT NULL,
        is_custom INTEGER NOT NULL DEFAULT 1,
        is_archived INTEGER NOT NULL DEFAULT 0,
        original_name TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS categories (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        type TEXT NOT NULL,
        is_custom INTEGER NOT NULL DEFAULT 1
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS transactions (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL DEFAULT '',
        amount TEXT NOT NULL,
        category_name TEXT NOT NULL,
        account_id TEXT NOT NULL,
        account_name TEXT NOT NULL,
        transfer_to_id TEXT,
        transfer_to TEXT,
        type TEXT NOT NULL,
        date TEXT NOT NULL,
        time TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        is_ledger_transaction INTEGER NOT NULL DEFAULT 0,
        ledger_person_id TEXT,
        group_expense_id TEXT,
        effects_applied INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ledger_persons (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        balance TEXT NOT NULL DEFAULT '0.00',
        transaction_count INTEGER NOT NULL DEFAULT 0,
        last_transaction_date TEXT NOT NULL DEFAULT ''
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS ledger_transactions (
        id TEXT PRIMARY KEY,
        ledger_person_id TEXT NOT NULL REFERENCES ledger_persons(id) ON DELETE CASCADE,
        amount TEXT NOT NULL,
        type TEXT NOT NULL,
        date TEXT NOT NULL,
        time TEXT NOT NULL,
        account_id TEXT,
        account_name TEXT,
        title TEXT NOT NULL DEFAULT '',
        description TEXT NOT NULL DEFAULT '',
        balance_at_time TEXT NOT NULL DEFAULT '0.00',
        main_transaction_id TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS groups (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        total_spent TEXT NOT NULL DEFAULT '0.00',
        member_count INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS group_members (
        id TEXT PRIMARY KEY,
        group_id TEXT NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
        name TEXT NOT NULL,
        balance TEXT NOT NULL DEFAULT '0.00',
        total_paid TEXT NOT NULL DEFAULT '0.00',
        total_owed TEXT NOT NULL DEFAULT '0.00'
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS group_expenses (
        id TEXT PRIMARY KEY,
        group_id TEXT NOT NULL REFERENCES groups(id) ON DELETE CASCADE,
        paid_by TEXT NOT NULL,
        amount TEXT NOT NULL,
        description TEXT NOT NULL,
        category TEXT NOT NULL DEFAULT 'General',
        date TEXT NOT NULL,
        time TEXT NOT NULL,
        split_type TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS group_expense_splits (
        id TEXT PRIMARY KEY,
        expense_id TEXT NOT NULL REFERENCES group_expenses(id) ON DELETE CASCADE,
        member_id TEXT NOT NULL,
        amount TEXT NOT NULL,
        is_paid INTEGER NOT NULL DEFAULT 0
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS goals (
        id TEXT PRIMARY KEY,
        title TEXT NOT NULL,
        description TEXT NOT NULL DEFAULT '',
        target_amount TEXT NOT NULL,
        current_amount TEXT NOT NULL DEFAULT '0.00',
        deadline TEXT,
        is_recurring INTEGER NOT NULL DEFAULT 0,
        monthly_amount TEXT,
        priority TEXT NOT NULL DEFAULT 'medium',
        created_at TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS settings (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_transactions_account ON transactions(account_id)",
    "CREATE INDEX IF NOT EXISTS idx_ledger_transactions_person "
    "ON ledger_transactions(ledger_person_id)",
    "CREATE INDEX IF NOT EXISTS idx_group_splits_expense ON group_expense_splits(expense_id)",
]

# (id, name, type)
DEFAULT_ACCOUNTS = [
    ("default-cash", "Cash", "CASH"),
    ("default-bank", "Bank Account", "BANK"),
    ("default-card", "Credit Card", "CARD"),
]

# (id, name, type)
DEFAULT_CATEGORIES = [
    ("default-food", "Food & Dining", "EXPENSE"),
    ("default-transport", "Transportation", "EXPENSE"),
    ("default-shopping", "Shopping", "EXPENSE"),
    ("default-entertainment", "Entertainment", "EXPENSE"),
    ("default-bills", "Bills & Utilities", "EXPENSE"),
    ("default-health", "Healthcare", "EXPENSE"),
    ("default-education", "Education", "EXPENSE"),
    ("default-travel", "Travel", "EXPENSE"),
    ("default-salary", "Salary", "INCOME"),
    ("default-freelance", "Freelance", "INCOME"),
    ("default-investment", "Investment", "INCOME"),
    ("default-gift", "Gift", "INCOME"),
]
