"""Public fintrack package exports."""

from __future__ import annotations

from fintrack.__version__ import __version__
from fintrack.client import FinanceClient
from fintrack.exceptions import (
    DuplicateNameError,
    IntegrityError,
    InvalidSplitError,
    MissingReferenceError,
    NotFoundError,
    ParseError,
)
from fintrack.models import (
    AccountDTO,
    AccountRecord,
    AccountType,
    GoalDTO,
    GoalPriority,
    GoalRecord,
    GoalStatus,
    GroupExpenseDTO,
    LedgerDirection,
    LedgerTransactionDTO,
    SplitPolicy,
    TransactionDTO,
    TransactionRecord,
    TransactionType,
)
from fintrack.persistence import PersistenceBackend
from fintrack.repository import Repository

__all__ = [
    "__version__",
    "FinanceClient",
    "DuplicateNameError",
    "IntegrityError",
    "InvalidSplitError",
    "MissingReferenceError",
    "NotFoundError",
    "ParseError",
    "AccountDTO",
    "AccountRecord",
    "AccountType",
    "GoalDTO",
    "GoalPriority",
    "GoalRecord",
    "GoalStatus",
    "GroupExpenseDTO",
    "LedgerDirection",
    "LedgerTransactionDTO",
    "SplitPolicy",
    "TransactionDTO",
    "TransactionRecord",
    "TransactionType",
    "PersistenceBackend",
    "Repository",
]
