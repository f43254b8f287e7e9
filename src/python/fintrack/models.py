"""Domain models and data transfer objects."""

from __future__ import annotations

from dataclasses import dataclass, field
import datetime as dt
from decimal import Decimal
from enum import Enum

from fintrack.exceptions import InvalidSplitError, ParseError
from fintrack.money import parse_money_strict
from fintrack.schema import ACCOUNT_OPERATION_CATEGORY


class AccountType(str, Enum):
    BANK = "BANK"
    CARD = "CARD"
    CASH = "CASH"
    WALLET = "WALLET"


class TransactionType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
    TRANSFER = "TRANSFER"


class LedgerDirection(str, Enum):
    """Money flow relative to the owner."""

    SENT = "SENT"
    RECEIVED = "RECEIVED"


class SplitPolicy(str, Enum):
    EQUAL = "EQUAL"
    EXACT_AMOUNT = "EXACT_AMOUNT"
    PERCENTAGE = "PERCENTAGE"
    SHARES = "SHARES"


class CategoryType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class GoalPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class GoalStatus(str, Enum):
    COMPLETED = "completed"
    ON_TRACK = "on track"
    BEHIND = "behind"


def _ensure_date(value: dt.date | dt.datetime) -> dt.date:
    """Normalize a date or datetime to a date."""
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    raise ValueError("Date must be a datetime.date")


def _ensure_non_empty(value: str, field_name: str) -> str:
    """Validate required text fields."""
    if not value or not value.strip():
        raise ValueError(f"{field_name} is required")
    return value.strip()


def _ensure_amount(
    value: Decimal | str | int | float,
    field_name: str,
    allow_negative: bool = False,
) -> Decimal:
    """Parse an amount and round it to cents."""
    try:
        amount = parse_money_strict(value)
    except ParseError as exc:
        raise ValueError(f"{field_name} must be a decimal") from exc
    if not allow_negative and amount <= Decimal("0"):
        raise ValueError(f"{field_name} must be greater than zero")
    return amount


def _ensure_time(value: str) -> str:
    """Validate an HH:MM time string."""
    try:
        dt.datetime.strptime(value, "%H:%M")
    except (TypeError, ValueError) as exc:
        raise ValueError("Time must use HH:MM format") from exc
    return value


def _now_time() -> str:
    return dt.datetime.now().strftime("%H:%M")


@dataclass(frozen=True)
class AccountDTO:
    """Validated account input."""
    name: str
    account_type: AccountType = AccountType.CASH
    balance: Decimal = Decimal("0.00")
    is_custom: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "name", _ensure_non_empty(self.name, "Name"))
        object.__setattr__(self, "account_type", AccountType(self.account_type))
        # Card accounts may open with a negative balance
        object.__setattr__(
            self, "balance", _ensure_amount(self.balance, "Balance", allow_negative=True)
        )


@dataclass(frozen=True)
class AccountRecord:
    """Persisted account."""
    id: str
    name: str
    balance: Decimal
    account_type: AccountType
    is_custom: bool
    is_archived: bool
    original_name: str | None


@dataclass(frozen=True)
class CategoryRecord:
    id: str
    name: str
    category_type: CategoryType
    is_custom: bool


@dataclass(frozen=True)
class TransactionDTO:
    """Validated transaction input.

    ``account`` and ``transfer_to`` hold account ids. TRANSFER requires a
    distinct destination; INCOME and EXPENSE must not carry one.
    """
    transaction_type: TransactionType
    amount: Decimal
    account: str
    title: str = ""
    category: str = "General"
    date: dt.date = field(default_factory=dt.date.today)
    time: str = field(default_factory=_now_time)
    description: str = ""
    transfer_to: str | None = None
    ledger_person_id: str | None = None
    group_expense_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "transaction_type", TransactionType(self.transaction_type)
        )
        object.__setattr__(self, "amount", _ensure_amount(self.amount, "Amount"))
        object.__setattr__(self, "account", _ensure_non_empty(self.account, "Account"))
        object.__setattr__(self, "date", _ensure_date(self.date))
        object.__setattr__(self, "time", _ensure_time(self.time))
        if self.category.strip() == ACCOUNT_OPERATION_CATEGORY:
            raise ValueError(f"{ACCOUNT_OPERATION_CATEGORY!r} is reserved")
        if self.transaction_type is TransactionType.TRANSFER:
            if not self.transfer_to or not self.transfer_to.strip():
                raise ValueError("Transfer requires a destination account")
            if self.transfer_to == self.account:
                raise ValueError("Source and destination accounts must differ")
        elif self.transfer_to:
            raise ValueError("Only transfers may have a destination account")


@dataclass(frozen=True)
class TransactionRecord:
    """Persisted account transaction."""
    id: str
    title: str
    amount: Decimal
    transaction_type: TransactionType
    account_id: str
    account_name: str
    category: str
    date: dt.date
    time: str
    description: str
    transfer_to_id: str | None = None
    transfer_to: str | None = None
    is_ledger_transaction: bool = False
    ledger_person_id: str | None = None
    group_expense_id: str | None = None
    effects_applied: bool = True

    @property
    def is_account_operation(self) -> bool:
        return self.category == ACCOUNT_OPERATION_CATEGORY


@dataclass(frozen=True)
class Effect:
    """Signed balance delta against one account."""
    account_id: str
    delta: Decimal


@dataclass(frozen=True)
class MonthlySummary:
    year: int
    month: int
    income: Decimal
    expense: Decimal

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


@dataclass(frozen=True)
class LedgerPersonRecord:
    """Counterparty with a cached running balance.

    Positive balance means the person owes the owner.
    """
    id: str
    name: str
    balance: Decimal
    transaction_count: int
    last_transaction_date: dt.date | None


@dataclass(frozen=True)
class LedgerTransactionDTO:
    """Validated IOU entry input."""
    person_id: str
    amount: Decimal
    direction: LedgerDirection
    date: dt.date = field(default_factory=dt.date.today)
    time: str = field(default_factory=_now_time)
    account_id: str | None = None
    title: str = ""
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "person_id", _ensure_non_empty(self.person_id, "Person"))
        object.__setattr__(self, "amount", _ensure_amount(self.amount, "Amount"))
        object.__setattr__(self, "direction", LedgerDirection(self.direction))
        object.__setattr__(self, "date", _ensure_date(self.date))
        object.__setattr__(self, "time", _ensure_time(self.time))


@dataclass(frozen=True)
class LedgerTransactionRecord:
    """Persisted IOU entry."""
    id: str
    person_id: str
    amount: Decimal
    direction: LedgerDirection
    date: dt.date
    time: str
    account_id: str | None
    account_name: str | None
    title: str
    description: str
    balance_at_time: Decimal
    main_transaction_id: str | None

    @property
    def signed_amount(self) -> Decimal:
        if self.direction is LedgerDirection.RECEIVED:
            return self.amount
        return -self.amount


@dataclass(frozen=True)
class GroupRecord:
    id: str
    name: str
    description: str
    total_spent: Decimal
    member_count: int
    created_at: str


@dataclass(frozen=True)
class GroupMemberRecord:
    """Group member with derived totals.

    ``balance = total_paid - total_owed``; positive means the group owes them.
    """
    id: str
    group_id: str
    name: str
    balance: Decimal
    total_paid: Decimal
    total_owed: Decimal


@dataclass(frozen=True)
class GroupExpenseDTO:
    """Validated group expense input.

    ``split_amounts`` is required for every policy except EQUAL and must
    list one amount per entry of ``member_ids``.
    """
    group_id: str
    paid_by: str
    amount: Decimal
    description: str
    member_ids: tuple[str, ...]
    policy: SplitPolicy = SplitPolicy.EQUAL
    split_amounts: tuple[Decimal, ...] | None = None
    category: str = "General"
    date: dt.date = field(default_factory=dt.date.today)
    time: str = field(default_factory=_now_time)

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", _ensure_amount(self.amount, "Amount"))
        object.__setattr__(
            self, "description", _ensure_non_empty(self.description, "Description")
        )
        object.__setattr__(self, "policy", SplitPolicy(self.policy))
        object.__setattr__(self, "member_ids", tuple(self.member_ids))
        object.__setattr__(self, "date", _ensure_date(self.date))
        object.__setattr__(self, "time", _ensure_time(self.time))
        if not self.member_ids:
            raise ValueError("At least one member is required")
        if len(set(self.member_ids)) != len(self.member_ids):
            raise ValueError("Members must not repeat")
        if self.split_amounts is not None:
            amounts = tuple(
                _ensure_amount(value, "Split amount", allow_negative=True)
                for value in self.split_amounts
            )
            if len(amounts) != len(self.member_ids):
                raise ValueError("One split amount is required per member")
            negative = [str(value) for value in amounts if value < Decimal("0")]
            if negative:
                raise InvalidSplitError(
                    "Split amounts must not be negative",
                    {"negative": negative, "policy": self.policy.value},
                )
            object.__setattr__(self, "split_amounts", amounts)
        elif self.policy is not SplitPolicy.EQUAL:
            raise ValueError(f"{self.policy.value} split requires split_amounts")


@dataclass(frozen=True)
class GroupExpenseRecord:
    id: str
    group_id: str
    paid_by: str
    amount: Decimal
    description: str
    category: str
    date: dt.date
    time: str
    split_type: SplitPolicy


@dataclass(frozen=True)
class GroupExpenseSplitRecord:
    id: str
    expense_id: str
    member_id: str
    amount: Decimal
    is_paid: bool


@dataclass(frozen=True)
class GoalDTO:
    """Validated savings goal input."""
    title: str
    target_amount: Decimal
    current_amount: Decimal = Decimal("0.00")
    description: str = ""
    deadline: dt.date | None = None
    is_recurring: bool = False
    monthly_amount: Decimal | None = None
    priority: GoalPriority = GoalPriority.MEDIUM

    def __post_init__(self) -> None:
        object.__setattr__(self, "title", _ensure_non_empty(self.title, "Title"))
        object.__setattr__(
            self, "target_amount", _ensure_amount(self.target_amount, "Target amount")
        )
        current = _ensure_amount(self.current_amount, "Current amount", allow_negative=True)
        if current < Decimal("0"):
            raise ValueError("Current amount must not be negative")
        object.__setattr__(self, "current_amount", current)
        if self.deadline is not None:
            object.__setattr__(self, "deadline", _ensure_date(self.deadline))
        if self.monthly_amount is not None:
            object.__setattr__(
                self, "monthly_amount", _ensure_amount(self.monthly_amount, "Monthly amount")
            )
        object.__setattr__(self, "priority", GoalPriority(self.priority))


@dataclass(frozen=True)
class GoalRecord:
    """Persisted savings goal.

    Progress, remaining amount and status are derived from the stored
    amounts on every read and never stored.
    """
    id: str
    title: str
    description: str
    target_amount: Decimal
    current_amount: Decimal
    deadline: dt.date | None
    is_recurring: bool
    monthly_amount: Decimal | None
    priority: GoalPriority
    created_at: str

    @property
    def progress_percentage(self) -> int:
        """Whole percent saved, truncated and clamped to 0-100."""
        percent = int(self.current_amount * 100 / self.target_amount)
        return max(0, min(100, percent))

    @property
    def remaining_amount(self) -> Decimal:
        return max(self.target_amount - self.current_amount, Decimal("0.00"))

    @property
    def status(self) -> GoalStatus:
        progress = self.progress_percentage
        if progress >= 100:
            return GoalStatus.COMPLETED
        if progress >= 75:
            return GoalStatus.ON_TRACK
        return GoalStatus.BEHIND

    @property
    def is_completed(self) -> bool:
        return self.status is GoalStatus.COMPLETED
