from __future__ import annotations

from decimal import Decimal

import pytest

from fintrack.exceptions import InvalidSplitError
from fintrack.groups import split_expense
from fintrack.models import GroupExpenseDTO, SplitPolicy


def test_equal_split_gives_remainder_to_first() -> None:
    shares = split_expense(Decimal("100.00"), ["a", "b", "c"])

    assert shares == [
        ("a", Decimal("33.34")),
        ("b", Decimal("33.33")),
        ("c", Decimal("33.33")),
    ]


@pytest.mark.parametrize(
    ("amount", "members"),
    [("0.01", 3), ("0.05", 4), ("10.00", 3), ("99.99", 7), ("1234.57", 6), ("5.00", 1)],
)
def test_equal_split_conserves_amount(amount, members) -> None:
    total = Decimal(amount)
    shares = split_expense(total, [f"m{index}" for index in range(members)])

    assert sum(share for _, share in shares) == total
    values = [share for _, share in shares]
    assert max(values) - min(values) <= Decimal("0.01")


def test_pass_through_split_accepts_matching_amounts() -> None:
    shares = split_expense(
        Decimal("50.00"),
        ["a", "b"],
        SplitPolicy.EXACT_AMOUNT,
        [Decimal("20.00"), Decimal("30.00")],
    )

    assert shares == [("a", Decimal("20.00")), ("b", Decimal("30.00"))]


def test_pass_through_split_tolerates_one_cent() -> None:
    shares = split_expense(
        Decimal("10.00"),
        ["a", "b", "c"],
        SplitPolicy.PERCENTAGE,
        [Decimal("3.33"), Decimal("3.33"), Decimal("3.33")],
    )

    assert len(shares) == 3


def test_pass_through_split_rejects_mismatch() -> None:
    with pytest.raises(InvalidSplitError) as excinfo:
        split_expense(
            Decimal("50.00"), ["a", "b"], SplitPolicy.SHARES, [Decimal("20.00"), Decimal("20.00")]
        )

    assert excinfo.value.details["actual"] == "40.00"


def test_pass_through_split_requires_amounts() -> None:
    with pytest.raises(InvalidSplitError):
        split_expense(Decimal("50.00"), ["a", "b"], SplitPolicy.EXACT_AMOUNT)


def test_split_requires_members() -> None:
    with pytest.raises(InvalidSplitError):
        split_expense(Decimal("50.00"), [])


def test_pass_through_split_rejects_negative_share() -> None:
    with pytest.raises(InvalidSplitError) as excinfo:
        split_expense(
            Decimal("100.00"),
            ["a", "b"],
            SplitPolicy.EXACT_AMOUNT,
            [Decimal("150.00"), Decimal("-50.00")],
        )

    assert excinfo.value.details["negative"] == ["-50.00"]


def test_pass_through_split_allows_zero_share() -> None:
    shares = split_expense(
        Decimal("100.00"), ["a", "b"], SplitPolicy.EXACT_AMOUNT, [Decimal("100.00"), Decimal("0")]
    )

    assert shares == [("a", Decimal("100.00")), ("b", Decimal("0.00"))]


def test_group_expense_dto_rejects_negative_share() -> None:
    with pytest.raises(InvalidSplitError):
        GroupExpenseDTO(
            group_id="g",
            paid_by="a",
            amount="100.00",
            description="Dinner",
            member_ids=["a", "b"],
            policy=SplitPolicy.EXACT_AMOUNT,
            split_amounts=["150.00", "-50.00"],
        )
