from __future__ import annotations

from decimal import Decimal

import pytest

from fintrack import DuplicateNameError, GroupExpenseDTO, InvalidSplitError, SplitPolicy
from fintrack.exceptions import MissingReferenceError


def _trip(client):
    group = client.create_group("Trip", ["Ann", "Bo", "Cy"])
    return group, client.list_group_members(group.id)


@pytest.mark.sit
def test_equal_split_remainder_to_first(client) -> None:
    group, (ann, bo, cy) = _trip(client)

    expense = client.add_group_expense(
        GroupExpenseDTO(
            group_id=group.id,
            paid_by=ann.id,
            amount="100.00",
            description="Dinner",
            member_ids=(ann.id, bo.id, cy.id),
        )
    )

    splits = client.list_expense_splits(expense.id)
    assert [split.amount for split in splits] == [
        Decimal("33.34"),
        Decimal("33.33"),
        Decimal("33.33"),
    ]
    assert sum(split.amount for split in splits) == Decimal("100.00")
    members = {member.name: member for member in client.list_group_members(group.id)}
    assert members["Ann"].total_paid == Decimal("100.00")
    assert members["Ann"].balance == Decimal("66.66")
    assert members["Bo"].balance == Decimal("-33.33")
    assert client.get_group(group.id).total_spent == Decimal("100.00")


@pytest.mark.sit
def test_exact_split_and_delete_reverses_totals(client) -> None:
    group, (ann, bo, cy) = _trip(client)
    expense = client.add_group_expense(
        GroupExpenseDTO(
            group_id=group.id,
            paid_by=bo.id,
            amount="60.00",
            description="Tickets",
            member_ids=(ann.id, cy.id),
            policy=SplitPolicy.EXACT_AMOUNT,
            split_amounts=(Decimal("45.00"), Decimal("15.00")),
        )
    )

    members = {member.name: member for member in client.list_group_members(group.id)}
    assert members["Ann"].total_owed == Decimal("45.00")
    assert members["Bo"].balance == Decimal("60.00")

    client.delete_group_expense(expense.id)
    for member in client.list_group_members(group.id):
        assert member.total_paid == member.total_owed == member.balance == Decimal("0.00")
    assert client.get_group(group.id).total_spent == Decimal("0.00")


@pytest.mark.sit
def test_mismatched_split_is_rejected_before_write(client) -> None:
    group, (ann, bo, _) = _trip(client)

    with pytest.raises(InvalidSplitError):
        client.add_group_expense(
            GroupExpenseDTO(
                group_id=group.id,
                paid_by=ann.id,
                amount="10.00",
                description="Taxi",
                member_ids=(ann.id, bo.id),
                policy=SplitPolicy.PERCENTAGE,
                split_amounts=(Decimal("5.00"), Decimal("4.00")),
            )
        )

    assert client.list_group_expenses(group.id) == []


@pytest.mark.sit
def test_marking_split_paid_keeps_balances(client) -> None:
    group, (ann, bo, cy) = _trip(client)
    expense = client.add_group_expense(
        GroupExpenseDTO(
            group_id=group.id,
            paid_by=ann.id,
            amount="9.00",
            description="Snacks",
            member_ids=(ann.id, bo.id, cy.id),
        )
    )
    before = client.list_group_members(group.id)
    bo_split = next(s for s in client.list_expense_splits(expense.id) if s.member_id == bo.id)
    assert bo_split.is_paid is False

    settled = client.mark_split_paid(bo_split.id)

    assert settled.is_paid is True
    assert client.list_group_members(group.id) == before


@pytest.mark.sit
def test_recompute_members_repairs_drift(client) -> None:
    group, (ann, bo, cy) = _trip(client)
    client.add_group_expense(
        GroupExpenseDTO(
            group_id=group.id,
            paid_by=cy.id,
            amount="31.00",
            description="Fuel",
            member_ids=(ann.id, bo.id, cy.id),
        )
    )
    expected = client.list_group_members(group.id)
    client.repository.update_member_totals(cy.id, Decimal("0"), Decimal("0"))

    assert client.recompute_group(group.id) == expected


@pytest.mark.sit
def test_group_validation(client) -> None:
    group, (ann, _, _) = _trip(client)

    with pytest.raises(DuplicateNameError):
        client.create_group("trip", ["Dee"])
    with pytest.raises(DuplicateNameError):
        client.create_group("Other", ["Dee", "dee"])
    with pytest.raises(DuplicateNameError):
        client.add_group_member(group.id, "ann")
    with pytest.raises(MissingReferenceError):
        client.add_group_expense(
            GroupExpenseDTO(
                group_id=group.id,
                paid_by="stranger",
                amount="5",
                description="x",
                member_ids=(ann.id,),
            )
        )

    dee = client.add_group_member(group.id, "Dee")
    assert client.get_group(group.id).member_count == 4
    assert dee.balance == Decimal("0.00")


@pytest.mark.sit
def test_delete_group_removes_everything(client) -> None:
    group, (ann, bo, _) = _trip(client)
    client.add_group_expense(
        GroupExpenseDTO(
            group_id=group.id, paid_by=ann.id, amount="4", description="Tea", member_ids=(bo.id,)
        )
    )

    client.delete_group(group.id)

    assert client.list_groups() == []
    assert client.find_group_by_name("Trip") is None
