"""Group expense splitting and member balances."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
import logging
from typing import Sequence
import uuid

from fintrack.exceptions import DuplicateNameError, InvalidSplitError, MissingReferenceError
from fintrack.models import (
    GroupExpenseDTO,
    GroupExpenseRecord,
    GroupExpenseSplitRecord,
    GroupMemberRecord,
    GroupRecord,
    SplitPolicy,
)
from fintrack.money import CENT, ZERO, floor_money, round_money
from fintrack.repository import Repository

logger = logging.getLogger(__name__)

SPLIT_TOLERANCE = CENT


def split_expense(
    amount: Decimal,
    member_ids: Sequence[str],
    policy: SplitPolicy = SplitPolicy.EQUAL,
    amounts: Sequence[Decimal] | None = None,
) -> list[tuple[str, Decimal]]:
    """Partition an expense amount across members.

    EQUAL floors each share to the cent and hands the remaining cents out one
    at a time in member order, so the shares always sum to ``amount``
    exactly. Every other policy takes caller-computed amounts and only
    checks that they reconstruct the total within one cent.
    """
    if not member_ids:
        raise InvalidSplitError("At least one member is required", {"members": 0})
    amount = round_money(amount)
    policy = SplitPolicy(policy)
    if policy is SplitPolicy.EQUAL:
        share = floor_money(amount / len(member_ids))
        remainder = int((amount - share * len(member_ids)) / CENT)
        shares = []
        for index, member_id in enumerate(member_ids):
            extra = CENT if index < remainder else ZERO
            shares.append((member_id, share + extra))
        return shares

    if amounts is None or len(amounts) != len(member_ids):
        raise InvalidSplitError(
            f"{policy.value} split requires one amount per member",
            {"members": len(member_ids), "amounts": 0 if amounts is None else len(amounts)},
        )
    rounded = [round_money(value) for value in amounts]
    negative = [str(value) for value in rounded if value < ZERO]
    if negative:
        raise InvalidSplitError(
            "Split amounts must not be negative",
            {"negative": negative, "policy": policy.value},
        )
    total = sum(rounded, ZERO)
    if abs(total - amount) > SPLIT_TOLERANCE:
        raise InvalidSplitError(
            f"Split amounts total {total}, expected {amount}",
            {"expected": str(amount), "actual": str(total), "policy": policy.value},
        )
    return list(zip(member_ids, rounded))


class GroupBook:
    """Groups, their members, shared expenses and member balances.

    Member ``total_paid``, ``total_owed`` and ``balance`` are derived from the
    stored expenses and splits; ``recompute_members`` rebuilds them.
    """

    def __init__(self, repository: Repository) -> None:
        self.repository = repository

    def create_group(
        self, name: str, member_names: Sequence[str], description: str = ""
    ) -> GroupRecord:
        """Create a group and its members in one transaction."""
        name = name.strip()
        if not name:
            raise ValueError("Group name is required")
        names = [member.strip() for member in member_names if member.strip()]
        if not names:
            raise ValueError("At least one member is required")
        lowered = [member.lower() for member in names]
        if len(set(lowered)) != len(lowered):
            raise DuplicateNameError("Duplicate member name", {"members": names})
        existing = self.repository.find_group_by_name(name)
        if existing is not None:
            raise DuplicateNameError(
                "Duplicate group name", {"name": name, "existing_id": existing.id}
            )
        group = GroupRecord(
            id=uuid.uuid4().hex,
            name=name,
            description=description,
            total_spent=ZERO,
            member_count=len(names),
            created_at=dt.datetime.now().isoformat(timespec="seconds"),
        )

        def action() -> GroupRecord:
            self.repository.insert_group(group)
            for member_name in names:
                self.repository.insert_member(self._new_member(group.id, member_name))
            return group

        created = self.repository.run_transaction(action)
        logger.info("Created group %s with %d members", name, len(names))
        return created

    def add_member(self, group_id: str, name: str) -> GroupMemberRecord:
        group = self.repository.get_group(group_id)
        name = name.strip()
        if not name:
            raise ValueError("Member name is required")
        members = self.repository.list_members(group_id)
        if any(member.name.lower() == name.lower() for member in members):
            raise DuplicateNameError("Duplicate member name", {"name": name, "group": group.name})
        member = self._new_member(group_id, name)

        def action() -> GroupMemberRecord:
            self.repository.insert_member(member)
            self.repository.update_group_totals(group_id, group.total_spent, len(members) + 1)
            return member

        return self.repository.run_transaction(action)

    def get_group(self, group_id: str) -> GroupRecord:
        return self.repository.get_group(group_id)

    def list_groups(self) -> list[GroupRecord]:
        return self.repository.list_groups()

    def list_members(self, group_id: str) -> list[GroupMemberRecord]:
        self.repository.get_group(group_id)
        return self.repository.list_members(group_id)

    def list_expenses(self, group_id: str) -> list[GroupExpenseRecord]:
        self.repository.get_group(group_id)
        return self.repository.list_group_expenses(group_id)

    def list_splits(self, expense_id: str) -> list[GroupExpenseSplitRecord]:
        return self.repository.list_splits(expense_id)

    def add_expense(self, expense: GroupExpenseDTO) -> GroupExpenseRecord:
        """Store an expense with its splits and update member totals."""
        group = self.repository.get_group(expense.group_id)
        members = {member.id: member for member in self.repository.list_members(group.id)}
        for member_id in (expense.paid_by, *expense.member_ids):
            if member_id not in members:
                raise MissingReferenceError(f"Member {member_id} is not in group {group.name}")
        shares = split_expense(
            expense.amount, expense.member_ids, expense.policy, expense.split_amounts
        )
        record = GroupExpenseRecord(
            id=uuid.uuid4().hex,
            group_id=group.id,
            paid_by=expense.paid_by,
            amount=expense.amount,
            description=expense.description,
            category=expense.category,
            date=expense.date,
            time=expense.time,
            split_type=expense.policy,
        )

        def action() -> GroupExpenseRecord:
            self.repository.insert_group_expense(record)
            paid = {member_id: ZERO for member_id in members}
            owed = {member_id: ZERO for member_id in members}
            paid[expense.paid_by] = expense.amount
            for member_id, share in shares:
                self.repository.insert_split(
                    GroupExpenseSplitRecord(
                        id=uuid.uuid4().hex,
                        expense_id=record.id,
                        member_id=member_id,
                        amount=share,
                        is_paid=member_id == expense.paid_by,
                    )
                )
                owed[member_id] += share
            self._shift_members(members.values(), paid, owed, sign=1)
            self.repository.update_group_totals(
                group.id, round_money(group.total_spent + expense.amount), len(members)
            )
            return record

        stored = self.repository.run_transaction(action)
        logger.info(
            "Group %s expense %s split %s over %d members",
            group.name,
            expense.amount,
            expense.policy.value,
            len(shares),
        )
        return stored

    def mark_split_paid(self, split_id: str, is_paid: bool = True) -> GroupExpenseSplitRecord:
        """Flip a split's settled flag; balances are not touched."""
        split = self.repository.find_split(split_id)
        if split is None:
            raise MissingReferenceError(f"Split not found: {split_id}")
        self.repository.run_transaction(lambda: self.repository.set_split_paid(split_id, is_paid))
        return self.repository.find_split(split_id)

    def delete_expense(self, expense_id: str) -> GroupExpenseRecord:
        """Remove an expense and reverse its effect on member totals."""
        expense = self.repository.find_group_expense(expense_id)
        if expense is None:
            raise MissingReferenceError(f"Group expense not found: {expense_id}")
        group = self.repository.get_group(expense.group_id)
        members = self.repository.list_members(group.id)
        splits = self.repository.list_splits(expense_id)

        def action() -> GroupExpenseRecord:
            paid = {member.id: ZERO for member in members}
            owed = {member.id: ZERO for member in members}
            if expense.paid_by in paid:
                paid[expense.paid_by] = expense.amount
            for split in splits:
                if split.member_id in owed:
                    owed[split.member_id] += split.amount
            self._shift_members(members, paid, owed, sign=-1)
            self.repository.delete_group_expense(expense_id)
            self.repository.update_group_totals(
                group.id, round_money(group.total_spent - expense.amount), len(members)
            )
            return expense

        return self.repository.run_transaction(action)

    def recompute_members(self, group_id: str) -> list[GroupMemberRecord]:
        """Rebuild member totals and group total from stored expenses."""
        group = self.repository.get_group(group_id)
        members = self.repository.list_members(group_id)
        paid = {member.id: ZERO for member in members}
        owed = {member.id: ZERO for member in members}
        total_spent = ZERO
        for expense in self.repository.list_group_expenses(group_id):
            total_spent += expense.amount
            if expense.paid_by in paid:
                paid[expense.paid_by] += expense.amount
            for split in self.repository.list_splits(expense.id):
                if split.member_id in owed:
                    owed[split.member_id] += split.amount

        def action() -> None:
            for member in members:
                expected_paid = round_money(paid[member.id])
                expected_owed = round_money(owed[member.id])
                if (expected_paid, expected_owed) != (member.total_paid, member.total_owed):
                    logger.warning(
                        "Group %s member %s totals drifted, correcting", group.name, member.name
                    )
                self.repository.update_member_totals(member.id, expected_paid, expected_owed)
            self.repository.update_group_totals(group_id, round_money(total_spent), len(members))

        self.repository.run_transaction(action)
        return self.repository.list_members(group_id)

    def delete_group(self, group_id: str) -> None:
        group = self.repository.get_group(group_id)
        self.repository.run_transaction(lambda: self.repository.delete_group(group_id))
        logger.info("Deleted group %s", group.name)

    def _shift_members(self, members, paid, owed, sign: int) -> None:
        for member in members:
            if not paid[member.id] and not owed[member.id]:
                continue
            self.repository.update_member_totals(
                member.id,
                round_money(member.total_paid + sign * paid[member.id]),
                round_money(member.total_owed + sign * owed[member.id]),
            )

    @staticmethod
    def _new_member(group_id: str, name: str) -> GroupMemberRecord:
        return GroupMemberRecord(
            id=uuid.uuid4().hex,
            group_id=group_id,
            name=name,
            balance=ZERO,
            total_paid=ZERO,
            total_owed=ZERO,
        )
