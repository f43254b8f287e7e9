"""Savings goals and their progress.

Goals track money set aside toward a target. They do not move account
balances; progress is recorded against the goal alone.
"""

from __future__ import annotations

from dataclasses import replace
import datetime as dt
from decimal import Decimal
import logging
import uuid

from fintrack.models import GoalDTO, GoalRecord
from fintrack.money import ZERO, round_money
from fintrack.repository import Repository

logger = logging.getLogger(__name__)


class GoalBook:
    def __init__(self, repository: Repository) -> None:
        self.repository = repository

    def add_goal(self, goal: GoalDTO) -> GoalRecord:
        record = GoalRecord(
            id=uuid.uuid4().hex,
            title=goal.title,
            description=goal.description,
            target_amount=goal.target_amount,
            current_amount=goal.current_amount,
            deadline=goal.deadline,
            is_recurring=goal.is_recurring,
            monthly_amount=goal.monthly_amount,
            priority=goal.priority,
            created_at=dt.datetime.now().isoformat(timespec="seconds"),
        )
        self.repository.run_transaction(lambda: self.repository.insert_goal(record))
        logger.info("Created goal %s with target %s", record.title, record.target_amount)
        return record

    def get_goal(self, goal_id: str) -> GoalRecord:
        return self.repository.get_goal(goal_id)

    def list_goals(self) -> list[GoalRecord]:
        return self.repository.list_goals()

    def update_goal(self, goal_id: str, goal: GoalDTO) -> GoalRecord:
        """Replace a goal's details, keeping its id and creation time."""
        current = self.repository.get_goal(goal_id)
        updated = replace(
            current,
            title=goal.title,
            description=goal.description,
            target_amount=goal.target_amount,
            current_amount=goal.current_amount,
            deadline=goal.deadline,
            is_recurring=goal.is_recurring,
            monthly_amount=goal.monthly_amount,
            priority=goal.priority,
        )
        return self.repository.run_transaction(lambda: self.repository.update_goal(updated))

    def update_progress(self, goal_id: str, current_amount: Decimal) -> GoalRecord:
        """Set the amount saved so far."""
        amount = round_money(current_amount)
        if amount < ZERO:
            raise ValueError("Current amount must not be negative")
        goal = self.repository.get_goal(goal_id)
        updated = replace(goal, current_amount=amount)
        self.repository.run_transaction(lambda: self.repository.update_goal(updated))
        if updated.is_completed and not goal.is_completed:
            logger.info("Goal %s completed", goal.title)
        return updated

    def contribute(self, goal_id: str, amount: Decimal) -> GoalRecord:
        """Add money to a goal's saved amount."""
        amount = round_money(amount)
        if amount <= ZERO:
            raise ValueError("Contribution must be greater than zero")
        goal = self.repository.get_goal(goal_id)
        return self.update_progress(goal_id, goal.current_amount + amount)

    def delete_goal(self, goal_id: str) -> None:
        goal = self.repository.get_goal(goal_id)
        self.repository.run_transaction(lambda: self.repository.delete_goal(goal_id))
        logger.info("Deleted goal %s", goal.title)

    def clear_goals(self) -> None:
        self.repository.run_transaction(self.repository.delete_all_goals)
        logger.info("Cleared all goals")
