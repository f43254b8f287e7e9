"""Persistence interfaces for fintrack storage backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, TypeVar

T = TypeVar("T")


class PersistenceBackend(ABC):
    """Abstract interface for repository backends."""

    @abstractmethod
    def __init__(self, db_path: str | Path) -> None:
        """Initialize the backend with a storage path."""

    @abstractmethod
    def connect(self) -> None:
        """Establish a backend connection."""

    @abstractmethod
    def close(self) -> None:
        """Close the backend connection."""

    @property
    @abstractmethod
    def in_transaction(self) -> bool:
        """Whether a transaction is currently open."""

    @abstractmethod
    def begin_transaction(self) -> None:
        """Start a transaction."""

    @abstractmethod
    def commit(self) -> None:
        """Commit the active transaction."""

    @abstractmethod
    def rollback(self) -> None:
        """Rollback the active transaction."""

    @abstractmethod
    def create_schema(self) -> None:
        """Create missing tables."""

    @abstractmethod
    def wipe_domain_tables(self) -> None:
        """Delete every row of user data, keeping settings."""

    @abstractmethod
    def seed_defaults(self) -> None:
        """Insert the default categories and accounts."""

    def run_transaction(self, action: Callable[[], T]) -> T:
        """Run work inside a transaction, joining one that is already open.

        A joined call leaves commit and rollback to the outermost caller.
        """
        if self.in_transaction:
            return action()
        self.begin_transaction()
        try:
            result = action()
            self.commit()
            return result
        except Exception:
            self.rollback()
            raise
