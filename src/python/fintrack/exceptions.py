"""Custom exception types for fintrack."""

from __future__ import annotations

from typing import Any


class ParseError(ValueError):
    """Raised when an amount or date string cannot be parsed."""

    def __init__(self, message: str, raw_value: object = None) -> None:
        super().__init__(message)
        self.raw_value = raw_value


class DuplicateNameError(Exception):
    """Raised when a name that must be unique is already taken."""

    def __init__(self, message: str, details: dict[str, Any]) -> None:
        super().__init__(message)
        self.details = details


class MissingReferenceError(Exception):
    """Raised when a referenced account, person, group or member does not exist."""


class NotFoundError(MissingReferenceError):
    """Raised when a requested record does not exist."""


class IntegrityError(Exception):
    """Raised when a reverse/apply sequence could not complete.

    When ``requires_recompute`` is set the stored balances can no longer be
    trusted relative to the stored rows and an authoritative recompute has to
    run before further writes.
    """

    def __init__(
        self,
        message: str,
        transaction_id: str | None = None,
        requires_recompute: bool = False,
    ) -> None:
        super().__init__(message)
        self.transaction_id = transaction_id
        self.requires_recompute = requires_recompute


class InvalidSplitError(ValueError):
    """Raised when split amounts do not add up to the expense amount."""

    def __init__(self, message: str, details: dict[str, Any]) -> None:
        super().__init__(message)
        self.details = details
