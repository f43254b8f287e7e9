from __future__ import annotations

from fintrack.exceptions import (
    DuplicateNameError,
    IntegrityError,
    InvalidSplitError,
    MissingReferenceError,
    NotFoundError,
    ParseError,
)


def test_duplicate_name_error_details() -> None:
    details = {"name": "Wallet", "existing_id": "abc"}
    error = DuplicateNameError("Duplicate account name", details)

    assert error.details == details
    assert "Duplicate account name" in str(error)


def test_not_found_is_missing_reference() -> None:
    assert issubclass(NotFoundError, MissingReferenceError)


def test_parse_error_keeps_raw_value() -> None:
    error = ParseError("Invalid amount", "12abc")

    assert isinstance(error, ValueError)
    assert error.raw_value == "12abc"


def test_integrity_error_defaults() -> None:
    error = IntegrityError("failed", transaction_id="t1")

    assert error.transaction_id == "t1"
    assert error.requires_recompute is False
    assert IntegrityError("failed", requires_recompute=True).requires_recompute is True


def test_invalid_split_error_details() -> None:
    error = InvalidSplitError("bad split", {"expected": "10.00", "actual": "9.00"})

    assert isinstance(error, ValueError)
    assert error.details["actual"] == "9.00"
