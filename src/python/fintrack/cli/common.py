"""Shared CLI helpers."""

from __future__ import annotations

from contextlib import contextmanager
import datetime as dt
from decimal import Decimal
from typing import Iterator

import click

from fintrack.client import FinanceClient
from fintrack.exceptions import (
    DuplicateNameError,
    IntegrityError,
    InvalidSplitError,
    MissingReferenceError,
    ParseError,
)
from fintrack.models import AccountRecord, GroupRecord, LedgerPersonRecord
from fintrack.money import parse_money_strict


def parse_date(value: str | None, field_name: str) -> dt.date | None:
    """Parse an ISO date string into a date."""
    if value is None:
        return None
    try:
        return dt.date.fromisoformat(value)
    except ValueError as exc:
        raise click.BadParameter("Use YYYY-MM-DD format.", param_hint=field_name) from exc


def parse_amount(value: str | None, field_name: str) -> Decimal | None:
    """Parse an amount, accepting currency symbols and thousands separators."""
    if value is None:
        return None
    try:
        return parse_money_strict(value)
    except ParseError as exc:
        raise click.BadParameter("Use a valid amount.", param_hint=field_name) from exc


def get_client(ctx: click.Context) -> FinanceClient:
    """Build a client from Click context."""
    payload = ctx.obj or {}
    return FinanceClient(db_path=payload.get("db_path"))


@contextmanager
def domain_errors(label: str) -> Iterator[None]:
    """Report domain failures as Click errors prefixed with ``label``."""
    try:
        yield
    except IntegrityError as exc:
        hint = " Balances were recomputed." if exc.requires_recompute else ""
        raise click.ClickException(f"{label}: {exc}.{hint}") from exc
    except (DuplicateNameError, MissingReferenceError, InvalidSplitError, ValueError) as exc:
        raise click.ClickException(f"{label}: {exc}") from exc


def resolve_account(client: FinanceClient, name: str) -> AccountRecord:
    account = client.find_account_by_name(name)
    if account is None:
        raise click.ClickException(f"Account {name!r} not found.")
    return account


def resolve_person(client: FinanceClient, name: str) -> LedgerPersonRecord:
    person = client.find_person_by_name(name)
    if person is None:
        raise click.ClickException(f"Person {name!r} not found.")
    return person


def resolve_group(client: FinanceClient, name: str) -> GroupRecord:
    group = client.find_group_by_name(name)
    if group is None:
        raise click.ClickException(f"Group {name!r} not found.")
    return group
