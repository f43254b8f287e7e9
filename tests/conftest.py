"""Pytest configuration and fixtures for system integration tests.

Every SIT test gets a fresh SQLite database in its own temporary directory.
"""
from __future__ import annotations

from decimal import Decimal
from pathlib import Path
import sys

import pytest

SRC_DIR = Path(__file__).resolve().parents[1] / "src" / "python"

if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from fintrack.client import FinanceClient  # noqa: E402
from fintrack.models import AccountDTO, AccountType  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Point config discovery away from the user's home directory."""
    monkeypatch.setenv("FINTRACK_CONFIG", str(tmp_path / "missing-config.json"))


@pytest.fixture()
def db_path(tmp_path: Path) -> Path:
    """Path for a database that does not exist yet."""
    return tmp_path / "fintrack.db"


@pytest.fixture()
def client(db_path: Path):
    """Open client over a freshly seeded database."""
    with FinanceClient(db_path=db_path) as opened:
        yield opened


@pytest.fixture()
def wallet(client: FinanceClient):
    """Cash account opened with 100.00."""
    return client.add_account(
        AccountDTO(name="Wallet", account_type=AccountType.CASH, balance=Decimal("100.00"))
    )


@pytest.fixture()
def bank(client: FinanceClient):
    """Bank account opened with 500.00."""
    return client.add_account(
        AccountDTO(name="Checking", account_type=AccountType.BANK, balance=Decimal("500.00"))
    )
