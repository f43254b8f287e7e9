"""Display preferences persisted in the settings table."""

from __future__ import annotations

from decimal import Decimal

from fintrack.money import format_money
from fintrack.repository import Repository
from fintrack.schema import DEFAULT_CURRENCY_SYMBOL, SETTING_CURRENCY_SYMBOL


class SettingsStore:
    def __init__(self, repository: Repository, default_symbol: str = DEFAULT_CURRENCY_SYMBOL) -> None:
        self.repository = repository
        self.default_symbol = default_symbol

    def currency_symbol(self) -> str:
        return self.repository.get_setting(SETTING_CURRENCY_SYMBOL) or self.default_symbol

    def set_currency_symbol(self, symbol: str) -> str:
        symbol = symbol.strip()
        if not symbol:
            raise ValueError("Currency symbol is required")
        self.repository.run_transaction(
            lambda: self.repository.set_setting(SETTING_CURRENCY_SYMBOL, symbol)
        )
        return symbol

    def format(self, amount: Decimal) -> str:
        return format_money(amount, self.currency_symbol())
