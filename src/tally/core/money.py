from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

# ISO 4217 minor-unit exponents for the currencies the catalog prices in.
CURRENCY_EXPONENTS: dict[str, int] = {
    "AUD": 2,
    "BRL": 2,
    "CAD": 2,
    "CHF": 2,
    "CNY": 2,
    "CZK": 2,
    "DKK": 2,
    "EUR": 2,
    "GBP": 2,
    "HKD": 2,
    "HUF": 2,
    "ILS": 2,
    "INR": 2,
    "JPY": 0,
    "KRW": 0,
    "KWD": 3,
    "MXN": 2,
    "NOK": 2,
    "NZD": 2,
    "PHP": 2,
    "PLN": 2,
    "RUB": 2,
    "SEK": 2,
    "SGD": 2,
    "THB": 2,
    "TWD": 2,
    "USD": 2,
    "ZAR": 2,
}


@dataclass(frozen=True, slots=True)
class Currency:
    code: str
    exponent: int = 2

    @classmethod
    def from_code(cls, code: str | None) -> Currency | None:
        if not code:
            return None
        normalized = code.strip().upper()
        exponent = CURRENCY_EXPONENTS.get(normalized)
        if exponent is None:
            return None
        return cls(code=normalized, exponent=exponent)

    def amount(self, cents: int | None) -> str:
        """Format minor units as a decimal string in major units ("23.50")."""
        value = Decimal(cents_or_zero(cents)).scaleb(-self.exponent)
        return format(value, f".{self.exponent}f")


DEFAULT_CURRENCY = Currency("USD", 2)


def cents_or_zero(value: int | None) -> int:
    if value is None:
        return 0
    return value


def sum_cents(*values: int | None) -> int:
    return sum(cents_or_zero(value) for value in values)
