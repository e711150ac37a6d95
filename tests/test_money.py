from __future__ import annotations

from tally.core.money import DEFAULT_CURRENCY, Currency, cents_or_zero, sum_cents


def test_currency_from_code_is_case_insensitive() -> None:
    assert Currency.from_code(" usd ") == Currency("USD", 2)
    assert Currency.from_code("jpy") == Currency("JPY", 0)
    assert Currency.from_code("XXX") is None
    assert Currency.from_code(None) is None


def test_amount_uses_currency_exponent() -> None:
    assert DEFAULT_CURRENCY.amount(2350) == "23.50"
    assert DEFAULT_CURRENCY.amount(5) == "0.05"
    assert DEFAULT_CURRENCY.amount(-200) == "-2.00"
    assert DEFAULT_CURRENCY.amount(None) == "0.00"
    assert Currency("JPY", 0).amount(1200) == "1200"
    assert Currency("KWD", 3).amount(1234) == "1.234"


def test_absent_components_count_as_zero() -> None:
    assert cents_or_zero(None) == 0
    assert cents_or_zero(7) == 7
    assert sum_cents(None, 100, None, -30) == 70
    assert sum_cents() == 0
