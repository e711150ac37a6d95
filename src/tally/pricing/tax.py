from __future__ import annotations

from collections.abc import Mapping
from typing import Protocol

BASIS_POINTS = 10_000


class TaxPolicy(Protocol):
    def unit_tax(self, tax_code: str | None, unit_price_cents: int) -> int:
        ...


class NoTaxPolicy:
    def unit_tax(self, tax_code: str | None, unit_price_cents: int) -> int:  # noqa: ARG002
        return 0


class RateTaxPolicy:
    """Percentage tax per tax code, expressed in basis points (825 == 8.25%).

    Tax is rounded half-up per unit, so a line's tax is always
    quantity * unit tax and never drifts with quantity.
    """

    def __init__(self, rates_bps: Mapping[str, int], default_rate_bps: int = 0):
        self.rates_bps = {code.strip().lower(): rate for code, rate in rates_bps.items()}
        self.default_rate_bps = default_rate_bps

    def rate_for(self, tax_code: str | None) -> int:
        if not tax_code:
            return self.default_rate_bps
        return self.rates_bps.get(tax_code.strip().lower(), self.default_rate_bps)

    def unit_tax(self, tax_code: str | None, unit_price_cents: int) -> int:
        rate = self.rate_for(tax_code)
        if rate == 0:
            return 0
        scaled = abs(unit_price_cents) * rate
        rounded = (scaled + BASIS_POINTS // 2) // BASIS_POINTS
        return rounded if unit_price_cents >= 0 else -rounded
