from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from tally.catalog import ProductCatalog
from tally.core.models import Item

from .resolver import PriceMap, check_item_ids, resolve_prices
from .tax import TaxPolicy


@dataclass(frozen=True, slots=True)
class LineTotals:
    item_id: int | None
    quantity: int
    unit_price_cents: int
    unit_tax_cents: int
    line_total_cents: int
    line_tax_cents: int


@dataclass(frozen=True, slots=True)
class OrderTotals:
    subtotal_cents: int = 0
    tax_cents: int = 0
    lines: tuple[LineTotals, ...] = ()

    @property
    def total_with_tax_cents(self) -> int:
        return self.subtotal_cents + self.tax_cents


def line_totals(item: Item, unit_price_cents: int, tax_policy: TaxPolicy) -> LineTotals:
    unit_tax_cents = tax_policy.unit_tax(item.tax_code, unit_price_cents)
    return LineTotals(
        item_id=item.id,
        quantity=item.quantity,
        unit_price_cents=unit_price_cents,
        unit_tax_cents=unit_tax_cents,
        line_total_cents=item.total(unit_price_cents),
        line_tax_cents=item.quantity * unit_tax_cents,
    )


def compute_totals(items: Sequence[Item], price_map: PriceMap, tax_policy: TaxPolicy) -> OrderTotals:
    check_item_ids(items)
    lines: list[LineTotals] = []
    for item in items:
        resolved = price_map.get(item.id)
        if resolved is None:
            continue
        lines.append(line_totals(item, resolved.unit_price_cents, tax_policy))

    return OrderTotals(
        subtotal_cents=sum(line.line_total_cents for line in lines),
        tax_cents=sum(line.line_tax_cents for line in lines),
        lines=tuple(lines),
    )


async def price_order(
    items: Sequence[Item],
    currency: str,
    catalog: ProductCatalog,
    tax_policy: TaxPolicy,
) -> tuple[PriceMap, OrderTotals]:
    price_map = await resolve_prices(items, currency, catalog)
    return price_map, compute_totals(items, price_map, tax_policy)
