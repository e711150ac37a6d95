from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from tally.catalog import ProductCatalog
from tally.core.errors import NoPriceForProduct, ValidationError
from tally.core.models import Item, Price, Product

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResolvedPrice:
    product: Product
    price: Price

    @property
    def unit_price_cents(self) -> int:
        return self.price.cents


PriceMap = dict[int, ResolvedPrice]


def check_item_ids(items: Sequence[Item]) -> None:
    """Price maps are keyed by item id, so every item needs its own."""
    errors: dict[str, list[str]] = {}
    seen: set[int] = set()
    for index, item in enumerate(items):
        if item.id is None:
            errors.setdefault(f"items[{index}].id", []).append("item must be stored before it can be priced")
        elif item.id in seen:
            errors.setdefault(f"items[{index}].id", []).append(f"duplicate item id {item.id}")
        else:
            seen.add(item.id)
    if errors:
        raise ValidationError(errors)


def select_active_price(product: Product, currency: str) -> Price | None:
    for price in product.prices:
        if price.matches(currency):
            return price
    return None


async def resolve_prices(items: Sequence[Item], currency: str, catalog: ProductCatalog) -> PriceMap:
    """Look up the active `currency` price of every item's product.

    Products are fetched once per distinct product id. Resolution is
    all-or-nothing: the first item whose product has no active price in
    `currency` raises NoPriceForProduct and no map is returned.
    """
    check_item_ids(items)
    product_ids = list(dict.fromkeys(item.product_id for item in items))
    products = await catalog.fetch_products(product_ids)
    by_id = {product.id: product for product in products}

    resolved: PriceMap = {}
    for item in items:
        product = by_id.get(item.product_id)
        if product is None:
            raise NoPriceForProduct(sku=str(item.product_id), currency=currency)
        price = select_active_price(product, currency)
        if price is None:
            logger.warning("No active %s price for sku=%s", currency, product.sku)
            raise NoPriceForProduct(sku=product.sku, currency=currency)
        resolved[item.id] = ResolvedPrice(product=product, price=price)

    logger.info("Resolved %s prices for %s products in %s", len(resolved), len(by_id), currency)
    return resolved
