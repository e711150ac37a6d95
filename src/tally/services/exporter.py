from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import pandas as pd

from tally.catalog import ProductCatalog
from tally.core.db import OrderRepository
from tally.core.errors import CatalogError, PricingError
from tally.core.money import DEFAULT_CURRENCY, Currency
from tally.pricing import TaxPolicy, price_order


async def collect_priced_rows(
    repository: OrderRepository,
    catalog: ProductCatalog,
    currency: str,
    tax_policy: TaxPolicy,
    logger: logging.Logger | logging.LoggerAdapter,
) -> tuple[list[dict[str, Any]], dict[str, int]]:
    """Price every stored order in `currency` and flatten it into one row per line."""
    money = Currency.from_code(currency) or DEFAULT_CURRENCY
    rows: list[dict[str, Any]] = []
    stats = {"orders_total": 0, "orders_priced": 0, "lines": 0, "errors": 0}

    for order_id in repository.fetch_order_ids():
        stats["orders_total"] += 1
        items = repository.fetch_items(order_id)
        try:
            price_map, totals = await price_order(items, currency, catalog, tax_policy)
        except (PricingError, CatalogError) as exc:
            stats["errors"] += 1
            logger.warning("Order %s not exported: %s", order_id, exc)
            continue

        for item, line in zip(items, totals.lines):
            product = price_map[item.id].product
            rows.append(
                {
                    "order_id": order_id,
                    "item_id": item.id,
                    "product_id": item.product_id,
                    "sku": product.sku,
                    "name": product.name,
                    "quantity": line.quantity,
                    "currency": money.code,
                    "unit_price_cents": line.unit_price_cents,
                    "unit_tax_cents": line.unit_tax_cents,
                    "line_total_cents": line.line_total_cents,
                    "line_tax_cents": line.line_tax_cents,
                    "line_total": money.amount(line.line_total_cents),
                }
            )
            stats["lines"] += 1
        stats["orders_priced"] += 1

    return rows, stats


def export_priced_lines(rows: list[dict[str, Any]], formats: list[str], out_dir: Path) -> list[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    df = pd.DataFrame(rows)

    created_files: list[Path] = []
    if "csv" in formats:
        csv_path = (out_dir / "tally_export.csv").resolve()
        df.to_csv(csv_path, index=False, encoding="utf-8-sig")
        created_files.append(csv_path)

    if "xlsx" in formats:
        xlsx_path = (out_dir / "tally_export.xlsx").resolve()
        with pd.ExcelWriter(xlsx_path, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name="lines")
        created_files.append(xlsx_path)

    return created_files
