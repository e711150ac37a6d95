from .fees import FeeTotals, reconcile_fees
from .resolver import PriceMap, ResolvedPrice, check_item_ids, resolve_prices, select_active_price
from .tax import NoTaxPolicy, RateTaxPolicy, TaxPolicy
from .totals import LineTotals, OrderTotals, compute_totals, line_totals, price_order

__all__ = [
    "FeeTotals",
    "LineTotals",
    "NoTaxPolicy",
    "OrderTotals",
    "PriceMap",
    "RateTaxPolicy",
    "ResolvedPrice",
    "TaxPolicy",
    "check_item_ids",
    "compute_totals",
    "line_totals",
    "price_order",
    "reconcile_fees",
    "resolve_prices",
    "select_active_price",
]
