from __future__ import annotations

from dataclasses import dataclass

from tally.core.models import PaymentGenerationContent
from tally.core.money import cents_or_zero, sum_cents


@dataclass(frozen=True, slots=True)
class FeeTotals:
    net_shipping_cents: int = 0
    fee_total_cents: int = 0


def reconcile_fees(content: PaymentGenerationContent) -> FeeTotals:
    """Fold the order-level adjustments into one fee delta.

    Every absent component counts as zero. A shipping discount larger than
    the shipping charge yields a negative net shipping that is carried into
    the fee total as is.
    """
    net_shipping = cents_or_zero(content.shipping) - cents_or_zero(content.shipping_discount)
    fee_total = sum_cents(net_shipping, content.handling, content.insurance, content.gift_wrap)
    return FeeTotals(net_shipping_cents=net_shipping, fee_total_cents=fee_total)
