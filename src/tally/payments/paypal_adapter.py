from __future__ import annotations

import logging

from tally.core.errors import MissingOrderID
from tally.core.models import Address, Order
from tally.core.money import DEFAULT_CURRENCY, Currency
from tally.pricing import compute_totals

from .port import (
    Amount,
    AmountDetails,
    ItemList,
    PaymentAssembler,
    PaymentContext,
    PaymentItem,
    PaymentRequest,
    ShippingAddress,
    Transaction,
)

logger = logging.getLogger(__name__)


class PayPalAssembler(PaymentAssembler):
    """Builds a PayPal v1 `sale` payment with an itemized amount breakdown."""

    name = "paypal"

    def __init__(self, intent: str = "sale"):
        self.intent = intent

    @staticmethod
    def _currency(code: str) -> Currency:
        currency = Currency.from_code(code)
        if currency is None:
            logger.warning("Unknown currency %r, falling back to %s", code, DEFAULT_CURRENCY.code)
            return DEFAULT_CURRENCY
        return currency

    @staticmethod
    def _shipping_address(order: Order, address: Address | None) -> ShippingAddress | None:
        if address is None or not address.is_deliverable:
            return None
        return ShippingAddress(
            recipient_name=order.recipient_name,
            line1=address.street,
            line2=address.street2,
            city=address.city,
            state=address.state,
            country_code=address.country,
            postal_code=address.postal_code,
            phone=order.phone,
        )

    def assemble_request(self, order: Order, context: PaymentContext) -> PaymentRequest:
        if order.id is None:
            raise MissingOrderID()

        currency = self._currency(context.content.currency)
        totals = compute_totals(context.items, context.price_map, context.tax_policy)
        lines_by_item = {line.item_id: line for line in totals.lines}

        payment_items: list[PaymentItem] = []
        for item in context.items:
            resolved = context.price_map.get(item.id)
            line = lines_by_item.get(item.id)
            if resolved is None or line is None:
                logger.debug("Item %s of order %s has no resolved price, skipped", item.id, order.id)
                continue
            payment_items.append(
                PaymentItem(
                    quantity=str(item.quantity),
                    price=currency.amount(line.unit_price_cents),
                    currency=currency.code,
                    sku=resolved.product.sku,
                    name=resolved.product.name,
                    description=resolved.product.description,
                    tax=currency.amount(line.unit_tax_cents),
                )
            )

        content = context.content
        grand_total = totals.subtotal_cents + totals.tax_cents + context.fees.fee_total_cents
        details = AmountDetails(
            subtotal=currency.amount(totals.subtotal_cents),
            tax=currency.amount(totals.tax_cents),
            shipping=currency.amount(content.shipping),
            handling_fee=currency.amount(content.handling),
            shipping_discount=currency.amount(content.shipping_discount),
            insurance=currency.amount(content.insurance),
            gift_wrap=currency.amount(content.gift_wrap),
        )
        transaction = Transaction(
            amount=Amount(currency=currency.code, total=currency.amount(grand_total), details=details),
            payee_email=context.payee_email,
            item_list=ItemList(
                items=tuple(payment_items),
                shipping_address=self._shipping_address(order, context.shipping_address),
            ),
        )

        logger.info(
            "Assembled PayPal request for order %s: %s items, total %s %s",
            order.id,
            len(payment_items),
            transaction.amount.total,
            currency.code,
        )
        return PaymentRequest(
            intent=self.intent,
            payer_method="paypal",
            transactions=(transaction,),
            redirect_urls=context.redirects,
            subtotal_cents=totals.subtotal_cents,
            tax_cents=totals.tax_cents,
            fee_total_cents=context.fees.fee_total_cents,
            grand_total_cents=grand_total,
        )
