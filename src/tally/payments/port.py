"""Payment request port.

A processor integration turns a priced order into the request body that
processor expects. Submission, execution and capture happen elsewhere; an
assembler never talks to the processor.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from tally.core.models import Address, Item, Order, PaymentGenerationContent
from tally.pricing import FeeTotals, PriceMap, TaxPolicy


@dataclass(frozen=True, slots=True)
class RedirectUrls:
    return_url: str
    cancel_url: str


@dataclass(slots=True)
class PaymentContext:
    items: Sequence[Item]
    price_map: PriceMap
    tax_policy: TaxPolicy
    content: PaymentGenerationContent
    fees: FeeTotals
    payee_email: str
    redirects: RedirectUrls
    shipping_address: Address | None = None


@dataclass(frozen=True, slots=True)
class PaymentItem:
    quantity: str
    price: str
    currency: str
    sku: str | None
    name: str | None
    description: str | None
    tax: str


@dataclass(frozen=True, slots=True)
class ShippingAddress:
    line1: str
    city: str
    country_code: str
    postal_code: str
    recipient_name: str | None = None
    line2: str | None = None
    state: str | None = None
    phone: str | None = None


@dataclass(frozen=True, slots=True)
class AmountDetails:
    subtotal: str
    tax: str
    shipping: str
    handling_fee: str
    shipping_discount: str
    insurance: str
    gift_wrap: str


@dataclass(frozen=True, slots=True)
class Amount:
    currency: str
    total: str
    details: AmountDetails


@dataclass(frozen=True, slots=True)
class ItemList:
    items: tuple[PaymentItem, ...]
    shipping_address: ShippingAddress | None = None


@dataclass(frozen=True, slots=True)
class Transaction:
    amount: Amount
    payee_email: str
    item_list: ItemList


@dataclass(frozen=True, slots=True)
class PaymentRequest:
    intent: str
    payer_method: str
    transactions: tuple[Transaction, ...]
    redirect_urls: RedirectUrls
    # minor-unit figures the decimal strings were rendered from
    subtotal_cents: int = 0
    tax_cents: int = 0
    fee_total_cents: int = 0
    grand_total_cents: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "intent": self.intent,
            "payer": {"payment_method": self.payer_method},
            "transactions": [_transaction_dict(transaction) for transaction in self.transactions],
            "redirect_urls": {
                "return_url": self.redirect_urls.return_url,
                "cancel_url": self.redirect_urls.cancel_url,
            },
        }


def _drop_none(payload: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def _transaction_dict(transaction: Transaction) -> dict[str, Any]:
    details = transaction.amount.details
    item_list: dict[str, Any] = {
        "items": [
            _drop_none(
                {
                    "quantity": item.quantity,
                    "price": item.price,
                    "currency": item.currency,
                    "sku": item.sku,
                    "name": item.name,
                    "description": item.description,
                    "tax": item.tax,
                }
            )
            for item in transaction.item_list.items
        ]
    }
    address = transaction.item_list.shipping_address
    if address is not None:
        item_list["shipping_address"] = _drop_none(
            {
                "recipient_name": address.recipient_name,
                "line1": address.line1,
                "line2": address.line2,
                "city": address.city,
                "state": address.state,
                "country_code": address.country_code,
                "postal_code": address.postal_code,
                "phone": address.phone,
            }
        )
    return {
        "amount": {
            "currency": transaction.amount.currency,
            "total": transaction.amount.total,
            "details": {
                "subtotal": details.subtotal,
                "tax": details.tax,
                "shipping": details.shipping,
                "handling_fee": details.handling_fee,
                "shipping_discount": details.shipping_discount,
                "insurance": details.insurance,
                "gift_wrap": details.gift_wrap,
            },
        },
        "payee": {"email": transaction.payee_email},
        "item_list": item_list,
    }


class PaymentAssembler(ABC):
    """Builds a processor-specific payment request for an order."""

    name: str = ""

    @abstractmethod
    def assemble_request(self, order: Order, context: PaymentContext) -> PaymentRequest:
        ...
