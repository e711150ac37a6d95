from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from tally.auth import TokenSigner
from tally.catalog import ProductCatalog
from tally.core.db import OrderStore
from tally.core.errors import MissingCurrency, MissingEmailForToken
from tally.core.models import Address, Item, Order, OrderStatus, PaymentStatus
from tally.pricing import TaxPolicy, price_order


def is_placeholder_email(email: str | None, placeholder_domain: str) -> bool:
    if not email or not placeholder_domain:
        return False
    return email.strip().lower().endswith("@" + placeholder_domain.lower())


@dataclass(slots=True)
class OrderSummary:
    id: int
    auth_token: str
    status: OrderStatus
    payment_status: PaymentStatus
    paid_total: int
    refunded_total: int
    guest: bool
    items: list[Item] = field(default_factory=list)
    user_id: int | None = None
    total: int | None = None
    tax: int | None = None
    comment: str | None = None
    firstname: str | None = None
    lastname: str | None = None
    company: str | None = None
    email: str | None = None
    phone: str | None = None
    shipping_address: Address | None = None
    billing_address: Address | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "userID": self.user_id,
            "total": self.total,
            "tax": self.tax,
            "comment": self.comment,
            "authToken": self.auth_token,
            "firstname": self.firstname,
            "lastname": self.lastname,
            "company": self.company,
            "email": self.email,
            "phone": self.phone,
            "status": self.status.value,
            "paymentStatus": self.payment_status.value,
            "paidTotal": self.paid_total,
            "refundedTotal": self.refunded_total,
            "guest": self.guest,
            "items": [
                {
                    key: value
                    for key, value in {
                        "id": item.id,
                        "productID": item.product_id,
                        "quantity": item.quantity,
                        "taxCode": item.tax_code,
                    }.items()
                    if value is not None
                }
                for item in self.items
            ],
            "shippingAddress": self.shipping_address.to_dict() if self.shipping_address else None,
            "billingAddress": self.billing_address.to_dict() if self.billing_address else None,
        }
        return {key: value for key, value in payload.items() if value is not None}


class SummaryBuilder:
    """Builds the checkout summary a storefront shows after order submission."""

    def __init__(
        self,
        store: OrderStore,
        catalog: ProductCatalog,
        token_signer: TokenSigner,
        tax_policy: TaxPolicy,
        placeholder_email_domain: str,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        self.store = store
        self.catalog = catalog
        self.token_signer = token_signer
        self.tax_policy = tax_policy
        self.placeholder_email_domain = placeholder_email_domain
        self.logger = logger or logging.getLogger(__name__)

    def _auth_token(self, order: Order, bearer_token: str | None) -> str:
        if bearer_token:
            return bearer_token
        if order.email:
            return self.token_signer.sign(order.email)
        if order.guest:
            raise MissingEmailForToken(order.id)
        return self.token_signer.sign(f"user:{order.user_id}")

    async def _items_and_totals(
        self, order: Order, currency: str | None
    ) -> tuple[list[Item], int | None, int | None]:
        if order.total is None and not currency:
            raise MissingCurrency(order.id)
        items = await self.store.items(order.id)
        if order.total is not None:
            return items, order.total, None
        _, totals = await price_order(items, currency, self.catalog, self.tax_policy)
        return items, totals.subtotal_cents, totals.tax_cents

    async def build_summary(
        self,
        order_id: int,
        currency: str | None = None,
        bearer_token: str | None = None,
    ) -> OrderSummary:
        order = await self.store.order(order_id)
        auth_token = self._auth_token(order, bearer_token)

        (items, total, tax), shipping_address, billing_address = await asyncio.gather(
            self._items_and_totals(order, currency),
            self.store.address(order_id, shipping=True),
            self.store.address(order_id, shipping=False),
        )

        email = order.email
        if is_placeholder_email(email, self.placeholder_email_domain):
            email = None

        self.logger.info(
            "Built summary for order %s: items=%s total=%s cached=%s",
            order_id,
            len(items),
            total,
            order.total is not None,
        )
        return OrderSummary(
            id=order_id,
            auth_token=auth_token,
            status=order.status,
            payment_status=order.payment_status,
            paid_total=order.paid_total,
            refunded_total=order.refunded_total,
            guest=bool(order.guest),
            items=items,
            user_id=order.user_id,
            total=total,
            tax=tax,
            comment=order.comment,
            firstname=order.firstname,
            lastname=order.lastname,
            company=order.company,
            email=email,
            phone=order.phone,
            shipping_address=shipping_address,
            billing_address=billing_address,
        )
