from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from tally.catalog import ProductCatalog
from tally.core.db import OrderStore
from tally.core.errors import MissingOrderID, PriceResolutionFailed, PricingError
from tally.core.models import Address, Item, Order, PaymentGenerationContent
from tally.payments import PaymentAssembler, PaymentContext, PaymentRequest, RedirectUrls
from tally.pricing import TaxPolicy, reconcile_fees, resolve_prices


class PaymentService:
    """Prices a stored order and hands it to the configured payment assembler."""

    def __init__(
        self,
        store: OrderStore,
        catalog: ProductCatalog,
        assembler: PaymentAssembler,
        tax_policy: TaxPolicy,
        payee_email: str,
        redirects: RedirectUrls,
        logger: logging.Logger | logging.LoggerAdapter | None = None,
    ):
        self.store = store
        self.catalog = catalog
        self.assembler = assembler
        self.tax_policy = tax_policy
        self.payee_email = payee_email
        self.redirects = redirects
        self.logger = logger or logging.getLogger(__name__)

    async def generate(self, order_id: int, content: PaymentGenerationContent) -> PaymentRequest:
        order, items, shipping_address = await asyncio.gather(
            self.store.order(order_id),
            self.store.items(order_id),
            self.store.address(order_id, shipping=True),
        )
        return await self._assemble(order, items, shipping_address, content)

    async def generate_for(self, order: Order, content: PaymentGenerationContent) -> PaymentRequest:
        if order.id is None:
            raise MissingOrderID()
        items, shipping_address = await asyncio.gather(
            self.store.items(order.id),
            self.store.address(order.id, shipping=True),
        )
        return await self._assemble(order, items, shipping_address, content)

    async def _assemble(
        self,
        order: Order,
        items: Sequence[Item],
        shipping_address: Address | None,
        content: PaymentGenerationContent,
    ) -> PaymentRequest:
        try:
            price_map = await resolve_prices(items, content.currency, self.catalog)
        except PricingError as exc:
            self.logger.warning("Payment for order %s not assembled: %s", order.id, exc)
            raise PriceResolutionFailed(exc) from exc

        context = PaymentContext(
            items=items,
            price_map=price_map,
            tax_policy=self.tax_policy,
            content=content,
            fees=reconcile_fees(content),
            payee_email=self.payee_email,
            redirects=self.redirects,
            shipping_address=shipping_address,
        )
        request = self.assembler.assemble_request(order, context)
        self.logger.info(
            "Payment request for order %s via %s: grand total %s minor units",
            order.id,
            self.assembler.name,
            request.grand_total_cents,
        )
        return request
