from __future__ import annotations

from typing import Protocol

from tally.core.errors import OrderNotFound
from tally.core.models import Address, Item, Order

from .repository import OrderRepository


class OrderStore(Protocol):
    async def order(self, order_id: int) -> Order:
        ...

    async def items(self, order_id: int) -> list[Item]:
        ...

    async def address(self, order_id: int, shipping: bool) -> Address | None:
        ...


class SqliteOrderStore:
    """Async face of OrderRepository for the pricing services.

    sqlite reads are local and short, so they run inline on the event loop.
    """

    def __init__(self, repository: OrderRepository):
        self.repository = repository

    async def order(self, order_id: int) -> Order:
        order = self.repository.fetch_order(order_id)
        if order is None:
            raise OrderNotFound(order_id)
        return order

    async def items(self, order_id: int) -> list[Item]:
        return self.repository.fetch_items(order_id)

    async def address(self, order_id: int, shipping: bool) -> Address | None:
        return self.repository.fetch_address(order_id, shipping)
