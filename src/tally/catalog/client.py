from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Iterable, Sequence
from typing import Protocol

import httpx

from tally.core.errors import CatalogError, ValidationError
from tally.core.models import Product
from tally.core.schemas import ProductPayload

logger = logging.getLogger(__name__)


class ProductCatalog(Protocol):
    async def fetch_product(self, product_id: int) -> Product:
        ...

    async def fetch_products(self, product_ids: Sequence[int]) -> list[Product]:
        ...


async def _gather_products(fetches: Iterable[Awaitable[Product]]) -> list[Product]:
    # wait for every issued request, then surface the first failure in id order
    results = await asyncio.gather(*fetches, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


class HttpProductCatalog:
    """Read-only client for the product service: GET <base_url>/<product_id>.

    The service has no batch endpoint, so `fetch_products` fans out one
    request per distinct id and gathers them. Requests already issued run to
    completion before the first failure propagates, so the client can be
    closed safely afterwards.
    """

    def __init__(
        self,
        base_url: str,
        timeout_sec: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout_sec)
        self._owns_client = client is None

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> HttpProductCatalog:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.close()

    def product_url(self, product_id: int) -> str:
        return f"{self.base_url}/{product_id}"

    async def fetch_product(self, product_id: int) -> Product:
        url = self.product_url(product_id)
        try:
            response = await self._client.get(url)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise CatalogError(product_id, f"HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise CatalogError(product_id, f"{exc.__class__.__name__}: {exc}") from exc
        except ValueError as exc:
            raise CatalogError(product_id, "response is not JSON") from exc

        try:
            product = ProductPayload.parse(payload)
        except ValidationError as exc:
            raise CatalogError(product_id, str(exc)) from exc
        if product.id != product_id:
            raise CatalogError(product_id, f"catalog answered with product {product.id}")
        return product

    async def fetch_products(self, product_ids: Sequence[int]) -> list[Product]:
        distinct = list(dict.fromkeys(product_ids))
        if not distinct:
            return []
        logger.debug("Fetching %s products from %s", len(distinct), self.base_url)
        return await _gather_products(self.fetch_product(product_id) for product_id in distinct)


class StaticProductCatalog:
    """In-memory catalog, used by the CLI `--catalog-file` option and in tests."""

    def __init__(self, products: Sequence[Product]):
        self.products = {product.id: product for product in products}
        self.requested: list[int] = []

    async def fetch_product(self, product_id: int) -> Product:
        self.requested.append(product_id)
        product = self.products.get(product_id)
        if product is None:
            raise CatalogError(product_id, "HTTP 404")
        return product

    async def fetch_products(self, product_ids: Sequence[int]) -> list[Product]:
        distinct = list(dict.fromkeys(product_ids))
        return await _gather_products(self.fetch_product(product_id) for product_id in distinct)
