from __future__ import annotations

import logging
from pathlib import Path

import pytest

from tally.catalog import StaticProductCatalog
from tally.config import Settings
from tally.core.db import OrderRepository, SqliteOrderStore
from tally.core.models import Address, Item, Order, OrderContent, Price, Product


class PerUnitTaxPolicy:
    """Fixed tax in minor units per unit, keyed by tax code."""

    def __init__(self, per_unit: dict[str, int]):
        self.per_unit = per_unit

    def unit_tax(self, tax_code: str | None, unit_price_cents: int) -> int:  # noqa: ARG002
        return self.per_unit.get(tax_code or "", 0)


@pytest.fixture()
def repository(tmp_path: Path):
    db_path = tmp_path / "tally.sqlite3"
    repo = OrderRepository(db_path)
    repo.migrate()
    try:
        yield repo
    finally:
        repo.close()


@pytest.fixture()
def store(repository) -> SqliteOrderStore:  # noqa: ANN001
    return SqliteOrderStore(repository)


@pytest.fixture()
def settings(tmp_path: Path, monkeypatch) -> Settings:  # noqa: ANN001
    root = tmp_path / "project"
    root.mkdir(parents=True, exist_ok=True)
    monkeypatch.delenv("TALLY_HOME", raising=False)
    s = Settings.load(base_dir=root)
    s.ensure_directories()
    return s


@pytest.fixture()
def test_logger() -> logging.Logger:
    logger = logging.getLogger("tally-test")
    logger.handlers.clear()
    logger.addHandler(logging.NullHandler())
    logger.setLevel(logging.INFO)
    return logger


@pytest.fixture()
def products() -> list[Product]:
    return [
        Product(
            id=1,
            sku="MUG-01",
            name="Mug",
            description="Stoneware mug",
            prices=(
                Price(currency="EUR", cents=450, active=True),
                Price(currency="USD", cents=450, active=False),
                Price(currency="usd", cents=500, active=True),
                Price(currency="USD", cents=999, active=True),
            ),
        ),
        Product(
            id=2,
            sku="LAMP-02",
            name="Desk lamp",
            description=None,
            prices=(Price(currency="USD", cents=1000, active=True),),
        ),
    ]


@pytest.fixture()
def catalog(products) -> StaticProductCatalog:  # noqa: ANN001
    return StaticProductCatalog(products)


@pytest.fixture()
def tax_policy() -> PerUnitTaxPolicy:
    return PerUnitTaxPolicy({"standard": 50})


@pytest.fixture()
def two_items() -> list[Item]:
    return [
        Item(id=10, order_id=1, product_id=1, quantity=2, tax_code="standard"),
        Item(id=11, order_id=1, product_id=2, quantity=1, tax_code=None),
    ]


def make_content(
    *,
    user_id: int | None = None,
    email: str | None = "ann@example.com",
    total: int | None = None,
    with_addresses: bool = True,
) -> OrderContent:
    return OrderContent(
        order=Order(
            user_id=user_id,
            firstname="Ann",
            lastname="Lee",
            email=email,
            phone="+1-555-0100",
            comment="leave at the door",
            total=total,
        ),
        items=[
            Item(product_id=1, quantity=2, tax_code="standard"),
            Item(product_id=2, quantity=1),
        ],
        shipping_address=Address(
            shipping=True,
            street="1 Main St",
            city="Springfield",
            state="IL",
            postal_code="62701",
            country="US",
        )
        if with_addresses
        else None,
        billing_address=Address(
            shipping=False,
            street="PO Box 7",
            city="Springfield",
            postal_code="62701",
            country="US",
        )
        if with_addresses
        else None,
    )


@pytest.fixture()
def stored_order_id(repository) -> int:  # noqa: ANN001
    return repository.create_order(make_content())


@pytest.fixture()
def content_factory():
    return make_content
