from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any

from .errors import ValidationError

if TYPE_CHECKING:
    from tally.pricing.tax import TaxPolicy


class OrderStatus(str, Enum):
    OPEN = "open"
    SUBMITTED = "submitted"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    OPEN = "open"
    PENDING = "pending"
    PAID = "paid"
    PARTIALLY_REFUNDED = "partially_refunded"
    REFUNDED = "refunded"
    FAILED = "failed"


@dataclass(slots=True)
class Order:
    id: int | None = None
    status: OrderStatus = OrderStatus.OPEN
    payment_status: PaymentStatus = PaymentStatus.OPEN
    user_id: int | None = None
    firstname: str | None = None
    lastname: str | None = None
    email: str | None = None
    phone: str | None = None
    company: str | None = None
    comment: str | None = None
    paid_total: int = 0
    refunded_total: int = 0
    total: int | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None
    guest: bool | None = None

    def __post_init__(self) -> None:
        if self.guest is None:
            self.guest = self.user_id is None
        elif self.guest != (self.user_id is None):
            raise ValidationError({"guest": [f"guest={self.guest} contradicts user_id={self.user_id}"]})
        if self.paid_total < 0 or self.refunded_total < 0:
            raise ValidationError({"paid_total": ["paid and refunded totals must not be negative"]})

    @property
    def recipient_name(self) -> str | None:
        parts = [part for part in (self.firstname, self.lastname) if part]
        return " ".join(parts) or None


@dataclass(slots=True)
class Item:
    product_id: int
    quantity: int
    tax_code: str | None = None
    id: int | None = None
    order_id: int | None = None

    def __post_init__(self) -> None:
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int) or self.quantity <= 0:
            raise ValidationError({"quantity": [f"must be a positive integer, got {self.quantity!r}"]})

    def total(self, unit_price_cents: int) -> int:
        return self.quantity * unit_price_cents

    def tax(self, unit_price_cents: int, policy: TaxPolicy) -> int:
        return self.quantity * policy.unit_tax(self.tax_code, unit_price_cents)


@dataclass(slots=True)
class Address:
    shipping: bool
    street: str | None = None
    street2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None
    id: int | None = None
    order_id: int | None = None

    @property
    def is_deliverable(self) -> bool:
        return all((self.street, self.city, self.country, self.postal_code))

    def to_dict(self) -> dict[str, Any]:
        payload = {
            "id": self.id,
            "street": self.street,
            "street2": self.street2,
            "city": self.city,
            "state": self.state,
            "zip": self.postal_code,
            "country": self.country,
            "shipping": self.shipping,
        }
        return {key: value for key, value in payload.items() if value is not None}


@dataclass(frozen=True, slots=True)
class Price:
    currency: str
    cents: int
    active: bool = True

    def matches(self, currency: str) -> bool:
        return self.active and self.currency.casefold() == currency.casefold()


@dataclass(frozen=True, slots=True)
class Product:
    id: int
    sku: str | None
    name: str | None
    description: str | None = None
    prices: tuple[Price, ...] = ()


@dataclass(slots=True)
class PaymentGenerationContent:
    currency: str
    shipping: int | None = None
    handling: int | None = None
    shipping_discount: int | None = None
    insurance: int | None = None
    gift_wrap: int | None = None


@dataclass(slots=True)
class OrderContent:
    """Checkout submission: the order with its line items and addresses."""

    order: Order
    items: list[Item] = field(default_factory=list)
    shipping_address: Address | None = None
    billing_address: Address | None = None
