"""Inbound payload schemas.

Storefront and catalog payloads arrive as loosely typed JSON with a mix of
snake_case and camelCase keys. Each schema validates one payload and turns
it into the matching domain dataclass from `tally.core.models`.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Annotated, Any

import pydantic
from pydantic import AfterValidator, AliasChoices, BaseModel, ConfigDict, Field, StrictBool, StrictInt, StrictStr

from .errors import ValidationError
from .models import (
    Address,
    Item,
    Order,
    OrderContent,
    OrderStatus,
    PaymentGenerationContent,
    PaymentStatus,
    Price,
    Product,
)

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def _blank_to_none(value: str | None) -> str | None:
    return value or None


def _as_utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


Text = Annotated[StrictStr | None, AfterValidator(_blank_to_none)]
Timestamp = Annotated[datetime | None, AfterValidator(_as_utc)]


def _field_path(loc: tuple[int | str, ...]) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
            continue
        name = _CAMEL_BOUNDARY.sub("_", part).lower()
        path = f"{path}.{name}" if path else name
    return path or "payload"


def to_validation_error(exc: pydantic.ValidationError) -> ValidationError:
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        errors.setdefault(_field_path(error["loc"]), []).append(error["msg"])
    return ValidationError(errors)


class PayloadSchema(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    @classmethod
    def validate_payload(cls, payload: Any) -> PayloadSchema:
        try:
            return cls.model_validate(payload)
        except pydantic.ValidationError as exc:
            raise to_validation_error(exc) from exc


class OrderPayload(PayloadSchema):
    id: StrictInt | None = None
    status: OrderStatus = OrderStatus.OPEN
    payment_status: PaymentStatus = Field(PaymentStatus.OPEN, validation_alias=AliasChoices("payment_status", "paymentStatus"))
    user_id: StrictInt | None = Field(None, validation_alias=AliasChoices("user_id", "userID"))
    firstname: Text = None
    lastname: Text = None
    email: Text = None
    phone: Text = None
    company: Text = None
    comment: Text = None
    paid_total: StrictInt = Field(0, ge=0, validation_alias=AliasChoices("paid_total", "paidTotal"))
    refunded_total: StrictInt = Field(0, ge=0, validation_alias=AliasChoices("refunded_total", "refundedTotal"))
    total: StrictInt | None = None
    created_at: Timestamp = Field(None, validation_alias=AliasChoices("created_at", "createdAt"))
    updated_at: Timestamp = Field(None, validation_alias=AliasChoices("updated_at", "updatedAt"))
    deleted_at: Timestamp = Field(None, validation_alias=AliasChoices("deleted_at", "deletedAt"))
    guest: StrictBool | None = None

    @pydantic.model_validator(mode="after")
    def guest_matches_user(self) -> OrderPayload:
        if self.guest is not None and self.guest != (self.user_id is None):
            raise ValueError(f"guest={self.guest} contradicts user_id={self.user_id}")
        return self

    def to_order(self) -> Order:
        return Order(**{name: getattr(self, name) for name in OrderPayload.model_fields})

    @classmethod
    def parse(cls, payload: Any) -> Order:
        return cls.validate_payload(payload).to_order()


class ItemPayload(PayloadSchema):
    id: StrictInt | None = None
    order_id: StrictInt | None = Field(None, validation_alias=AliasChoices("order_id", "orderID"))
    product_id: StrictInt = Field(validation_alias=AliasChoices("product_id", "productID"))
    quantity: StrictInt = Field(gt=0)
    tax_code: Text = Field(None, validation_alias=AliasChoices("tax_code", "taxCode"))

    def to_item(self, order_id: int | None = None) -> Item:
        return Item(
            id=self.id,
            order_id=self.order_id if self.order_id is not None else order_id,
            product_id=self.product_id,
            quantity=self.quantity,
            tax_code=self.tax_code,
        )

    @classmethod
    def parse(cls, payload: Any, order_id: int | None = None) -> Item:
        return cls.validate_payload(payload).to_item(order_id)


class AddressPayload(PayloadSchema):
    id: StrictInt | None = None
    order_id: StrictInt | None = Field(None, validation_alias=AliasChoices("order_id", "orderID"))
    shipping: StrictBool | None = None
    street: Text = None
    street2: Text = None
    city: Text = None
    state: Text = None
    postal_code: Text = Field(None, validation_alias=AliasChoices("postal_code", "zip", "postalCode"))
    country: Text = None

    def to_address(self, shipping: bool | None = None) -> Address:
        flag = shipping if shipping is not None else self.shipping
        if flag is None:
            raise ValidationError({"shipping": ["Field required"]})
        return Address(
            id=self.id,
            order_id=self.order_id,
            shipping=flag,
            street=self.street,
            street2=self.street2,
            city=self.city,
            state=self.state,
            postal_code=self.postal_code,
            country=self.country,
        )

    @classmethod
    def parse(cls, payload: Any, shipping: bool | None = None) -> Address:
        return cls.validate_payload(payload).to_address(shipping)


class PricePayload(PayloadSchema):
    currency: StrictStr = Field(min_length=1)
    cents: StrictInt
    active: StrictBool = True


class ProductPayload(PayloadSchema):
    id: StrictInt
    sku: Text = None
    name: Text = None
    description: Text = None
    prices: list[PricePayload] = Field(default_factory=list)

    def to_product(self) -> Product:
        return Product(
            id=self.id,
            sku=self.sku,
            name=self.name,
            description=self.description,
            prices=tuple(Price(currency=p.currency, cents=p.cents, active=p.active) for p in self.prices),
        )

    @classmethod
    def parse(cls, payload: Any) -> Product:
        return cls.validate_payload(payload).to_product()


class PaymentContentPayload(PayloadSchema):
    currency: StrictStr = Field(min_length=1)
    shipping: StrictInt | None = None
    handling: StrictInt | None = None
    shipping_discount: StrictInt | None = Field(None, validation_alias=AliasChoices("shipping_discount", "shippingDiscount"))
    # storefront clients still send the misspelled key
    insurance: StrictInt | None = Field(None, validation_alias=AliasChoices("insurance", "insurence"))
    gift_wrap: StrictInt | None = Field(None, validation_alias=AliasChoices("gift_wrap", "giftWrap"))

    @classmethod
    def parse(cls, payload: Any) -> PaymentGenerationContent:
        return PaymentGenerationContent(**cls.validate_payload(payload).model_dump())


class OrderContentPayload(OrderPayload):
    """Checkout submission: order fields at the top level plus items and addresses."""

    items: list[ItemPayload] = Field(min_length=1)
    shipping_address: AddressPayload | None = Field(None, validation_alias=AliasChoices("shipping_address", "shippingAddress"))
    billing_address: AddressPayload | None = Field(None, validation_alias=AliasChoices("billing_address", "billingAddress"))

    @classmethod
    def parse(cls, payload: Any) -> OrderContent:
        content = cls.validate_payload(payload)
        return OrderContent(
            order=content.to_order(),
            items=[item.to_item() for item in content.items],
            shipping_address=content.shipping_address.to_address(shipping=True) if content.shipping_address else None,
            billing_address=content.billing_address.to_address(shipping=False) if content.billing_address else None,
        )
