from __future__ import annotations

from datetime import timezone

import pytest

from tally.core.errors import ValidationError
from tally.core.models import Address, Item, Order, OrderStatus, PaymentStatus
from tally.core.schemas import (
    AddressPayload,
    ItemPayload,
    OrderContentPayload,
    OrderPayload,
    PaymentContentPayload,
    ProductPayload,
)


def test_guest_is_derived_from_user_id() -> None:
    assert Order(user_id=None).guest is True
    assert Order(user_id=42).guest is False


def test_contradicting_guest_flag_is_rejected() -> None:
    with pytest.raises(ValidationError) as excinfo:
        Order(user_id=42, guest=True)
    assert "guest" in excinfo.value.errors

    with pytest.raises(ValidationError) as excinfo:
        OrderPayload.parse({"userID": None, "guest": False})
    assert "contradicts" in str(excinfo.value)


def test_negative_paid_total_is_rejected() -> None:
    with pytest.raises(ValidationError):
        Order(paid_total=-1)
    with pytest.raises(ValidationError) as excinfo:
        OrderPayload.parse({"paid_total": -1})
    assert "paid_total" in excinfo.value.errors


def test_order_from_camel_case_payload() -> None:
    order = OrderPayload.parse(
        {
            "id": 7,
            "userID": 3,
            "paymentStatus": "paid",
            "status": "submitted",
            "paidTotal": 2100,
            "firstname": " Ann ",
            "lastname": "",
            "createdAt": "2024-03-01T10:00:00",
        }
    )

    assert isinstance(order, Order)
    assert order.id == 7
    assert order.user_id == 3
    assert order.guest is False
    assert order.status is OrderStatus.SUBMITTED
    assert order.payment_status is PaymentStatus.PAID
    assert order.paid_total == 2100
    assert order.firstname == "Ann"
    assert order.lastname is None
    assert order.created_at is not None and order.created_at.tzinfo == timezone.utc


def test_order_payload_errors_are_collected_per_field() -> None:
    with pytest.raises(ValidationError) as excinfo:
        OrderPayload.parse({"id": "seven", "status": "lost", "paid_total": 1.5})

    assert set(excinfo.value.errors) == {"id", "status", "paid_total"}
    assert excinfo.value.category == "client"


def test_non_object_payload_is_rejected() -> None:
    with pytest.raises(ValidationError) as excinfo:
        OrderPayload.parse(["not", "an", "order"])
    assert "payload" in excinfo.value.errors


def test_recipient_name_skips_missing_parts() -> None:
    assert Order(firstname="Ann", lastname="Lee").recipient_name == "Ann Lee"
    assert Order(firstname="Ann").recipient_name == "Ann"
    assert Order(lastname="Lee").recipient_name == "Lee"
    assert Order().recipient_name is None


@pytest.mark.parametrize("quantity", [0, -1, True, 1.5])
def test_item_quantity_must_be_positive_int(quantity) -> None:  # noqa: ANN001
    with pytest.raises(ValidationError):
        Item(product_id=1, quantity=quantity)
    with pytest.raises(ValidationError) as excinfo:
        ItemPayload.parse({"productID": 1, "quantity": quantity})
    assert "quantity" in excinfo.value.errors


def test_item_payload_requires_product_and_quantity() -> None:
    with pytest.raises(ValidationError) as excinfo:
        ItemPayload.parse({})
    assert set(excinfo.value.errors) == {"product_id", "quantity"}

    item = ItemPayload.parse({"productID": 5, "quantity": 2, "taxCode": "standard"}, order_id=9)
    assert (item.product_id, item.quantity, item.tax_code, item.order_id) == (5, 2, "standard", 9)


def test_numeric_strings_are_not_quantities() -> None:
    with pytest.raises(ValidationError):
        ItemPayload.parse({"productID": 1, "quantity": "2"})


def test_address_aliases_and_deliverability() -> None:
    address = AddressPayload.parse(
        {"street": "1 Main St", "city": "Springfield", "zip": "62701", "country": "US"},
        shipping=True,
    )
    assert address.postal_code == "62701"
    assert address.is_deliverable
    assert address.to_dict() == {
        "street": "1 Main St",
        "city": "Springfield",
        "zip": "62701",
        "country": "US",
        "shipping": True,
    }

    assert not Address(shipping=True, street="1 Main St", city="Springfield", country="US").is_deliverable


def test_address_needs_a_shipping_flag() -> None:
    with pytest.raises(ValidationError) as excinfo:
        AddressPayload.parse({"street": "1 Main St"})
    assert "shipping" in excinfo.value.errors

    assert AddressPayload.parse({"postalCode": "10115", "shipping": False}).postal_code == "10115"


def test_product_payload_reads_prices() -> None:
    product = ProductPayload.parse(
        {
            "id": 1,
            "sku": "MUG-01",
            "name": "Mug",
            "prices": [
                {"currency": "USD", "cents": 500},
                {"currency": "EUR", "cents": 450, "active": False},
            ],
        }
    )
    assert product.prices[0].active is True
    assert product.prices[1].active is False


def test_product_payload_reports_bad_price_entries() -> None:
    with pytest.raises(ValidationError) as excinfo:
        ProductPayload.parse({"id": 1, "prices": [{"currency": "USD"}, "oops"]})
    assert "prices[0].cents" in excinfo.value.errors
    assert "prices[1]" in excinfo.value.errors


def test_payment_content_accepts_misspelled_insurance() -> None:
    content = PaymentContentPayload.parse(
        {"currency": "USD", "shippingDiscount": 100, "insurence": 25, "giftWrap": 10}
    )
    assert content.shipping_discount == 100
    assert content.insurance == 25
    assert content.gift_wrap == 10
    assert content.shipping is None

    with pytest.raises(ValidationError) as excinfo:
        PaymentContentPayload.parse({"shipping": 300})
    assert "currency" in excinfo.value.errors


def test_order_content_needs_items() -> None:
    with pytest.raises(ValidationError) as excinfo:
        OrderContentPayload.parse({"email": "ann@example.com", "items": []})
    assert "items" in excinfo.value.errors

    with pytest.raises(ValidationError) as excinfo:
        OrderContentPayload.parse({"email": "ann@example.com"})
    assert "items" in excinfo.value.errors


def test_order_content_is_parsed_from_checkout_payload() -> None:
    content = OrderContentPayload.parse(
        {
            "email": "ann@example.com",
            "items": [{"productID": 1, "quantity": 2}],
            "shippingAddress": {"street": "1 Main St", "city": "Springfield", "zip": "62701", "country": "US"},
        }
    )
    assert content.order.guest is True
    assert content.order.email == "ann@example.com"
    assert content.items[0].quantity == 2
    assert content.shipping_address is not None and content.shipping_address.shipping is True
    assert content.billing_address is None


def test_order_content_reports_nested_paths() -> None:
    with pytest.raises(ValidationError) as excinfo:
        OrderContentPayload.parse(
            {
                "items": [{"productID": 1, "quantity": 1}, {"productID": 2, "quantity": 0}],
                "billingAddress": "nowhere",
            }
        )
    assert "items[1].quantity" in excinfo.value.errors
    assert "billing_address" in excinfo.value.errors
