from __future__ import annotations

# Categories map onto the HTTP status the web layer should answer with.
CATEGORY_CLIENT = "client"
CATEGORY_NOT_FOUND = "not_found"
CATEGORY_FAILED_DEPENDENCY = "failed_dependency"
CATEGORY_INTERNAL = "internal"


class TallyError(Exception):
    category = CATEGORY_INTERNAL


class ValidationError(TallyError):
    """Payload did not match the expected schema.

    `errors` maps a field name to the list of problems found for it.
    """

    category = CATEGORY_CLIENT

    def __init__(self, errors: dict[str, list[str]]):
        self.errors = errors
        details = "; ".join(f"{field}: {', '.join(problems)}" for field, problems in errors.items())
        super().__init__(f"Invalid payload: {details}")


class OrderNotFound(TallyError):
    category = CATEGORY_NOT_FOUND

    def __init__(self, order_id: int):
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found")


class MissingCurrency(TallyError):
    category = CATEGORY_CLIENT

    def __init__(self, order_id: int | None):
        self.order_id = order_id
        super().__init__(f"Order {order_id} has no cached total and no currency was given to compute one")


class CatalogError(TallyError):
    category = CATEGORY_FAILED_DEPENDENCY

    def __init__(self, product_id: int | str, message: str):
        self.product_id = product_id
        super().__init__(f"Catalog lookup for product {product_id} failed: {message}")


class PricingError(TallyError):
    category = CATEGORY_FAILED_DEPENDENCY


class NoPriceForProduct(PricingError):
    def __init__(self, sku: str | None, currency: str):
        self.sku = sku
        self.currency = currency
        super().__init__(f"No active {currency} price for product {sku}")


class PaymentAssemblyError(TallyError):
    pass


class MissingOrderID(PaymentAssemblyError):
    def __init__(self) -> None:
        super().__init__("Order has not been persisted yet and has no id")


class PriceResolutionFailed(PaymentAssemblyError):
    category = CATEGORY_FAILED_DEPENDENCY

    def __init__(self, cause: PricingError):
        self.cause = cause
        super().__init__(f"Price resolution failed: {cause}")


class TokenError(TallyError):
    pass


class MissingEmailForToken(TokenError):
    def __init__(self, order_id: int | None):
        self.order_id = order_id
        super().__init__(f"Guest order {order_id} has no email to bind an auth token to")
