"""Payment assembler registry.

Processor integrations register a factory under a name; configuration picks
one with get_assembler(settings.payment_processor).
"""

from collections.abc import Callable

from .paypal_adapter import PayPalAssembler
from .port import PaymentAssembler, PaymentContext, PaymentRequest, RedirectUrls

_factories: dict[str, Callable[[], PaymentAssembler]] = {
    PayPalAssembler.name: PayPalAssembler,
}


def register_assembler(name: str, factory: Callable[[], PaymentAssembler]) -> None:
    _factories[name.strip().lower()] = factory


def get_assembler(name: str) -> PaymentAssembler:
    factory = _factories.get(name.strip().lower())
    if factory is None:
        known = ", ".join(sorted(_factories))
        raise ValueError(f"Unknown payment processor {name!r} (known: {known})")
    return factory()


def available_assemblers() -> list[str]:
    return sorted(_factories)


__all__ = [
    "PayPalAssembler",
    "PaymentAssembler",
    "PaymentContext",
    "PaymentRequest",
    "RedirectUrls",
    "available_assemblers",
    "get_assembler",
    "register_assembler",
]
