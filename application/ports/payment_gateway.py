"""
Payment strategy port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional, Protocol, runtime_checkable

from application.dtos.payments import PaymentResult
from domain.order.entity import Order


@runtime_checkable
class PaymentStrategy(Protocol):
    """Uniform contract over the external payment gateways.

    Gateway-side failures (network, auth, parsing, missing configuration) are
    reported through ``PaymentResult(success=False)`` or ``False``; only
    programmer errors such as an order without an id may raise.
    Implementations hold no per-order state between calls.
    """

    provider: str

    def get_provider_name(self) -> str: ...

    async def create_checkout_session(self, order: Order) -> PaymentResult: ...

    async def validate_payment(self, order: Order, confirmation: dict[str, Any]) -> bool: ...

    async def refund_payment(self, order: Order, amount: Optional[Decimal] = None) -> PaymentResult: ...

    async def aclose(self) -> None: ...


@runtime_checkable
class PaymentProviderResolver(Protocol):
    """Resolves a logical provider name to its strategy (case-insensitive)."""

    def resolve(self, name: str) -> PaymentStrategy: ...

    def available_providers(self) -> list[str]: ...
