"""
Payment provider registry: the fixed set of adapters keyed by provider name.

Adapters are constructed eagerly from explicit config objects. A provider
whose credentials or SDK are missing still registers; its operations then
report "<provider> not configured".
"""
from __future__ import annotations

from typing import Iterable, Optional

import httpx

from application.ports.payment_gateway import PaymentStrategy
from core.logging_config import get_logger
from core.settings import PaymentSettings, payment_settings
from domain.common.exceptions import PaymentProviderNotFoundException
from infrastructure.external.payments.combank_client import CombankClient
from infrastructure.external.payments.paypal_client import PayPalClient
from infrastructure.external.payments.stripe_client import StripeClient


logger = get_logger(__name__)


class PaymentProviderRegistry:
    def __init__(self, providers: Iterable[PaymentStrategy]):
        self._providers: dict[str, PaymentStrategy] = {}
        for strategy in providers:
            self._providers[strategy.get_provider_name().lower()] = strategy

    def resolve(self, name: str) -> PaymentStrategy:
        strategy = self._providers.get((name or "").strip().lower())
        if strategy is None:
            raise PaymentProviderNotFoundException(name)
        return strategy

    def available_providers(self) -> list[str]:
        return list(self._providers)

    def is_available(self, name: str) -> bool:
        return (name or "").strip().lower() in self._providers

    def __contains__(self, name: str) -> bool:
        return self.is_available(name)

    async def aclose(self) -> None:
        for strategy in self._providers.values():
            try:
                await strategy.aclose()
            except Exception as exc:
                logger.warning("payment_provider_close_failed", provider=strategy.get_provider_name(), error=str(exc))


def build_payment_registry(
    settings: Optional[PaymentSettings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    stripe_sdk=None,
) -> PaymentProviderRegistry:
    cfg = settings or payment_settings
    common = {
        "urls": cfg.checkout,
        "timeouts": cfg.timeouts.model_dump(),
        "retry": {"max": cfg.retry.max, "base": cfg.retry.base_backoff},
    }
    registry = PaymentProviderRegistry(
        [
            CombankClient(cfg.combank, transport=transport, **common),
            PayPalClient(cfg.paypal, transport=transport, **common),
            StripeClient(cfg.stripe, sdk=stripe_sdk, **common),
        ]
    )
    logger.info(
        "payment_registry_built",
        providers=registry.available_providers(),
        configured=[name for name in registry.available_providers() if registry.resolve(name).configured],
    )
    return registry


_registry: Optional[PaymentProviderRegistry] = None


def get_payment_registry() -> PaymentProviderRegistry:
    """Process-wide registry built from payment_settings."""
    global _registry
    if _registry is None:
        _registry = build_payment_registry(payment_settings)
    return _registry
