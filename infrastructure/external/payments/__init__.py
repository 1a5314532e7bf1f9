"""
Payment gateway adapters and the provider registry.
"""
from __future__ import annotations

from .registry import PaymentProviderRegistry, build_payment_registry, get_payment_registry

__all__ = ["PaymentProviderRegistry", "build_payment_registry", "get_payment_registry"]
