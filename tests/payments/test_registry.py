import httpx
import pytest

from core.settings import PaymentSettings, StripeSettings
from domain.common.exceptions import PaymentProviderNotFoundException
from infrastructure.external.payments import PaymentProviderRegistry, build_payment_registry
from infrastructure.external.payments.combank_client import CombankClient
from infrastructure.external.payments.paypal_client import PayPalClient
from infrastructure.external.payments.stripe_client import StripeClient


@pytest.fixture
def registry(combank_settings, paypal_settings, checkout_urls):
    settings = PaymentSettings(
        combank=combank_settings,
        paypal=paypal_settings,
        stripe=StripeSettings(secret_key=None),
        checkout=checkout_urls,
    )
    return build_payment_registry(settings, transport=httpx.MockTransport(lambda r: httpx.Response(500)))


def test_registers_fixed_provider_set(registry):
    assert registry.available_providers() == ["combank", "paypal", "stripe"]


def test_resolve_is_case_insensitive(registry):
    assert isinstance(registry.resolve("combank"), CombankClient)
    assert isinstance(registry.resolve("PayPal"), PayPalClient)
    assert isinstance(registry.resolve(" STRIPE "), StripeClient)
    assert registry.is_available("Stripe")
    assert "paypal" in registry


def test_unknown_provider_raises_lookup_error(registry):
    with pytest.raises(PaymentProviderNotFoundException) as exc_info:
        registry.resolve("bitcoin")
    assert isinstance(exc_info.value, LookupError)
    assert "bitcoin" in exc_info.value.message
    assert not registry.is_available("bitcoin")


def test_unconfigured_provider_still_registers(registry):
    stripe = registry.resolve("stripe")
    assert stripe.configured is False
    assert registry.resolve("combank").configured is True


def test_adapters_receive_their_own_config(registry, combank_settings):
    combank = registry.resolve("combank")
    assert combank._config == combank_settings


@pytest.mark.asyncio
async def test_aclose_closes_every_adapter():
    closed = []

    class _Adapter:
        def __init__(self, name):
            self.provider = name

        def get_provider_name(self):
            return self.provider

        async def aclose(self):
            closed.append(self.provider)

    registry = PaymentProviderRegistry([_Adapter("combank"), _Adapter("PayPal")])
    assert registry.available_providers() == ["combank", "paypal"]
    await registry.aclose()
    assert closed == ["combank", "PayPal"]
