import json
from decimal import Decimal

import httpx
import pytest

from core.settings import PayPalSettings
from infrastructure.external.payments.paypal_client import PayPalClient


PAYPAL_ORDER = {
    "id": "5O190127TN364715T",
    "status": "CREATED",
    "links": [
        {"href": "https://api.paypal.test/v2/checkout/orders/5O190127TN364715T", "rel": "self", "method": "GET"},
        {"href": "https://www.sandbox.paypal.com/checkoutnow?token=5O190127TN364715T", "rel": "approve", "method": "GET"},
    ],
}


class FakePayPal:
    """Routes requests by path and records them."""

    def __init__(self, order_status: str = "APPROVED", reference_id: str = None):
        self.requests: list[httpx.Request] = []
        self.order_status = order_status
        self.reference_id = reference_id

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/v1/oauth2/token":
            return httpx.Response(200, json={"access_token": "A21AA-token", "token_type": "Bearer"})
        if path == "/v2/checkout/orders" and request.method == "POST":
            return httpx.Response(201, json=PAYPAL_ORDER)
        if path.startswith("/v2/checkout/orders/") and request.method == "GET":
            body = {"id": path.rsplit("/", 1)[-1], "status": self.order_status}
            if self.reference_id is not None:
                body["purchase_units"] = [{"reference_id": self.reference_id}]
            return httpx.Response(200, json=body)
        if path.endswith("/refund"):
            return httpx.Response(201, json={"id": "1JU08902781691411", "status": "COMPLETED"})
        return httpx.Response(404, json={"message": "not found"})

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]


def _client(settings, urls, fake) -> PayPalClient:
    return PayPalClient(settings, urls=urls, transport=httpx.MockTransport(fake))


@pytest.mark.asyncio
async def test_create_order_returns_approval_link(paypal_settings, checkout_urls, make_order):
    fake = FakePayPal()
    client = _client(paypal_settings, checkout_urls, fake)

    result = await client.create_checkout_session(make_order(total="19.5"))

    assert result.success is True
    assert result.transaction_id == "5O190127TN364715T"
    assert result.redirect_url.startswith("https://www.sandbox.paypal.com/checkoutnow")
    assert fake.paths() == ["/v1/oauth2/token", "/v2/checkout/orders"]

    token_request, order_request = fake.requests
    assert token_request.headers["Authorization"].startswith("Basic ")
    assert b"grant_type=client_credentials" in token_request.content
    assert order_request.headers["Authorization"] == "Bearer A21AA-token"

    body = json.loads(order_request.content)
    assert body["intent"] == "CAPTURE"
    unit = body["purchase_units"][0]
    assert unit["reference_id"] == "ord_1"
    assert unit["amount"] == {"currency_code": "USD", "value": "19.50"}
    assert body["application_context"]["return_url"] == "https://shop.example.com/order/ord_1?success=true"
    assert body["application_context"]["cancel_url"] == "https://shop.example.com/order/ord_1?cancelled=true"
    await client.aclose()


@pytest.mark.asyncio
async def test_access_token_is_fetched_for_every_call(paypal_settings, checkout_urls, make_order):
    fake = FakePayPal()
    client = _client(paypal_settings, checkout_urls, fake)

    await client.create_checkout_session(make_order())
    await client.validate_payment(make_order(), {"token": "5O190127TN364715T"})

    assert fake.paths().count("/v1/oauth2/token") == 2


@pytest.mark.asyncio
async def test_gateway_error_becomes_failed_result(paypal_settings, checkout_urls, make_order):
    def _handler(request):
        if request.url.path == "/v1/oauth2/token":
            return httpx.Response(401, json={"error": "invalid_client", "error_description": "Client Authentication failed"})
        raise AssertionError("no further calls expected")

    client = PayPalClient(paypal_settings, urls=checkout_urls, transport=httpx.MockTransport(_handler))
    result = await client.create_checkout_session(make_order())

    assert result.success is False
    assert result.error == "Client Authentication failed"
    assert result.provider_response["error"] == "invalid_client"


@pytest.mark.asyncio
async def test_validate_checks_approved_status(paypal_settings, checkout_urls, make_order):
    approved = _client(paypal_settings, checkout_urls, FakePayPal("APPROVED"))
    created = _client(paypal_settings, checkout_urls, FakePayPal("CREATED"))

    assert await approved.validate_payment(make_order(), {"token": "5O190127TN364715T"}) is True
    assert await created.validate_payment(make_order(), {"token": "5O190127TN364715T"}) is False


@pytest.mark.asyncio
async def test_validate_falls_back_to_stored_order_id(paypal_settings, checkout_urls, make_order):
    fake = FakePayPal()
    client = _client(paypal_settings, checkout_urls, fake)
    order = make_order(transaction_id="5O190127TN364715T")

    assert await client.validate_payment(order, {}) is True
    assert fake.paths()[-1] == "/v2/checkout/orders/5O190127TN364715T"


@pytest.mark.asyncio
async def test_validate_rejects_token_other_than_stored(paypal_settings, checkout_urls, make_order):
    fake = FakePayPal(reference_id="other")
    client = _client(paypal_settings, checkout_urls, fake)
    order = make_order(order_id="mine", transaction_id="PAYPAL-MINE")

    assert await client.validate_payment(order, {"token": "PAYPAL-OTHER"}) is False
    assert fake.requests == []


@pytest.mark.asyncio
async def test_validate_rejects_order_approved_for_another_reference(paypal_settings, checkout_urls, make_order):
    other = _client(paypal_settings, checkout_urls, FakePayPal(reference_id="other"))
    own = _client(paypal_settings, checkout_urls, FakePayPal(reference_id="mine"))

    assert await other.validate_payment(make_order(order_id="mine"), {"token": "PAYPAL-OTHER"}) is False
    assert await own.validate_payment(make_order(order_id="mine"), {"token": "PAYPAL-MINE"}) is True


@pytest.mark.asyncio
async def test_validate_without_token_makes_no_request(paypal_settings, checkout_urls, make_order):
    fake = FakePayPal()
    client = _client(paypal_settings, checkout_urls, fake)
    assert await client.validate_payment(make_order(), {"token": ""}) is False
    assert fake.requests == []


@pytest.mark.asyncio
async def test_refund_without_capture_id_fails_without_calling_out(paypal_settings, checkout_urls, make_order):
    fake = FakePayPal()
    client = _client(paypal_settings, checkout_urls, fake)

    result = await client.refund_payment(make_order(transaction_id="5O190127TN364715T"))

    assert result.success is False
    assert "no capture id" in result.error.lower()
    assert fake.requests == []


@pytest.mark.asyncio
async def test_refund_with_capture_id(paypal_settings, checkout_urls, make_order):
    fake = FakePayPal()
    client = _client(paypal_settings, checkout_urls, fake)

    result = await client.refund_payment(make_order(total="100", capture_id="2GG279541U471931P"), Decimal("25"))

    assert result.success is True
    assert result.transaction_id == "1JU08902781691411"
    refund_request = fake.requests[-1]
    assert refund_request.url.path == "/v2/payments/captures/2GG279541U471931P/refund"
    assert json.loads(refund_request.content)["amount"] == {"value": "25.00", "currency_code": "USD"}


@pytest.mark.asyncio
async def test_not_configured(checkout_urls, make_order):
    fake = FakePayPal()
    client = _client(PayPalSettings(), checkout_urls, fake)

    created = await client.create_checkout_session(make_order())
    refunded = await client.refund_payment(make_order(capture_id="CAP"))

    assert created.error == "paypal not configured"
    assert refunded.error == "paypal not configured"
    assert await client.validate_payment(make_order(), {"token": "X"}) is False
    assert fake.requests == []
