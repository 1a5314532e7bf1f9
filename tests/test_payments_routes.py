import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_payment_service
from application.dtos.payments import PaymentResult
from application.services.payment_service import PaymentOrchestrationService
from infrastructure.external.payments import PaymentProviderRegistry
from shared.codes.payment_codes import PaymentCode


class StubStrategy:
    def __init__(self, provider, result):
        self.provider = provider
        self.result = result

    def get_provider_name(self):
        return self.provider

    async def create_checkout_session(self, order):
        return self.result

    async def validate_payment(self, order, confirmation):
        return confirmation.get("resultIndicator") == "ind_ok"

    async def refund_payment(self, order, amount=None):
        return PaymentResult.failure(f"{self.provider} refund not implemented")

    async def aclose(self):
        return None


@pytest.fixture
def client(uow_factory, order_repository, make_order):
    from main import app

    registry = PaymentProviderRegistry([
        StubStrategy("combank", PaymentResult.failure("Session creation failed, try again in few minutes")),
        StubStrategy("paypal", PaymentResult(success=True, transaction_id="5O19", redirect_url="https://paypal.test/approve")),
    ])
    service = PaymentOrchestrationService(uow_factory=uow_factory, registry=registry, default_provider="combank")
    order_repository.orders["ord_1"] = make_order()
    app.dependency_overrides[get_payment_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_routes_registered():
    from main import app
    routes = {r.path for r in app.routes}
    assert "/api/v1/payments/providers" in routes
    assert "/api/v1/payments/validate/{order_id}" in routes
    assert "/api/v1/payments/refund/{order_id}" in routes
    assert "/api/v1/payments/combank/{order_id}" in routes
    assert "/api/v1/payments/{provider}/{order_id}" in routes
    assert "/health" in routes


def test_list_providers(client):
    resp = client.get("/api/v1/payments/providers")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"providers": ["combank", "paypal"]}


def test_session_success_envelope(client):
    resp = client.post("/api/v1/payments/paypal/ord_1")
    body = resp.json()
    assert resp.status_code == 200
    assert body["message"] == "Session created successfully"
    assert body["data"]["transaction_id"] == "5O19"
    assert body["data"]["redirect_url"] == "https://paypal.test/approve"


def test_session_failure_envelope(client):
    resp = client.post("/api/v1/payments/combank/ord_1")
    body = resp.json()
    assert resp.status_code == 200
    assert body["data"] is None
    assert body["code"] == PaymentCode.SESSION_FAILED
    assert body["message"].startswith("error: Session creation failed")
    assert body["error"]["type"] == "PaymentSessionFailed"


def test_unknown_provider_and_order_are_404(client):
    assert client.post("/api/v1/payments/bitcoin/ord_1").status_code == 404
    assert client.post("/api/v1/payments/combank/missing").status_code == 404


def test_validate_route(client, order_repository):
    resp = client.post("/api/v1/payments/validate/ord_1", json={"resultIndicator": "ind_ok"})
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "paid"
    assert order_repository.orders["ord_1"].is_paid is True


def test_refund_failure_is_reported(client, order_repository):
    resp = client.post("/api/v1/payments/refund/ord_1", json={"amount": 10})
    body = resp.json()
    assert body["code"] == PaymentCode.REFUND_FAILED
    assert body["message"] == "combank refund not implemented"
    assert order_repository.update_calls == 0


def test_refund_rejects_non_positive_amount(client):
    assert client.post("/api/v1/payments/refund/ord_1", json={"amount": 0}).status_code == 422
