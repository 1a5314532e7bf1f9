"""
PayPal Orders v2 adapter over the REST API (httpx).

Every operation first exchanges the client credentials for a bearer token
(OAuth2 client-credentials grant); tokens are not cached.

Validation only checks that the buyer approved the order. No capture is
performed, so ``capture_id`` is never populated by this flow and refunds
fail until a capture id is recorded some other way.
"""
from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Optional

import httpx

from application.dtos.payments import PaymentResult
from core.settings import CheckoutUrls, PayPalSettings
from domain.common.exceptions import DomainValidationException
from domain.order.entity import Order
from infrastructure.external.payments.base import BasePaymentClient
from infrastructure.external.payments.exceptions import PaymentProviderError
from shared.codes.payment_codes import CONFIRMED_STATUS


class PayPalClient(BasePaymentClient):
    provider = "paypal"

    def __init__(
        self,
        config: PayPalSettings,
        *,
        urls: Optional[CheckoutUrls] = None,
        timeouts: Optional[dict[str, float]] = None,
        retry: Optional[dict[str, Any]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(urls=urls, timeouts=timeouts, retry=retry, transport=transport)
        self._config = config

    @property
    def configured(self) -> bool:
        return self._config.configured

    def _url(self, path: str) -> str:
        return f"{self._config.api_url.rstrip('/')}{path}"

    @staticmethod
    def _money(amount: Decimal) -> str:
        return str(Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))

    async def _get_access_token(self) -> str:
        response = await self._send(
            "POST",
            self._url("/v1/oauth2/token"),
            data={"grant_type": "client_credentials"},
            auth=(self._config.client_id or "", self._config.client_secret or ""),
        )
        token = self._body(response)
        token = token.get("access_token") if isinstance(token, dict) else None
        if not token:
            raise PaymentProviderError("paypal token response missing access_token", provider=self.provider)
        return token

    async def _authorized(self) -> dict[str, str]:
        token = await self._get_access_token()
        return {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}

    def build_order_request(self, order: Order) -> dict[str, Any]:
        order_id = order.require_id()
        order_url = self.order_url(order)
        return {
            "intent": "CAPTURE",
            "purchase_units": [
                {
                    "reference_id": order_id,
                    "amount": {
                        "currency_code": self._config.currency,
                        "value": self._money(order.total_amount),
                    },
                    "description": f"Order {order_id} - {order.customer_name or 'Customer'}",
                }
            ],
            "application_context": {
                "return_url": f"{order_url}?success=true",
                "cancel_url": f"{order_url}?cancelled=true",
                "brand_name": self._urls.merchant_name,
            },
        }

    async def create_checkout_session(self, order: Order) -> PaymentResult:
        order_id = order.require_id()
        try:
            self._ensure_configured()
            payload = self.build_order_request(order)
            headers = await self._authorized()
            response = await self._send("POST", self._url("/v2/checkout/orders"), json=payload, headers=headers)
            data = self._body(response)
            if not isinstance(data, dict) or not data.get("id"):
                raise PaymentProviderError(
                    "paypal order response missing id",
                    provider=self.provider,
                    provider_response=data,
                )
        except DomainValidationException:
            raise
        except Exception as exc:
            return self._failure(exc, "PayPal session creation failed")

        approve = next(
            (link.get("href") for link in data.get("links") or [] if link.get("rel") == "approve"),
            None,
        )
        self._log("paypal_order_created", order_id=order_id, paypal_order_id=data["id"])
        return PaymentResult(
            success=True,
            transaction_id=str(data["id"]),
            redirect_url=approve,
            provider_response=data,
        )

    async def validate_payment(self, order: Order, confirmation: dict[str, Any]) -> bool:
        supplied = confirmation.get("token") if isinstance(confirmation, dict) else None
        stored = order.payment_result.transaction_id or order.payment_result.session_id
        if supplied and stored and supplied != stored:
            self._log("paypal_order_mismatch", order_id=order.id, token=supplied)
            return False
        token = supplied or stored
        if not isinstance(token, str) or not token:
            return False
        try:
            self._ensure_configured()
            headers = await self._authorized()
            response = await self._send("GET", self._url(f"/v2/checkout/orders/{token}"), headers=headers)
            data = self._body(response)
        except Exception as exc:
            self._log("paypal_validation_failed", order_id=order.id, error=str(exc))
            return False
        if not isinstance(data, dict):
            return False
        references = {unit.get("reference_id") for unit in data.get("purchase_units") or [] if isinstance(unit, dict)}
        references.discard(None)
        if references and references != {order.id}:
            self._log("paypal_order_reference_mismatch", order_id=order.id, token=token)
            return False
        return data.get("status") == CONFIRMED_STATUS[self.provider]

    async def refund_payment(self, order: Order, amount: Optional[Decimal] = None) -> PaymentResult:
        refund_amount = order.refundable_amount(amount)
        try:
            self._ensure_configured()
            capture_id = order.payment_result.capture_id
            if not capture_id:
                raise PaymentProviderError("No capture ID found for refund", provider=self.provider)
            headers = await self._authorized()
            response = await self._send(
                "POST",
                self._url(f"/v2/payments/captures/{capture_id}/refund"),
                json={"amount": {"value": self._money(refund_amount), "currency_code": self._config.currency}},
                headers=headers,
            )
            data = self._body(response)
            refund_id = data.get("id") if isinstance(data, dict) else None
            if not refund_id:
                raise PaymentProviderError(
                    "paypal refund response missing id",
                    provider=self.provider,
                    provider_response=data,
                )
        except DomainValidationException:
            raise
        except Exception as exc:
            return self._failure(exc, "PayPal refund failed")

        self._log("paypal_refund_created", order_id=order.id, refund_id=refund_id, amount=str(refund_amount))
        return PaymentResult(success=True, transaction_id=str(refund_id), provider_response=data)
