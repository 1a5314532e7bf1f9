"""
Commercial Bank (Mastercard Payment Gateway Services) NVP adapter.

Session creation posts a form-encoded name/value request and receives an
ampersand-joined ``key=value`` body. Confirmation is local: the storefront
returns the ``resultIndicator`` from the hosted page redirect, and the
payment counts as confirmed only when it equals the ``successIndicator``
captured at session creation. That is a shared-secret comparison, not a
signature check.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

import httpx

from application.dtos.payments import PaymentResult
from core.settings import CheckoutUrls, CombankSettings
from domain.common.exceptions import DomainValidationException
from domain.order.entity import Order
from infrastructure.external.payments.base import BasePaymentClient
from shared.codes.payment_codes import CONFIRMED_STATUS


SESSION_FAILED_MESSAGE = "Session creation failed, try again in few minutes"


class CombankClient(BasePaymentClient):
    provider = "combank"

    # NVP response key -> PaymentResult / record field
    RESPONSE_FIELDS = {
        "result": "result",
        "session.id": "session_id",
        "session.version": "session_version",
        "session.updateStatus": "session_update_status",
        "successIndicator": "success_indicator",
        "merchant": "merchant",
    }

    confirmation_fields = {
        "resultIndicator": "result_indicator",
        "sessionVersion": "session_version",
    }

    def __init__(
        self,
        config: CombankSettings,
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

    @staticmethod
    def _format_amount(amount: Decimal) -> str:
        # Plain decimal text without exponent or padding zeros: 50000 -> "50000", 12.50 -> "12.5"
        return format(amount.normalize(), "f")

    def build_session_request(self, order: Order) -> dict[str, str]:
        order_id = order.require_id()
        description = f"{order.customer_name or ''} {order.customer_email or ''}".strip()
        return {
            "apiOperation": "CREATE_CHECKOUT_SESSION",
            "apiUsername": self._config.api_username or "",
            "apiPassword": self._config.api_password or "",
            "merchant": self._config.merchant_id or "",
            "order.id": order_id,
            "order.amount": self._format_amount(order.total_amount),
            "order.currency": self._config.currency,
            "order.description": description,
            "interaction.operation": "PURCHASE",
            "interaction.returnUrl": f"{self.order_url(order)}/",
            "interaction.merchant.name": self._urls.merchant_name,
        }

    @classmethod
    def parse_nvp(cls, body: str) -> dict[str, Optional[str]]:
        """Split literally on '&' then '='.

        Values are not unescaped, and a value containing '&' or '=' is
        truncated; the gateway's NVP bodies are parsed exactly this way.
        """
        parsed: dict[str, Optional[str]] = {}
        for pair in (body or "").split("&"):
            parts = pair.split("=")
            field = cls.RESPONSE_FIELDS.get(parts[0])
            if field:
                parsed[field] = parts[1] if len(parts) > 1 else None
        return parsed

    async def create_checkout_session(self, order: Order) -> PaymentResult:
        order_id = order.require_id()
        try:
            self._ensure_configured()
            params = self.build_session_request(order)
            response = await self._send(
                "POST",
                self._config.api_url,
                data=params,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
            parsed = self.parse_nvp(response.text)
        except DomainValidationException:
            raise
        except Exception as exc:
            return self._failure(exc, "combank session creation failed")

        provider_response = {"orderId": order_id, **parsed}
        if parsed.get("result") != CONFIRMED_STATUS[self.provider]:
            self._log("combank_session_rejected", order_id=order_id, result=parsed.get("result"))
            provider_response["raw"] = response.text
            return PaymentResult.failure(SESSION_FAILED_MESSAGE, provider_response)

        session_id = parsed.get("session_id")
        if not session_id:
            self._log("combank_session_missing_id", order_id=order_id)
            return PaymentResult.failure(SESSION_FAILED_MESSAGE, provider_response)

        self._log("combank_session_created", order_id=order_id, session_id=session_id)
        return PaymentResult(
            success=True,
            transaction_id=session_id,
            session_id=session_id,
            session_version=parsed.get("session_version"),
            success_indicator=parsed.get("success_indicator"),
            merchant=parsed.get("merchant"),
            provider_response=provider_response,
        )

    async def validate_payment(self, order: Order, confirmation: dict[str, Any]) -> bool:
        result_indicator = confirmation.get("resultIndicator") if isinstance(confirmation, dict) else None
        expected = order.payment_result.success_indicator
        if not isinstance(result_indicator, str) or not result_indicator or not expected:
            return False
        return result_indicator == expected

    async def refund_payment(self, order: Order, amount: Optional[Decimal] = None) -> PaymentResult:
        return PaymentResult.failure(f"{self.provider} refund not implemented")
